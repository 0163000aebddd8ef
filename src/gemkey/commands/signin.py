"""Sign-in commands -- obtain or discard the API key for a host.

Provides the ``gemkey signin`` and ``gemkey signout`` commands. Both are
plain callbacks registered directly on the root app.

Typical workflow::

    gemkey signin                          # default host (RubyGems.org)
    gemkey signin https://gems.example.com # host-specific key
    GEM_HOST_OTP_CODE=123456 gemkey signin # pre-seeded OTP code
    gemkey signout
"""

from __future__ import annotations

from typing import Optional

import typer

from gemkey.output import error, get_output, success, suggest


def _make_client(settings):  # noqa: ANN001, ANN202
    """Build the remote auth client used by ``signin``."""
    from gemkey.client import HttpxAuthClient

    return HttpxAuthClient(timeout=settings.timeout)


def _make_io():  # noqa: ANN202
    """Build the interactive prompt implementation used by ``signin``."""
    from gemkey.terminal import ConsoleIO

    return ConsoleIO(no_color=get_output().no_color)


def signin_command(
    ctx: typer.Context,
    host: Optional[str] = typer.Argument(
        None, help="Host to sign in to. Defaults to $RUBYGEMS_HOST or https://rubygems.org."
    ),
    key: Optional[str] = typer.Option(
        None, "--key", "-k", help="Use the named key from the credentials file."
    ),
    otp: Optional[str] = typer.Option(
        None, "--otp", help="OTP code for the first key request (overrides $GEM_HOST_OTP_CODE)."
    ),
) -> None:
    """Sign in to a package host and store the issued API key.

    Does nothing (and prints nothing) when a key for the host, the
    default key, or the ``--key`` named key is already stored. Otherwise
    prompts for email and password, answers the OTP challenge if the
    account has multi-factor auth enabled, and saves the new key.

    Raises:
        typer.Exit: With code 3 if the host rejects the sign-in, 4 if the
            ``--key`` name is unknown, 6 on network failure, 7 if the
            credentials file is corrupt.

    Example::

        gemkey signin
        gemkey signin https://gems.example.com --otp 123456
    """
    from gemkey.auth import CredentialStore, SignInFlow
    from gemkey.config import load_settings
    from gemkey.exceptions import GemkeyError, OTPRequiredError, UnauthorizedError

    obj = ctx.obj or {}
    try:
        settings = load_settings(cli_otp=otp, cli_credentials=obj.get("credentials"))
        store = CredentialStore(settings.credentials_path)
        client = _make_client(settings)
        try:
            SignInFlow(settings, store, client, _make_io()).sign_in(
                host=host, override_name=key
            )
        finally:
            client.close()
    except (UnauthorizedError, OTPRequiredError) as exc:
        # The host's message was already written to the prompt stream.
        raise typer.Exit(code=exc.exit_code) from None
    except GemkeyError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    except KeyboardInterrupt:
        get_output().info("\nCancelled.")
        raise typer.Exit(code=130) from None


def signout_command(
    ctx: typer.Context,
    host: Optional[str] = typer.Argument(
        None, help="Host whose key to remove. Defaults to $RUBYGEMS_HOST or https://rubygems.org."
    ),
    key: Optional[str] = typer.Option(
        None, "--key", "-k", help="Remove the named key instead."
    ),
) -> None:
    """Remove a stored API key from the credentials file.

    The key that ``signin`` / publishing would use for the host is
    removed: the named key with ``--key``, else the host-specific key,
    else the default key. The key is not revoked on the host.

    Raises:
        typer.Exit: With code 3 if no key is stored, 4 if the ``--key``
            name is unknown.

    Example::

        gemkey signout
        gemkey signout --key ci
    """
    from gemkey.auth import CredentialStore, sign_out
    from gemkey.config import load_settings, resolve_host
    from gemkey.exceptions import GemkeyError

    obj = ctx.obj or {}
    try:
        settings = load_settings(cli_credentials=obj.get("credentials"))
        store = CredentialStore(settings.credentials_path)
        effective_host = host or resolve_host(settings.host_override)
        removed = sign_out(store, effective_host, override_name=key)
    except GemkeyError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    success(f"Removed API key '{removed}' from {settings.credentials_path}.")
    suggest("The key is still valid on the host; revoke it there if needed.")
