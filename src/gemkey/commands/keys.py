"""Key commands -- inspect the stored API keys.

Provides the ``gemkey keys`` sub-command group. Keys are never printed
in full; every command shows a masked form.

Typical workflow::

    gemkey keys list          # all stored identifiers
    gemkey keys show          # which key a push to the current host uses
    gemkey keys verify ci     # check that the named key "ci" exists
"""

from __future__ import annotations

from typing import Optional

import typer

from gemkey.output import error, get_output, info, suggest


keys_app = typer.Typer(no_args_is_help=True)


def _load(ctx: typer.Context):  # noqa: ANN202
    """Resolve settings and load the credentials file, exiting on failure."""
    from gemkey.auth import CredentialStore
    from gemkey.config import load_settings
    from gemkey.exceptions import GemkeyError

    obj = ctx.obj or {}
    try:
        settings = load_settings(cli_credentials=obj.get("credentials"))
        store = CredentialStore(settings.credentials_path)
        store.load()
    except GemkeyError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    return settings, store


@keys_app.command("verify")
def keys_verify(
    ctx: typer.Context,
    name: str = typer.Argument(help="Key name as stored in the credentials file."),
) -> None:
    """Check that a named key exists and print it masked.

    Raises:
        typer.Exit: With code 4 if no key is stored under *name*.

    Example::

        gemkey keys verify ci
    """
    from gemkey.auth import mask_secret, verify_api_key
    from gemkey.exceptions import NoSuchNamedKeyError

    _, store = _load(ctx)
    try:
        key = verify_api_key(store.mapping, name)
    except NoSuchNamedKeyError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    get_output().print_record({"name": name, "key": mask_secret(key)})


@keys_app.command("list")
def keys_list(ctx: typer.Context) -> None:
    """List stored key identifiers with masked keys.

    Example::

        gemkey keys list
        gemkey --json keys list
    """
    from gemkey.auth import DEFAULT_KEY, mask_secret

    settings, store = _load(ctx)
    names = store.names()
    if not names:
        info(f"No API keys stored in {settings.credentials_path}.")
        suggest("Sign in: gemkey signin")
        return

    rows = [
        [name, "default" if name == DEFAULT_KEY else "-", mask_secret(store.mapping[name])]
        for name in names
    ]
    get_output().print_table(["Identifier", "Role", "Key"], rows, title="Stored API Keys")


@keys_app.command("show")
def keys_show(
    ctx: typer.Context,
    host: Optional[str] = typer.Option(
        None, "--host", help="Host to resolve for. Defaults to $RUBYGEMS_HOST or https://rubygems.org."
    ),
    key: Optional[str] = typer.Option(
        None, "--key", "-k", help="Named key override."
    ),
) -> None:
    """Show which stored key a request to the host would use.

    Raises:
        typer.Exit: With code 3 if no key applies, 4 if the ``--key``
            name is unknown.

    Example::

        gemkey keys show
        gemkey keys show --host https://gems.example.com
    """
    from gemkey.auth import mask_secret, require_api_key
    from gemkey.config import resolve_host
    from gemkey.exceptions import GemkeyError

    settings, store = _load(ctx)
    effective_host = host or resolve_host(settings.host_override)
    try:
        entry = require_api_key(store.mapping, effective_host, key)
    except GemkeyError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    get_output().print_record(
        {
            "host": effective_host,
            "identifier": entry.identifier,
            "key": mask_secret(entry.key),
        }
    )
