"""Host command -- print the effective target host."""

from __future__ import annotations

import typer

from gemkey.output import error, print_data


def host_command(ctx: typer.Context) -> None:
    """Print the package host commands will target.

    ``$RUBYGEMS_HOST`` wins when set to a non-empty value; otherwise the
    default host is used.

    Example::

        gemkey host
        RUBYGEMS_HOST=https://gems.example.com gemkey host
    """
    from gemkey.config import load_settings, resolve_host
    from gemkey.exceptions import GemkeyError

    obj = ctx.obj or {}
    try:
        settings = load_settings(cli_credentials=obj.get("credentials"))
    except GemkeyError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    print_data(resolve_host(settings.host_override))
