"""Built-in CLI sub-commands for gemkey.

* :mod:`~gemkey.commands.signin` -- ``signin`` / ``signout``.
* :mod:`~gemkey.commands.keys` -- inspect stored keys (``keys`` group).
* :mod:`~gemkey.commands.host` -- print the effective host.

Each module either exports a :class:`typer.Typer` sub-application (for
multi-command groups like ``keys``) or plain callback functions registered
directly on the root app.
"""
