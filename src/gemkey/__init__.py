"""gemkey -- API-key resolution and interactive sign-in for package hosts.

This package is the credential core of a package-manager client that
publishes artifacts to a RubyGems.org-style host. It decides which host a
command targets, which stored API key authorizes the request, and how to
obtain a new key interactively (including a one-time-password challenge)
when none exists.

Typical workflow::

    gemkey signin                      # sign in to the default host
    gemkey signin https://gems.corp    # store a host-specific key
    gemkey keys show                   # which key would be used

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    config: XDG paths, settings resolution and host resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
    terminal: Interactive prompt abstraction used by the sign-in flow.
"""

__version__ = "0.1.0"
