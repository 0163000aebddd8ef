"""Credential storage, key resolution and interactive sign-in.

The main entry points are:

- :class:`CredentialStore` -- the host-keyed YAML credentials file with
  merge-on-save semantics.
- :func:`resolve_api_key` / :func:`verify_api_key` -- pick the one key a
  request should use.
- :class:`SignInFlow` -- obtain a key from the host interactively,
  including the OTP challenge.

Typical usage::

    from gemkey.auth import CredentialStore, SignInFlow

    store = CredentialStore(settings.credentials_path)
    api_key = SignInFlow(settings, store, client, io).sign_in()
"""

from gemkey.auth.credential_store import (
    DEFAULT_KEY,
    CredentialStore,
    load_credentials,
    save_credentials,
    set_default,
    set_for_host,
)
from gemkey.auth.resolver import (
    MISSING,
    mask_secret,
    require_api_key,
    resolve_api_key,
    verify_api_key,
)
from gemkey.auth.sign_in import SignInFlow, sign_out

__all__ = [
    "DEFAULT_KEY",
    "MISSING",
    "CredentialStore",
    "SignInFlow",
    "load_credentials",
    "mask_secret",
    "require_api_key",
    "resolve_api_key",
    "save_credentials",
    "set_default",
    "set_for_host",
    "sign_out",
    "verify_api_key",
]
