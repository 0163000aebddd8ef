"""API key resolution -- which stored key authorizes a request.

Precedence, strictly in order:

1. An explicitly named key (``--key NAME``), even an empty one. If it
   is missing the lookup fails with
   :class:`~gemkey.exceptions.NoSuchNamedKeyError`; there is no fallback
   to the host or default key.
2. The key stored under the literal host URL.
3. The default key (:data:`~gemkey.auth.credential_store.DEFAULT_KEY`).
4. Nothing: :data:`MISSING` is returned and the caller decides whether to
   run the sign-in flow or fail with "not signed in".
"""

from __future__ import annotations

from typing import Mapping, NamedTuple, Optional, Union

from gemkey.auth.credential_store import DEFAULT_KEY
from gemkey.exceptions import NoSuchNamedKeyError, NotSignedInError


class _Missing:
    """Sentinel type for "no key available"."""

    _instance: Optional[_Missing] = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()
"""Returned by :func:`resolve_api_key` when no key applies. Falsy."""


class ResolvedKey(NamedTuple):
    """A resolved key together with the identifier it was stored under."""

    identifier: str
    key: str


def resolve_key_entry(
    mapping: Mapping[str, str],
    host: str,
    override_name: Optional[str] = None,
) -> Union[ResolvedKey, _Missing]:
    """Resolve the active identifier and key for *host*.

    Same precedence as :func:`resolve_api_key`, but also reports which
    identifier won. Used by ``keys show`` and ``signout``.
    """
    if override_name is not None:
        if override_name not in mapping:
            raise NoSuchNamedKeyError(override_name)
        return ResolvedKey(override_name, mapping[override_name])

    if host in mapping:
        return ResolvedKey(host, mapping[host])

    if DEFAULT_KEY in mapping:
        return ResolvedKey(DEFAULT_KEY, mapping[DEFAULT_KEY])

    return MISSING


def resolve_api_key(
    mapping: Mapping[str, str],
    host: str,
    override_name: Optional[str] = None,
) -> Union[str, _Missing]:
    """Return the one API key to use for a request to *host*.

    Args:
        mapping: The loaded credential mapping.
        host: The effective target host.
        override_name: Name of an explicitly requested key, if any.

    Returns:
        The API key, or :data:`MISSING` when none is configured.

    Raises:
        NoSuchNamedKeyError: If *override_name* is given but absent.
    """
    entry = resolve_key_entry(mapping, host, override_name)
    if not entry:
        return MISSING
    return entry.key


def require_api_key(
    mapping: Mapping[str, str],
    host: str,
    override_name: Optional[str] = None,
) -> ResolvedKey:
    """Like :func:`resolve_key_entry`, but fail when no key is configured.

    Returns:
        The winning identifier and its key.

    Raises:
        NoSuchNamedKeyError: If *override_name* is given but absent.
        NotSignedInError: If no host-specific or default key exists.
    """
    entry = resolve_key_entry(mapping, host, override_name)
    if not entry:
        raise NotSignedInError(
            f"No API key configured for {host}. Run `gemkey signin` first."
        )
    return entry


def verify_api_key(mapping: Mapping[str, str], name: str) -> str:
    """Look up the key stored under *name*.

    Raises:
        NoSuchNamedKeyError: If *name* is not in *mapping*.
    """
    if name not in mapping:
        raise NoSuchNamedKeyError(name)
    return mapping[name]


def mask_secret(secret: str, visible: int = 4) -> str:
    """Return a display-safe form of *secret* (first few characters only)."""
    if len(secret) <= visible:
        return "*" * len(secret)
    return secret[:visible] + "..."
