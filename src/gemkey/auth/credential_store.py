"""Persistent, host-keyed API key store.

Keys live in a single YAML document (``~/.config/gemkey/credentials`` by
default) mapping a *key identifier* to a secret::

    rubygems_api_key: 1a2b3c...            # the default key
    https://gems.example.com: 9f8e7d...   # host-specific key
    ci: 5c4b3a...                          # named key, used with --key

Saving is always read-modify-write: the file is re-read immediately before
writing, only the identifiers this process changed are applied on top, and
the result is written atomically with ``0o600`` permissions. Another
process updating a different host's key between our load and our save is
therefore never clobbered.

Files written by the Ruby client store the default key under the YAML
symbol ``:rubygems_api_key``; the leading colon is stripped on load so
those files are read transparently.

See Also:
    :mod:`gemkey.auth.resolver` -- chooses which stored key to use.
    :mod:`gemkey.auth.sign_in` -- writes new keys through this store.
"""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

import yaml

from gemkey.config import _atomic_write
from gemkey.exceptions import StorageCorruptError

logger = logging.getLogger(__name__)

DEFAULT_KEY = "rubygems_api_key"
"""Identifier of the key used when no host-specific key matches."""

_FILE_MODE = 0o600


def _normalise_identifier(name: Any) -> str:
    text = str(name)
    if text.startswith(":"):
        return text[1:]
    return text


def _parse(text: str, path: Path) -> dict[str, Optional[str]]:
    """Parse the YAML *text* of *path* into an identifier -> secret document.

    Null values are kept as ``None`` so a save writes them back unchanged.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise StorageCorruptError(f"Invalid credentials file at {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise StorageCorruptError(
            f"Invalid credentials file at {path}: expected a mapping, "
            f"got {type(data).__name__}"
        )

    document: dict[str, Optional[str]] = {}
    for name, secret in data.items():
        if secret is None:
            document[_normalise_identifier(name)] = None
            continue
        if isinstance(secret, (dict, list)):
            raise StorageCorruptError(
                f"Invalid credentials file at {path}: value for "
                f"'{_normalise_identifier(name)}' is not a string"
            )
        document[_normalise_identifier(name)] = str(secret)
    return document


def _read_document(path: Path) -> dict[str, Optional[str]]:
    if not path.is_file():
        return {}
    _check_permissions(path)
    return _parse(path.read_text(encoding="utf-8"), path)


def _usable(document: Mapping[str, Optional[str]]) -> dict[str, str]:
    return {name: secret for name, secret in document.items() if secret is not None}


def _check_permissions(path: Path) -> None:
    mode = stat.S_IMODE(os.stat(path).st_mode)
    if mode & 0o077:
        logger.warning(
            "Credentials file %s has permissions %04o; 0600 is recommended", path, mode
        )


def load_credentials(path: Path) -> dict[str, str]:
    """Read the key mapping stored at *path*.

    Args:
        path: Location of the credentials file.

    Returns:
        The identifier -> secret mapping. Empty when *path* does not exist
        or the file is empty. Identifiers with a null value are omitted.

    Raises:
        StorageCorruptError: If the file is not well-formed YAML or not a
            mapping of scalar values.
    """
    return _usable(_read_document(path))


def save_credentials(
    path: Path,
    updates: Mapping[str, str],
    removals: Iterable[str] = (),
) -> dict[str, str]:
    """Merge *updates* into the file at *path* and write it atomically.

    The current file content is re-read right before writing; identifiers
    not named in *updates* or *removals* are preserved as they are on disk,
    including entries with a null value.

    Args:
        path: Location of the credentials file.
        updates: Identifiers to set or replace.
        removals: Identifiers to delete.

    Returns:
        The usable identifier -> secret mapping after the write.

    Raises:
        StorageCorruptError: If the existing file cannot be parsed. The
            file is left untouched.
    """
    merged = _read_document(path)
    for name in removals:
        merged.pop(name, None)
    merged.update(updates)

    text = yaml.safe_dump(merged, default_flow_style=False, sort_keys=True)
    _atomic_write(path, "---\n" + text if merged else "--- {}\n", mode=_FILE_MODE)
    logger.debug("Saved %d credential(s) to %s", len(merged), path)
    return _usable(merged)


def set_default(mapping: dict[str, str], key: str) -> None:
    """Store *key* as the default key in *mapping*."""
    if not key:
        raise ValueError("API key must be a non-empty string")
    mapping[DEFAULT_KEY] = key


def set_for_host(mapping: dict[str, str], host: str, key: str) -> None:
    """Store *key* for *host* (the literal host URL is the identifier)."""
    if not key:
        raise ValueError("API key must be a non-empty string")
    mapping[host] = key


class CredentialStore:
    """The credentials file at one path, plus its in-memory mapping.

    The mapping is loaded once (lazily, or via :meth:`load`). Mutations
    are tracked so :meth:`save` applies only what this process changed on
    top of whatever the file holds at save time.

    Args:
        path: The credentials file location.

    Example::

        store = CredentialStore(settings.credentials_path)
        store.set_for_host("https://gems.example.com", "key123")
        store.save()
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._mapping: Optional[dict[str, str]] = None
        self._updates: dict[str, str] = {}
        self._removals: set[str] = set()

    @property
    def path(self) -> Path:
        """The filesystem path to the credentials file."""
        return self._path

    @property
    def mapping(self) -> dict[str, str]:
        """The loaded identifier -> secret mapping (loaded on first access)."""
        if self._mapping is None:
            self.load()
        assert self._mapping is not None
        return self._mapping

    def load(self) -> dict[str, str]:
        """(Re)load the mapping from disk, discarding unsaved changes.

        Raises:
            StorageCorruptError: If the file cannot be parsed.
        """
        self._mapping = load_credentials(self._path)
        self._updates.clear()
        self._removals.clear()
        return self._mapping

    def get(self, name: str) -> Optional[str]:
        return self.mapping.get(name)

    def names(self) -> list[str]:
        """Return the stored identifiers, sorted."""
        return sorted(self.mapping)

    def set_default(self, key: str) -> None:
        set_default(self.mapping, key)
        self._track(DEFAULT_KEY)

    def set_for_host(self, host: str, key: str) -> None:
        set_for_host(self.mapping, host, key)
        self._track(host)

    def remove(self, name: str) -> bool:
        """Remove *name* from the mapping. Returns ``False`` if it was absent."""
        if name not in self.mapping:
            return False
        del self.mapping[name]
        self._updates.pop(name, None)
        self._removals.add(name)
        return True

    @property
    def dirty(self) -> bool:
        """Whether there are changes not yet written by :meth:`save`."""
        return bool(self._updates or self._removals)

    def save(self) -> None:
        """Write pending changes to disk, merging with the current file content."""
        if not self.dirty:
            return
        self._mapping = save_credentials(self._path, self._updates, self._removals)
        self._updates.clear()
        self._removals.clear()

    def _track(self, name: str) -> None:
        self._updates[name] = self.mapping[name]
        self._removals.discard(name)
