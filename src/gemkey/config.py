"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for gemkey:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.gemkey/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Host resolution** -- :func:`resolve_host` picks the target package
  host from an override or :data:`DEFAULT_HOST`.
* **Settings resolution** -- :func:`load_settings` folds CLI flags and
  environment variables into a single :class:`~gemkey.models.Settings`
  value. Nothing below the CLI layer reads ``os.environ``.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) so a crash never leaves a half-written
credentials file behind.
"""

from __future__ import annotations

import os
import platform
import tempfile
from pathlib import Path
from typing import Mapping, Optional

from pydantic import ValidationError

from gemkey.exceptions import InvalidUsageError
from gemkey.models import Settings

_APP_NAME = "gemkey"
_CREDENTIALS_FILENAME = "credentials"

DEFAULT_HOST = "https://rubygems.org"
"""Host used when no override is configured."""

HOST_ENV_VAR = "RUBYGEMS_HOST"
OTP_ENV_VAR = "GEM_HOST_OTP_CODE"
CREDENTIALS_ENV_VAR = "GEMKEY_CREDENTIALS"
MAX_OTP_ENV_VAR = "GEMKEY_MAX_OTP_ATTEMPTS"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform follows the XDG Base Directory layout (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/gemkey/`` (default ``~/.config/gemkey/``).
    On macOS/Windows: ``~/.gemkey/``.

    Returns:
        Absolute path to the configuration directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        base = _xdg_base("XDG_CONFIG_HOME", (".config",))
        path = base / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/gemkey/`` (default ``~/.local/share/gemkey/``).
    On macOS/Windows: ``~/.gemkey/logs/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        base = _xdg_base("XDG_DATA_HOME", (".local", "share"))
        path = base / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def default_credentials_path() -> Path:
    """Path of the credentials file when ``GEMKEY_CREDENTIALS`` is not set."""
    return get_config_dir() / _CREDENTIALS_FILENAME


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str, mode: Optional[int] = None) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is guaranteed to be an atomic rename on POSIX systems.
    When *mode* is given it is applied to the temp file before any content
    is written, so secrets are never readable with looser permissions.
    On any failure the temp file is cleaned up.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        if mode is not None:
            os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Host resolution ---


def resolve_host(env_override: Optional[str] = None) -> str:
    """Return the effective target host.

    An override is returned verbatim, scheme included. ``None`` and the
    empty string both fall back to :data:`DEFAULT_HOST`.

    Example::

        resolve_host("http://other.example")  # -> "http://other.example"
        resolve_host("")                      # -> "https://rubygems.org"
    """
    if env_override:
        return env_override
    return DEFAULT_HOST


def is_default_host(host: Optional[str]) -> bool:
    """True when *host* is unset or equal to :data:`DEFAULT_HOST`."""
    return not host or host == DEFAULT_HOST


# --- Settings resolution ---


def load_settings(
    environ: Optional[Mapping[str, str]] = None,
    cli_host: Optional[str] = None,
    cli_otp: Optional[str] = None,
    cli_credentials: Optional[str] = None,
) -> Settings:
    """Resolve the effective :class:`~gemkey.models.Settings`.

    Precedence (high to low):
        1. CLI flags (``cli_host``, ``cli_otp``, ``cli_credentials``)
        2. Environment variables (``RUBYGEMS_HOST``, ``GEM_HOST_OTP_CODE``,
           ``GEMKEY_CREDENTIALS``, ``GEMKEY_MAX_OTP_ATTEMPTS``)
        3. Defaults

    Empty environment values are treated as unset.

    Args:
        environ: Environment mapping to read; defaults to ``os.environ``.

    Returns:
        A validated :class:`~gemkey.models.Settings`.

    Raises:
        InvalidUsageError: If a value fails validation (e.g. a
            non-numeric ``GEMKEY_MAX_OTP_ATTEMPTS``).
    """
    env = os.environ if environ is None else environ

    credentials = cli_credentials or env.get(CREDENTIALS_ENV_VAR) or None
    credentials_path = (
        Path(credentials).expanduser() if credentials else default_credentials_path()
    )

    values: dict[str, object] = {
        "credentials_path": credentials_path,
        "host_override": cli_host or env.get(HOST_ENV_VAR) or None,
        "otp_code": cli_otp or env.get(OTP_ENV_VAR) or None,
    }
    max_otp = env.get(MAX_OTP_ENV_VAR)
    if max_otp:
        values["max_otp_attempts"] = max_otp

    try:
        return Settings.model_validate(values)
    except ValidationError as exc:
        raise InvalidUsageError(f"Invalid settings: {exc}") from exc
