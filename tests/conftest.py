"""Shared test fixtures for gemkey.

Provides isolated config environments, a scripted terminal, a fake remote
auth client, and a CLI runner. These fixtures are automatically discovered
by pytest and available to all test modules without explicit imports.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional, Union

import pytest

from gemkey.auth.credential_store import CredentialStore
from gemkey.client.auth_client import RemoteAuthClient
from gemkey.models import AuthResponse, ProfileInfo, Settings
from gemkey.output import OutputFormat, OutputManager, reset_output, set_output
from gemkey.terminal import TerminalIO


API_KEY = "a5fdbb6ba150cbb83aad2bb2fede64cf040453903"
OTP_FAILURE = (
    "You have enabled multifactor authentication but your request doesn't have "
    "the correct OTP code. Please check it and retry."
)


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time; CliRunner swaps those streams per invocation.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class ScriptedIO(TerminalIO):
    """TerminalIO that replays scripted input lines and records a transcript."""

    def __init__(self, lines: Optional[list[str]] = None) -> None:
        self._lines = list(lines or [])
        self.transcript: list[str] = []

    @property
    def output(self) -> str:
        return "".join(self.transcript)

    def say(self, message: str) -> None:
        self.transcript.append(message + "\n")

    def ask(self, prompt: str) -> Optional[str]:
        self.transcript.append(prompt)
        if not self._lines:
            return None
        return self._lines.pop(0)

    def ask_secret(self, prompt: str) -> Optional[str]:
        return self.ask(prompt)


ResponseSource = Union[AuthResponse, list[AuthResponse], Callable[[int], AuthResponse]]


class FakeAuthClient(RemoteAuthClient):
    """RemoteAuthClient returning canned responses and recording every call.

    *responses* may be a single response (returned every time), a list
    (consumed in order, last one repeated), or a callable taking the
    1-based call number.
    """

    def __init__(
        self,
        responses: ResponseSource,
        profile: Optional[ProfileInfo] = None,
        profile_error: Optional[Exception] = None,
    ) -> None:
        self._responses = responses
        self._profile = profile or ProfileInfo(mfa="disabled")
        self._profile_error = profile_error
        self.key_requests: list[dict[str, Optional[str]]] = []
        self.profile_requests: list[tuple[str, str]] = []

    @property
    def last_request(self) -> dict[str, Optional[str]]:
        return self.key_requests[-1]

    def request_api_key(
        self,
        host: str,
        email: str,
        password: str,
        otp: Optional[str] = None,
        key_name: Optional[str] = None,
    ) -> AuthResponse:
        self.key_requests.append(
            {"host": host, "email": email, "password": password, "otp": otp, "key_name": key_name}
        )
        call = len(self.key_requests)
        if callable(self._responses):
            return self._responses(call)
        if isinstance(self._responses, list):
            return self._responses[min(call, len(self._responses)) - 1]
        return self._responses

    def fetch_profile(self, host: str, api_key: str) -> ProfileInfo:
        self.profile_requests.append((host, api_key))
        if self._profile_error is not None:
            raise self._profile_error
        return self._profile


@pytest.fixture
def make_io() -> Callable[..., ScriptedIO]:
    """Factory for :class:`ScriptedIO` instances."""
    return ScriptedIO


@pytest.fixture
def make_client() -> Callable[..., FakeAuthClient]:
    """Factory for :class:`FakeAuthClient` instances."""
    return FakeAuthClient


@pytest.fixture
def ok_response() -> AuthResponse:
    return AuthResponse(status_code=200, body=API_KEY)


@pytest.fixture
def otp_failure_response() -> AuthResponse:
    return AuthResponse(status_code=401, body=OTP_FAILURE)


# ---------------------------------------------------------------------------
# Config isolation fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points the XDG directories at subdirectories of tmp_path, clears every
    environment variable gemkey reads, and changes the working directory
    to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in [
        "RUBYGEMS_HOST",
        "GEM_HOST_OTP_CODE",
        "GEMKEY_CREDENTIALS",
        "GEMKEY_MAX_OTP_ATTEMPTS",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def credentials_path(tmp_path: Path) -> Path:
    """Location of a (not yet existing) credentials file."""
    return tmp_path / "gem" / "credentials"


@pytest.fixture
def settings(credentials_path: Path) -> Settings:
    return Settings(credentials_path=credentials_path)


@pytest.fixture
def store(credentials_path: Path) -> CredentialStore:
    return CredentialStore(credentials_path)


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
