"""Remote auth client -- the two host calls the sign-in flow needs.

:class:`RemoteAuthClient` is the interface the sign-in flow depends on;
:class:`HttpxAuthClient` implements it over :class:`httpx.Client`.

Endpoints (relative to the resolved host):

- ``POST /api/v1/api_key`` -- HTTP Basic credentials, optional ``OTP``
  header, optional ``name`` form field. Returns ``200`` with the key as
  the plain-text body, ``401`` when an OTP code is missing or wrong (or
  the credentials are bad), ``403`` when access is denied.
- ``GET /api/v1/profile/me.yaml`` -- authenticated with the new key in
  the ``Authorization`` header. Returns a small YAML document whose
  ``mfa`` field tells whether multi-factor auth is enabled.

The client performs exactly one request per call. Retry, if any, is the
caller's decision (the sign-in flow only retries the OTP challenge).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx
import yaml

from gemkey import __version__
from gemkey.exceptions import AuthError, ConnectionError_
from gemkey.models import AuthResponse, ProfileInfo

logger = logging.getLogger(__name__)

API_KEY_PATH = "/api/v1/api_key"
PROFILE_PATH = "/api/v1/profile/me.yaml"


class RemoteAuthClient(ABC):
    """Interface for the host-side half of sign-in."""

    @abstractmethod
    def request_api_key(
        self,
        host: str,
        email: str,
        password: str,
        otp: Optional[str] = None,
        key_name: Optional[str] = None,
    ) -> AuthResponse:
        """Submit credentials (and an OTP code, if any) to obtain an API key.

        Non-200 responses are returned, not raised; the caller interprets
        the status and body.

        Raises:
            ConnectionError_: On network-level failures.
        """
        ...

    @abstractmethod
    def fetch_profile(self, host: str, api_key: str) -> ProfileInfo:
        """Fetch the signed-in user's profile with a freshly issued key.

        Raises:
            AuthError: If the host does not return a usable profile.
            ConnectionError_: On network-level failures.
        """
        ...


class HttpxAuthClient(RemoteAuthClient):
    """:class:`RemoteAuthClient` backed by :class:`httpx.Client`.

    Can be used as a context manager; otherwise call :meth:`close` when
    done.

    Args:
        timeout: Per-request timeout in seconds.
        transport: Optional custom transport (tests pass an
            :class:`httpx.MockTransport`).

    Example::

        with HttpxAuthClient(timeout=10) as client:
            response = client.request_api_key(host, email, password)
    """

    def __init__(
        self,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    def __enter__(self) -> HttpxAuthClient:
        self._ensure_client()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # RemoteAuthClient
    # ------------------------------------------------------------------ #

    def request_api_key(
        self,
        host: str,
        email: str,
        password: str,
        otp: Optional[str] = None,
        key_name: Optional[str] = None,
    ) -> AuthResponse:
        headers: dict[str, str] = {"Accept": "text/plain"}
        if otp:
            headers["OTP"] = otp
        data = {"name": key_name} if key_name else None

        response = self._send(
            "POST",
            _join(host, API_KEY_PATH),
            headers=headers,
            auth=(email, password),
            data=data,
        )
        return AuthResponse(status_code=response.status_code, body=response.text)

    def fetch_profile(self, host: str, api_key: str) -> ProfileInfo:
        response = self._send(
            "GET",
            _join(host, PROFILE_PATH),
            headers={"Authorization": api_key, "Accept": "application/x-yaml"},
        )
        if response.status_code != 200:
            raise AuthError(
                f"Profile request failed with status {response.status_code}: "
                f"{response.text}"
            )
        try:
            data: Any = yaml.safe_load(response.text)
        except yaml.YAMLError as exc:
            raise AuthError(f"Invalid profile document: {exc}") from exc
        if not isinstance(data, dict):
            raise AuthError("Invalid profile document: expected a mapping")

        return ProfileInfo(
            mfa=str(data.get("mfa") or "disabled"),
            handle=data.get("handle"),
        )

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _ensure_client(self) -> httpx.Client:
        if self._client is None:
            kwargs: dict[str, Any] = {
                "timeout": self._timeout,
                "follow_redirects": True,
                "headers": {"User-Agent": f"gemkey/{__version__}"},
            }
            if self._transport is not None:
                kwargs["transport"] = self._transport
            self._client = httpx.Client(**kwargs)
        return self._client

    def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        client = self._ensure_client()
        logger.debug("%s %s", method, url)
        try:
            response = client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise ConnectionError_(f"Request to {url} failed: {exc}") from exc
        logger.debug("%s %s -> %d", method, url, response.status_code)
        return response


def _join(host: str, path: str) -> str:
    return host.rstrip("/") + path
