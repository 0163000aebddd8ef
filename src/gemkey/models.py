"""Canonical Pydantic models shared across all gemkey modules.

This is the single source of truth for data shapes in the project. The
models fall into three groups:

**Configuration** -- :class:`Settings`, the explicit configuration value
built once per invocation by :func:`~gemkey.config.load_settings` and
passed to every operation that needs it.

**Wire models** -- :class:`AuthResponse` and :class:`ProfileInfo`, produced
by the :class:`~gemkey.client.auth_client.RemoteAuthClient` and consumed
by the sign-in flow.

**Session state** -- :class:`SignInSession` and :class:`SignInStep`,
the transient state of one interactive sign-in. Sessions are never
persisted.
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, SecretStr

OTP_REQUIRED_PREFIX = "You have enabled multifactor authentication"
"""Body prefix the host uses on a 401 when an OTP code is missing or wrong."""


# --- Configuration ---


class Settings(BaseModel):
    """Effective configuration for one command invocation.

    Environment variables and CLI flags are folded into this value up
    front so the resolver and sign-in flow never read the process
    environment themselves.

    Example::

        Settings(
            credentials_path=Path("~/.config/gemkey/credentials").expanduser(),
            host_override="https://gems.example.com",
        )
    """

    credentials_path: Path = Field(description="YAML file holding the key mapping")
    host_override: Optional[str] = Field(
        default=None,
        description="Target host override (RUBYGEMS_HOST); empty means unset",
    )
    otp_code: Optional[str] = Field(
        default=None,
        description="Pre-seeded OTP code sent on the first key request (GEM_HOST_OTP_CODE)",
    )
    max_otp_attempts: int = Field(
        default=3,
        ge=1,
        description="Maximum number of interactive OTP prompts per sign-in",
    )
    timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")


# --- Wire models ---


class AuthResponse(BaseModel):
    """Status and raw body of a key-issuance request."""

    status_code: int
    body: str = ""

    @property
    def ok(self) -> bool:
        return self.status_code == 200

    @property
    def otp_required(self) -> bool:
        """True when the host asks for (another) OTP code."""
        return self.status_code == 401 and self.body.startswith(OTP_REQUIRED_PREFIX)


class ProfileInfo(BaseModel):
    """The subset of ``/api/v1/profile/me.yaml`` the sign-in flow cares about."""

    mfa: str = Field(default="disabled", description="MFA level reported by the host")
    handle: Optional[str] = None

    @property
    def mfa_enabled(self) -> bool:
        return self.mfa != "disabled"


# --- Session state ---


class SignInStep(str, enum.Enum):
    """States of the interactive sign-in state machine."""

    PROMPT_CREDENTIALS = "prompt_credentials"
    REQUEST_KEY = "request_key"
    PROMPT_OTP = "prompt_otp"
    CHECK_MFA = "check_mfa"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class SignInSession(BaseModel):
    """Transient state of a single interactive sign-in."""

    host: str
    email: str = ""
    password: SecretStr = SecretStr("")
    otp: Optional[str] = None
    otp_prompts: int = 0
    mfa_notice_shown: bool = False
    step: SignInStep = SignInStep.PROMPT_CREDENTIALS
    message: Optional[str] = None
