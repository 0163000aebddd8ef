"""Interactive sign-in -- obtain an API key from the host and store it.

:class:`SignInFlow` is a small state machine::

    PROMPT_CREDENTIALS -> REQUEST_KEY -+-> CHECK_MFA -> SUCCEEDED
                              ^        |
                              |        +-> PROMPT_OTP (401 + OTP pattern)
                              +--------+
                                       +-> FAILED (403, other 401, other status)

If a key already resolves for the target host, :meth:`SignInFlow.sign_in`
returns it without prompting, printing, or touching the network.

A pre-seeded OTP code (``GEM_HOST_OTP_CODE`` / ``--otp``) is sent with the
first key request. When the host rejects it, or none was given, the user
is prompted for a code. Prompting stops after
:attr:`~gemkey.models.Settings.max_otp_attempts` codes, at end of input,
or on an empty code.

On failure the host's message is written to the prompt stream verbatim and
then raised as :class:`~gemkey.exceptions.UnauthorizedError` or
:class:`~gemkey.exceptions.OTPRequiredError`.

Nothing is written to the credentials file unless the whole exchange
succeeds.
"""

from __future__ import annotations

import getpass
import logging
import socket
from datetime import datetime
from typing import Callable, NoReturn, Optional

from pydantic import SecretStr

from gemkey.auth.credential_store import CredentialStore
from gemkey.auth.resolver import resolve_api_key, resolve_key_entry
from gemkey.client.auth_client import RemoteAuthClient
from gemkey.config import DEFAULT_HOST, is_default_host, resolve_host
from gemkey.exceptions import (
    AuthError,
    GemkeyError,
    NotSignedInError,
    OTPRequiredError,
    UnauthorizedError,
)
from gemkey.models import AuthResponse, Settings, SignInSession, SignInStep
from gemkey.terminal import TerminalIO

logger = logging.getLogger(__name__)

DEFAULT_HOST_LABEL = "RubyGems.org"
MFA_NOTICE = "You have enabled multi-factor authentication. Please enter OTP code."
OTP_PROMPT = "Code: "


def default_key_name(now: Optional[datetime] = None) -> str:
    """Name for a newly issued key: ``<hostname>-<user>-<YYYYMMDDHHMMSS>``."""
    try:
        user = getpass.getuser()
    except (KeyError, OSError):
        user = "unknown"
    stamp = (now or datetime.now()).strftime("%Y%m%d%H%M%S")
    return f"{socket.gethostname()}-{user}-{stamp}"


class SignInFlow:
    """Resolve or interactively obtain the API key for a host.

    All collaborators are injected: *settings* supplies the host override,
    pre-seeded OTP code and attempt limit; *store* is the loaded
    credentials file; *client* talks to the host; *io* prompts the user.

    Args:
        settings: Effective configuration for this invocation.
        store: Credential store to read from and, on success, write to.
        client: Remote auth client for the key and profile endpoints.
        io: Interactive prompt implementation.
        key_namer: Produces the name sent with the key request.

    Example::

        flow = SignInFlow(settings, CredentialStore(path), client, ConsoleIO())
        api_key = flow.sign_in()
    """

    def __init__(
        self,
        settings: Settings,
        store: CredentialStore,
        client: RemoteAuthClient,
        io: TerminalIO,
        key_namer: Callable[[], str] = default_key_name,
    ) -> None:
        self._settings = settings
        self._store = store
        self._client = client
        self._io = io
        self._key_namer = key_namer

    def sign_in(self, host: Optional[str] = None, override_name: Optional[str] = None) -> str:
        """Return an API key for *host*, signing in interactively if needed.

        Args:
            host: Target host; defaults to the resolved host from settings.
            override_name: Explicit key name (``--key``). When present in
                the store the named key is returned without signing in.

        Returns:
            The existing or newly issued API key.

        Raises:
            NoSuchNamedKeyError: If *override_name* is not stored.
            UnauthorizedError: If the host denies the credentials.
            OTPRequiredError: If the host keeps demanding an OTP code and
                no further code can be read.
            AuthError: If the credential prompts hit end of input.
            ConnectionError_: On network failures.
        """
        effective_host = host or resolve_host(self._settings.host_override)

        existing = resolve_api_key(self._store.mapping, effective_host, override_name)
        if existing:
            logger.debug("Existing API key found for %s; skipping sign-in", effective_host)
            return existing

        session = SignInSession(host=effective_host, otp=self._settings.otp_code)
        self._prompt_credentials(session)

        key_name = self._key_namer()
        response = self._request_key(session, key_name)
        while not response.ok:
            if response.otp_required and self._prompt_otp(session):
                response = self._request_key(session, key_name)
                continue
            self._fail(session, response)

        api_key = response.body
        if not api_key.strip():
            self._fail(
                session,
                response.model_copy(update={"body": f"{effective_host} returned an empty API key"}),
            )

        message = self._check_mfa(session, api_key, key_name)
        self._persist(effective_host, api_key)

        session.step = SignInStep.SUCCEEDED
        session.message = message
        self._io.say(message)
        return api_key

    # ------------------------------------------------------------------ #
    # States
    # ------------------------------------------------------------------ #

    def _prompt_credentials(self, session: SignInSession) -> None:
        session.step = SignInStep.PROMPT_CREDENTIALS
        label = DEFAULT_HOST_LABEL if session.host == DEFAULT_HOST else session.host
        self._io.say(f"Enter your {label} credentials.")
        self._io.say(f"Don't have an account yet? Create one at {session.host}/sign_up")

        email = self._io.ask("Email: ")
        if not email:
            raise AuthError("Sign-in cancelled: no email entered")
        password = self._io.ask_secret("Password: ")
        if password is None:
            raise AuthError("Sign-in cancelled: no password entered")

        session.email = email
        session.password = SecretStr(password)

    def _request_key(self, session: SignInSession, key_name: str) -> AuthResponse:
        session.step = SignInStep.REQUEST_KEY
        logger.debug(
            "Requesting API key from %s (otp=%s)", session.host, "yes" if session.otp else "no"
        )
        return self._client.request_api_key(
            session.host,
            session.email,
            session.password.get_secret_value(),
            otp=session.otp,
            key_name=key_name,
        )

    def _prompt_otp(self, session: SignInSession) -> bool:
        """Ask for a new OTP code. Returns ``False`` when no code can be obtained."""
        if session.otp_prompts >= self._settings.max_otp_attempts:
            logger.debug("OTP attempt limit (%d) reached", self._settings.max_otp_attempts)
            return False

        session.step = SignInStep.PROMPT_OTP
        if not session.mfa_notice_shown:
            self._io.say(MFA_NOTICE)
            session.mfa_notice_shown = True

        code = self._io.ask(OTP_PROMPT)
        if not code:
            return False
        session.otp = code
        session.otp_prompts += 1
        return True

    def _check_mfa(self, session: SignInSession, api_key: str, key_name: str) -> str:
        session.step = SignInStep.CHECK_MFA
        try:
            profile = self._client.fetch_profile(session.host, api_key)
        except GemkeyError as exc:
            logger.debug("Could not fetch profile from %s: %s", session.host, exc)
            return "Signed in."
        if profile.mfa_enabled:
            return "Signed in."
        return f"Signed in with API key: {key_name}."

    def _persist(self, host: str, api_key: str) -> None:
        if is_default_host(host):
            self._store.set_default(api_key)
        else:
            self._store.set_for_host(host, api_key)
        self._store.save()

    def _fail(self, session: SignInSession, response: AuthResponse) -> NoReturn:
        session.step = SignInStep.FAILED
        session.message = response.body
        logger.debug("Sign-in to %s failed with status %d", session.host, response.status_code)
        self._io.say(response.body)
        if response.otp_required:
            raise OTPRequiredError(response.body)
        raise UnauthorizedError(response.body, status_code=response.status_code)


def sign_out(
    store: CredentialStore,
    host: str,
    override_name: Optional[str] = None,
) -> str:
    """Remove the key that would be used for *host* from the credentials file.

    Only the local copy is deleted; the key stays valid on the host.

    Returns:
        The identifier that was removed.

    Raises:
        NoSuchNamedKeyError: If *override_name* is given but not stored.
        NotSignedInError: If no key applies to *host*.
    """
    entry = resolve_key_entry(store.mapping, host, override_name)
    if not entry:
        raise NotSignedInError(f"No API key stored for {host}.")
    store.remove(entry.identifier)
    store.save()
    return entry.identifier
