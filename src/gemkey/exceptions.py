"""Exception hierarchy for gemkey.

All exceptions inherit from :class:`GemkeyError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`gemkey.exit_codes`.
The top-level error handler in :func:`gemkey.app.main` catches
``GemkeyError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    GemkeyError (exit 1)
    +-- InvalidUsageError       (exit 2)
    +-- AuthError               (exit 3)
    |   +-- UnauthorizedError
    |   +-- OTPRequiredError
    |   +-- NotSignedInError
    +-- NotFoundError           (exit 4)
    |   +-- NoSuchNamedKeyError
    +-- ConnectionError_        (exit 6)
    +-- ConfigError             (exit 1)
        +-- StorageCorruptError (exit 7)

Messages coming from the server or from the credentials file are kept
verbatim so the user can diagnose the failure.
"""

from gemkey.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_STORAGE_CORRUPT,
)


class GemkeyError(Exception):
    """Base exception for all gemkey errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`gemkey.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(GemkeyError):
    """Raised for invalid CLI arguments or malformed settings values."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(GemkeyError):
    """Raised when authentication fails or no usable key is available."""

    exit_code = EXIT_AUTH_FAILURE


class UnauthorizedError(AuthError):
    """Raised when the host rejects the sign-in (HTTP 403 or a non-OTP 401).

    The message is the response body, unmodified.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class OTPRequiredError(AuthError):
    """Raised when the host keeps demanding an OTP code and no more codes can be read.

    Only terminal once the interactive input is exhausted or the attempt
    limit is reached; earlier occurrences drive the retry loop instead.
    """


class NotSignedInError(AuthError):
    """Raised when a command needs an API key and none is stored."""


class NotFoundError(GemkeyError):
    """Raised when something explicitly requested does not exist."""

    exit_code = EXIT_NOT_FOUND


class NoSuchNamedKeyError(NotFoundError):
    """Raised when a key requested by name (``--key``) is absent from the credentials file."""

    def __init__(self, name: str):
        super().__init__(
            "No such API key. Please add it to your configuration "
            f"(done automatically on initial `gemkey signin`): {name}"
        )
        self.name = name


class ConnectionError_(GemkeyError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class ConfigError(GemkeyError):
    """Raised for configuration problems (unreadable paths, invalid settings)."""

    exit_code = EXIT_GENERIC_FAILURE


class StorageCorruptError(ConfigError):
    """Raised when the credentials file exists but is not a valid YAML mapping.

    The file is never repaired automatically.
    """

    exit_code = EXIT_STORAGE_CORRUPT
