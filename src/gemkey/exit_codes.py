"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~gemkey.exceptions.GemkeyError` subclass.
Publishing scripts can inspect the exit code to tell a rejected password
from a missing key without parsing stderr.

Example::

    $ gemkey keys verify ci
    $ echo $?
    4   # EXIT_NOT_FOUND -- no key named "ci" in the credentials file
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""Authentication failed or no API key is available."""

EXIT_NOT_FOUND = 4
"""An explicitly requested named key does not exist."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_STORAGE_CORRUPT = 7
"""The credentials file exists but could not be parsed."""
