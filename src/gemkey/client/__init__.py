"""HTTP client module for gemkey.

Provides the :class:`RemoteAuthClient` interface used by the sign-in flow
and :class:`HttpxAuthClient`, its :mod:`httpx` implementation.

Example::

    from gemkey.client import HttpxAuthClient

    with HttpxAuthClient() as client:
        resp = client.request_api_key("https://rubygems.org", email, password)
"""

from gemkey.client.auth_client import HttpxAuthClient, RemoteAuthClient

__all__ = ["HttpxAuthClient", "RemoteAuthClient"]
