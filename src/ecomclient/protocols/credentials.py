"""Credential source protocol for ecom-client.

The client never stores or refreshes tokens itself. Before each call it asks
a credential source for the current bearer token and injects it as an
``Authorization`` header unless the call opts out (login and registration
calls must not send a stale token).

Usage:
    from ecomclient.protocols import CredentialSource

    class SessionStore:
        def get_token(self) -> Optional[str]:
            return self._session.get("authToken")

    assert isinstance(SessionStore(), CredentialSource)
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class CredentialSource(Protocol):
    """Protocol for bearer-token providers.

    Implementations must be cheap and synchronous: the token is read once
    per call, on the event loop thread.

    Note:
        Implementations do NOT need to inherit from this class.
    """

    def get_token(self) -> Optional[str]:
        """Return the current bearer token, or None when signed out.

        Returns:
            Token string without the ``Bearer`` prefix, or None.
        """
        ...
