"""Protocol abstractions for ecom-client.

This module provides the structural interfaces for collaborators the client
depends on but does not implement. All protocols use `typing.Protocol` with
`@runtime_checkable` for isinstance() support.

Protocols:
    CredentialSource: Supplies the current bearer token, if any.

Usage:
    from ecomclient.protocols import CredentialSource

    assert isinstance(my_session_store, CredentialSource)
"""

from __future__ import annotations

from ecomclient.protocols.credentials import CredentialSource

__all__ = [
    "CredentialSource",
]
