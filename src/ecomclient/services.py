"""Per-service client registry.

The storefront talks to three backends: the main API (catalog, cart,
orders, ...), the auth service and the payment service. Each gets its own
ApiClient so base URLs, headers and rate limits can differ; auth and
payments fall back to the main API URL when not configured separately.

Usage:
    from ecomclient.services import create_service_clients

    async with create_service_clients(credentials=store) as clients:
        await clients.auth.post("/auth/login", creds, skip_auth=True)
        await clients.api.get("/products", retry=True)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import structlog

from ecomclient.client.api_client import ApiClient
from ecomclient.client.executor import Sleeper
from ecomclient.core.config import Settings, get_settings
from ecomclient.protocols.credentials import CredentialSource

log = structlog.get_logger()

SERVICE_NAMES = ("api", "auth", "payments")


@dataclass(frozen=True)
class ServiceClients:
    """One ApiClient per backend service."""

    api: ApiClient
    auth: ApiClient
    payments: ApiClient

    def get(self, name: str) -> ApiClient:
        """Look up a client by service name.

        Raises:
            KeyError: If the service name is unknown.
        """
        if name not in SERVICE_NAMES:
            raise KeyError(f"Unknown service '{name}'. Must be one of {SERVICE_NAMES}")
        return getattr(self, name)

    async def aclose(self) -> None:
        for name in SERVICE_NAMES:
            await getattr(self, name).aclose()

    async def __aenter__(self) -> ServiceClients:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


def create_service_clients(
    settings: Optional[Settings] = None,
    credentials: Optional[CredentialSource] = None,
    sleeper: Optional[Sleeper] = None,
) -> ServiceClients:
    """Build the per-service clients from settings.

    Args:
        settings: Settings to read. Defaults to the global singleton.
        credentials: Bearer token source shared by all three clients.
        sleeper: Optional abortable sleep, mainly for tests.

    Returns:
        ServiceClients with independent ApiClient instances.
    """
    settings = settings or get_settings()
    api_config = settings.api
    policy = settings.retry_policy

    urls = {
        "api": api_config.base_url,
        "auth": api_config.resolved_auth_url,
        "payments": api_config.resolved_payment_url,
    }
    clients = {
        name: ApiClient(
            url,
            credentials=credentials,
            retry_policy=policy,
            timeout=api_config.timeout,
            sleeper=sleeper,
        )
        for name, url in urls.items()
    }

    log.info("service_clients_created", retries_enabled=policy is not None, **urls)
    return ServiceClients(**clients)
