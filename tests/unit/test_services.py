"""Unit tests for the per-service client registry."""

import httpx
import pytest

from ecomclient.client.credentials import InMemoryCredentialStore
from ecomclient.core.config import Settings
from ecomclient.services import SERVICE_NAMES, create_service_clients


async def test_urls_fall_back_to_api_url():
    settings = Settings(api={"base_url": "https://api.shop.test"})
    async with create_service_clients(settings) as clients:
        assert clients.api.base_url == "https://api.shop.test"
        assert clients.auth.base_url == "https://api.shop.test"
        assert clients.payments.base_url == "https://api.shop.test"


async def test_separate_service_urls():
    settings = Settings(api={
        "base_url": "https://api.shop.test",
        "auth_url": "https://auth.shop.test",
        "payment_url": "https://pay.shop.test/",
    })
    async with create_service_clients(settings) as clients:
        assert clients.get("auth").base_url == "https://auth.shop.test"
        assert clients.get("payments").base_url == "https://pay.shop.test"


async def test_clients_are_independent():
    async with create_service_clients(Settings()) as clients:
        assert len({id(clients.get(name)) for name in SERVICE_NAMES}) == 3


async def test_unknown_service():
    async with create_service_clients(Settings()) as clients:
        with pytest.raises(KeyError, match="Unknown service"):
            clients.get("inventory")


async def test_retry_policy_from_settings():
    async with create_service_clients(Settings()) as clients:
        assert clients.api.retry_policy is None

    settings = Settings(retry={"enabled": True, "max_retries": 2})
    async with create_service_clients(settings) as clients:
        assert clients.payments.retry_policy.max_retries == 2


async def test_shared_credentials(mock_api, base_url, sleeper):
    route = mock_api.get("/cart").mock(return_value=httpx.Response(200, json={"success": True, "data": []}))
    store = InMemoryCredentialStore("tok")
    settings = Settings(api={"base_url": base_url})
    async with create_service_clients(settings, credentials=store, sleeper=sleeper) as clients:
        await clients.api.get("/cart")
    assert route.calls.last.request.headers["Authorization"] == "Bearer tok"


async def test_uses_global_settings_when_none_given(monkeypatch):
    monkeypatch.setenv("ECOM_API__BASE_URL", "https://env.shop.test")
    async with create_service_clients() as clients:
        assert clients.api.base_url == "https://env.shop.test"
