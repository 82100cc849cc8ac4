"""
ecom-client Test Configuration

Shared pytest fixtures and configuration for all test types.
"""

import os
from typing import Callable, Generator, List, Optional

import httpx
import pytest
import respx
import structlog

from ecomclient.client.cancellation import CancellationToken
from ecomclient.core.config import reset_settings

BASE_URL = "https://api.shop.test"


# Configure pytest collection
def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests (real sockets on localhost)")


class RecordingSleeper:
    """Sleeper that records requested delays instead of waiting.

    ``cancel_on`` cancels the token on the given (1-based) sleep to simulate
    a caller giving up mid-backoff.
    """

    def __init__(self, cancel_on: Optional[int] = None) -> None:
        self.delays: List[float] = []
        self._cancel_on = cancel_on

    async def __call__(self, seconds: float, token: CancellationToken) -> bool:
        self.delays.append(seconds)
        if self._cancel_on is not None and len(self.delays) == self._cancel_on:
            token.cancel("gave up during backoff")
            return False
        return True

    @property
    def count(self) -> int:
        return len(self.delays)


@pytest.fixture
def sleeper() -> RecordingSleeper:
    """Provide a sleeper that records delays without waiting."""
    return RecordingSleeper()


@pytest.fixture
def make_sleeper() -> Callable[..., RecordingSleeper]:
    """Factory for sleepers that cancel on a chosen sleep."""
    return RecordingSleeper


@pytest.fixture
def base_url() -> str:
    return BASE_URL


@pytest.fixture
def mock_api() -> Generator[respx.MockRouter, None, None]:
    """Mock every httpx call to BASE_URL."""
    with respx.mock(base_url=BASE_URL, assert_all_called=False) as router:
        yield router


@pytest.fixture
def sequence_client() -> Callable[..., httpx.AsyncClient]:
    """Factory for an httpx client that replays responses in order.

    Each item is an httpx.Response or an exception to raise. The returned
    client exposes ``requests`` with every request it received.
    """
    clients: List[httpx.AsyncClient] = []

    def _make(*outcomes) -> httpx.AsyncClient:
        pending = list(outcomes)
        seen: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            outcome = pending.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client.requests = seen  # type: ignore[attr-defined]
        clients.append(client)
        return client

    return _make


@pytest.fixture
def envelope_page_body() -> dict:
    """Paginated envelope as returned by the catalog endpoints."""
    return {
        "success": True,
        "data": {"id": 1},
        "meta": {"total": 50, "skip": 0, "limit": 10, "page": 1, "totalPages": 5},
    }


@pytest.fixture
def envelope_error_body() -> dict:
    """Error envelope as returned for a missing resource."""
    return {"success": False, "error": {"code": "NOT_FOUND", "message": "missing"}}


@pytest.fixture(autouse=True)
def isolate_settings() -> Generator[None, None, None]:
    """Reset settings singleton and ECOM_ environment around each test."""
    reset_settings()
    saved = {k: v for k, v in os.environ.items() if k.startswith("ECOM_")}
    for key in saved:
        del os.environ[key]
    yield
    reset_settings()
    for key in [k for k in os.environ if k.startswith("ECOM_")]:
        del os.environ[key]
    os.environ.update(saved)


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Drop any structlog configuration a test installed."""
    yield
    structlog.reset_defaults()
