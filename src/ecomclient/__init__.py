"""
ecom-client - Resilient HTTP client for the storefront backends

Retries with exponential backoff and jitter, envelope unwrapping and
cooperative cancellation over httpx.
"""

from ecomclient.core.exceptions import (
    EcomClientError,
    ApiRequestError,
    RequestCancelledError,
)
from ecomclient.client import (
    DEFAULT_RETRY_POLICY,
    ApiClient,
    ApiError,
    CancellationToken,
    Cancelled,
    Failure,
    Page,
    RequestResult,
    RetryPolicy,
    Success,
)

__version__ = "1.0.0"

__all__ = [
    "EcomClientError",
    "ApiRequestError",
    "RequestCancelledError",
    "DEFAULT_RETRY_POLICY",
    "ApiClient",
    "ApiError",
    "CancellationToken",
    "Cancelled",
    "Failure",
    "Page",
    "RequestResult",
    "RetryPolicy",
    "Success",
]
