"""Resilient HTTP client for the storefront backends.

Exports the client facade, the request model and result types, and the
pure building blocks (backoff, classification, unwrapping) for reuse.
"""

from ecomclient.client.models import (
    DEFAULT_RETRY_POLICY,
    DEFAULT_RETRYABLE_STATUS_CODES,
    ApiError,
    Page,
    RequestSpec,
    RetryPolicy,
    resolve_retry_policy,
)
from ecomclient.client.result import (
    Cancelled,
    Failure,
    RequestResult,
    Success,
)
from ecomclient.client.backoff import compute_delay
from ecomclient.client.classify import is_retryable
from ecomclient.client.unwrap import (
    EnvelopedResponse,
    RawResponse,
    classify_payload,
    is_envelope,
    unwrap,
)
from ecomclient.client.cancellation import CancellationToken
from ecomclient.client.executor import RequestExecutor, RequestState
from ecomclient.client.api_client import ApiClient
from ecomclient.client.credentials import EnvCredentialSource, InMemoryCredentialStore
from ecomclient.client.dedup import DeduplicatedApi, RequestDeduplicator, ResponseCache

__all__ = [
    # Models
    "DEFAULT_RETRY_POLICY",
    "DEFAULT_RETRYABLE_STATUS_CODES",
    "ApiError",
    "Page",
    "RequestSpec",
    "RetryPolicy",
    "resolve_retry_policy",
    # Results
    "Cancelled",
    "Failure",
    "RequestResult",
    "Success",
    # Building blocks
    "compute_delay",
    "is_retryable",
    "EnvelopedResponse",
    "RawResponse",
    "classify_payload",
    "is_envelope",
    "unwrap",
    # Execution
    "CancellationToken",
    "RequestExecutor",
    "RequestState",
    "ApiClient",
    # Credentials
    "EnvCredentialSource",
    "InMemoryCredentialStore",
    # Deduplication
    "DeduplicatedApi",
    "RequestDeduplicator",
    "ResponseCache",
]
