"""Core data models for the storefront HTTP client.

This module defines the immutable value types that flow through a request:
RetryPolicy, ApiError, RequestSpec and Page. None of them is mutated after
construction; every retry attempt reads the same RequestSpec and RetryPolicy.

Models:
    RetryPolicy: Whether, how often and how long to wait between retries.
    ApiError: Uniform failure record (transport, HTTP, parse).
    RequestSpec: One logical call (method, path, headers, body, token, policy).
    Page: Paginated payload produced from an envelope carrying ``meta``.

Usage:
    from ecomclient.client.models import DEFAULT_RETRY_POLICY, RetryPolicy

    aggressive = DEFAULT_RETRY_POLICY.with_overrides(max_retries=5)
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, FrozenSet, Iterable, List, Mapping, Optional, Union

if TYPE_CHECKING:
    from ecomclient.client.cancellation import CancellationToken


DEFAULT_RETRYABLE_STATUS_CODES: FrozenSet[int] = frozenset({408, 429, 500, 502, 503, 504})


@dataclass(frozen=True)
class RetryPolicy:
    """Retry configuration for a request.

    Delays are in milliseconds. ``max_retries`` counts retries, not attempts:
    a policy with ``max_retries=3`` makes at most four attempts.

    Attributes:
        max_retries: Maximum number of retries after the first attempt.
        base_delay_ms: Delay before the first retry, before jitter.
        max_delay_ms: Upper bound for any single delay.
        retryable_status_codes: HTTP statuses worth retrying.
        retry_on_transport_error: Whether status-0 failures are retried.
    """

    max_retries: int = 3
    base_delay_ms: int = 1000
    max_delay_ms: int = 30000
    retryable_status_codes: FrozenSet[int] = DEFAULT_RETRYABLE_STATUS_CODES
    retry_on_transport_error: bool = True

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.base_delay_ms <= 0:
            raise ValueError("base_delay_ms must be > 0")
        if self.max_delay_ms < self.base_delay_ms:
            raise ValueError("max_delay_ms must be >= base_delay_ms")
        # Accept any iterable of ints but store a frozenset
        object.__setattr__(
            self, "retryable_status_codes", frozenset(self.retryable_status_codes)
        )

    def with_overrides(self, **overrides: Any) -> RetryPolicy:
        """Return a copy with the given fields replaced (validated again)."""
        return replace(self, **overrides)


DEFAULT_RETRY_POLICY = RetryPolicy()

# Per-call retry argument: None inherits, False disables, True uses defaults,
# a mapping overrides individual fields, a RetryPolicy is used as-is.
RetryOption = Union[None, bool, RetryPolicy, Mapping[str, Any]]


def resolve_retry_policy(
    retry: RetryOption,
    client_policy: Optional[RetryPolicy] = None,
) -> Optional[RetryPolicy]:
    """Resolve a per-call retry option against the client's policy.

    Args:
        retry: The per-call option.
        client_policy: The policy configured on the client, if any.

    Returns:
        The policy to use, or None when retries are disabled.
    """
    if retry is None:
        return client_policy
    if retry is False:
        return None
    if retry is True:
        return client_policy or DEFAULT_RETRY_POLICY
    if isinstance(retry, RetryPolicy):
        return retry
    if isinstance(retry, Mapping):
        return (client_policy or DEFAULT_RETRY_POLICY).with_overrides(**retry)
    raise TypeError(f"Unsupported retry option: {retry!r}")


@dataclass(frozen=True)
class ApiError:
    """Uniform failure representation surfaced to callers.

    This is a value carried by ``Failure``, not an exception.

    Attributes:
        message: Human-readable description.
        status: HTTP status, or 0 for transport-level failures.
        code: Machine-readable code (e.g. "NOT_FOUND", "NETWORK_ERROR").
        details: Optional structured payload from the server.
    """

    message: str
    status: int
    code: str
    details: Any = None

    @property
    def is_transport_error(self) -> bool:
        """True when no HTTP response was received."""
        return self.status == 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary for rendering or logging."""
        return asdict(self)


def merge_headers(*layers: Optional[Mapping[str, str]]) -> dict[str, str]:
    """Merge header mappings case-insensitively, later layers winning.

    The spelling of the winning layer is kept.
    """
    merged: dict[str, tuple[str, str]] = {}
    for layer in layers:
        if not layer:
            continue
        for name, value in layer.items():
            merged[name.lower()] = (name, value)
    return {name: value for name, value in merged.values()}


def join_url(base_url: str, path: str) -> str:
    """Join a base URL and a relative path with exactly one slash."""
    if not path:
        return base_url
    if path.startswith(("http://", "https://")):
        return path
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


@dataclass(frozen=True)
class RequestSpec:
    """One logical call, immutable across attempts.

    Attributes:
        method: HTTP method in upper case.
        path: Path relative to ``base_url``.
        base_url: Root URL of the target service.
        headers: Read-only header mapping (names are case-insensitive).
        body: Serialized request body, if any.
        params: Optional query parameters.
        cancel_token: Optional cancellation token for this call.
        retry_policy: Resolved retry policy, or None for a single attempt.
    """

    method: str
    path: str
    base_url: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None
    params: Optional[Mapping[str, Any]] = None
    cancel_token: Optional[CancellationToken] = None
    retry_policy: Optional[RetryPolicy] = None

    def __post_init__(self) -> None:
        """Normalize method and freeze headers."""
        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(self, "headers", MappingProxyType(merge_headers(self.headers)))

    @property
    def url(self) -> str:
        """Absolute URL for this request."""
        return join_url(self.base_url, self.path)

    @property
    def max_attempts(self) -> int:
        """Upper bound on attempts for this call."""
        return self.retry_policy.max_retries + 1 if self.retry_policy else 1


@dataclass(frozen=True)
class Page:
    """Paginated payload built from an envelope with ``meta``.

    ``items`` holds the envelope's ``data`` unchanged, which is usually a
    list but may be a single object. ``products`` is kept for callers
    written against the legacy catalog API.
    """

    items: Any
    total: Optional[int] = None
    skip: Optional[int] = None
    limit: Optional[int] = None
    page: Optional[int] = None
    total_pages: Optional[int] = None

    @property
    def products(self) -> Any:
        return self.items

    @classmethod
    def from_envelope(cls, data: Any, meta: Mapping[str, Any]) -> Page:
        return cls(
            items=data,
            total=meta.get("total"),
            skip=meta.get("skip"),
            limit=meta.get("limit"),
            page=meta.get("page"),
            total_pages=meta.get("totalPages"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the camelCase shape the storefront components consume."""
        return {
            "items": self.items,
            "products": self.items,
            "total": self.total,
            "skip": self.skip,
            "limit": self.limit,
            "page": self.page,
            "totalPages": self.total_pages,
        }

    def __len__(self) -> int:
        return len(self.items) if isinstance(self.items, list) else 1

    def __iter__(self):
        items: List[Any] = self.items if isinstance(self.items, list) else [self.items]
        return iter(items)


def status_codes(values: Iterable[int]) -> FrozenSet[int]:
    """Build a frozenset of status codes, validating the HTTP range."""
    codes = frozenset(int(v) for v in values)
    for code in codes:
        if not 100 <= code <= 599:
            raise ValueError(f"Invalid HTTP status code: {code}")
    return codes
