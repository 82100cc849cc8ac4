"""Storefront API client facade.

ApiClient is the entry point the rest of the application uses. Each
instance targets one backend service (one base URL) and funnels every verb
through a RequestExecutor, which owns retries and cancellation.

Usage:
    from ecomclient.client import ApiClient, CancellationToken

    async with ApiClient("https://api.example.com", credentials=store) as api:
        result = await api.get("/products", params={"limit": 20}, retry=True)
        if result.ok:
            page = result.value          # Page for paginated endpoints
        elif not result.cancelled:
            show_error(result.error.message)

        # Login must never carry a stale token
        await api.post("/auth/login", {"email": e, "password": p}, skip_auth=True)
"""

from __future__ import annotations

import json
from typing import Any, Mapping, Optional

import httpx
import structlog
from pydantic import BaseModel

from ecomclient.client.cancellation import CancellationToken
from ecomclient.client.executor import RequestExecutor, Sleeper
from ecomclient.client.models import (
    RequestSpec,
    RetryOption,
    RetryPolicy,
    merge_headers,
    resolve_retry_policy,
)
from ecomclient.client.result import RequestResult
from ecomclient.protocols.credentials import CredentialSource

log = structlog.get_logger()

JSON_CONTENT_TYPE = "application/json"


def serialize_body(body: Any) -> bytes:
    """Serialize a request payload to JSON bytes.

    Pydantic models are dumped in JSON mode using field aliases.
    """
    if isinstance(body, BaseModel):
        body = body.model_dump(mode="json", by_alias=True)
    return json.dumps(body).encode("utf-8")


class ApiClient:
    """HTTP client for one storefront backend service.

    Instances share no mutable state. The default headers, credential source
    and retry policy are fixed at construction.

    Attributes:
        base_url: Root URL every path is joined to.
        retry_policy: Policy for calls that don't pass ``retry`` (None: no retries).
    """

    DEFAULT_TIMEOUT = 10.0

    def __init__(
        self,
        base_url: str,
        *,
        default_headers: Optional[Mapping[str, str]] = None,
        credentials: Optional[CredentialSource] = None,
        retry_policy: Optional[RetryPolicy] = None,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None,
        sleeper: Optional[Sleeper] = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Root URL of the service (e.g. https://dummyjson.com).
            default_headers: Headers sent with every request.
            credentials: Source of the bearer token, if the service needs one.
            retry_policy: Policy applied when a call passes no ``retry``.
            timeout: Transport timeout in seconds (only for an owned client).
            http_client: Existing httpx.AsyncClient to borrow instead of owning one.
            sleeper: Abortable sleep used between retries.

        Raises:
            ValueError: If base_url is empty.
        """
        if not base_url:
            raise ValueError("base_url cannot be empty")

        self._base_url = base_url.rstrip("/")
        self._default_headers = merge_headers({"Accept": JSON_CONTENT_TYPE}, default_headers)
        self._credentials = credentials
        self._retry_policy = retry_policy
        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)
        self._executor = RequestExecutor(self._http_client, sleeper=sleeper)

        log.debug(
            "api_client_created",
            base_url=self._base_url,
            max_retries=retry_policy.max_retries if retry_policy else 0,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def retry_policy(self) -> Optional[RetryPolicy]:
        return self._retry_policy

    @property
    def default_headers(self) -> dict[str, str]:
        """Copy of the default headers."""
        return dict(self._default_headers)

    def build_spec(
        self,
        method: str,
        path: str,
        *,
        body: Optional[bytes] = None,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[Mapping[str, Any]] = None,
        retry: RetryOption = None,
        cancel_token: Optional[CancellationToken] = None,
        skip_auth: bool = False,
    ) -> RequestSpec:
        """Assemble the immutable RequestSpec for one call.

        Header precedence (lowest to highest): client defaults, content type,
        bearer token, per-call headers.
        """
        content_headers = {"Content-Type": JSON_CONTENT_TYPE} if body is not None else None

        auth_headers = None
        if not skip_auth and self._credentials is not None:
            token = self._credentials.get_token()
            if token:
                auth_headers = {"Authorization": f"Bearer {token}"}

        return RequestSpec(
            method=method,
            path=path,
            base_url=self._base_url,
            headers=merge_headers(self._default_headers, content_headers, auth_headers, headers),
            body=body,
            params=params,
            cancel_token=cancel_token,
            retry_policy=resolve_retry_policy(retry, self._retry_policy),
        )

    async def request(
        self,
        method: str,
        path: str,
        *,
        json_body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[Mapping[str, Any]] = None,
        retry: RetryOption = None,
        cancel_token: Optional[CancellationToken] = None,
        skip_auth: bool = False,
        skip_error_logging: bool = False,
    ) -> RequestResult:
        """Issue a request and run it to a terminal result.

        Args:
            method: HTTP method.
            path: Path relative to the base URL.
            json_body: Payload serialized as JSON; None sends no body.
            headers: Per-call headers, overriding defaults.
            params: Query parameters.
            retry: None (client policy), False, True, a mapping of overrides or a RetryPolicy.
            cancel_token: Token that aborts the call.
            skip_auth: Don't send the bearer token.
            skip_error_logging: Don't log the terminal failure.

        Returns:
            Success, Failure or Cancelled.
        """
        spec = self.build_spec(
            method,
            path,
            body=serialize_body(json_body) if json_body is not None else None,
            headers=headers,
            params=params,
            retry=retry,
            cancel_token=cancel_token,
            skip_auth=skip_auth,
        )
        return await self._executor.execute(spec, skip_error_logging=skip_error_logging)

    async def get(self, path: str, **options: Any) -> RequestResult:
        """GET: fetch a resource without side effects."""
        return await self.request("GET", path, **options)

    async def post(self, path: str, body: Any = None, **options: Any) -> RequestResult:
        """POST: create a resource; ``body`` is sent as JSON."""
        return await self.request("POST", path, json_body=body, **options)

    async def put(self, path: str, body: Any = None, **options: Any) -> RequestResult:
        """PUT: replace a resource; ``body`` is sent as JSON."""
        return await self.request("PUT", path, json_body=body, **options)

    async def patch(self, path: str, body: Any = None, **options: Any) -> RequestResult:
        """PATCH: partially update a resource; ``body`` is sent as JSON."""
        return await self.request("PATCH", path, json_body=body, **options)

    async def delete(self, path: str, **options: Any) -> RequestResult:
        """DELETE: remove a resource."""
        return await self.request("DELETE", path, **options)

    async def aclose(self) -> None:
        """Close the underlying httpx client if this instance owns it."""
        if self._owns_http_client:
            await self._http_client.aclose()

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"ApiClient(base_url={self._base_url!r}, retry_policy={self._retry_policy!r})"
