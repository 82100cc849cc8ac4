"""Request deduplication and a small response cache.

RequestDeduplicator shares one in-flight call between concurrent callers
asking for the same key, so several views loading ``/products`` at once
cause a single request. Entries disappear as soon as the call settles;
this is in-flight deduplication, not caching. ResponseCache is the TTL
cache for when reuse across time is wanted.

Usage:
    api = DeduplicatedApi(client)
    first, second = await asyncio.gather(api.get("/products"), api.get("/products"))
    # one HTTP request, both callers get the same RequestResult
"""

from __future__ import annotations

import asyncio
import re
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Generic, Mapping, Optional, TypeVar, Union

import httpx
import structlog

from ecomclient.client.api_client import ApiClient
from ecomclient.client.result import RequestResult

log = structlog.get_logger()

T = TypeVar("T")

Clock = Callable[[], float]


@dataclass
class _Pending:
    task: "asyncio.Future[Any]"
    started_at: float


class RequestDeduplicator:
    """Deduplicates concurrent calls by key.

    Attributes:
        stale_after: Seconds after which a pending call is no longer shared.
    """

    def __init__(self, stale_after: float = 30.0, clock: Clock = time.monotonic) -> None:
        """Initialize the deduplicator.

        Args:
            stale_after: Age in seconds after which a pending call is replaced.
            clock: Monotonic time source, injectable for tests.

        Raises:
            ValueError: If stale_after is not positive.
        """
        if stale_after <= 0:
            raise ValueError("stale_after must be > 0")
        self._stale_after = stale_after
        self._clock = clock
        self._pending: Dict[str, _Pending] = {}

    @property
    def stale_after(self) -> float:
        return self._stale_after

    async def dedupe(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        """Run ``factory()`` or join the call already pending for ``key``.

        A caller that is cancelled while waiting does not cancel the shared
        call for the others.
        """
        existing = self._pending.get(key)
        if existing is not None:
            age = self._clock() - existing.started_at
            if age < self._stale_after:
                log.debug("dedup_reuse", key=key)
                return await asyncio.shield(existing.task)
            log.debug("dedup_stale", key=key, age=age)
            del self._pending[key]

        log.debug("dedup_new", key=key)
        task = asyncio.ensure_future(factory())
        entry = _Pending(task=task, started_at=self._clock())
        self._pending[key] = entry
        task.add_done_callback(lambda _t: self._settle(key, entry))
        return await asyncio.shield(task)

    def _settle(self, key: str, entry: _Pending) -> None:
        # A stale entry may already have been replaced by a newer call
        if self._pending.get(key) is entry:
            del self._pending[key]
            log.debug("dedup_settled", key=key)

    def clear(self, key: str) -> None:
        """Forget the pending call for ``key``; it still completes for its waiters."""
        self._pending.pop(key, None)

    def clear_all(self) -> None:
        self._pending.clear()

    def is_pending(self, key: str) -> bool:
        return key in self._pending

    def pending_count(self) -> int:
        return len(self._pending)


class DeduplicatedApi:
    """ApiClient wrapper that deduplicates concurrent identical GETs.

    Calls are shared by path and sorted query parameters. A GET carrying
    any other option, such as a cancel_token, goes straight to the client
    so a token only ever cancels its own caller's request. POSTs always
    pass through since they usually have side effects.
    """

    def __init__(self, client: ApiClient, deduplicator: Optional[RequestDeduplicator] = None) -> None:
        self._client = client
        self._deduplicator = deduplicator or RequestDeduplicator()

    @staticmethod
    def key_for(path: str, params: Optional[Mapping[str, Any]] = None) -> str:
        """Build the dedup key from the path and the sorted query parameters."""
        key = f"GET:{path}"
        if params:
            query = httpx.QueryParams(sorted(httpx.QueryParams(params).multi_items()))
            key = f"{key}?{query}"
        return key

    async def get(
        self,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        **options: Any,
    ) -> RequestResult:
        if options:
            log.debug("dedup_bypassed", path=path, options=sorted(options))
            return await self._client.get(path, params=params, **options)
        return await self._deduplicator.dedupe(
            self.key_for(path, params), lambda: self._client.get(path, params=params)
        )

    async def post(self, path: str, body: Any = None, **options: Any) -> RequestResult:
        return await self._client.post(path, body, **options)

    def invalidate(self, path: str, params: Optional[Mapping[str, Any]] = None) -> None:
        self._deduplicator.clear(self.key_for(path, params))

    def invalidate_all(self) -> None:
        self._deduplicator.clear_all()


@dataclass
class CacheEntry(Generic[T]):
    data: T
    stored_at: float
    expires_at: float


class ResponseCache(Generic[T]):
    """In-memory cache with per-entry TTL and a size bound.

    Expired entries are dropped on read. At capacity the oldest inserted
    entry is evicted.
    """

    def __init__(
        self,
        default_ttl: float = 300.0,
        max_entries: int = 100,
        clock: Clock = time.monotonic,
    ) -> None:
        if default_ttl <= 0:
            raise ValueError("default_ttl must be > 0")
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self._default_ttl = default_ttl
        self._max_entries = max_entries
        self._clock = clock
        self._entries: Dict[str, CacheEntry[T]] = {}

    def set(self, key: str, data: T, ttl: Optional[float] = None) -> None:
        if key not in self._entries and len(self._entries) >= self._max_entries:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
            log.debug("cache_evicted", key=oldest)
        now = self._clock()
        self._entries[key] = CacheEntry(
            data=data,
            stored_at=now,
            expires_at=now + (ttl if ttl is not None else self._default_ttl),
        )

    def get(self, key: str) -> Optional[T]:
        entry = self._live_entry(key)
        return entry.data if entry else None

    def has(self, key: str) -> bool:
        return self._live_entry(key) is not None

    def _live_entry(self, key: str) -> Optional[CacheEntry[T]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() > entry.expires_at:
            del self._entries[key]
            return None
        return entry

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def invalidate_pattern(self, pattern: Union[str, "re.Pattern[str]"]) -> int:
        """Drop every key matching ``pattern``. Returns how many were dropped."""
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        doomed = [key for key in self._entries if regex.search(key)]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    def clear(self) -> None:
        self._entries.clear()

    def size(self) -> int:
        return len(self._entries)
