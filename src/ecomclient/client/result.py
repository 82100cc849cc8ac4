"""Request results.

Every call resolves to exactly one of three variants:

    Success(value)      the unwrapped payload
    Failure(error)      an ApiError from the final attempt
    Cancelled(reason)   the caller's token fired

Failures and cancellations are returned, never raised, so the signature of
every request method shows that it can fail. ``unwrap()`` converts a result
into the value or the matching exception for callers who prefer that style.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

from ecomclient.client.models import ApiError
from ecomclient.core.exceptions import ApiRequestError, RequestCancelledError

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    """The request completed and produced a value."""

    value: T

    ok = True
    cancelled = False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: Any) -> T:
        return self.value


@dataclass(frozen=True)
class Failure:
    """The request failed terminally."""

    error: ApiError

    ok = False
    cancelled = False

    def unwrap(self) -> Any:
        raise ApiRequestError(self.error)

    def unwrap_or(self, default: Any) -> Any:
        return default


@dataclass(frozen=True)
class Cancelled:
    """The caller cancelled the request.

    Kept apart from Failure so that callers tearing down (e.g. a view going
    away mid-request) can ignore it without inspecting error codes.
    """

    reason: str = "cancelled"

    ok = False
    cancelled = True

    def unwrap(self) -> Any:
        raise RequestCancelledError(self.reason)

    def unwrap_or(self, default: Any) -> Any:
        return default


UnwrapResult = Union[Success[Any], Failure]
RequestResult = Union[Success[Any], Failure, Cancelled]
