"""ecom-client Exception Hierarchy.

This module defines the structured exception hierarchy for ecom-client.
All custom exceptions inherit from EcomClientError, enabling consistent
error handling across the codebase.

Exception Categories:
- Configuration/programming errors → Exceptions (always raised)
- Expected request failures → Result objects (Failure, Cancelled)

The request path never raises for an HTTP or transport failure; it returns
a ``Failure`` carrying an ``ApiError``. ApiRequestError and
RequestCancelledError exist for callers that prefer exceptions and call
``result.unwrap()``.

Usage:
    from ecomclient.core.exceptions import ApiRequestError, RequestCancelledError

    try:
        product = (await client.get("/products/1")).unwrap()
    except RequestCancelledError:
        pass  # caller went away, nothing to report
    except ApiRequestError as e:
        log.warning("product_fetch_failed", **e.context)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from ecomclient.client.models import ApiError


class EcomClientError(Exception):
    """Base exception for all ecom-client errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: Optional[str] = None) -> None:
        """Initialize EcomClientError.

        Args:
            message: Optional custom message. Defaults to a generic message.
        """
        self.message = message or "An ecom-client error occurred."
        super().__init__(self.message)

    @property
    def context(self) -> dict[str, Any]:
        """Return context dictionary for structured logging.

        Returns:
            dict: Key-value pairs of exception context.
        """
        return {}

    def __repr__(self) -> str:
        """Return debug representation."""
        return f"{self.__class__.__name__}({self.message!r})"


class ConfigurationError(EcomClientError):
    """Configuration file or value is invalid.

    Raised when YAML configuration cannot be parsed or
    contains invalid values.

    Attributes:
        config_path: Path to the configuration file.
        key: The configuration key that caused the error.
        expected_type: The expected type for the value.
    """

    def __init__(
        self,
        config_path: str,
        key: Optional[str] = None,
        expected_type: Optional[str] = None,
        message: Optional[str] = None,
    ) -> None:
        """Initialize ConfigurationError.

        Args:
            config_path: Path to the config file.
            key: Optional key that caused the error.
            expected_type: Optional expected type.
            message: Optional custom message.
        """
        self.config_path = config_path
        self.key = key
        self.expected_type = expected_type

        if message is None:
            key_info = f" key '{key}'" if key else ""
            type_info = f" (expected {expected_type})" if expected_type else ""
            message = f"Configuration error in '{config_path}'{key_info}{type_info}."

        super().__init__(message)

    @property
    def context(self) -> dict[str, Any]:
        """Return context for configuration error."""
        return {
            "config_path": self.config_path,
            "key": self.key,
            "expected_type": self.expected_type,
        }

    def __repr__(self) -> str:
        """Return debug representation with attributes."""
        return (
            f"ConfigurationError(config_path={self.config_path!r}, "
            f"key={self.key!r}, expected_type={self.expected_type!r})"
        )


class ApiRequestError(EcomClientError):
    """A request finished with an ApiError and the caller asked to raise.

    Raised by ``Failure.unwrap()``. The underlying ApiError is kept intact
    so callers can branch on ``status`` and ``code``.

    Attributes:
        error: The ApiError describing the failure.
    """

    def __init__(self, error: ApiError, message: Optional[str] = None) -> None:
        """Initialize ApiRequestError.

        Args:
            error: The ApiError from the final attempt.
            message: Optional custom message.
        """
        self.error = error

        if message is None:
            message = f"[{error.status} {error.code}] {error.message}"

        super().__init__(message)

    @property
    def status(self) -> int:
        """HTTP status of the failure (0 for transport errors)."""
        return self.error.status

    @property
    def code(self) -> str:
        """Machine-readable error code."""
        return self.error.code

    @property
    def context(self) -> dict[str, Any]:
        """Return context for request failure."""
        return {
            "status": self.error.status,
            "code": self.error.code,
            "message": self.error.message,
            "details": self.error.details,
        }

    def __repr__(self) -> str:
        """Return debug representation with attributes."""
        return f"ApiRequestError(error={self.error!r})"


class RequestCancelledError(EcomClientError):
    """The caller cancelled the request before it completed.

    Raised by ``Cancelled.unwrap()``. Not a subclass of
    ApiRequestError so that ``except ApiRequestError`` never catches a
    cancellation.

    Attributes:
        reason: Why the request was cancelled.
    """

    def __init__(self, reason: str = "cancelled", message: Optional[str] = None) -> None:
        """Initialize RequestCancelledError.

        Args:
            reason: Cancellation reason supplied by the token.
            message: Optional custom message.
        """
        self.reason = reason

        if message is None:
            message = f"Request cancelled: {reason}."

        super().__init__(message)

    @property
    def context(self) -> dict[str, Any]:
        """Return context for cancellation."""
        return {"reason": self.reason}


class InvalidStateTransition(EcomClientError):
    """Invalid request state transition attempted.

    Raised when the executor tries to move a call between states that the
    request lifecycle does not allow. Indicates a bug, never a network issue.

    Attributes:
        url: URL of the request being executed.
        from_state: Current state.
        to_state: Attempted target state.
    """

    def __init__(
        self,
        url: str,
        from_state: str,
        to_state: str,
        message: Optional[str] = None,
    ) -> None:
        """Initialize InvalidStateTransition.

        Args:
            url: URL of the request.
            from_state: Current state.
            to_state: Attempted target state.
            message: Optional custom message.
        """
        self.url = url
        self.from_state = from_state
        self.to_state = to_state

        if message is None:
            message = (
                f"Invalid state transition for request '{url}': "
                f"{from_state} -> {to_state}."
            )

        super().__init__(message)

    @property
    def context(self) -> dict[str, Any]:
        """Return context for invalid state transition."""
        return {
            "url": self.url,
            "from_state": self.from_state,
            "to_state": self.to_state,
        }
