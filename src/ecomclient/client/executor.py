"""Request executor.

Runs one logical call as a small state machine:

States:
    ATTEMPTING: Building and sending the request
    RETRYING: Waiting out the backoff delay before the next attempt
    SUCCESS: Unwrapped value produced (terminal)
    FAILED: Last ApiError surfaced (terminal)
    CANCELLED: Caller's token fired (terminal)

Valid Transitions:
    ATTEMPTING → SUCCESS | RETRYING | FAILED | CANCELLED
    RETRYING → ATTEMPTING | CANCELLED

A call makes at most ``max_retries + 1`` attempts, strictly one after the
other. The send and the backoff sleep are the only suspension points, and
both are raced against the cancellation token.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Awaitable, Callable, List, Optional, Union

import httpx
import structlog

from ecomclient.client.backoff import compute_delay
from ecomclient.client.cancellation import CancellationToken
from ecomclient.client.classify import is_retryable
from ecomclient.client.models import ApiError, RequestSpec
from ecomclient.client.result import Cancelled, Failure, RequestResult, Success
from ecomclient.client.unwrap import unwrap_response
from ecomclient.core.exceptions import InvalidStateTransition

log = structlog.get_logger()


class RequestState(StrEnum):
    """Lifecycle states of a single logical request."""

    ATTEMPTING = "ATTEMPTING"
    RETRYING = "RETRYING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


VALID_TRANSITIONS: frozenset[tuple[RequestState, RequestState]] = frozenset([
    (RequestState.ATTEMPTING, RequestState.SUCCESS),
    (RequestState.ATTEMPTING, RequestState.RETRYING),
    (RequestState.ATTEMPTING, RequestState.FAILED),
    (RequestState.ATTEMPTING, RequestState.CANCELLED),
    (RequestState.RETRYING, RequestState.ATTEMPTING),
    (RequestState.RETRYING, RequestState.CANCELLED),
])

TERMINAL_STATES: frozenset[RequestState] = frozenset({
    RequestState.SUCCESS,
    RequestState.FAILED,
    RequestState.CANCELLED,
})


def is_valid_transition(from_state: RequestState, to_state: RequestState) -> bool:
    """Check if a request state transition is allowed."""
    return (from_state, to_state) in VALID_TRANSITIONS


# Waits ``seconds`` unless the token fires; returns True if the wait completed
Sleeper = Callable[[float, CancellationToken], Awaitable[bool]]


async def token_sleep(seconds: float, token: CancellationToken) -> bool:
    """Default sleeper: an abortable asyncio sleep."""
    return await token.sleep(seconds)


@dataclass
class CallState:
    """Mutable bookkeeping for one call. Never shared between calls."""

    url: str
    state: RequestState = RequestState.ATTEMPTING
    attempt: int = 0
    total_delay_ms: float = 0.0
    history: List[RequestState] = field(default_factory=lambda: [RequestState.ATTEMPTING])

    @property
    def attempts_made(self) -> int:
        return self.attempt + 1

    def transition(self, to_state: RequestState) -> None:
        """Move to ``to_state``.

        Raises:
            InvalidStateTransition: If the lifecycle forbids the move.
        """
        if not is_valid_transition(self.state, to_state):
            raise InvalidStateTransition(
                url=self.url,
                from_state=str(self.state),
                to_state=str(to_state),
            )
        log.debug(
            "request_state_changed",
            url=self.url,
            from_state=str(self.state),
            to_state=str(to_state),
            attempt=self.attempt,
        )
        self.state = to_state
        self.history.append(to_state)


class RequestExecutor:
    """Executes RequestSpecs against an httpx client with retries.

    Attributes:
        http_client: The httpx.AsyncClient used as transport.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        sleeper: Optional[Sleeper] = None,
        rand: Callable[[], float] = random.random,
    ) -> None:
        """Initialize the executor.

        Args:
            http_client: Transport for sending requests. Not owned.
            sleeper: Abortable sleep used between retries.
            rand: Random source for backoff jitter.
        """
        self._http_client = http_client
        self._sleeper = sleeper or token_sleep
        self._rand = rand

    @property
    def http_client(self) -> httpx.AsyncClient:
        return self._http_client

    async def execute(
        self,
        spec: RequestSpec,
        skip_error_logging: bool = False,
    ) -> RequestResult:
        """Run ``spec`` to a terminal state.

        Args:
            spec: The request to execute.
            skip_error_logging: Don't log the terminal failure (caller handles it).

        Returns:
            Success, Failure (last attempt's ApiError) or Cancelled.
        """
        token = spec.cancel_token or CancellationToken()
        policy = spec.retry_policy
        call = CallState(url=spec.url)

        while True:
            if token.cancelled:
                return self._cancel(call, token)

            outcome = await self._attempt(spec, token)
            if outcome is None:
                return self._cancel(call, token)

            if isinstance(outcome, Success):
                call.transition(RequestState.SUCCESS)
                if call.attempt > 0:
                    log.info(
                        "api_retry_succeeded",
                        url=call.url,
                        attempts=call.attempts_made,
                        total_delay_ms=round(call.total_delay_ms),
                    )
                return outcome

            error = outcome.error
            if (
                policy is not None
                and call.attempts_made < spec.max_attempts
                and is_retryable(error, policy)
            ):
                call.transition(RequestState.RETRYING)
                delay_ms = compute_delay(call.attempt, policy, self._rand)
                log.warning(
                    "api_retry",
                    url=call.url,
                    method=spec.method,
                    attempt=call.attempt + 1,
                    max_attempts=spec.max_attempts,
                    status=error.status,
                    code=error.code,
                    delay_ms=round(delay_ms),
                )
                if token.cancelled:
                    return self._cancel(call, token)
                slept = await self._sleeper(delay_ms / 1000.0, token)
                if not slept or token.cancelled:
                    return self._cancel(call, token)

                call.attempt += 1
                call.total_delay_ms += delay_ms
                call.transition(RequestState.ATTEMPTING)
                continue

            call.transition(RequestState.FAILED)
            if not skip_error_logging:
                log.error(
                    "api_error",
                    url=call.url,
                    method=spec.method,
                    error=error.message,
                    status=error.status,
                    code=error.code,
                    attempts=call.attempts_made,
                    total_delay_ms=round(call.total_delay_ms),
                )
            return outcome

    async def _attempt(
        self,
        spec: RequestSpec,
        token: CancellationToken,
    ) -> Union[Success, Failure, None]:
        """Send once. Returns None when the token fired mid-flight."""
        request = self._http_client.build_request(
            spec.method,
            spec.url,
            headers=dict(spec.headers),
            content=spec.body,
            params=spec.params,
        )
        try:
            finished, response = await token.run(self._http_client.send(request))
        except httpx.TimeoutException as e:
            return Failure(ApiError(message=str(e) or "Request timed out", status=0, code="TIMEOUT"))
        except httpx.RequestError as e:
            return Failure(ApiError(message=str(e) or "Network error", status=0, code="NETWORK_ERROR"))

        if not finished:
            return None
        return unwrap_response(response)

    def _cancel(self, call: CallState, token: CancellationToken) -> Cancelled:
        # A call cancelled before its first send is still ATTEMPTING
        if call.state not in TERMINAL_STATES:
            call.transition(RequestState.CANCELLED)
        log.debug("api_request_cancelled", url=call.url, attempts=call.attempt, reason=token.reason)
        return Cancelled(reason=token.reason or "cancelled")
