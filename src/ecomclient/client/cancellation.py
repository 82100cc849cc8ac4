"""Cooperative cancellation for in-flight requests.

A CancellationToken is passed explicitly into a request. The executor checks
it before each send, races it against the in-flight send and against the
inter-retry sleep. Cancelling the token never triggers a retry.

Usage:
    token = CancellationToken()
    task = asyncio.create_task(client.get("/products", cancel_token=token))
    ...
    token.cancel("view closed")
    result = await task  # Cancelled(reason="view closed")
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Optional, Tuple

import structlog

log = structlog.get_logger()


class CancellationToken:
    """One-shot cancellation signal bound to the running event loop.

    Tokens must be cancelled from the event loop thread that awaits them.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: Optional[str] = None
        self._timer: Optional[asyncio.TimerHandle] = None

    @property
    def cancelled(self) -> bool:
        """Whether cancel() has been called."""
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        """Reason passed to cancel(), if cancelled."""
        return self._reason

    def cancel(self, reason: str = "cancelled") -> None:
        """Trigger the token. Later calls keep the first reason."""
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def cancel_after(self, seconds: float, reason: str = "deadline exceeded") -> None:
        """Schedule cancellation after ``seconds`` on the running loop."""
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(seconds, self.cancel, reason)

    async def wait(self) -> None:
        """Block until the token is cancelled."""
        await self._event.wait()

    async def sleep(self, seconds: float) -> bool:
        """Sleep for ``seconds`` unless cancelled first.

        Returns:
            True if the full delay elapsed, False if the token fired.
        """
        if self.cancelled:
            return False
        try:
            await asyncio.wait_for(self._event.wait(), timeout=max(seconds, 0.0))
        except asyncio.TimeoutError:
            return True
        return False

    async def run(self, awaitable: Awaitable[Any]) -> Tuple[bool, Any]:
        """Run ``awaitable`` unless the token fires first.

        If the token fires first, the underlying task is cancelled so the
        transport aborts the in-flight operation.

        Returns:
            ``(True, result)`` when the awaitable finished, ``(False, None)``
            when it was cancelled. Exceptions from the awaitable propagate.
        """
        task = asyncio.ensure_future(awaitable)
        if self.cancelled:
            task.cancel()
            await self._drain(task)
            return False, None

        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait(
                {task, waiter}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if task in done:
            return True, task.result()

        task.cancel()
        await self._drain(task)
        return False, None

    @staticmethod
    async def _drain(task: "asyncio.Future[Any]") -> None:
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            # The caller has already given up on this operation
            log.debug("cancelled_operation_error", error=str(e))

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.cancelled}, reason={self._reason!r})"
