"""Cancellable execution context shared by a handle and its store calls."""

from __future__ import annotations

import asyncio
import inspect
import time
from typing import Any, Awaitable, Optional, TypeVar


T = TypeVar("T")


class ContextCancelled(Exception):
    """Raised by :meth:`LockContext.run` when the context ends first."""


def _consume_result(task: "asyncio.Future[Any]") -> None:
    if not task.cancelled():
        task.exception()


class LockContext:
    """Cancellation scope with an optional deadline.

    Cancelling the context (or reaching its deadline) makes every in-flight
    :meth:`run` call give up immediately and wakes any :meth:`wait` caller,
    which is how lease renewal learns it has to stop.
    """

    def __init__(self, *, timeout: Optional[float] = None) -> None:
        if timeout is not None and timeout <= 0:
            raise ValueError("timeout must be positive")
        self._event = asyncio.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None
        self._reason: Optional[str] = None

    def cancel(self, reason: str = "context cancelled") -> None:
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self.cancel("deadline exceeded")
            return True
        return False

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None without one."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    async def wait(self, timeout: Optional[float] = None) -> bool:
        """Sleep until cancelled or ``timeout`` elapses; True if cancelled."""
        limit = self.remaining()
        if timeout is not None:
            limit = timeout if limit is None else min(limit, timeout)
        if not self.cancelled:
            try:
                await asyncio.wait_for(self._event.wait(), limit)
            except asyncio.TimeoutError:
                pass
        return self.cancelled

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the context ends first."""
        if self.cancelled:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise ContextCancelled(self._reason or "context cancelled")

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait(
                {task, waiter},
                timeout=self.remaining(),
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if task in done:
            return task.result()

        task.cancel()
        task.add_done_callback(_consume_result)
        # timeout fired without an explicit cancel
        self.cancel("deadline exceeded")
        raise ContextCancelled(self._reason or "deadline exceeded")
