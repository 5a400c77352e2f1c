"""Background lease renewal for a held lock."""

from __future__ import annotations

import asyncio
import inspect
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Union

from keylock.utils.logging import get_logger

from .errors import LockError

if TYPE_CHECKING:
    from .lock import RedisLock


LostCallback = Callable[[LockError], Union[None, Awaitable[None]]]


class LeaseRenewer:
    """Re-extends a lock's lease on a fixed interval until told to stop.

    The loop stops when the handle's context is cancelled, when :meth:`stop`
    is called, or on the first failed extension. A failure marks the lock as
    lost and is reported through ``on_lost``; it is never raised into the
    code doing the protected work.
    """

    def __init__(
        self,
        lock: "RedisLock",
        *,
        interval: float,
        on_lost: Optional[LostCallback] = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("renewal interval must be positive")
        if interval >= lock.lease.total_seconds():
            raise ValueError("renewal interval must be shorter than the lease")
        self._lock = lock
        self._interval = interval
        self._on_lost = on_lost
        self.logger = get_logger("keylock.renewal")
        self._task: Optional[asyncio.Task[None]] = None
        self.renewals = 0

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self.logger.debug("Starting renewal of %s every %.3fs", self._lock.key, self._interval)
        self._task = asyncio.create_task(self._run(), name=f"keylock-renew-{self._lock.key}")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        if not task.done():
            task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            # a finished task raised its own cancellation; anything else is the caller's
            if not task.done():
                raise

    async def _run(self) -> None:
        context = self._lock.context
        while True:
            if await context.wait(self._interval):
                self.logger.debug("Renewal of %s stopped: %s", self._lock.key, context.reason)
                return
            try:
                await self._lock.extend()
            except LockError as exc:
                await self._report_lost(exc)
                return
            self.renewals += 1

    async def _report_lost(self, exc: LockError) -> None:
        if self._lock.context.cancelled:
            # cancellation raced the extend call; nothing was lost
            return
        self._lock.lost.set()
        self.logger.error("Lease on %s may be lost: %s", self._lock.key, exc)
        if self._on_lost is None:
            return
        try:
            result: Any = self._on_lost(exc)
            if inspect.isawaitable(result):
                await result
        except Exception:
            self.logger.exception("on_lost callback for %s failed", self._lock.key)
