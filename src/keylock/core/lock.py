"""Redis-based distributed lock handle using SET NX PX semantics."""

from __future__ import annotations

import asyncio
import datetime as dt
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from keylock.utils.logging import get_logger

from .context import LockContext
from .errors import LockError, LockHeldError, LockNotHeldError, LockStateError, StoreUnavailableError
from .models import (
    Duration,
    LockOption,
    LockState,
    generate_token,
    resolve_options,
    to_millis,
    to_timedelta,
)
from .renewal import LeaseRenewer, LostCallback
from .scripts import ScriptExecutor, StoreClient


class RedisLock:
    """One acquire/release cycle on a single key.

    A handle is meant for a single owner; if it is shared between tasks the
    caller must serialize calls to it. No I/O happens until :meth:`lock`.

        lock = RedisLock(redis, "job-42", with_lease_duration(30))
        await lock.lock()
        try:
            ...
        finally:
            await lock.unlock()
    """

    def __init__(
        self,
        client: StoreClient,
        key: str,
        *options: LockOption,
        context: Optional[LockContext] = None,
    ) -> None:
        if not isinstance(key, str) or not key:
            raise ValueError("lock key must be a non-empty string")
        resolved = resolve_options(*options)
        self._key = key
        self._token_supplied = resolved.token is not None
        self._token = resolved.token or generate_token()
        self._lease = resolved.lease
        self._renew_interval = resolved.renew_interval
        self.context = context or LockContext()
        self._executor = ScriptExecutor(client, context=self.context)
        self._state = LockState.UNACQUIRED
        self._renewer: Optional[LeaseRenewer] = None
        self.lost = asyncio.Event()
        self.logger = get_logger("keylock.lock")

    @property
    def key(self) -> str:
        return self._key

    @property
    def token(self) -> str:
        return self._token

    @property
    def lease(self) -> dt.timedelta:
        return self._lease

    @property
    def state(self) -> LockState:
        return self._state

    @property
    def held(self) -> bool:
        """True while this handle believes it owns the record."""
        return self._state is LockState.HELD and not self.lost.is_set()

    @property
    def renewer(self) -> Optional[LeaseRenewer]:
        return self._renewer

    async def lock(self) -> None:
        """Acquire the key, or raise.

        Raises:
            LockHeldError: another owner holds the key.
            StoreUnavailableError: outcome unknown; the handle moves to UNKNOWN.
            LockStateError: the handle already holds the key.
        """
        if self._state is LockState.HELD:
            raise LockStateError(self._key, f"Lock {self._key!r} is already held by this handle")
        if self._state in (LockState.RELEASED, LockState.EXPIRED):
            self._begin_cycle()

        try:
            acquired = await self._executor.acquire(self._key, self._token, to_millis(self._lease))
        except StoreUnavailableError as exc:
            self._state = LockState.UNKNOWN
            self.logger.warning("Acquire of %s is ambiguous: %s", self._key, exc)
            raise

        if not acquired:
            self.logger.debug("Lock %s is contended", self._key)
            raise LockHeldError(self._key)

        self._state = LockState.HELD
        self.lost.clear()
        self.logger.debug("Acquired %s for %ss", self._key, self._lease.total_seconds())

    async def unlock(self) -> None:
        """Release the key if, and only if, it still carries this handle's token.

        Any running renewal is stopped before the release is sent.

        Raises:
            LockNotHeldError: never acquired, already released, or the record
                expired / belongs to someone else. The store is left untouched.
            StoreUnavailableError: outcome unknown; the lock may still be held.
        """
        if self._state in (LockState.UNACQUIRED, LockState.RELEASED):
            raise LockNotHeldError(self._key, f"handle is {self._state.value}")

        await self.stop_renewal()

        try:
            released = await self._executor.release(self._key, self._token)
        except StoreUnavailableError as exc:
            self.logger.warning("Release of %s is ambiguous, lock may still be held: %s", self._key, exc)
            raise

        if not released:
            self._state = LockState.EXPIRED
            self.logger.warning("Release of %s found no record for this token", self._key)
            raise LockNotHeldError(self._key, "lease expired or record owned by another token")

        self._state = LockState.RELEASED
        self.logger.debug("Released %s", self._key)

    async def extend(self, lease: Optional[Duration] = None) -> None:
        """Reset the record's expiry to the lease (optionally a new one)."""
        if self._state is not LockState.HELD:
            raise LockNotHeldError(self._key, f"handle is {self._state.value}")
        if lease is not None:
            new_lease = to_timedelta(lease)
            if new_lease <= dt.timedelta(0):
                raise ValueError("lease duration must be strictly positive")
            renewer = self._renewer
            if renewer is not None and renewer.running and renewer.interval >= new_lease.total_seconds():
                raise ValueError("lease must stay longer than the running renewal interval")
            self._lease = new_lease

        extended = await self._executor.extend(self._key, self._token, to_millis(self._lease))
        if not extended:
            self._state = LockState.EXPIRED
            raise LockNotHeldError(self._key, "lease expired before it could be extended")
        self.logger.debug("Extended %s for %ss", self._key, self._lease.total_seconds())

    async def is_held(self) -> bool:
        """Best-effort check that the store still carries this handle's token."""
        return await self._executor.current_token(self._key) == self._token

    def start_renewal(
        self,
        *,
        interval: Optional[float] = None,
        on_lost: Optional[LostCallback] = None,
    ) -> LeaseRenewer:
        """Keep extending the lease in the background until stopped.

        ``interval`` defaults to the configured renewal interval, else a
        third of the lease, and must be shorter than the lease. A failed
        renewal sets :attr:`lost` and calls ``on_lost``.
        """
        if self._state is not LockState.HELD:
            raise LockNotHeldError(self._key, f"handle is {self._state.value}")
        if self._renewer is not None and self._renewer.running:
            raise LockStateError(self._key, f"Renewal of {self._key!r} is already running")
        if interval is None:
            interval = self._renew_interval or self._lease.total_seconds() / 3
        self._renewer = LeaseRenewer(self, interval=interval, on_lost=on_lost)
        self._renewer.start()
        return self._renewer

    async def stop_renewal(self) -> None:
        renewer, self._renewer = self._renewer, None
        if renewer is not None:
            await renewer.stop()

    @asynccontextmanager
    async def hold(
        self,
        *,
        renew: bool = False,
        interval: Optional[float] = None,
        on_lost: Optional[LostCallback] = None,
    ) -> AsyncIterator["RedisLock"]:
        """Acquire, optionally renew, and always release around a block."""
        await self.lock()
        try:
            if renew:
                self.start_renewal(interval=interval, on_lost=on_lost)
            yield self
        except BaseException:
            await self._release_after_error()
            raise
        await self.unlock()

    def _begin_cycle(self) -> None:
        if not self._token_supplied:
            self._token = generate_token()
        self.lost.clear()
        self._state = LockState.UNACQUIRED

    async def _release_after_error(self) -> None:
        try:
            await self.unlock()
        except LockError as exc:
            self.logger.warning("Release of %s after error failed: %s", self._key, exc)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(key={self._key!r}, state={self._state.value}, lease={self._lease})"
