"""Factory that builds lock handles against one Redis connection pool."""

from __future__ import annotations

from typing import Optional

from redis.asyncio import Redis

from .context import LockContext
from .lock import RedisLock
from .models import LockOption, with_lease_duration, with_renew_interval
from .scripts import StoreClient
from .settings import LockSettings


class RedisLockManager:
    """Builds :class:`RedisLock` handles with shared defaults.

    Every call to :meth:`lock` returns a fresh, independent handle; the
    manager keeps no record of the locks it hands out.
    """

    def __init__(
        self,
        settings: Optional[LockSettings] = None,
        *,
        client: Optional[StoreClient] = None,
    ) -> None:
        self.settings = settings or LockSettings.from_env()
        self._owns_client = client is None
        self._redis = client or Redis.from_url(
            self.settings.redis_url,
            socket_timeout=self.settings.socket_timeout_seconds,
            socket_connect_timeout=self.settings.socket_timeout_seconds,
        )

    @property
    def client(self) -> StoreClient:
        return self._redis

    def lock(self, key: str, *options: LockOption, context: Optional[LockContext] = None) -> RedisLock:
        if not key:
            raise ValueError("lock key must be a non-empty string")
        defaults = [with_lease_duration(self.settings.lease)]
        if self.settings.renew_interval_seconds is not None:
            defaults.append(with_renew_interval(self.settings.renew_interval_seconds))
        return RedisLock(
            self._redis,
            f"{self.settings.key_prefix}{key}",
            *defaults,
            *options,
            context=context,
        )

    async def close(self) -> None:
        if self._owns_client:
            await self._redis.aclose()
