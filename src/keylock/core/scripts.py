"""Atomic Lua scripts for acquiring, releasing and extending a lock record.

Each operation is a single EVAL so the read and the conditional write can
never be interleaved with another contender's call.

    KEYS[1] - lock key (shared by all contenders)
    ARGV[1] - this holder's token (unique)
    ARGV[2] - lease in milliseconds (acquire and extend only)
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Optional, Protocol

from redis.exceptions import RedisError

from .context import ContextCancelled, LockContext
from .errors import StoreUnavailableError


# Returns "OK" when set, nil when the key already exists.
ACQUIRE_SCRIPT = """
return redis.call('set', KEYS[1], ARGV[1], 'NX', 'PX', ARGV[2])
"""

# Returns 1 if released, otherwise 0.
RELEASE_SCRIPT = """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('del', KEYS[1])
else
    return 0
end
"""

# Resets (not increments) the expiry; returns 1 if extended, otherwise 0.
EXTEND_SCRIPT = """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('pexpire', KEYS[1], ARGV[2])
else
    return 0
end
"""


class StoreClient(Protocol):
    """Subset of ``redis.asyncio.Redis`` the lock relies on."""

    async def eval(self, script: str, numkeys: int, *keys_and_args: Any) -> Any: ...

    async def get(self, name: str) -> Any: ...


def _decode(value: Any) -> Any:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


class ScriptExecutor:
    """Runs the lock scripts against a store client.

    Transport errors, timeouts and context cancellation all surface as
    :class:`StoreUnavailableError`; a caller can never mistake an ambiguous
    outcome for a definite one.
    """

    def __init__(self, client: StoreClient, *, context: Optional[LockContext] = None) -> None:
        self._client = client
        self._context = context

    async def acquire(self, key: str, token: str, lease_ms: int) -> bool:
        reply = await self._call(key, "acquire", self._client.eval(ACQUIRE_SCRIPT, 1, key, token, lease_ms))
        return _decode(reply) == "OK"

    async def release(self, key: str, token: str) -> bool:
        reply = await self._call(key, "release", self._client.eval(RELEASE_SCRIPT, 1, key, token))
        return int(reply or 0) == 1

    async def extend(self, key: str, token: str, lease_ms: int) -> bool:
        reply = await self._call(key, "extend", self._client.eval(EXTEND_SCRIPT, 1, key, token, lease_ms))
        return int(reply or 0) == 1

    async def current_token(self, key: str) -> Optional[str]:
        return _decode(await self._call(key, "get", self._client.get(key)))

    async def _call(self, key: str, operation: str, awaitable: Awaitable[Any]) -> Any:
        try:
            if self._context is None:
                return await awaitable
            return await self._context.run(awaitable)
        except ContextCancelled as exc:
            raise StoreUnavailableError(key, operation, str(exc)) from exc
        except (RedisError, OSError, asyncio.TimeoutError) as exc:
            raise StoreUnavailableError(key, operation, f"{type(exc).__name__}: {exc}") from exc
