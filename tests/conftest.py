from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, List, Optional, Tuple

import pytest
from redis.exceptions import ResponseError

from keylock.core.scripts import ACQUIRE_SCRIPT, EXTEND_SCRIPT, RELEASE_SCRIPT


def _encode(value: Any) -> bytes:
    if isinstance(value, bytes):
        return value
    return str(value).encode("utf-8")


class FakeRedis:
    """In-memory stand-in for ``redis.asyncio.Redis`` that runs the lock scripts.

    Each script body executes without yielding, so it is atomic with respect
    to other coroutines, like a real EVAL. Expiry follows a monotonic clock
    that tests can push forward with :meth:`advance`.
    """

    def __init__(self) -> None:
        self._data: Dict[str, Tuple[bytes, Optional[float]]] = {}
        self._offset = 0.0
        self.calls: List[str] = []
        self.eval_args: List[Tuple[Any, ...]] = []
        self.fail_with: Optional[BaseException] = None
        self.delay = 0.0

    # -------- test helpers --------

    def now(self) -> float:
        return time.monotonic() + self._offset

    def advance(self, seconds: float) -> None:
        self._offset += seconds

    def put(self, key: str, value: str, *, ttl: Optional[float] = None) -> None:
        expires = self.now() + ttl if ttl is not None else None
        self._data[key] = (_encode(value), expires)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def value(self, key: str) -> Optional[str]:
        raw = self._live(key)
        return raw.decode("utf-8") if raw is not None else None

    def pttl(self, key: str) -> int:
        if self._live(key) is None:
            return -2
        expires = self._data[key][1]
        if expires is None:
            return -1
        return int((expires - self.now()) * 1000)

    # -------- redis API subset --------

    async def eval(self, script: str, numkeys: int, *keys_and_args: Any) -> Any:
        keys = [str(k) for k in keys_and_args[:numkeys]]
        args = [_encode(a) for a in keys_and_args[numkeys:]]
        self.eval_args.append(tuple(keys_and_args))
        key = keys[0]

        if script == ACQUIRE_SCRIPT:
            await self._round_trip("acquire")
            if self._live(key) is not None:
                return None
            self._data[key] = (args[0], self.now() + int(args[1]) / 1000)
            return b"OK"

        if script == RELEASE_SCRIPT:
            await self._round_trip("release")
            if self._live(key) == args[0]:
                del self._data[key]
                return 1
            return 0

        if script == EXTEND_SCRIPT:
            await self._round_trip("extend")
            if self._live(key) == args[0]:
                self._data[key] = (args[0], self.now() + int(args[1]) / 1000)
                return 1
            return 0

        raise ResponseError("NOSCRIPT unknown script")

    async def get(self, name: str) -> Optional[bytes]:
        await self._round_trip("get")
        return self._live(name)

    async def aclose(self) -> None:
        self.calls.append("aclose")

    # -------- internals --------

    async def _round_trip(self, operation: str) -> None:
        self.calls.append(operation)
        await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with

    def _live(self, key: str) -> Optional[bytes]:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires = entry
        if expires is not None and expires <= self.now():
            del self._data[key]
            return None
        return value


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()
