"""Redis-backed distributed mutual-exclusion lock."""

from .core import (
    LockContext,
    LockError,
    LockHeldError,
    LockNotHeldError,
    LockSettings,
    LockState,
    LockStateError,
    RedisLock,
    RedisLockManager,
    StoreUnavailableError,
    with_lease_duration,
    with_renew_interval,
    with_token,
)

__all__ = [
    "__version__",
    "LockContext",
    "LockError",
    "LockHeldError",
    "LockNotHeldError",
    "LockSettings",
    "LockState",
    "LockStateError",
    "RedisLock",
    "RedisLockManager",
    "StoreUnavailableError",
    "with_lease_duration",
    "with_renew_interval",
    "with_token",
]

__version__ = "0.1.0"
