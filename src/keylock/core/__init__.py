"""Core lock primitives: handle, scripts, renewal and configuration."""

from .context import ContextCancelled, LockContext
from .errors import (
    LockError,
    LockHeldError,
    LockNotHeldError,
    LockStateError,
    StoreUnavailableError,
)
from .lock import RedisLock
from .manager import RedisLockManager
from .models import (
    DEFAULT_LEASE,
    LockOptions,
    LockState,
    with_lease_duration,
    with_renew_interval,
    with_token,
)
from .renewal import LeaseRenewer
from .scripts import ScriptExecutor
from .settings import LockSettings

__all__ = [
    "ContextCancelled",
    "LockContext",
    "LockError",
    "LockHeldError",
    "LockNotHeldError",
    "LockStateError",
    "StoreUnavailableError",
    "RedisLock",
    "RedisLockManager",
    "DEFAULT_LEASE",
    "LockOptions",
    "LockState",
    "with_lease_duration",
    "with_renew_interval",
    "with_token",
    "LeaseRenewer",
    "ScriptExecutor",
    "LockSettings",
]
