"""Error taxonomy for lock operations.

Every public operation either succeeds or raises one of these. None of them
is retried inside the library: whether to back off and try again is the
caller's decision.
"""

from __future__ import annotations

from typing import Optional


class LockError(Exception):
    """Base class for all lock failures."""

    def __init__(self, key: str, message: str) -> None:
        super().__init__(message)
        self.key = key


class LockHeldError(LockError):
    """The key is already held by another owner."""

    def __init__(self, key: str) -> None:
        super().__init__(key, f"Lock {key!r} is held by another owner")


class LockNotHeldError(LockError):
    """The record is absent or belongs to a different token."""

    def __init__(self, key: str, detail: Optional[str] = None) -> None:
        message = f"Lock {key!r} is not held by this handle"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(key, message)


class StoreUnavailableError(LockError):
    """The store call failed, timed out or was cancelled.

    The outcome is ambiguous: the operation may or may not have taken effect.
    The underlying exception, if any, is chained as ``__cause__``.
    """

    def __init__(self, key: str, operation: str, reason: str) -> None:
        super().__init__(key, f"Store unavailable during {operation} of {key!r}: {reason}")
        self.operation = operation


class LockStateError(LockError):
    """Operation is invalid for the handle's current state."""
