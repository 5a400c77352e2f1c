"""Data models shared across the lock runtime."""

from __future__ import annotations

import datetime as dt
import secrets
from enum import Enum
from typing import Callable, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator


DEFAULT_LEASE = dt.timedelta(seconds=10)

Duration = Union[dt.timedelta, int, float]


class LockState(str, Enum):
    """Lifecycle of a single lock handle.

    State transitions:
        UNACQUIRED -> HELD -> RELEASED | EXPIRED
        UNACQUIRED -> UNKNOWN (ambiguous acquire) -> HELD | RELEASED | EXPIRED
    """

    UNACQUIRED = "unacquired"
    HELD = "held"
    RELEASED = "released"
    EXPIRED = "expired"
    UNKNOWN = "unknown"


def generate_token() -> str:
    """Return a fresh, unguessable ownership token."""
    return secrets.token_hex(16)


def to_timedelta(value: Duration) -> dt.timedelta:
    if isinstance(value, dt.timedelta):
        return value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"Expected timedelta or seconds, got {type(value).__name__}")
    return dt.timedelta(seconds=value)


def to_millis(value: dt.timedelta) -> int:
    """Whole milliseconds for PX/PEXPIRE, never below 1."""
    return max(1, int(value.total_seconds() * 1000))


class LockOptions(BaseModel):
    """Resolved configuration of one lock handle."""

    token: Optional[str] = Field(default=None, min_length=1)
    lease: dt.timedelta = DEFAULT_LEASE
    renew_interval: Optional[float] = Field(default=None, gt=0)

    @field_validator("lease")
    @classmethod
    def _positive_lease(cls, value: dt.timedelta) -> dt.timedelta:
        if value <= dt.timedelta(0):
            raise ValueError("lease duration must be strictly positive")
        return value

    @model_validator(mode="after")
    def _interval_shorter_than_lease(self) -> "LockOptions":
        if self.renew_interval is not None and self.renew_interval >= self.lease.total_seconds():
            raise ValueError("renewal interval must be shorter than the lease")
        return self


LockOption = Callable[[dict], None]


def with_token(value: str) -> LockOption:
    """Use a caller-supplied token instead of a generated one."""

    def apply(fields: dict) -> None:
        fields["token"] = value

    return apply


def with_lease_duration(value: Duration) -> LockOption:
    """Override the default lease; accepts a timedelta or seconds."""
    lease = to_timedelta(value)

    def apply(fields: dict) -> None:
        fields["lease"] = lease

    return apply


def with_renew_interval(seconds: float) -> LockOption:
    """Default interval used by renewal when none is passed explicitly."""

    def apply(fields: dict) -> None:
        fields["renew_interval"] = seconds

    return apply


def resolve_options(*options: LockOption) -> LockOptions:
    fields: dict = {}
    for option in options:
        option(fields)
    try:
        return LockOptions.model_validate(fields)
    except ValidationError as exc:
        raise ValueError(f"Invalid lock options: {exc}") from exc
