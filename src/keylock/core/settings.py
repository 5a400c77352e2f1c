"""Lock settings loader."""

from __future__ import annotations

import datetime as dt
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from keylock.utils.env import get_float_env, get_str_env


class LockSettings(BaseModel):
    redis_url: str = "redis://localhost:6379/0"
    key_prefix: str = "lock:"
    lease_seconds: float = Field(default=10.0, gt=0)
    renew_interval_seconds: Optional[float] = Field(default=None, gt=0)
    socket_timeout_seconds: float = Field(default=5.0, gt=0)

    @model_validator(mode="after")
    def _interval_shorter_than_lease(self) -> "LockSettings":
        if self.renew_interval_seconds is not None and self.renew_interval_seconds >= self.lease_seconds:
            raise ValueError("renew_interval_seconds must be shorter than lease_seconds")
        return self

    @property
    def lease(self) -> dt.timedelta:
        return dt.timedelta(seconds=self.lease_seconds)

    @classmethod
    def from_file(cls, path: Path) -> "LockSettings":
        data = yaml.safe_load(path.read_text()) or {}
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Invalid lock settings: {exc}") from exc

    @classmethod
    def from_env(cls) -> "LockSettings":
        data = {
            "redis_url": get_str_env("REDIS_URL"),
            "key_prefix": os.getenv("KEYLOCK_KEY_PREFIX"),
            "lease_seconds": get_float_env("KEYLOCK_LEASE_SECONDS"),
            "renew_interval_seconds": get_float_env("KEYLOCK_RENEW_INTERVAL_SECONDS"),
            "socket_timeout_seconds": get_float_env("KEYLOCK_SOCKET_TIMEOUT_SECONDS"),
        }
        try:
            return cls.model_validate({k: v for k, v in data.items() if v is not None})
        except ValidationError as exc:
            raise ValueError(f"Invalid lock settings: {exc}") from exc
