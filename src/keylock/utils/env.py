"""Environment helper utilities."""

from __future__ import annotations

import os
from typing import Optional


_FALSE_VALUES = {"0", "false", "no", "off"}


def get_bool_env(name: str, *, default: bool = False) -> bool:
    """Return True/False for an environment flag."""
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if not value:
        return default
    return value not in _FALSE_VALUES


def get_float_env(name: str, *, default: Optional[float] = None) -> Optional[float]:
    """
    Read a number of seconds (or any float) from the environment.

    Blank values fall back to ``default``; anything unparsable is an error
    rather than a silent default, since lease timings depend on it.
    """
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def get_str_env(name: str, *, default: Optional[str] = None) -> Optional[str]:
    """Return a stripped string, treating blank values as unset."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()
