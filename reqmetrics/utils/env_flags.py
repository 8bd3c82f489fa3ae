"""Environment flag helpers.

Interprets environment variables as boolean flags using the canonical truthy
set {"1","true","yes","on"} (case-insensitive).
"""
from __future__ import annotations

import os
from collections.abc import Mapping

TRUTHY_SET: set[str] = {"1", "true", "yes", "on"}


def is_truthy(value: str | None) -> bool:
    if not value:
        return False
    return value.strip().lower() in TRUTHY_SET


def is_truthy_env(name: str, default: str | None = None, env: Mapping[str, str] | None = None) -> bool:
    source = env if env is not None else os.environ
    return is_truthy(source.get(name, default or ''))


def env_str(name: str, default: str = "", env: Mapping[str, str] | None = None) -> str:
    source = env if env is not None else os.environ
    v = source.get(name)
    if v is None or not v.strip():
        return default
    return v.strip()


def env_float(name: str, default: float, env: Mapping[str, str] | None = None) -> float:
    raw = env_str(name, "", env)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


__all__ = [
    'TRUTHY_SET',
    'is_truthy',
    'is_truthy_env',
    'env_str',
    'env_float',
]
