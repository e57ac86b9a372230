"""Typed readers for optional environment settings."""

from __future__ import annotations

import os

from .errors import ConfigurationError


def optional_float(name: str) -> float | None:
    """Return a positive float from ``name`` or ``None`` when unset/blank."""

    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return value
