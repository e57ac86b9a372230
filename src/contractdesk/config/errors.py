"""Errors raised while reading settings from the environment."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """An environment setting is present but cannot be turned into a usable value."""
