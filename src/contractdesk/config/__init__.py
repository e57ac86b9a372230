"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_float
from .errors import ConfigurationError
from .logging import configure_logging
from .rules import RulesConfig, get_rules_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "RulesConfig",
    "StorageConfig",
    "configure_logging",
    "get_database_config",
    "get_rules_config",
    "get_storage_config",
    "optional_float",
]
