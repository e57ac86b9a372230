"""Business-rule defaults for the contract services."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_float

DEFAULT_MIN_YEAR = 1900
DEFAULT_MAX_YEAR = 2200
DEFAULT_ALLOCATION_ATTEMPTS = 3
DEFAULT_PAGE_LIMIT = 10
DEFAULT_MAX_PAGE_LIMIT = 100
DEFAULT_EXPIRING_WITHIN_DAYS = 30


@dataclass(frozen=True, slots=True)
class RulesConfig:
    min_year: int = DEFAULT_MIN_YEAR
    max_year: int = DEFAULT_MAX_YEAR
    allocation_attempts: int = DEFAULT_ALLOCATION_ATTEMPTS
    default_page_limit: int = DEFAULT_PAGE_LIMIT
    max_page_limit: int = DEFAULT_MAX_PAGE_LIMIT
    expiring_within_days: int = DEFAULT_EXPIRING_WITHIN_DAYS
    store_timeout_seconds: float | None = None


def get_rules_config() -> RulesConfig:
    return RulesConfig(store_timeout_seconds=optional_float("CONTRACTDESK_STORE_TIMEOUT"))
