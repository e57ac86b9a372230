"""Clock abstraction and UTC date ranges used by the contract rules."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol


class Clock(Protocol):
    def __call__(self) -> datetime: ...


def utcnow() -> datetime:
    return datetime.now(UTC)


def ensure_aware(value: datetime) -> datetime:
    """Return ``value`` in UTC, treating naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def year_bounds(year: int) -> tuple[datetime, datetime]:
    """Closed ``[Jan 1 00:00:00, Dec 31 23:59:59]`` range of ``year`` in UTC."""

    start = datetime(year, 1, 1, tzinfo=UTC)
    end = datetime(year, 12, 31, 23, 59, 59, 999999, tzinfo=UTC)
    return start, end


@dataclass(frozen=True)
class ExpiryWindow:
    """Look-ahead window used to find contracts that end soon."""

    days: int

    def resolve(self, *, clock: Clock = utcnow) -> tuple[datetime, datetime]:
        if self.days < 0:
            raise ValueError("Expiry window must be non-negative")
        now = ensure_aware(clock())
        return now, now + timedelta(days=self.days)


__all__ = ["Clock", "ExpiryWindow", "ensure_aware", "utcnow", "year_bounds"]
