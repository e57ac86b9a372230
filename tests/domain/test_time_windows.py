from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

from contractdesk.domain.model import utc_year
from contractdesk.domain.time_windows import Clock, ExpiryWindow, ensure_aware, year_bounds


def _make_clock(reference: datetime) -> Clock:
    def _clock() -> datetime:
        return reference

    return _clock


def test_expiry_window_starts_now() -> None:
    now = datetime(2025, 1, 1, 12, tzinfo=UTC)

    start, end = ExpiryWindow(days=30).resolve(clock=_make_clock(now))

    assert start == now
    assert end == datetime(2025, 1, 31, 12, tzinfo=UTC)


def test_expiry_window_normalises_clock_to_utc() -> None:
    havana = timezone(timedelta(hours=-5))
    now = datetime(2025, 1, 1, 20, tzinfo=havana)

    start, _ = ExpiryWindow(days=0).resolve(clock=_make_clock(now))

    assert start == datetime(2025, 1, 2, 1, tzinfo=UTC)
    assert start.tzinfo is UTC


def test_expiry_window_rejects_negative_days() -> None:
    with pytest.raises(ValueError, match="non-negative"):
        ExpiryWindow(days=-1).resolve()


def test_year_bounds_cover_the_whole_year() -> None:
    start, end = year_bounds(2024)

    assert start == datetime(2024, 1, 1, tzinfo=UTC)
    assert end + timedelta(microseconds=1) == datetime(2025, 1, 1, tzinfo=UTC)


def test_ensure_aware_treats_naive_values_as_utc() -> None:
    assert ensure_aware(datetime(2024, 6, 1, 8)) == datetime(2024, 6, 1, 8, tzinfo=UTC)


def test_utc_year_uses_utc_calendar() -> None:
    late_new_years_eve = datetime(2024, 12, 31, 22, tzinfo=timezone(timedelta(hours=-5)))

    assert utc_year(late_new_years_eve) == 2025
    assert utc_year(datetime(2024, 12, 31, 23, 59)) == 2024
