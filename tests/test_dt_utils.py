"""Tests for utils/dt_utils.py - pure date functions, no fixtures needed."""

from __future__ import annotations

from datetime import UTC, date, datetime
from zoneinfo import ZoneInfo

from freezegun import freeze_time

from lifepoints.utils import dt_utils
from lifepoints.utils.dt_utils import (
    dt_add_weeks,
    dt_days_between,
    dt_parse_date,
    dt_to_date,
    dt_today_iso,
    dt_today_local,
    dt_week_days,
    dt_week_end,
    dt_week_start,
    get_time_zone,
)

# =============================================================================
# TEST: WEEK BOUNDARIES
# =============================================================================


class TestWeekBoundaries:
    """ISO weeks run Monday through Sunday."""

    def test_week_start_midweek(self) -> None:
        """Thursday maps back to Monday."""
        assert dt_week_start(date(2026, 1, 8)) == date(2026, 1, 5)

    def test_week_start_on_monday(self) -> None:
        """Monday is its own week start."""
        assert dt_week_start(date(2026, 1, 5)) == date(2026, 1, 5)

    def test_week_start_on_sunday(self) -> None:
        """Sunday belongs to the week that started six days earlier."""
        assert dt_week_start(date(2026, 1, 11)) == date(2026, 1, 5)

    def test_week_start_across_year_boundary(self) -> None:
        """Thursday 2026-01-01 belongs to the week of Monday 2025-12-29."""
        assert dt_week_start(date(2026, 1, 1)) == date(2025, 12, 29)

    def test_week_end(self) -> None:
        """Week end is the Sunday."""
        assert dt_week_end(date(2026, 1, 7)) == date(2026, 1, 11)

    def test_week_days(self) -> None:
        """Seven consecutive days from Monday."""
        days = dt_week_days(date(2026, 1, 5))
        assert len(days) == 7
        assert days[0] == date(2026, 1, 5)
        assert days[-1] == date(2026, 1, 11)

    def test_add_weeks(self) -> None:
        """Whole-week shifts keep the weekday."""
        assert dt_add_weeks(date(2026, 1, 5), 2) == date(2026, 1, 19)
        assert dt_add_weeks(date(2026, 1, 5), -1) == date(2025, 12, 29)

    def test_days_between_never_negative(self) -> None:
        """Reversed ranges clamp to 0."""
        assert dt_days_between(date(2026, 1, 5), date(2026, 1, 8)) == 3
        assert dt_days_between(date(2026, 1, 8), date(2026, 1, 5)) == 0


# =============================================================================
# TEST: PARSING
# =============================================================================


class TestParsing:
    """Date parsing accepts stored and legacy formats."""

    def test_iso_date(self) -> None:
        """Plain ISO dates parse directly."""
        assert dt_parse_date("2026-01-19") == date(2026, 1, 19)

    def test_iso_datetime(self) -> None:
        """ISO datetimes are reduced to their local day."""
        assert dt_parse_date("2026-01-19T10:30:00+00:00") == date(2026, 1, 19)

    def test_us_format(self) -> None:
        """MM/DD/YYYY is accepted."""
        assert dt_parse_date("01/19/2026") == date(2026, 1, 19)

    def test_invalid_returns_none(self) -> None:
        """Garbage, empty and None inputs give None."""
        assert dt_parse_date("not a date") is None
        assert dt_parse_date("") is None
        assert dt_parse_date(None) is None

    def test_to_date_from_naive_datetime(self) -> None:
        """Naive datetimes keep their calendar day."""
        assert dt_to_date(datetime(2026, 1, 5, 23, 59)) == date(2026, 1, 5)

    def test_to_date_uses_local_timezone(self) -> None:
        """Aware datetimes are converted to the configured local zone first."""
        late_utc = datetime(2026, 1, 5, 23, 30, tzinfo=UTC)
        assert dt_to_date(late_utc) == date(2026, 1, 5)

        dt_utils.set_default_timezone(ZoneInfo("Asia/Tokyo"))
        assert dt_to_date(late_utc) == date(2026, 1, 6)

    def test_to_date_passthrough(self) -> None:
        """Dates and None pass through unchanged."""
        assert dt_to_date(date(2026, 1, 5)) == date(2026, 1, 5)
        assert dt_to_date(None) is None


# =============================================================================
# TEST: CURRENT DATE / TIME ZONES
# =============================================================================


class TestToday:
    """Today's date follows the configured timezone."""

    @freeze_time("2026-01-07 12:00:00", tz_offset=0)
    def test_today_local_utc(self) -> None:
        """UTC noon is the same calendar day."""
        assert dt_today_local() == date(2026, 1, 7)
        assert dt_today_iso() == "2026-01-07"

    @freeze_time("2026-01-07 22:00:00", tz_offset=0)
    def test_today_local_override(self) -> None:
        """An explicit zone ahead of UTC can already be on the next day."""
        assert dt_today_local(ZoneInfo("Asia/Tokyo")) == date(2026, 1, 8)

    def test_get_time_zone(self) -> None:
        """Known names resolve, unknown and empty names give None."""
        assert get_time_zone("Europe/Moscow") == ZoneInfo("Europe/Moscow")
        assert get_time_zone("Not/AZone") is None
        assert get_time_zone("") is None
