# File: utils/dt_utils.py
"""Date and time utilities for Life Points.

Pure Python date/time functions with ZERO storage or manager dependencies.
All functions here can be unit tested without fixtures.

Weeks are ISO weeks: Monday is day 0, Sunday is day 6.

Functions:
    - set_default_timezone / get_default_timezone: Configure "local" time
    - get_time_zone: Resolve an IANA name to a ZoneInfo
    - dt_today_local / dt_today_iso: Today's date in local timezone
    - dt_now_utc / dt_now_iso: Current timestamp
    - as_local: Convert a datetime to local timezone
    - dt_parse_date: Parse date strings
    - dt_to_date: Normalize str/date/datetime input to a date
    - dt_week_start / dt_week_end: ISO week boundaries
    - dt_add_days / dt_add_weeks: Calendar arithmetic
    - dt_week_days: The seven days of a week
    - dt_days_between: Inclusive day count between two dates
"""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
import logging
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

# Third-party date utilities
from dateutil.relativedelta import MO, relativedelta

# Module-level logger
_LOGGER = logging.getLogger(__name__)

# Default timezone - can be overridden by caller
DEFAULT_TIME_ZONE: ZoneInfo = ZoneInfo("UTC")

DAYS_PER_WEEK = 7


# ==============================================================================
# Timezone Configuration
# ==============================================================================


def set_default_timezone(tz: ZoneInfo) -> None:
    """Set the default timezone for all dt_utils functions.

    Call this during coordinator setup to configure the user's timezone.

    Args:
        tz: ZoneInfo object representing the default timezone
    """
    global DEFAULT_TIME_ZONE  # noqa: PLW0603
    DEFAULT_TIME_ZONE = tz


def get_default_timezone() -> ZoneInfo:
    """Get the current default timezone."""
    return DEFAULT_TIME_ZONE


def get_time_zone(name: str | None) -> ZoneInfo | None:
    """Resolve an IANA time zone name.

    Args:
        name: Time zone name such as "Europe/Moscow"

    Returns:
        ZoneInfo, or None when the name is empty or unknown
    """
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        _LOGGER.warning("Unknown time zone '%s'", name)
        return None


# ==============================================================================
# Current Date/Time Functions
# ==============================================================================


def dt_today_local(tz: ZoneInfo | None = None) -> date:
    """Return today's date in local timezone as a `datetime.date`.

    Args:
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Example:
        datetime.date(2026, 1, 19)
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    return datetime.now(tz_info).date()


def dt_today_iso(tz: ZoneInfo | None = None) -> str:
    """Return today's date in local timezone as ISO string (YYYY-MM-DD)."""
    return dt_today_local(tz).isoformat()


def dt_now_utc() -> datetime:
    """Return the current datetime in UTC (timezone-aware)."""
    return datetime.now(UTC)


def dt_now_iso() -> str:
    """Return the current UTC datetime as an ISO 8601 string."""
    return dt_now_utc().isoformat()


def as_local(dt_obj: datetime, tz: ZoneInfo | None = None) -> datetime:
    """Convert a datetime to local timezone.

    Args:
        dt_obj: Datetime object. Naive values are assumed to be UTC.
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    if dt_obj.tzinfo is None:
        dt_obj = dt_obj.replace(tzinfo=UTC)
    return dt_obj.astimezone(tz_info)


# ==============================================================================
# Date Parsing
# ==============================================================================


def dt_parse_date(date_str: str | None) -> date | None:
    """Safely parse a date string into a `datetime.date`.

    Accepts formats:
    - "2026-01-19" (ISO format)
    - "2026-01-19T10:30:00+00:00" (ISO datetime, converted to local day)
    - "01/19/2026" (US format)

    Returns:
        datetime.date or None if parsing fails.
    """
    if not date_str or not isinstance(date_str, str):
        return None

    try:
        return date.fromisoformat(date_str)
    except ValueError:
        pass

    try:
        return as_local(datetime.fromisoformat(date_str)).date()
    except ValueError:
        pass

    for fmt in ("%m/%d/%Y", "%Y/%m/%d"):
        try:
            return datetime.strptime(date_str, fmt).date()
        except ValueError:
            continue

    return None


def dt_to_date(value: str | date | datetime | None) -> date | None:
    """Normalize a date-like input to a `datetime.date` (start-of-day granularity).

    Datetimes are converted to the local timezone before the day is taken.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.date()
        return as_local(value).date()
    if isinstance(value, date):
        return value
    return dt_parse_date(value)


# ==============================================================================
# Week Arithmetic
# ==============================================================================


def dt_week_start(day: date) -> date:
    """Return the Monday of the ISO week containing `day`.

    Example:
        dt_week_start(date(2026, 1, 22)) → date(2026, 1, 19)
    """
    return day + relativedelta(weekday=MO(-1))


def dt_week_end(day: date) -> date:
    """Return the Sunday of the ISO week containing `day`."""
    return dt_week_start(day) + timedelta(days=DAYS_PER_WEEK - 1)


def dt_add_days(day: date, days: int) -> date:
    """Return `day` shifted by `days` (negative values go back)."""
    return day + timedelta(days=days)


def dt_add_weeks(day: date, weeks: int) -> date:
    """Return `day` shifted by whole weeks."""
    return day + relativedelta(weeks=weeks)


def dt_week_days(week_start: date) -> list[date]:
    """Return the seven dates of the week beginning at `week_start`."""
    return [week_start + timedelta(days=offset) for offset in range(DAYS_PER_WEEK)]


def dt_days_between(start: date, end: date) -> int:
    """Return whole days from `start` to `end` (0 when same day, never negative)."""
    return max(0, (end - start).days)
