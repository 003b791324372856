# File: utils/dt_utils.py
"""Date and time utilities for StreakWheel.

Pure Python date/time functions shared by the engines and managers.

⚠️ UTILS PURITY: NO imports from const.py, engines or managers.
   Uses standard library: datetime, zoneinfo, plus dateutil.

Functions:
    - dt_today_local: Get today's date in local timezone
    - dt_now_utc: Get current datetime in UTC
    - as_utc: Convert a datetime to UTC
    - dt_parse_date: Parse date strings / normalize date inputs
    - dt_parse_datetime: Parse ISO datetime strings to UTC-aware datetimes
    - dt_period_window: Inclusive calendar window for a frequency period
    - dt_format_duration: Format timedelta to human-readable string
    - dt_time_until: Time remaining until a target instant
"""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
import logging
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

# Third-party date utilities
from dateutil.parser import isoparse
from dateutil.relativedelta import MO, relativedelta

if TYPE_CHECKING:
    from ..type_defs import DateWindow

# Module-level logger
_LOGGER = logging.getLogger(__name__)

# ==============================================================================
# Constants (local copies to avoid circular imports)
# These mirror const.py values but are defined locally for purity.
# ==============================================================================

# Default timezone - can be overridden by caller
DEFAULT_TIME_ZONE: ZoneInfo = ZoneInfo("UTC")

FREQUENCY_DAILY = "daily"
FREQUENCY_WEEKLY = "weekly"
FREQUENCY_MONTHLY = "monthly"
FREQUENCY_YEARLY = "yearly"


# ==============================================================================
# Exceptions
# ==============================================================================


class InvalidFrequencyError(ValueError):
    """Raised when a frequency outside daily/weekly/monthly/yearly is used.

    This is a programmer error, not a user-recoverable condition.

    Attributes:
        frequency: The rejected frequency value
    """

    def __init__(self, frequency: object) -> None:
        """Initialize InvalidFrequencyError.

        Args:
            frequency: The rejected frequency value
        """
        self.frequency = frequency
        super().__init__(f"Invalid frequency: {frequency!r}")


# ==============================================================================
# Timezone Configuration
# ==============================================================================


def set_default_timezone(tz: ZoneInfo) -> None:
    """Set the default timezone used to derive "today" when none is passed.

    Args:
        tz: ZoneInfo object representing the default timezone
    """
    global DEFAULT_TIME_ZONE  # noqa: PLW0603
    DEFAULT_TIME_ZONE = tz


def get_default_timezone() -> ZoneInfo:
    """Get the current default timezone."""
    return DEFAULT_TIME_ZONE


# ==============================================================================
# Current Date/Time Functions
# ==============================================================================


def dt_today_local(tz: ZoneInfo | None = None) -> date:
    """Return today's date in local timezone as a `datetime.date`.

    Args:
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        Today's date in the specified timezone.
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    return datetime.now(tz_info).date()


def dt_now_utc() -> datetime:
    """Return the current datetime in UTC (timezone-aware)."""
    return datetime.now(UTC)


def as_utc(dt_obj: datetime) -> datetime:
    """Convert a datetime to UTC timezone.

    Naive datetimes are assumed to be in DEFAULT_TIME_ZONE.
    """
    if dt_obj.tzinfo is None:
        dt_obj = dt_obj.replace(tzinfo=DEFAULT_TIME_ZONE)
    return dt_obj.astimezone(UTC)


# ==============================================================================
# Parsing
# ==============================================================================


def dt_parse_date(value: str | date | datetime | None) -> date | None:
    """Safely normalize a date input into a `datetime.date`.

    Accepts:
    - date / datetime objects (datetime is truncated to its date)
    - "2025-04-07" (ISO format), "2025-04-07T10:00:00" (ISO datetime)
    - "04/07/2025" (US format), "07/04/2025" (European, attempted if US fails)

    Returns:
        datetime.date or None if parsing fails.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value:
        return None

    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        pass

    for fmt in ("%m/%d/%Y", "%d/%m/%Y", "%Y/%m/%d"):
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue

    _LOGGER.warning("Unparseable date value: %s", value)
    return None


def dt_parse_datetime(value: str | datetime | None) -> datetime | None:
    """Parse an ISO 8601 datetime (string or object) into a UTC-aware datetime.

    Returns:
        UTC-aware datetime, or None for empty/invalid input.

    Example:
        "2025-04-07T14:30:00+02:00" → datetime(2025, 4, 7, 12, 30, tzinfo=UTC)
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    if not isinstance(value, str) or not value:
        return None

    try:
        return as_utc(isoparse(value))
    except (ValueError, OverflowError):
        _LOGGER.warning("Unparseable datetime value: %s", value)
        return None


# ==============================================================================
# Period Windows
# ==============================================================================


def dt_period_start(frequency: str, reference_date: date) -> date:
    """Return the first day of the period containing reference_date.

    Weeks start on Monday.

    Raises:
        InvalidFrequencyError: If frequency is not a known value
    """
    if frequency == FREQUENCY_DAILY:
        return reference_date
    if frequency == FREQUENCY_WEEKLY:
        # MO(-1) keeps the date when it already is a Monday
        return reference_date + relativedelta(weekday=MO(-1))
    if frequency == FREQUENCY_MONTHLY:
        return reference_date.replace(day=1)
    if frequency == FREQUENCY_YEARLY:
        return reference_date.replace(month=1, day=1)
    raise InvalidFrequencyError(frequency)


def _period_delta(frequency: str, periods: int) -> relativedelta:
    """Return a relativedelta spanning `periods` whole periods."""
    if frequency == FREQUENCY_DAILY:
        return relativedelta(days=periods)
    if frequency == FREQUENCY_WEEKLY:
        return relativedelta(weeks=periods)
    if frequency == FREQUENCY_MONTHLY:
        return relativedelta(months=periods)
    if frequency == FREQUENCY_YEARLY:
        return relativedelta(years=periods)
    raise InvalidFrequencyError(frequency)


def dt_period_window(
    frequency: str,
    reference_date: date,
    offset_periods: int = 0,
) -> DateWindow:
    """Compute the inclusive calendar window of a period.

    offset_periods=0 is the period containing reference_date; negative values
    walk backward one calendar period at a time (the previous month is the
    calendar month before, whatever its length).

    Args:
        frequency: One of daily/weekly/monthly/yearly
        reference_date: Any date inside the anchor period
        offset_periods: Number of periods to shift (negative = past)

    Returns:
        DateWindow with inclusive start and end dates

    Raises:
        InvalidFrequencyError: If frequency is not a known value

    Examples:
        dt_period_window("weekly", date(2026, 1, 14)) → 2026-01-12..2026-01-18
        dt_period_window("monthly", date(2026, 3, 31), -1) → 2026-02-01..2026-02-28
    """
    # Anchor on the period start so month-end dates never clamp when shifting
    start = dt_period_start(frequency, reference_date) + _period_delta(
        frequency, offset_periods
    )
    end = start + _period_delta(frequency, 1) - timedelta(days=1)
    return {"start": start, "end": end}


# ==============================================================================
# Duration Formatting
# ==============================================================================


def dt_format_duration(td: timedelta | None) -> str:
    """Format a timedelta into a human-readable duration string.

    Returns:
        Duration string like "1d 6h 30m", or "0" if None/zero. Durations
        shorter than a minute render as "<1m".

    Examples:
        dt_format_duration(timedelta(days=1, hours=6)) → "1d 6h"
        dt_format_duration(timedelta(minutes=30)) → "30m"
        dt_format_duration(None) → "0"
    """
    if td is None or td <= timedelta():
        return "0"

    total_seconds = int(td.total_seconds())
    days, remainder = divmod(total_seconds, 86400)  # 24 * 60 * 60
    hours, remainder = divmod(remainder, 3600)  # 60 * 60
    minutes = remainder // 60

    parts: list[str] = []
    if days > 0:
        parts.append(f"{days}d")
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")

    return " ".join(parts) if parts else "<1m"


def dt_time_until(target_dt: datetime | None, now: datetime) -> timedelta | None:
    """Calculate time remaining until a target datetime.

    Args:
        target_dt: Target instant (timezone-aware), or None
        now: Current instant (timezone-aware)

    Returns:
        Positive timedelta, or None if target_dt is None or already reached.
    """
    if target_dt is None:
        return None
    if now >= target_dt:
        return None
    return target_dt - now
