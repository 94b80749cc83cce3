"""Timezone utilities.

Single source of truth for all date/time parsing and formatting.
All datetime display, formatting, and conversion should use these functions.

Provider kickoff fields are UTC wall-clock values without a timezone marker
("2026-02-01" + "15:00:00"). They are composed into an aware UTC instant here
and nowhere else. "Local" always means the configured user timezone.

Heterogeneous date/time strings go through a small chain of parsers, tried in
a fixed order, each returning one tagged variant:

    FullTimestamp  "2026-02-01T15:00:00Z" (naive timestamps are UTC)
    UtcWallClock   date "2026-02-01" + time "15:00"
    DateOnly       "2026-02-01"
    Unparseable    anything else
"""

import platform
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from datetime import time as dt_time

from matchlog.config import get_user_timezone
from matchlog.core.types import TBD

# Windows uses %#d for no-padding day, Unix uses %-d
_IS_WINDOWS = platform.system() == "Windows"

# A match counts as live for this long after kickoff
MATCH_DURATION = timedelta(hours=2)

# Kickoff within this many minutes -> "soon"
SOON_WINDOW_MINUTES = 30

# Match status values
STATUS_PAST = "past"
STATUS_SOON = "soon"
STATUS_FUTURE = "future"

__all__ = [
    "DateOnly",
    "FullTimestamp",
    "Unparseable",
    "UtcWallClock",
    "add_days",
    "compose_utc",
    "format_busiest_day",
    "format_date",
    "format_display_date",
    "format_event_time",
    "get_match_status",
    "is_match_live",
    "match_start",
    "now_user",
    "now_utc",
    "parse_date_only",
    "parse_moment",
    "parse_timestamp",
    "start_of_month",
    "start_of_week",
    "strftime_compat",
    "to_user_tz",
    "today_value",
]


def strftime_compat(dt: datetime | date, fmt: str) -> str:
    """Platform-compatible strftime wrapper.

    Handles the difference between Unix (%-d) and Windows (%#d) for
    no-padding format specifiers.
    """
    if _IS_WINDOWS:
        fmt = fmt.replace("%-", "%#")
    return dt.strftime(fmt)


def now_user() -> datetime:
    """Get current time in user timezone."""
    return datetime.now(get_user_timezone())


def now_utc() -> datetime:
    """Get current time in UTC."""
    return datetime.now(UTC)


def to_user_tz(dt: datetime) -> datetime:
    """Convert any datetime to user timezone.

    Args:
        dt: Datetime to convert (must be timezone-aware)

    Returns:
        Datetime in user timezone
    """
    if dt.tzinfo is None:
        raise ValueError("Cannot convert naive datetime - must be timezone-aware")
    return dt.astimezone(get_user_timezone())


# =============================================================================
# PARSER CHAIN
# =============================================================================


@dataclass(frozen=True)
class FullTimestamp:
    instant: datetime


@dataclass(frozen=True)
class UtcWallClock:
    instant: datetime


@dataclass(frozen=True)
class DateOnly:
    day: date


@dataclass(frozen=True)
class Unparseable:
    raw: str


ParsedMoment = FullTimestamp | UtcWallClock | DateOnly | Unparseable


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO timestamp carrying a time component.

    Accepts a trailing "Z" or an explicit offset. Naive timestamps are
    assumed UTC. Date-only strings are not timestamps and return None.
    """
    if not value or "T" not in value:
        return None
    try:
        dt = datetime.fromisoformat(value.strip())
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


def compose_utc(date_str: str | None, time_str: str | None) -> datetime | None:
    """Compose a UTC instant from a calendar date and a UTC wall-clock time.

    The date may itself be a timestamp ("2026-02-01T00:00:00.000Z"); only its
    date part is used. "15:00" and "15:00:00" are both accepted.
    """
    if not date_str or not time_str:
        return None
    day = date_str.split("T")[0]
    clock = time_str.strip()
    if clock.count(":") == 1:
        clock = f"{clock}:00"
    try:
        dt = datetime.fromisoformat(f"{day}T{clock}")
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


def parse_date_only(value: str | None) -> date | None:
    """Parse the leading YYYY-MM-DD of a string."""
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def _timestamp_in_date(date_str: str | None, time_str: str | None) -> ParsedMoment | None:
    instant = parse_timestamp(date_str)
    return FullTimestamp(instant) if instant else None


def _utc_wall_clock(date_str: str | None, time_str: str | None) -> ParsedMoment | None:
    instant = compose_utc(date_str, time_str)
    return UtcWallClock(instant) if instant else None


def _date_only(date_str: str | None, time_str: str | None) -> ParsedMoment | None:
    day = parse_date_only(date_str)
    return DateOnly(day) if day else None


_PARSER_CHAIN = (_timestamp_in_date, _utc_wall_clock, _date_only)


def parse_moment(date_str: str | None, time_str: str | None = None) -> ParsedMoment:
    """Run the parser chain over a (date, time) pair.

    Order: full timestamp in the date field, date + time as UTC wall clock,
    date only. The first parser that succeeds wins.
    """
    for parser in _PARSER_CHAIN:
        moment = parser(date_str, time_str)
        if moment is not None:
            return moment
    return Unparseable(raw=date_str or "")


# =============================================================================
# CALENDAR HELPERS
# =============================================================================


def format_date(value: datetime | date) -> str:
    """Format as YYYY-MM-DD using local calendar fields.

    Aware datetimes are converted to the user timezone first; naive
    datetimes and dates are taken as already local.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = to_user_tz(value)
        value = value.date()
    return value.isoformat()


def today_value(now: datetime | None = None) -> str:
    """Today's local date as YYYY-MM-DD."""
    return format_date(now or now_user())


def add_days(value: str, delta: int) -> str:
    """Shift a YYYY-MM-DD string by delta calendar days.

    Returns the input unchanged if it isn't a valid date.
    """
    try:
        day = date.fromisoformat(value)
    except (TypeError, ValueError):
        return value
    return (day + timedelta(days=delta)).isoformat()


def _local(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        return instant.replace(tzinfo=get_user_timezone())
    return to_user_tz(instant)


def start_of_week(instant: datetime) -> datetime:
    """Local midnight of the Monday starting the instant's week.

    Python's weekday() is already Monday=0, i.e. (sunday_based + 6) % 7.
    """
    local = _local(instant)
    monday = local.date() - timedelta(days=local.weekday())
    return datetime.combine(monday, dt_time.min, tzinfo=local.tzinfo)


def start_of_month(instant: datetime) -> datetime:
    """Local midnight of the first day of the instant's month."""
    local = _local(instant)
    return datetime.combine(local.date().replace(day=1), dt_time.min, tzinfo=local.tzinfo)


# =============================================================================
# DISPLAY
# =============================================================================


def format_display_date(value: str | datetime | date) -> str:
    """Format for display (e.g., 'Sat, Jan 6, 2024').

    Accepts a date-only string, a full timestamp, or a date/datetime.
    Unparseable input is echoed back.
    """
    if isinstance(value, datetime):
        shown: datetime | date = _local(value)
    elif isinstance(value, date):
        shown = value
    elif "T" in value:
        instant = parse_timestamp(value)
        if instant is None:
            return value
        shown = to_user_tz(instant)
    else:
        try:
            shown = date.fromisoformat(value)
        except ValueError:
            return value
    return strftime_compat(shown, "%a, %b %-d, %Y")


def format_busiest_day(date_key: str) -> str:
    """Format a YYYY-MM-DD key as 'Jan 06, 2024'. Unparseable keys echo back."""
    try:
        day = date.fromisoformat(date_key)
    except ValueError:
        return date_key
    return day.strftime("%b %d, %Y")


def format_event_time(date_str: str | None, time_str: str | None) -> str:
    """Kickoff time in the user timezone as zero-padded 24h HH:MM.

    time_str is UTC of date_str. A time_str that is itself a full timestamp
    is parsed as such. Empty time -> "TBD". If nothing parses, the first five
    characters of time_str are returned (or time_str if shorter).
    """
    if not time_str:
        return TBD

    if "T" in time_str:
        instant = parse_timestamp(time_str)
    else:
        instant = compose_utc(date_str, time_str)

    if instant is not None:
        return to_user_tz(instant).strftime("%H:%M")

    return time_str[:5] if len(time_str) >= 5 else time_str


# =============================================================================
# MATCH TIMING
# =============================================================================


def match_start(date_str: str | None, time_str: str | None) -> datetime | None:
    """Kickoff instant, or None when unscheduled/unparseable."""
    if not time_str or TBD in time_str:
        return None
    return compose_utc(date_str, time_str)


def is_match_live(date_str: str | None, time_str: str | None, now: datetime | None = None) -> bool:
    """True while now is within [kickoff, kickoff + 2h)."""
    start = match_start(date_str, time_str)
    if start is None:
        return False
    current = now or now_utc()
    return start <= current < start + MATCH_DURATION


def get_match_status(date_str: str | None, time_str: str | None, now: datetime | None = None) -> str:
    """Classify a match as "past", "soon" or "future".

    Unscheduled (empty or TBD) and unparseable kickoffs are "future".
    Kickoff already passed -> "past"; within 30 minutes -> "soon".
    """
    start = match_start(date_str, time_str)
    if start is None:
        return STATUS_FUTURE

    current = now or now_utc()
    minutes_until = (start - current).total_seconds() / 60

    if minutes_until < 0:
        return STATUS_PAST
    if minutes_until <= SOON_WINDOW_MINUTES:
        return STATUS_SOON
    return STATUS_FUTURE
