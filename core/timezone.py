"""
Timezone and display helpers for session dates and times.

Schedule tables store naive dates and times in the schedule timezone
(SCHEDULE_TIMEZONE, India by default).
"""

from datetime import date, datetime, time, timedelta

import pytz

from .config import get_default_session_time, get_schedule_timezone


def session_start(
    day: date,
    start: time | None,
    tz_name: str | None = None,
) -> datetime:
    """
    Localize a session's date and time into a timezone-aware datetime.

    Sessions without a time start at DEFAULT_SESSION_TIME.
    """
    tz = pytz.timezone(tz_name or get_schedule_timezone())
    if start is None:
        start = time.fromisoformat(get_default_session_time())
    return tz.localize(datetime.combine(day, start.replace(second=0, microsecond=0)))


def localize(value: datetime, tz_name: str | None = None) -> datetime:
    """Attach the schedule timezone to a naive datetime; aware ones pass through."""
    if value.tzinfo is not None:
        return value
    return pytz.timezone(tz_name or get_schedule_timezone()).localize(value)


def meeting_window(
    day: date,
    start: time | None,
    duration_minutes: int,
    tz_name: str | None = None,
) -> tuple[datetime, datetime]:
    """
    Compute a meeting's (start, end) for a session slot.

    Returns:
        Timezone-aware start and end datetimes
    """
    starts_at = session_start(day, start, tz_name)
    return starts_at, starts_at + timedelta(minutes=duration_minutes)


def format_session_date(day: date | None) -> str:
    """Format like "Wednesday, 10 January 2024"."""
    if day is None:
        return "TBD"
    return f"{day.strftime('%A')}, {day.day} {day.strftime('%B %Y')}"


def format_session_time(start: time | None) -> str:
    """Format like "7:00 PM"."""
    if start is None:
        return "TBD"
    hour = start.hour % 12 or 12
    suffix = "AM" if start.hour < 12 else "PM"
    return f"{hour}:{start.minute:02d} {suffix}"
