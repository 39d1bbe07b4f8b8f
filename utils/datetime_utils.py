"""
Timezone-aware datetime utilities.

All "now" values are timezone-aware UTC. Calendar-day logic (what day is
"today" for the reminder engine) is resolved in a named timezone via pytz.
"""

from datetime import date, datetime, timezone, timedelta
from typing import Optional
import pytz


def utc_now() -> datetime:
    """
    Get the current UTC time as a timezone-aware datetime object.

    Returns:
        datetime: Current UTC time with timezone information
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """
    Ensure a datetime object is timezone-aware and in UTC.

    Naive datetimes are assumed to already be UTC.

    Args:
        dt: Datetime object (may be naive or timezone-aware)

    Returns:
        datetime: Timezone-aware datetime in UTC
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    elif dt.tzinfo != timezone.utc:
        return dt.astimezone(timezone.utc)
    else:
        return dt


def utc_to_local(dt: datetime, local_tz: str = 'America/New_York') -> datetime:
    """
    Convert a UTC datetime to a local timezone.

    Args:
        dt: UTC datetime (should be timezone-aware)
        local_tz: Target timezone name (default: America/New_York)

    Returns:
        datetime: Datetime in the specified local timezone
    """
    utc_dt = ensure_utc(dt)
    local_timezone = pytz.timezone(local_tz)
    return utc_dt.astimezone(local_timezone)


def local_today(local_tz: str = 'America/New_York', now: Optional[datetime] = None) -> date:
    """
    Calendar date of `now` (default: current time) in the given timezone.

    Example:
        >>> local_today('UTC', datetime(2024, 3, 10, 23, 30, tzinfo=timezone.utc))
        datetime.date(2024, 3, 10)
    """
    return utc_to_local(now or utc_now(), local_tz).date()


def utc_days_ago(days: int, now: Optional[datetime] = None) -> datetime:
    """
    Get a UTC datetime for a specific number of days ago.

    Args:
        days: Number of days in the past
        now: Reference time (defaults to the current UTC time)
    """
    return ensure_utc(now or utc_now()) - timedelta(days=days)


def format_utc_iso(dt: Optional[datetime] = None) -> str:
    """
    Format a datetime as an ISO 8601 string in UTC.

    Args:
        dt: Datetime to format (defaults to current UTC time)

    Returns:
        str: ISO 8601 formatted string with UTC timezone
    """
    utc_dt = ensure_utc(dt) if dt else utc_now()
    return utc_dt.isoformat()


def parse_utc_iso(iso_string: str) -> datetime:
    """
    Parse an ISO 8601 string to a timezone-aware UTC datetime.

    Args:
        iso_string: ISO 8601 formatted datetime string

    Returns:
        datetime: Timezone-aware datetime in UTC

    Raises:
        ValueError: If the string is not ISO 8601
    """
    # Handle the JavaScript "Z" suffix
    if iso_string.endswith('Z'):
        iso_string = iso_string[:-1] + '+00:00'

    dt = datetime.fromisoformat(iso_string)
    return ensure_utc(dt)
