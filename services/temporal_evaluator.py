"""
Temporal Evaluator - calendar-day offsets and alert-option matching.

Every comparison happens on calendar dates. Timestamps are reduced to their
date before subtracting, so a target later today is 0 days away no matter
what time it is now.

Option windows are "at most N days before, inclusive of the day itself":
    same_day     0
    day_before   0..1
    week_before  0..7
They overlap on purpose; a date 0 days away satisfies all three. Past dates
never trigger.
"""

import calendar
import logging
import re
from datetime import date, datetime
from typing import Iterable, Optional, Union

from services.enums import AlertOption
from utils.datetime_utils import parse_utc_iso

logger = logging.getLogger(__name__)

DEFAULT_ALERT_DAYS = 7

OPTION_WINDOWS = {
    AlertOption.SAME_DAY: 0,
    AlertOption.DAY_BEFORE: 1,
    AlertOption.WEEK_BEFORE: 7,
}

DateLike = Union[date, datetime, str]

_ISO_DATE = re.compile(r'^\d{4}-\d{2}-\d{2}$')
_FULL_BIRTHDAY = re.compile(r'^(\d{4})-(\d{2})-(\d{2})$')
_LEGACY_BIRTHDAY = re.compile(r'^(\d{2})-(\d{2})$')


def parse_event_date(value: Optional[DateLike]) -> Optional[date]:
    """
    Calendar date of a stored date value.

    Accepts date/datetime objects, 'YYYY-MM-DD' strings and ISO 8601
    timestamps. A plain date string is taken as-is (no timezone shift).
    Anything unparseable returns None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    try:
        if _ISO_DATE.match(text):
            return date.fromisoformat(text)
        if 'T' in text or ' ' in text:
            # Date part of the timestamp as written, before any zone conversion
            head = text.replace(' ', 'T').split('T', 1)[0]
            if _ISO_DATE.match(head):
                parse_utc_iso(text.replace(' ', 'T'))
                return date.fromisoformat(head)
    except ValueError:
        pass
    logger.debug("Unparseable event date %r", value)
    return None


def days_until(target: Optional[DateLike], today: DateLike) -> Optional[int]:
    """
    Signed whole days from `today` to `target`.

    Returns None when either side cannot be parsed; callers must treat that
    as "not triggerable" rather than as 0.
    """
    target_date = parse_event_date(target)
    today_date = parse_event_date(today)
    if target_date is None or today_date is None:
        return None
    return (target_date - today_date).days


def is_triggered(days: Optional[int],
                 alert_options: Optional[Iterable[AlertOption]],
                 alert_enabled: bool = True) -> bool:
    """
    True if any subscribed option's window contains `days`.

    Pure function. Disabled alerts, empty option sets, unknown offsets
    (None) and past dates never trigger.
    """
    if not alert_enabled or not alert_options:
        return False
    return bool(triggered_options(days, alert_options))


def triggered_options(days: Optional[int], alert_options: Iterable[AlertOption]) -> frozenset:
    """Subset of `alert_options` whose windows contain `days`; unknown options are ignored"""
    if days is None or days < 0:
        return frozenset()
    matched = set()
    for option in alert_options:
        window = OPTION_WINDOWS.get(_as_option(option))
        if window is not None and days <= window:
            matched.add(_as_option(option))
    return frozenset(matched)


def _as_option(value) -> Optional[AlertOption]:
    try:
        return AlertOption(value)
    except ValueError:
        return None


def is_within_lead_days(days: Optional[int], alert_days: Optional[int] = None) -> bool:
    """Single-threshold variant: 0 <= days <= alert_days (default 7)"""
    if days is None:
        return False
    threshold = DEFAULT_ALERT_DAYS if alert_days is None else alert_days
    return 0 <= days <= threshold


def parse_birthday(birthday: Optional[str]) -> Optional[tuple]:
    """(month, day) from 'YYYY-MM-DD' or legacy 'MM-DD', else None"""
    if not birthday or not isinstance(birthday, str):
        return None
    text = birthday.strip()
    match = _FULL_BIRTHDAY.match(text)
    if match:
        month, day = int(match.group(2)), int(match.group(3))
    else:
        match = _LEGACY_BIRTHDAY.match(text)
        if not match:
            return None
        month, day = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12 or not 1 <= day <= 31:
        return None
    # Reject impossible dates using a leap year as the most permissive case
    if day > calendar.monthrange(2000, month)[1]:
        return None
    return month, day


def birthday_in_year(birthday: Optional[str], year: int) -> Optional[date]:
    """Occurrence of a birthday in `year`; Feb 29 falls on Feb 28 in common years"""
    parsed = parse_birthday(birthday)
    if parsed is None:
        return None
    month, day = parsed
    day = min(day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def birthday_occurrence(birthday: Optional[str], today: DateLike) -> Optional[date]:
    """The birthday's occurrence in the current calendar year (may already be past)"""
    today_date = parse_event_date(today)
    if today_date is None:
        return None
    return birthday_in_year(birthday, today_date.year)


def upcoming_birthday(birthday: Optional[str], today: DateLike) -> Optional[date]:
    """Next occurrence on or after `today` (this year's, or next year's once it has passed)"""
    today_date = parse_event_date(today)
    occurrence = birthday_occurrence(birthday, today_date) if today_date else None
    if occurrence is None:
        return None
    if occurrence < today_date:
        return birthday_in_year(birthday, today_date.year + 1)
    return occurrence
