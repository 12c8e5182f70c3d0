"""
Calendar date handling for streaks

Streaks count calendar days, so every timestamp is reduced to a date in the
configured timezone before any comparison. Time of day never matters.
"""

import logging
from datetime import datetime, date
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from studyquest.config import TIMEZONE

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "UTC"

DateLike = Union[date, datetime, str]


def get_timezone(tz_name: Optional[str] = None) -> ZoneInfo:
    """
    Resolve a timezone name, falling back to UTC

    Args:
        tz_name: IANA timezone name (defaults to configured TIMEZONE)

    Returns:
        ZoneInfo object
    """
    tz_name = tz_name or TIMEZONE
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        logger.error(f"Invalid timezone '{tz_name}': {e}")
        return ZoneInfo(DEFAULT_TIMEZONE)


def today_local(tz_name: Optional[str] = None) -> date:
    """Today's date in the configured timezone"""
    return datetime.now(get_timezone(tz_name)).date()


def to_local_date(value: DateLike, tz_name: Optional[str] = None) -> date:
    """
    Reduce a date, datetime or ISO string to a calendar date

    Aware datetimes are converted to the configured timezone first; naive
    datetimes are assumed to already be local.

    Raises:
        ValueError: If a string is not ISO formatted
        TypeError: For any other input type
    """
    if isinstance(value, str):
        value = datetime.fromisoformat(value) if "T" in value or " " in value.strip() else date.fromisoformat(value)

    # datetime is a subclass of date, check it first
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(get_timezone(tz_name))
        return value.date()
    if isinstance(value, date):
        return value

    raise TypeError(f"Expected date, datetime or ISO string, got {type(value).__name__}")


def days_between(earlier: DateLike, later: DateLike) -> int:
    """
    Whole calendar days from earlier to later (negative if later precedes earlier)
    """
    return (to_local_date(later) - to_local_date(earlier)).days
