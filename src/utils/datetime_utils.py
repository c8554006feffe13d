"""
Datetime utilities for consistent date handling across the application.

Calendar dates arrive as "YYYY-MM-DD" strings and times of day as "HH:MM".
Weekdays are always derived from a date constructed in UTC so that the
server's local timezone can never shift a requested day.
"""

import logging
from datetime import date, datetime, time, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from core.constants import DEFAULT_TIMEZONE, MIN_BOOKABLE_DATE

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ['monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday']


def utc_now() -> datetime:
    """Get the current timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def get_timezone(tz_name: Optional[str]) -> ZoneInfo:
    """
    Resolve an IANA timezone name.

    Args:
        tz_name: Timezone name such as "America/Argentina/Buenos_Aires"

    Returns:
        ZoneInfo for the name, or for the default timezone when the name is empty

    Raises:
        ValueError: If the name cannot be resolved
    """
    try:
        return ZoneInfo(tz_name or DEFAULT_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone: {tz_name}") from e


def barber_now(tz_name: Optional[str] = None) -> datetime:
    """
    Get the current wall-clock datetime in a barber's timezone.

    Args:
        tz_name: The barber's configured timezone name

    Returns:
        Timezone-aware datetime in that timezone
    """
    return datetime.now(get_timezone(tz_name))


def parse_date_string(date_str: str) -> date:
    """
    Parse a strict YYYY-MM-DD date string.

    Dates before 2020-01-01 are rejected as malformed input.

    Args:
        date_str: Date string in YYYY-MM-DD format

    Returns:
        Date object

    Raises:
        ValueError: If the string is empty, not YYYY-MM-DD, not a real date,
            or before the minimum bookable date
    """
    if not date_str or not date_str.strip():
        raise ValueError("Date string cannot be empty")

    date_str = date_str.strip()
    parts = date_str.split('-')
    if len(parts) != 3 or len(parts[0]) != 4 or len(parts[1]) != 2 or len(parts[2]) != 2:
        raise ValueError(f"Invalid date format (expected YYYY-MM-DD): {date_str}")

    try:
        parsed = datetime.strptime(date_str, '%Y-%m-%d').date()
    except ValueError as e:
        raise ValueError(f"Invalid date format (expected YYYY-MM-DD): {date_str}") from e

    if parsed < MIN_BOOKABLE_DATE:
        raise ValueError(f"Date must be on or after {MIN_BOOKABLE_DATE.isoformat()}: {date_str}")
    return parsed


def parse_time_string(time_str: str) -> time:
    """
    Parse an "HH:MM" or "HH:MM:SS" time of day.

    Raises:
        ValueError: If the string is not a valid time of day
    """
    if not time_str or not time_str.strip():
        raise ValueError("Time string cannot be empty")
    for fmt in ('%H:%M', '%H:%M:%S'):
        try:
            return datetime.strptime(time_str.strip(), fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Invalid time format (expected HH:MM): {time_str}")


def format_hhmm(value: time) -> str:
    """Format a time of day as "HH:MM"."""
    return value.strftime('%H:%M')


def weekday_for_date(target_date: date) -> int:
    """
    Get the weekday (0=Monday ... 6=Sunday) of a calendar date.

    The date is rebuilt as midnight UTC from its (year, month, day) parts
    before asking for the weekday, so a local timezone behind UTC can never
    move the result to the previous day.

    Args:
        target_date: Calendar date

    Returns:
        Weekday index, 0=Monday
    """
    as_utc = datetime(target_date.year, target_date.month, target_date.day, tzinfo=timezone.utc)
    return as_utc.weekday()


def weekday_name(weekday: int) -> str:
    """Get the English weekday name for a weekday index."""
    return WEEKDAY_NAMES[weekday]
