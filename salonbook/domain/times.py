"""
Date and time helpers shared by the slot engine, validation and display code.

Wall-clock times are compared as minutes since midnight; slot times are
exchanged as zero-padded ``HH:MM`` strings so that string order equals
chronological order within one day.
"""

import re
from datetime import date, time
from typing import Union

import pendulum
from pendulum import DateTime

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)(?::([0-5]\d))?$")


def parse_date(value: Union[str, date]) -> date:
    """
    Parse a ``YYYY-MM-DD`` string into a date.

    Raises:
        ValueError: If the string is not in that format or not a real date
    """
    if isinstance(value, date):
        return value
    if not DATE_PATTERN.match(value):
        raise ValueError(f"Date must be in YYYY-MM-DD format, got '{value}'")
    return pendulum.from_format(value, "YYYY-MM-DD").date()


def parse_time(value: Union[str, time]) -> time:
    """
    Parse a 24-hour ``HH:MM`` or ``HH:MM:SS`` string into a time.

    Raises:
        ValueError: If the string is not a valid 24-hour time
    """
    if isinstance(value, time):
        return value
    match = TIME_PATTERN.match(value)
    if not match:
        raise ValueError(f"Time must be in HH:MM format (24-hour), got '{value}'")
    hour, minute, second = match.groups()
    return pendulum.time(int(hour), int(minute), int(second or 0))


def to_minutes(moment: time) -> int:
    return moment.hour * 60 + moment.minute


def minutes_to_hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def to_hhmm(moment: time) -> str:
    return minutes_to_hhmm(to_minutes(moment))


def day_of_week(target: date) -> int:
    """Day of week with 0=Sunday through 6=Saturday."""
    return target.isoweekday() % 7


def combine(target: date, moment: time, timezone: str) -> DateTime:
    """Build the timezone-aware start of an appointment."""
    return pendulum.datetime(
        target.year,
        target.month,
        target.day,
        moment.hour,
        moment.minute,
        moment.second,
        tz=timezone,
    )


def format_time(value: Union[str, time]) -> str:
    """
    Format a time for display.

    Example: "14:30" -> "2:30 PM", "00:15" -> "12:15 AM"
    """
    moment = parse_time(value)
    period = "PM" if moment.hour >= 12 else "AM"
    display_hour = moment.hour % 12 or 12
    return f"{display_hour}:{moment.minute:02d} {period}"


def format_date(value: Union[str, date]) -> str:
    """
    Format a date for display.

    Example: "2024-01-15" -> "Monday, January 15, 2024"
    """
    target = parse_date(value)
    return pendulum.date(target.year, target.month, target.day).format(
        "dddd, MMMM D, YYYY", locale="en"
    )
