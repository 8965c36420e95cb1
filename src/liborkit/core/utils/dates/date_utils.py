"""Date utility functions used by schedules and day counters."""

import datetime
from typing import Union

from liborkit.errors import ConfigurationError

DateLike = Union[datetime.date, datetime.datetime]


def as_date(date: DateLike) -> datetime.date:
    """Strip the time component from ``datetime`` inputs."""
    if isinstance(date, datetime.datetime):
        return date.date()
    return date


def is_weekend(date: DateLike) -> bool:
    """Check if a date falls on a weekend (Saturday or Sunday).

    Args:
        date: Date to check

    Returns:
        True if the date is a Saturday or Sunday, False otherwise
    """
    return date.weekday() >= 5


def is_leap_year(year: int) -> bool:
    """Check if a year is a leap year."""
    return (year % 4 == 0 and year % 100 != 0) or (year % 400 == 0)


def days_in_month(year: int, month: int) -> int:
    """Get the number of days in a specific month.

    Args:
        year: Year
        month: Month (1-12)

    Returns:
        Number of days in the month
    """
    if month in (1, 3, 5, 7, 8, 10, 12):
        return 31
    elif month in (4, 6, 9, 11):
        return 30
    elif month == 2:
        return 29 if is_leap_year(year) else 28
    else:
        raise ConfigurationError(f"Invalid month: {month}")


def add_months(date: DateLike, months: int) -> datetime.date:
    """Add a number of months to a date.

    If the resulting date would be invalid (e.g., Jan 31 + 1 month),
    the date is adjusted to the last valid day of the month.

    Args:
        date: Starting date
        months: Number of months to add (can be negative)

    Returns:
        New date after adding months
    """
    date = as_date(date)
    total_months = date.month + months
    year = date.year + (total_months - 1) // 12
    month = ((total_months - 1) % 12) + 1

    day = min(date.day, days_in_month(year, month))
    return datetime.date(year, month, day)


def date_diff_days(date1: DateLike, date2: DateLike) -> int:
    """Number of days from ``date1`` to ``date2`` (positive if ``date2`` is later)."""
    return (as_date(date2) - as_date(date1)).days
