"""Business-day calendars and adjustment conventions.

Holiday tables are out of scope; the calendars here only know weekends plus
an optional explicit set of holidays supplied by the caller.
"""

import datetime
from abc import ABC, abstractmethod
from typing import Iterable, Optional

from liborkit.core.utils.dates.date_utils import DateLike, as_date, is_weekend
from liborkit.errors import ConfigurationError


class Calendar(ABC):
    """Abstract base class for business-day calendars."""

    @abstractmethod
    def is_business_day(self, date: DateLike) -> bool:
        """Check if a date is a business day.

        Args:
            date: Date to check

        Returns:
            True if the date is a business day, False otherwise
        """

    def adjust(self, date: DateLike, convention: "BusinessDayConvention") -> datetime.date:
        """Adjust a date according to a business day convention."""
        return convention.adjust(date, self)

    def advance(self, date: DateLike, days: int) -> datetime.date:
        """Advance a date by a number of business days.

        Args:
            date: Starting date
            days: Number of business days to advance (can be negative)

        Returns:
            New date after advancing
        """
        current = as_date(date)
        if days == 0:
            return current

        step = 1 if days > 0 else -1
        remaining = abs(days)
        while remaining > 0:
            current += datetime.timedelta(days=step)
            if self.is_business_day(current):
                remaining -= 1
        return current

    def __repr__(self) -> str:
        return self.__class__.__name__


class NullCalendar(Calendar):
    """Calendar in which every day is a business day."""

    def is_business_day(self, date: DateLike) -> bool:
        return True


class WeekendsOnly(Calendar):
    """Weekends plus an optional set of explicit holidays."""

    def __init__(self, holidays: Optional[Iterable[DateLike]] = None) -> None:
        self.holidays = frozenset(as_date(d) for d in holidays or ())

    def is_business_day(self, date: DateLike) -> bool:
        date = as_date(date)
        return not is_weekend(date) and date not in self.holidays


class BusinessDayConvention(ABC):
    """Abstract base class for business day conventions."""

    @abstractmethod
    def adjust(self, date: DateLike, calendar: Calendar) -> datetime.date:
        """Return a valid business day according to the convention."""

    def __repr__(self) -> str:
        return self.__class__.__name__


class Unadjusted(BusinessDayConvention):
    """The date is returned as-is, even if it falls on a non-business day."""

    def adjust(self, date: DateLike, calendar: Calendar) -> datetime.date:
        return as_date(date)


class Following(BusinessDayConvention):
    """Move forward to the next business day."""

    def adjust(self, date: DateLike, calendar: Calendar) -> datetime.date:
        date = as_date(date)
        while not calendar.is_business_day(date):
            date += datetime.timedelta(days=1)
        return date


class ModifiedFollowing(BusinessDayConvention):
    """Following, unless that crosses into the next month; then preceding."""

    def adjust(self, date: DateLike, calendar: Calendar) -> datetime.date:
        date = as_date(date)
        adjusted = Following().adjust(date, calendar)
        if adjusted.month != date.month:
            adjusted = date
            while not calendar.is_business_day(adjusted):
                adjusted -= datetime.timedelta(days=1)
        return adjusted


_CONVENTIONS = {
    "unadjusted": Unadjusted,
    "following": Following,
    "modified_following": ModifiedFollowing,
}


def convention_from_name(name: str) -> BusinessDayConvention:
    """Resolve a business-day convention by snake_case name."""
    try:
        return _CONVENTIONS[name.lower()]()
    except KeyError:
        raise ConfigurationError(
            f"Unknown business day convention '{name}'. Allowed values: {sorted(_CONVENTIONS)}"
        ) from None
