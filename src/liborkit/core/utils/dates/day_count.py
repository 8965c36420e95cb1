"""Day count conventions for accrual and fixing-time calculations.

The forward-rate process consumes a day counter only through
:meth:`DayCountConvention.year_fraction`; any object providing that method
can be used in its place.
"""

from abc import ABC, abstractmethod

from liborkit.core.utils.dates.date_utils import DateLike, as_date, date_diff_days
from liborkit.errors import ConfigurationError


class DayCountConvention(ABC):
    """Abstract base class for day count conventions."""

    @abstractmethod
    def day_count(self, date1: DateLike, date2: DateLike) -> int:
        """Calculate the day count between two dates.

        Args:
            date1: Start date
            date2: End date

        Returns:
            Day count according to the convention
        """

    @abstractmethod
    def year_fraction(self, date1: DateLike, date2: DateLike) -> float:
        """Calculate the year fraction between two dates."""

    def __repr__(self) -> str:
        return self.__class__.__name__

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other)

    def __hash__(self) -> int:
        return hash(type(self).__name__)


class Actual360(DayCountConvention):
    """Actual/360 day count convention.

    Year fraction = Actual days / 360

    Standard for LIBOR/Euribor money-market fixings.
    """

    def day_count(self, date1: DateLike, date2: DateLike) -> int:
        return date_diff_days(date1, date2)

    def year_fraction(self, date1: DateLike, date2: DateLike) -> float:
        return self.day_count(date1, date2) / 360.0


class Actual365Fixed(DayCountConvention):
    """Actual/365 Fixed day count convention.

    Year fraction = Actual days / 365
    """

    def day_count(self, date1: DateLike, date2: DateLike) -> int:
        return date_diff_days(date1, date2)

    def year_fraction(self, date1: DateLike, date2: DateLike) -> float:
        return self.day_count(date1, date2) / 365.0


class Thirty360(DayCountConvention):
    """30/360 (US) day count convention, also known as Bond Basis."""

    def day_count(self, date1: DateLike, date2: DateLike) -> int:
        date1, date2 = as_date(date1), as_date(date2)
        y1, m1, d1 = date1.year, date1.month, date1.day
        y2, m2, d2 = date2.year, date2.month, date2.day

        if d1 == 31:
            d1 = 30
        if d2 == 31 and d1 >= 30:
            d2 = 30

        return 360 * (y2 - y1) + 30 * (m2 - m1) + (d2 - d1)

    def year_fraction(self, date1: DateLike, date2: DateLike) -> float:
        return self.day_count(date1, date2) / 360.0


_BY_NAME = {
    "ACT/360": Actual360,
    "ACT/365F": Actual365Fixed,
    "30/360": Thirty360,
}


def day_counter_from_name(name: str) -> DayCountConvention:
    """Resolve a day counter from its market abbreviation (case insensitive)."""
    try:
        return _BY_NAME[name.upper()]()
    except KeyError:
        raise ConfigurationError(
            f"Unknown day count convention '{name}'. Allowed values: {sorted(_BY_NAME)}"
        ) from None
