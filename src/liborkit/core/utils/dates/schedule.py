"""Forward-rate schedule generation.

The forward-rate process is built from a list of :class:`ScheduleEntry`
tuples, one per accrual period. :func:`libor_schedule` generates a regular
schedule of consecutive periods and attaches the forward rates implied by a
discount curve, which is the usual way to seed a LIBOR market model.
"""

import datetime
from dataclasses import dataclass
from typing import List, NamedTuple, Optional

from liborkit.core.utils.dates.calendar import (
    BusinessDayConvention,
    Calendar,
    ModifiedFollowing,
    NullCalendar,
)
from liborkit.core.utils.dates.date_utils import DateLike, add_months, as_date
from liborkit.core.utils.dates.day_count import Actual360, DayCountConvention
from liborkit.errors import ConfigurationError


class ScheduleEntry(NamedTuple):
    """One accrual period of a floating leg.

    Attributes:
        fixing_date: Date on which the rate is observed
        accrual_start: Adjusted accrual start date
        accrual_end: Adjusted accrual end date
        rate: Forward rate for the period implied by today's curve
        payment_date: Payment date; ``None`` means paid at ``accrual_end``
    """

    fixing_date: datetime.date
    accrual_start: datetime.date
    accrual_end: datetime.date
    rate: float
    payment_date: Optional[datetime.date] = None

    @property
    def is_regular(self) -> bool:
        """True if the coupon is paid at the end of its accrual period."""
        return self.payment_date is None or self.payment_date == self.accrual_end


@dataclass(frozen=True)
class ScheduleSpec:
    """Rules used to lay out a regular floating-leg schedule.

    Attributes:
        tenor_months: Length of each accrual period in months
        fixing_days: Business days between fixing and accrual start
        calendar: Business-day calendar
        convention: Adjustment rule for accrual dates
        day_counter: Day counter for accrual fractions and curve times
    """

    tenor_months: int = 6
    fixing_days: int = 2
    calendar: Calendar = NullCalendar()
    convention: BusinessDayConvention = ModifiedFollowing()
    day_counter: DayCountConvention = Actual360()

    def __post_init__(self) -> None:
        if self.tenor_months <= 0:
            raise ConfigurationError("tenor_months must be positive")
        if self.fixing_days < 0:
            raise ConfigurationError("fixing_days must be non-negative")


def accrual_dates(settlement: DateLike, size: int, spec: ScheduleSpec) -> List[datetime.date]:
    """Return ``size + 1`` adjusted period boundaries starting at ``settlement``."""
    if size <= 0:
        raise ConfigurationError("size must be positive")
    settlement = as_date(settlement)
    return [
        spec.calendar.adjust(add_months(settlement, k * spec.tenor_months), spec.convention)
        for k in range(size + 1)
    ]


def libor_schedule(
    curve,
    settlement: DateLike,
    size: int,
    spec: Optional[ScheduleSpec] = None,
) -> List[ScheduleEntry]:
    """Generate ``size`` consecutive periods with curve-implied forward rates.

    Args:
        curve: Discount curve exposing ``discount(t)`` with ``t`` measured in
            years from ``settlement`` using ``spec.day_counter``
        settlement: Curve reference date and start of the first period
        size: Number of accrual periods
        spec: Schedule layout rules (defaults to 6M Actual/360)

    Returns:
        List of schedule entries ordered by fixing date
    """
    spec = spec or ScheduleSpec()
    settlement = as_date(settlement)
    boundaries = accrual_dates(settlement, size, spec)
    dc = spec.day_counter

    entries = []
    for start, end in zip(boundaries[:-1], boundaries[1:]):
        tau = dc.year_fraction(start, end)
        p_start = float(curve.discount(dc.year_fraction(settlement, start)))
        p_end = float(curve.discount(dc.year_fraction(settlement, end)))
        rate = (p_start / p_end - 1.0) / tau
        fixing = spec.calendar.advance(start, -spec.fixing_days)
        entries.append(ScheduleEntry(fixing, start, end, rate))
    return entries
