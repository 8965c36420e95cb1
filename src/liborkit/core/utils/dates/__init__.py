"""Date services consumed by the forward-rate process.

- Day count conventions (ACT/360, ACT/365F, 30/360)
- Weekend calendars and business day conventions
- Regular floating-leg schedule generation
"""

from liborkit.core.utils.dates.calendar import (
    BusinessDayConvention,
    Calendar,
    Following,
    ModifiedFollowing,
    NullCalendar,
    Unadjusted,
    WeekendsOnly,
    convention_from_name,
)
from liborkit.core.utils.dates.date_utils import (
    DateLike,
    add_months,
    as_date,
    date_diff_days,
    days_in_month,
    is_leap_year,
    is_weekend,
)
from liborkit.core.utils.dates.day_count import (
    Actual360,
    Actual365Fixed,
    DayCountConvention,
    Thirty360,
    day_counter_from_name,
)
from liborkit.core.utils.dates.schedule import (
    ScheduleEntry,
    ScheduleSpec,
    accrual_dates,
    libor_schedule,
)

__all__ = [
    # Calendar
    "Calendar",
    "NullCalendar",
    "WeekendsOnly",
    # Business day conventions
    "BusinessDayConvention",
    "Following",
    "ModifiedFollowing",
    "Unadjusted",
    "convention_from_name",
    # Day count conventions
    "DayCountConvention",
    "Actual360",
    "Actual365Fixed",
    "Thirty360",
    "day_counter_from_name",
    # Date utilities
    "DateLike",
    "add_months",
    "as_date",
    "date_diff_days",
    "days_in_month",
    "is_leap_year",
    "is_weekend",
    # Schedule
    "ScheduleEntry",
    "ScheduleSpec",
    "accrual_dates",
    "libor_schedule",
]
