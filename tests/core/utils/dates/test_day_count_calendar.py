import datetime

import pytest

from liborkit.core.utils.dates import (
    Actual360,
    Actual365Fixed,
    Following,
    ModifiedFollowing,
    NullCalendar,
    Thirty360,
    Unadjusted,
    WeekendsOnly,
    add_months,
    convention_from_name,
    day_counter_from_name,
    days_in_month,
)
from liborkit.errors import ConfigurationError


def test_actual_conventions():
    start = datetime.date(2024, 1, 15)
    end = datetime.date(2024, 7, 15)
    assert Actual360().day_count(start, end) == 182
    assert Actual360().year_fraction(start, end) == pytest.approx(182 / 360)
    assert Actual365Fixed().year_fraction(start, end) == pytest.approx(182 / 365)


def test_thirty_360_end_of_month():
    dc = Thirty360()
    assert dc.day_count(datetime.date(2024, 1, 31), datetime.date(2024, 3, 31)) == 60
    assert dc.year_fraction(datetime.date(2024, 1, 15), datetime.date(2025, 1, 15)) == 1.0


def test_day_counter_lookup():
    assert day_counter_from_name("act/360") == Actual360()
    assert day_counter_from_name("ACT/365F") == Actual365Fixed()
    with pytest.raises(ConfigurationError, match="Unknown day count"):
        day_counter_from_name("ACT/ACT")


def test_add_months_clips_to_month_end():
    assert add_months(datetime.date(2024, 1, 31), 1) == datetime.date(2024, 2, 29)
    assert add_months(datetime.date(2024, 3, 15), -3) == datetime.date(2023, 12, 15)


def test_weekend_adjustment():
    calendar = WeekendsOnly()
    saturday = datetime.date(2024, 8, 31)
    assert not calendar.is_business_day(saturday)
    assert calendar.adjust(saturday, Following()) == datetime.date(2024, 9, 2)
    assert calendar.adjust(saturday, ModifiedFollowing()) == datetime.date(2024, 8, 30)
    assert calendar.adjust(saturday, Unadjusted()) == saturday


def test_holidays_and_advance():
    calendar = WeekendsOnly(holidays=[datetime.date(2024, 1, 12)])
    monday = datetime.date(2024, 1, 15)
    assert calendar.advance(monday, -2) == datetime.date(2024, 1, 10)
    assert NullCalendar().advance(monday, -2) == datetime.date(2024, 1, 13)


def test_convention_lookup():
    assert isinstance(convention_from_name("Modified_Following"), ModifiedFollowing)
    with pytest.raises(ConfigurationError, match="Unknown business day convention"):
        convention_from_name("preceding")


def test_days_in_month():
    assert days_in_month(2024, 2) == 29
    assert days_in_month(2023, 2) == 28
    with pytest.raises(ConfigurationError, match="Invalid month"):
        days_in_month(2024, 13)
