import datetime

import pytest

from liborkit.core.utils.dates import (
    Actual360,
    ScheduleEntry,
    ScheduleSpec,
    WeekendsOnly,
    accrual_dates,
    libor_schedule,
)
from liborkit.errors import ConfigurationError
from liborkit.market.curves import FlatCurve

SETTLEMENT = datetime.date(2024, 1, 15)


def test_accrual_dates_are_adjusted():
    spec = ScheduleSpec(tenor_months=6, calendar=WeekendsOnly())
    dates = accrual_dates(SETTLEMENT, 4, spec)
    assert len(dates) == 5
    assert dates[0] == SETTLEMENT
    assert dates[1] == datetime.date(2024, 7, 15)
    assert all(d.weekday() < 5 for d in dates)


def test_libor_schedule_rates_match_curve():
    curve = FlatCurve(0.04)
    spec = ScheduleSpec(tenor_months=6, fixing_days=2, calendar=WeekendsOnly(), day_counter=Actual360())
    entries = libor_schedule(curve, SETTLEMENT, 3, spec)

    assert len(entries) == 3
    for entry in entries:
        tau = Actual360().year_fraction(entry.accrual_start, entry.accrual_end)
        t0 = Actual360().year_fraction(SETTLEMENT, entry.accrual_start)
        t1 = Actual360().year_fraction(SETTLEMENT, entry.accrual_end)
        expected = (float(curve.discount(t0)) / float(curve.discount(t1)) - 1.0) / tau
        assert entry.rate == pytest.approx(expected, rel=1e-12)
        assert entry.is_regular

    # two business days before Monday 15 January is Thursday 11 January
    assert entries[0].fixing_date == datetime.date(2024, 1, 11)


def test_irregular_entry_flag():
    entry = ScheduleEntry(
        fixing_date=SETTLEMENT,
        accrual_start=SETTLEMENT,
        accrual_end=datetime.date(2024, 7, 15),
        rate=0.03,
        payment_date=datetime.date(2024, 7, 17),
    )
    assert not entry.is_regular


def test_schedule_spec_validation():
    with pytest.raises(ConfigurationError, match="tenor_months"):
        ScheduleSpec(tenor_months=0)
    with pytest.raises(ConfigurationError, match="fixing_days"):
        ScheduleSpec(fixing_days=-1)
    with pytest.raises(ConfigurationError, match="size must be positive"):
        accrual_dates(SETTLEMENT, 0, ScheduleSpec())
