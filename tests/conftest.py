"""Shared fixtures for the forward-rate model tests."""
import datetime

import pytest

from liborkit.core.utils.dates import (
    Actual365Fixed,
    NullCalendar,
    ScheduleSpec,
    Unadjusted,
    libor_schedule,
)
from liborkit.market.curves import FlatCurve
from liborkit.models.lmm.process import ForwardRateProcess

SETTLEMENT = datetime.date(2024, 1, 15)


def make_process(size: int, tenor_months: int, rate: float = 0.05) -> ForwardRateProcess:
    """Unadjusted schedule fixing on its accrual start dates, so fixing and accrual times agree."""
    curve = FlatCurve(rate)
    spec = ScheduleSpec(
        tenor_months=tenor_months,
        fixing_days=0,
        calendar=NullCalendar(),
        convention=Unadjusted(),
        day_counter=Actual365Fixed(),
    )
    entries = libor_schedule(curve, SETTLEMENT, size, spec)
    return ForwardRateProcess(entries, Actual365Fixed(), settlement_date=SETTLEMENT, curve=curve)


@pytest.fixture
def annual_process() -> ForwardRateProcess:
    return make_process(4, 12)


@pytest.fixture
def semiannual_process() -> ForwardRateProcess:
    return make_process(10, 6)


@pytest.fixture
def process_factory():
    return make_process
