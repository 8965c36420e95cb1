"""Caplet volatility term structures.

Both structures are queried by date; times are measured from the reference
date with the structure's own day counter. The Hull-White bootstrap reads
caplet volatilities at the forward-rate fixing dates.
"""

from __future__ import annotations

import datetime
import math
from dataclasses import dataclass, field
from typing import Optional, Protocol, Sequence

import numpy as np

from liborkit.core.utils.dates import Actual365Fixed, DateLike, DayCountConvention, as_date
from liborkit.errors import ConfigurationError

__all__ = ["CapletVolatilityStructure", "ConstantCapletVolatility", "CapletVarianceCurve"]


class CapletVolatilityStructure(Protocol):
    day_counter: DayCountConvention

    def volatility(self, date: DateLike) -> float:
        ...


@dataclass(frozen=True)
class ConstantCapletVolatility:
    """Same Black volatility for every caplet."""

    vol: float
    day_counter: DayCountConvention = field(default_factory=Actual365Fixed)

    def __post_init__(self) -> None:
        if self.vol < 0.0:
            raise ConfigurationError("volatility must be non-negative")

    def volatility(self, date: DateLike) -> float:
        return self.vol


class CapletVarianceCurve:
    """
    Caplet volatilities interpolated linearly in total variance.

    A node ``(0, 0)`` is implied at the reference date so the curve is flat
    in volatility before the first quoted date. Beyond the last date the
    last volatility is extrapolated flat.

    Args:
        reference_date: Date at which time is zero
        dates: Strictly increasing quote dates after ``reference_date``
        volatilities: Black volatilities quoted at ``dates``
        day_counter: Convention converting dates into times
    """

    def __init__(
        self,
        reference_date: DateLike,
        dates: Sequence[DateLike],
        volatilities: Sequence[float],
        day_counter: Optional[DayCountConvention] = None,
    ):
        if len(dates) != len(volatilities):
            raise ConfigurationError("mismatch between date vector and volatility vector")
        if not dates:
            raise ConfigurationError("caplet variance curve needs at least one quote")
        self.reference_date: datetime.date = as_date(reference_date)
        self.day_counter = day_counter or Actual365Fixed()

        times = [self.day_counter.year_fraction(self.reference_date, as_date(d)) for d in dates]
        if times[0] <= 0.0:
            raise ConfigurationError("cannot have dates[0] <= reference date")
        if any(t1 <= t0 for t0, t1 in zip(times[:-1], times[1:])):
            raise ConfigurationError("dates must be sorted unique")
        if any(v < 0.0 for v in volatilities):
            raise ConfigurationError("volatilities must be non-negative")

        self._times = np.concatenate([[0.0], times])
        variances = [v * v * t for v, t in zip(volatilities, times)]
        if any(v1 < v0 for v0, v1 in zip(variances[:-1], variances[1:])):
            raise ConfigurationError("variance must be non-decreasing")
        self._variances = np.concatenate([[0.0], variances])
        self._volatilities = tuple(float(v) for v in volatilities)

    def black_variance(self, t: float) -> float:
        if t <= self._times[-1]:
            return float(np.interp(t, self._times, self._variances))
        last = self._volatilities[-1]
        return last * last * t

    def volatility(self, date: DateLike) -> float:
        t = self.day_counter.year_fraction(self.reference_date, as_date(date))
        if t <= 0.0:
            return self._volatilities[0]
        return math.sqrt(self.black_variance(t) / t)
