"""Forward-rate process under the spot LIBOR measure.

The state is the vector of ``N`` simply-compounded forward rates
``L_0 .. L_{N-1}``; rate ``k`` accrues over ``[S_k, E_k]`` and fixes at
``T_k``. Rates that have fixed are frozen. Evolution uses a
predictor-corrector step on ``log L``:

    drift_k = Σ_{j=m..k} τ_j L_j / (1 + τ_j L_j) C_jk - C_kk / 2

with ``m`` the index of the first rate that has not yet fixed and ``C`` the
instantaneous covariance.
"""
from __future__ import annotations

import datetime
import logging
from typing import Optional, Sequence, Tuple

import jax.numpy as jnp

from liborkit.core.utils.dates import Actual360, DayCountConvention, ScheduleEntry, as_date
from liborkit.core.utils.search import clamp_index, predecessor_index
from liborkit.errors import ConfigurationError, ScheduleMismatchError
from liborkit.market.curves import DiscountCurve
from liborkit.models.lmm.covariance import CovarianceParameterization

Array = jnp.ndarray

logger = logging.getLogger(__name__)

__all__ = ["ForwardRateProcess"]


class ForwardRateProcess:
    """Multi-factor lognormal forward-rate process.

    Args:
        schedule: Accrual periods ordered by fixing date, each carrying its
            initial forward rate
        day_counter: Convention for fixing and accrual times (Actual/360 by default)
        settlement_date: Origin of the accrual times; defaults to the first
            accrual start
        curve: Discount curve in the same time coordinates, required only
            for discounting in the model layer
    """

    def __init__(
        self,
        schedule: Sequence[ScheduleEntry],
        day_counter: Optional[DayCountConvention] = None,
        *,
        settlement_date=None,
        curve: Optional[DiscountCurve] = None,
    ):
        entries = list(schedule)
        if not entries:
            raise ConfigurationError("forward-rate schedule is empty")
        for k, entry in enumerate(entries):
            if not entry.is_regular:
                raise ScheduleMismatchError(
                    f"irregular coupon at position {k}: paid on {entry.payment_date}, "
                    f"accrual ends {entry.accrual_end}"
                )
            if entry.accrual_end <= entry.accrual_start:
                raise ScheduleMismatchError(
                    f"accrual end {entry.accrual_end} is not after start {entry.accrual_start}"
                )

        dc = day_counter or Actual360()
        settlement = as_date(settlement_date) if settlement_date is not None else entries[0].accrual_start
        first_fixing = entries[0].fixing_date

        self._entries: Tuple[ScheduleEntry, ...] = tuple(entries)
        self.day_counter = dc
        self.settlement_date: datetime.date = settlement
        self.curve = curve
        self._fixing_times = tuple(dc.year_fraction(first_fixing, e.fixing_date) for e in entries)
        self._accrual_start_times = tuple(dc.year_fraction(settlement, e.accrual_start) for e in entries)
        self._accrual_end_times = tuple(dc.year_fraction(settlement, e.accrual_end) for e in entries)
        self._accrual_periods = tuple(dc.year_fraction(e.accrual_start, e.accrual_end) for e in entries)
        if any(t1 <= t0 for t0, t1 in zip(self._fixing_times[:-1], self._fixing_times[1:])):
            raise ScheduleMismatchError("fixing times must be strictly increasing")

        self._initial = jnp.asarray([e.rate for e in entries], dtype=jnp.float64)
        self._tau = jnp.asarray(self._accrual_periods, dtype=jnp.float64)
        self._covariance: Optional[CovarianceParameterization] = None

    # ------------------------------------------------------------------
    # Schedule data
    # ------------------------------------------------------------------
    @property
    def size(self) -> int:
        return len(self._entries)

    @property
    def schedule(self) -> Tuple[ScheduleEntry, ...]:
        return self._entries

    @property
    def fixing_dates(self) -> Tuple[datetime.date, ...]:
        return tuple(e.fixing_date for e in self._entries)

    @property
    def fixing_times(self) -> Tuple[float, ...]:
        return self._fixing_times

    @property
    def accrual_start_times(self) -> Tuple[float, ...]:
        return self._accrual_start_times

    @property
    def accrual_end_times(self) -> Tuple[float, ...]:
        return self._accrual_end_times

    @property
    def accrual_periods(self) -> Tuple[float, ...]:
        return self._accrual_periods

    def initial_values(self) -> Array:
        return self._initial

    def next_index_reset(self, t: float) -> int:
        """Index of the first rate whose fixing time is strictly after ``t``."""
        return clamp_index(predecessor_index(self._fixing_times, t) + 1, 0, self.size - 1)

    # ------------------------------------------------------------------
    # Dynamics
    # ------------------------------------------------------------------
    def set_covariance_parameterization(self, parameterization: CovarianceParameterization) -> None:
        if parameterization.size != self.size:
            raise ConfigurationError(
                f"parameterization size ({parameterization.size}) does not match "
                f"process size ({self.size})"
            )
        self._covariance = parameterization

    @property
    def covariance_parameterization(self) -> CovarianceParameterization:
        if self._covariance is None:
            raise ConfigurationError("covariance parameterization must be set")
        return self._covariance

    @property
    def factors(self) -> int:
        return self.covariance_parameterization.factors

    def _active(self, t: float) -> Array:
        return jnp.arange(self.size) >= self.next_index_reset(t)

    def _drift_from(self, x: Array, cov: Array, active: Array) -> Array:
        tx = self._tau * x
        weights = jnp.where(active, tx / (1.0 + tx), 0.0)
        return weights @ jnp.triu(cov) - 0.5 * jnp.diag(cov)

    def drift(self, t: float, x) -> Array:
        x = jnp.asarray(x, dtype=jnp.float64)
        cov = self.covariance_parameterization.covariance(t, x)
        active = self._active(t)
        return jnp.where(active, self._drift_from(x, cov, active), 0.0)

    def diffusion(self, t: float, x=None) -> Array:
        return self.covariance_parameterization.diffusion(t, x)

    def covariance(self, t: float, x, dt: float) -> Array:
        return self.covariance_parameterization.covariance(t, x) * dt

    def apply(self, x0, dx) -> Array:
        return jnp.asarray(x0) * jnp.exp(jnp.asarray(dx))

    def evolve(self, t0: float, x0, dt: float, dw) -> Array:
        """One predictor-corrector step of length ``dt`` from ``t0``.

        ``x0`` has shape ``(..., size)`` and ``dw`` shape ``(..., factors)``
        holding standard normal draws; leading axes index paths.
        """
        param = self.covariance_parameterization
        x0 = jnp.asarray(x0, dtype=jnp.float64)
        dw = jnp.asarray(dw, dtype=jnp.float64)
        cov = param.covariance(t0)
        diff = param.diffusion(t0)
        active = self._active(t0)
        sqrt_dt = jnp.sqrt(dt)

        drift = self._drift_from(x0, cov, active) * dt
        shock = (dw @ diff.T) * sqrt_dt
        predicted = self._tau * x0 * jnp.exp(drift + shock)
        weights = jnp.where(active, predicted / (1.0 + predicted), 0.0)
        corrected = (weights @ jnp.triu(cov) - 0.5 * jnp.diag(cov)) * dt
        evolved = x0 * jnp.exp(0.5 * (drift + corrected) + shock)
        return jnp.where(active, evolved, x0)

    def discount_bonds(self, rates) -> Array:
        """``P_k = Π_{j<=k} 1 / (1 + τ_j x_j)`` along the last axis."""
        rates = jnp.asarray(rates, dtype=jnp.float64)
        return jnp.cumprod(1.0 / (1.0 + self._tau * rates), axis=-1)
