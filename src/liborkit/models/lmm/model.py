"""LIBOR forward model: process, covariance proxy and closed-form analytics.

The model ties a :class:`ForwardRateProcess` to a :class:`CovarianceProxy`
built from one volatility and one correlation model, exposes their
parameters as a single flat vector, and provides

- zero-coupon bond options (and hence caplets) via Black's formula,
- swap-rate weights and forward swap rates,
- Rebonato's approximation of the at-the-money swaption volatility matrix,
- least-squares calibration to caplet and swaption volatilities.
"""
from __future__ import annotations

import datetime
import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import jax.numpy as jnp
import numpy as np
from scipy.optimize import least_squares

from liborkit.core.utils.search import clamp_index, successor_index
from liborkit.errors import ConfigurationError, NumericalConvergenceError, ScheduleMismatchError
from liborkit.models.black import OptionType, black_formula
from liborkit.models.lmm.calibration import CalibrationResult
from liborkit.models.lmm.correlation import CorrelationModel
from liborkit.models.lmm.covariance import CovarianceProxy
from liborkit.models.lmm.parameters import ParameterLayout, VersionedCache
from liborkit.models.lmm.process import ForwardRateProcess
from liborkit.models.lmm.volatility import VolatilityModel

Array = jnp.ndarray

logger = logging.getLogger(__name__)

__all__ = ["LiborForwardModel", "SwaptionVolatilityMatrix"]

_TIME_TOLERANCE = 100 * np.finfo(float).eps
_VARIANCE_TOLERANCE = 1e-14


@dataclass(frozen=True)
class SwaptionVolatilityMatrix:
    """At-the-money swaption volatilities by exercise and swap length.

    ``volatilities[k, l - 1]`` is the volatility of the swaption exercised at
    ``exercise_dates[k]`` into a swap of ``lengths[l - 1]`` reset periods.
    """

    reference_date: datetime.date
    exercise_dates: Tuple[datetime.date, ...]
    exercise_times: Tuple[float, ...]
    lengths: Tuple[int, ...]
    volatilities: Array

    def volatility(self, exercise_index: int, length: int) -> float:
        if length not in self.lengths:
            raise ScheduleMismatchError(f"swap length {length} not in {self.lengths}")
        if not 0 <= exercise_index < len(self.exercise_dates):
            raise ScheduleMismatchError(f"exercise index {exercise_index} out of range")
        return float(self.volatilities[exercise_index, self.lengths.index(length)])


class LiborForwardModel:
    """Calibratable LIBOR market model.

    Parameters
    ----------
    process : ForwardRateProcess
        Forward-rate schedule; the covariance proxy is attached to it.
    volatility_model : VolatilityModel
    correlation_model : CorrelationModel
    **integration
        ``tolerance``, ``max_evaluations`` and ``intervals`` for the
        covariance quadrature fallback.
    """

    def __init__(
        self,
        process: ForwardRateProcess,
        volatility_model: VolatilityModel,
        correlation_model: CorrelationModel,
        **integration,
    ):
        if volatility_model.size != process.size:
            raise ConfigurationError(
                f"volatility model size ({volatility_model.size}) does not match "
                f"process size ({process.size})"
            )
        self.process = process
        self.volatility_model = volatility_model
        self.correlation_model = correlation_model
        self.covariance_proxy = CovarianceProxy(volatility_model, correlation_model, **integration)
        process.set_covariance_parameterization(self.covariance_proxy)

        self._layout = ParameterLayout(
            {
                "volatility": volatility_model.parameters,
                "correlation": correlation_model.parameters,
            }
        )
        self._swaption_vols: VersionedCache[SwaptionVolatilityMatrix] = VersionedCache()

        tau = np.asarray(process.accrual_end_times) - np.asarray(process.accrual_start_times)
        self._tenors = tau
        self._discount_factors = 1.0 / (1.0 + tau * np.asarray(process.initial_values()))

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------
    @property
    def parameter_layout(self) -> ParameterLayout:
        return self._layout

    @property
    def params(self) -> Array:
        """Volatility parameters followed by correlation parameters."""
        return self._layout.values()

    def set_params(self, values) -> None:
        self._layout.set_values(values)

    @property
    def version(self) -> Tuple[int, ...]:
        return self._layout.version

    # ------------------------------------------------------------------
    # Discounting
    # ------------------------------------------------------------------
    def discount(self, t: float) -> float:
        if self.process.curve is None:
            raise ConfigurationError("a discount curve is required for discounting")
        return float(self.process.curve.discount(t))

    def discount_bond(self, t: float, maturity: float) -> float:
        """Forward discount factor ``P(t, maturity) = P(maturity) / P(t)``."""
        return self.discount(maturity) / self.discount(t)

    # ------------------------------------------------------------------
    # Bond options and caplets
    # ------------------------------------------------------------------
    def discount_bond_option(
        self,
        option_type: OptionType,
        strike: float,
        maturity: float,
        bond_maturity: float,
    ) -> float:
        """Option on a zero bond expiring at ``maturity`` and maturing at ``bond_maturity``.

        Both times must coincide with the accrual start and end of one
        schedule period. A put on the bond with strike ``X`` is a caplet on
        the period rate with strike ``(1/X - 1)/τ`` scaled by ``X``.
        """
        option_type = OptionType(option_type)
        if strike <= 0.0:
            raise ConfigurationError(f"bond option strike must be positive, got {strike}")
        starts = self.process.accrual_start_times
        ends = self.process.accrual_end_times
        if not (starts[0] - _TIME_TOLERANCE <= maturity <= starts[-1] + _TIME_TOLERANCE):
            raise ScheduleMismatchError(
                f"option maturity {maturity} outside [{starts[0]}, {starts[-1]}]"
            )
        i = clamp_index(successor_index(starts, maturity - _TIME_TOLERANCE), 0, len(starts) - 1)
        if abs(maturity - starts[i]) > _TIME_TOLERANCE or abs(bond_maturity - ends[i]) > _TIME_TOLERANCE:
            raise ScheduleMismatchError(
                f"irregular fixings are not supported: ({maturity}, {bond_maturity}) "
                f"does not match period {i} ({starts[i]}, {ends[i]})"
            )

        tenor = ends[i] - starts[i]
        forward = float(self.process.initial_values()[i])
        cap_rate = (1.0 / strike - 1.0) / tenor
        variance = self.covariance_proxy.integrated_covariance_at(
            i, i, self.process.fixing_times[i]
        )
        if variance < -_VARIANCE_TOLERANCE:
            raise NumericalConvergenceError(
                f"negative integrated variance {variance:.3g} for period {i}"
            )
        discount = self.discount(bond_maturity)
        black = black_formula(
            option_type.opposite(), cap_rate, forward, math.sqrt(max(variance, 0.0))
        )
        return discount * tenor * black / (1.0 + cap_rate * tenor)

    def caplet_volatility(self, i: int) -> float:
        """Model Black volatility of the caplet on rate ``i``."""
        t = self.process.fixing_times[i]
        if t <= 0.0:
            raise ScheduleMismatchError(f"rate {i} has already fixed")
        variance = self.covariance_proxy.integrated_covariance_at(i, i, t)
        return math.sqrt(variance / t)

    # ------------------------------------------------------------------
    # Swaps and swaptions
    # ------------------------------------------------------------------
    def swap_weights(self, alpha: int, beta: int) -> Array:
        """Weights ``w_i`` expressing ``S_{α,β}(0) = Σ w_i L_i(0)``.

        Returns a vector of length ``beta + 1`` with zeros outside
        ``alpha + 1 .. beta``.
        """
        if not 0 <= alpha < beta < self.process.size:
            raise ConfigurationError(
                f"swap indices must satisfy 0 <= alpha < beta < {self.process.size}"
            )
        f = self._discount_factors
        weights = np.zeros(beta + 1)
        for i in range(alpha + 1, beta + 1):
            weights[i] = self._tenors[i] * np.prod(f[alpha + 1:i + 1])
        return jnp.asarray(weights / weights.sum())

    def forward_swap_rate(self, alpha: int, beta: int) -> float:
        w = np.asarray(self.swap_weights(alpha, beta))
        rates = np.asarray(self.process.initial_values())[: beta + 1]
        return float(np.dot(w, rates))

    def swaption_volatility_matrix(self) -> SwaptionVolatilityMatrix:
        """Rebonato approximation, rebuilt only after a parameter change."""
        return self._swaption_vols.get(self.version, self._build_swaption_matrix)

    def _build_swaption_matrix(self) -> SwaptionVolatilityMatrix:
        process = self.process
        size = process.size // 2
        if size < 1:
            raise ScheduleMismatchError("need at least two rates for a swaption matrix")
        rates = np.asarray(process.initial_values())
        fixing_dates = process.fixing_dates
        fixing_times = process.fixing_times

        vols = np.zeros((size, size))
        for k in range(size):
            alpha = k
            t_alpha = fixing_times[alpha + 1]
            idx = np.arange(alpha + 1, k + size + 1)
            var = np.asarray(
                [
                    [self.covariance_proxy.integrated_covariance_at(int(i), int(j), t_alpha) for j in idx]
                    for i in idx
                ]
            )
            for length in range(1, size + 1):
                beta = length + k
                w = np.asarray(self.swap_weights(alpha, beta))
                sub = slice(0, beta - alpha)
                wl = w[alpha + 1: beta + 1] * rates[alpha + 1: beta + 1]
                total = float(wl @ var[sub, sub] @ wl)
                swap_rate = float(np.dot(w, rates[: beta + 1]))
                vols[k, length - 1] = math.sqrt(total / t_alpha) / swap_rate

        logger.debug("swaption volatility matrix rebuilt for version %s", self.version)
        return SwaptionVolatilityMatrix(
            reference_date=fixing_dates[0],
            exercise_dates=tuple(fixing_dates[i + 1] for i in range(size)),
            exercise_times=tuple(fixing_times[i + 1] for i in range(size)),
            lengths=tuple(range(1, size + 1)),
            volatilities=jnp.asarray(vols),
        )

    # ------------------------------------------------------------------
    # Calibration
    # ------------------------------------------------------------------
    def calibrate(
        self,
        helpers: Sequence,
        *,
        max_nfev: Optional[int] = 200,
        ftol: float = 1e-10,
        xtol: float = 1e-10,
    ) -> CalibrationResult:
        """Fit the flat parameter vector to the helpers' market volatilities.

        Parameters are optimised in unconstrained coordinates given by each
        parameter's transform, so every trial point is admissible.
        """
        if not helpers:
            raise ConfigurationError("at least one calibration helper is required")
        specs = self._layout.specs()
        if not specs:
            raise ConfigurationError("model has no free parameters")
        transforms = [spec.constraint.transform for spec in specs]
        start = np.asarray(self.params)

        def to_params(z: np.ndarray) -> np.ndarray:
            return np.asarray([float(tr.apply(v)) for tr, v in zip(transforms, z)])

        def residuals(z: np.ndarray) -> np.ndarray:
            self.set_params(to_params(z))
            return np.asarray([helper.calibration_error(self) for helper in helpers])

        z0 = np.asarray([float(tr.invert(v)) for tr, v in zip(transforms, start)])
        try:
            result = least_squares(residuals, z0, method="trf", ftol=ftol, xtol=xtol, max_nfev=max_nfev)
        except Exception:
            self.set_params(start)
            raise
        self.set_params(to_params(result.x))

        names = self._layout.names()
        outcome = CalibrationResult(
            params=dict(zip(names, (float(v) for v in self.params))),
            cost=float(result.cost),
            converged=bool(result.success),
            iterations=int(result.nfev),
            message=str(result.message),
        )
        logger.info(
            "calibration finished: cost=%.3e converged=%s evaluations=%d",
            outcome.cost,
            outcome.converged,
            outcome.iterations,
        )
        return outcome
