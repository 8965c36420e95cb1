"""Adaptive quadrature with an explicit evaluation budget.

Thin layer over :func:`scipy.integrate.quad_vec` (globally adaptive
Gauss-Kronrod 21-point rule) that reports how many integrand evaluations
were spent and converts an exhausted budget into
:class:`~liborkit.errors.NumericalConvergenceError` instead of returning an
unreliable number.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Union

import numpy as np
from scipy.integrate import quad_vec

from liborkit.errors import ConfigurationError, NumericalConvergenceError

logger = logging.getLogger(__name__)

__all__ = [
    "IntegrationResult",
    "adaptive_integrate",
    "integrate_subintervals",
    "DEFAULT_TOLERANCE",
    "DEFAULT_MAX_EVALUATIONS",
    "DEFAULT_SUBINTERVALS",
]

DEFAULT_TOLERANCE = 1e-10
DEFAULT_MAX_EVALUATIONS = 10_000
DEFAULT_SUBINTERVALS = 64

_KRONROD_POINTS = 21
_MIN_EVALUATIONS = 3 * _KRONROD_POINTS

# quad_vec status codes
_NOT_CONVERGED = 1
_ROUNDING_ERROR = 2
_NOT_A_NUMBER = 3

Value = Union[float, np.ndarray]


@dataclass(frozen=True)
class IntegrationResult:
    """Outcome of a quadrature call."""

    value: Value
    error: float
    evaluations: int

    def __add__(self, other: "IntegrationResult") -> "IntegrationResult":
        return IntegrationResult(
            value=self.value + other.value,
            error=self.error + other.error,
            evaluations=self.evaluations + other.evaluations,
        )


def adaptive_integrate(
    f: Callable[[float], Value],
    a: float,
    b: float,
    *,
    tolerance: float = DEFAULT_TOLERANCE,
    max_evaluations: int = DEFAULT_MAX_EVALUATIONS,
) -> IntegrationResult:
    """Integrate ``f`` over ``[a, b]`` to an absolute ``tolerance``.

    ``f`` may return a scalar or a 1-D array; array outputs are integrated
    component-wise and the tolerance applies to the largest component error.

    Raises
    ------
    NumericalConvergenceError
        If the tolerance cannot be met within ``max_evaluations`` integrand
        calls, or the integrand produced non-finite values.
    """
    if tolerance <= 0.0:
        raise ConfigurationError("tolerance must be positive")
    if max_evaluations < _MIN_EVALUATIONS:
        raise ConfigurationError(f"max_evaluations must be at least {_MIN_EVALUATIONS}")
    if a == b:
        sample = np.asarray(f(a), dtype=np.float64)
        zero = np.zeros_like(sample) if sample.ndim else 0.0
        return IntegrationResult(value=zero, error=0.0, evaluations=1)

    def integrand(u: float) -> Value:
        out = np.asarray(f(u), dtype=np.float64)
        return out if out.ndim else float(out)

    # one rule on [a, b], then two per bisection
    limit = 1 + (max_evaluations - _KRONROD_POINTS) // (2 * _KRONROD_POINTS)
    value, error, info = quad_vec(
        integrand,
        a,
        b,
        epsabs=tolerance,
        epsrel=tolerance,
        norm="max",
        limit=limit,
        full_output=True,
    )
    if info.status == _NOT_A_NUMBER:
        raise NumericalConvergenceError(
            f"non-finite integrand value encountered on [{a}, {b}]"
        )
    if info.status == _NOT_CONVERGED:
        raise NumericalConvergenceError(
            f"evaluation budget of {max_evaluations} exhausted ({info.neval} used) "
            f"integrating over [{a}, {b}], error estimate {error:.3e}"
        )
    if info.status == _ROUNDING_ERROR:
        logger.debug("quadrature on [%s, %s] stopped at rounding error %.3e", a, b, error)
    return IntegrationResult(value=value, error=float(error), evaluations=int(info.neval))


def integrate_subintervals(
    f: Callable[[float], Value],
    a: float,
    b: float,
    *,
    intervals: int = DEFAULT_SUBINTERVALS,
    tolerance: float = DEFAULT_TOLERANCE,
    max_evaluations: int = DEFAULT_MAX_EVALUATIONS,
) -> IntegrationResult:
    """Split ``[a, b]`` into ``intervals`` equal pieces and integrate each adaptively.

    The evaluation budget applies per piece.
    """
    if intervals < 1:
        raise ConfigurationError("intervals must be >= 1")
    edges = np.linspace(a, b, intervals + 1)
    total = None
    for lo, hi in zip(edges[:-1], edges[1:]):
        piece = adaptive_integrate(
            f, float(lo), float(hi), tolerance=tolerance, max_evaluations=max_evaluations
        )
        total = piece if total is None else total + piece
    logger.debug(
        "integrated over [%s, %s] in %d pieces with %d evaluations",
        a,
        b,
        intervals,
        total.evaluations,
    )
    return total
