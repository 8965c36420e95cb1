"""Covariance parameterizations of the forward-rate vector.

A parameterization supplies, for every time ``t``, the diffusion matrix
``D(t)`` (``size × factors``), the instantaneous covariance ``D Dᵀ`` and the
integrated covariance ``∫_0^t D(u) D(u)ᵀ du``.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional

import jax.numpy as jnp
import numpy as np

from liborkit.errors import ConfigurationError, UnsupportedOperationError
from liborkit.math.integrate import (
    DEFAULT_MAX_EVALUATIONS,
    DEFAULT_SUBINTERVALS,
    DEFAULT_TOLERANCE,
    integrate_subintervals,
)
from liborkit.models.lmm.correlation import CorrelationModel
from liborkit.models.lmm.volatility import VolatilityModel

Array = jnp.ndarray

logger = logging.getLogger(__name__)

__all__ = ["CovarianceParameterization", "CovarianceProxy"]


class CovarianceParameterization(ABC):
    """Abstract covariance structure of ``size`` rates driven by ``factors`` Brownians.

    Parameters
    ----------
    size : int
        Number of forward rates.
    factors : int
        Number of driving factors, ``1 <= factors <= size``.
    tolerance : float
        Absolute tolerance of the numerical integration fallback.
    max_evaluations : int
        Integrand evaluation budget per sub-interval.
    intervals : int
        Number of equal sub-intervals the integration range is split into.
    """

    def __init__(
        self,
        size: int,
        factors: int,
        *,
        tolerance: float = DEFAULT_TOLERANCE,
        max_evaluations: int = DEFAULT_MAX_EVALUATIONS,
        intervals: int = DEFAULT_SUBINTERVALS,
    ):
        if size < 1:
            raise ConfigurationError("size must be positive")
        if not 1 <= factors <= size:
            raise ConfigurationError(f"factors must be in [1, {size}], got {factors}")
        self._size = size
        self._factors = factors
        self.tolerance = tolerance
        self.max_evaluations = max_evaluations
        self.intervals = intervals

    @property
    def size(self) -> int:
        return self._size

    @property
    def factors(self) -> int:
        return self._factors

    @abstractmethod
    def diffusion(self, t: float, x=None) -> Array:
        """``size × factors`` diffusion matrix at time ``t``."""

    def covariance(self, t: float, x=None) -> Array:
        d = self.diffusion(t, x)
        return d @ d.T

    def integrated_covariance(self, t: float, x=None) -> Array:
        """``∫_0^t D(u) D(u)ᵀ du`` by adaptive quadrature of the lower triangle."""
        n = self._size
        if t <= 0.0:
            return jnp.zeros((n, n), dtype=jnp.float64)
        rows, cols = np.tril_indices(n)

        def integrand(u: float) -> np.ndarray:
            d = np.asarray(self.diffusion(u, x))
            return np.einsum("kf,kf->k", d[rows], d[cols])

        result = integrate_subintervals(
            integrand,
            0.0,
            t,
            intervals=self.intervals,
            tolerance=self.tolerance,
            max_evaluations=self.max_evaluations,
        )
        out = np.zeros((n, n))
        out[rows, cols] = result.value
        out[cols, rows] = result.value
        return jnp.asarray(out)


class CovarianceProxy(CovarianceParameterization):
    """Covariance assembled from a volatility model and a correlation model.

    ``covariance = diag(σ) ρ diag(σ)`` and ``diffusion = diag(σ) B`` where
    ``B`` is the correlation pseudo square root.
    """

    def __init__(
        self,
        volatility_model: VolatilityModel,
        correlation_model: CorrelationModel,
        **integration,
    ):
        if volatility_model.size != correlation_model.size:
            raise ConfigurationError(
                f"volatility model size ({volatility_model.size}) and correlation "
                f"model size ({correlation_model.size}) must be equal"
            )
        super().__init__(volatility_model.size, correlation_model.factors, **integration)
        self.volatility_model = volatility_model
        self.correlation_model = correlation_model

    def diffusion(self, t: float, x=None) -> Array:
        vol = self.volatility_model.volatility(t, x)
        return vol[:, None] * self.correlation_model.pseudo_sqrt(t, x)

    def covariance(self, t: float, x=None) -> Array:
        vol = self.volatility_model.volatility(t, x)
        return vol[:, None] * self.correlation_model.correlation(t, x) * vol[None, :]

    def integrated_covariance_at(self, i: int, j: int, t: float, x=None) -> float:
        """``∫_0^t σ_i(u) ρ_ij(u) σ_j(u) du``."""
        if self.correlation_model.is_time_independent():
            try:
                rho = self.correlation_model.correlation_at(i, j, 0.0, x)
                return rho * self.volatility_model.integrated_variance(j, i, t, x)
            except UnsupportedOperationError:
                logger.debug(
                    "no closed form for (%d, %d) at t=%s, integrating numerically", i, j, t
                )

        if x is not None and len(x) > 0:
            raise UnsupportedOperationError(
                "numerical integration of the covariance does not support a state vector"
            )
        if t <= 0.0:
            return 0.0

        vol = self.volatility_model
        corr = self.correlation_model

        def integrand(u: float) -> float:
            return vol.volatility_at(i, u) * corr.correlation_at(i, j, u) * vol.volatility_at(j, u)

        result = integrate_subintervals(
            integrand,
            0.0,
            t,
            intervals=self.intervals,
            tolerance=self.tolerance,
            max_evaluations=self.max_evaluations,
        )
        return float(result.value)

    def integrated_covariance(self, t: float, x=None) -> Array:
        n = self._size
        out = np.zeros((n, n))
        for i in range(n):
            for j in range(i + 1):
                out[i, j] = out[j, i] = self.integrated_covariance_at(i, j, t, x)
        return jnp.asarray(out)
