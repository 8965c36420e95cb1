"""Hull-White time-homogeneous parameterization bootstrapped from caplets.

Volatility depends only on the number of reset periods ``k`` left before a
rate fixes: ``σ_i(t) = λ_{i-m(t)}`` for the first unfixed index ``m(t)``.
The ``λ`` are stripped sequentially so that each caplet's integrated
variance matches its market Black variance.

References
----------
Hull, J. & White, A. (1999). "Forward rate volatilities, swap rate
volatilities and the implementation of the LIBOR market model."
"""
from __future__ import annotations

import logging
import math
from typing import Optional, Tuple

import jax.numpy as jnp
import numpy as np

from liborkit.core.utils.search import predecessor_index
from liborkit.errors import CalibrationError, ConfigurationError
from liborkit.market.caplet_volatility import CapletVolatilityStructure
from liborkit.math.linalg import SalvagingAlgorithm, pseudo_sqrt
from liborkit.models.lmm.covariance import CovarianceParameterization

Array = jnp.ndarray

logger = logging.getLogger(__name__)

__all__ = ["HullWhiteParameterization"]


class HullWhiteParameterization(CovarianceParameterization):
    """Covariance of a forward-rate process calibrated to caplet volatilities.

    Parameters
    ----------
    process : ForwardRateProcess
        Supplies fixing dates, fixing times and the reset index.
    caplet_volatility : CapletVolatilityStructure
        Market caplet volatilities read at each fixing date.
    correlation : array_like, optional
        Target ``(size-1) × (size-1)`` correlation of the unfixed rates.
        Without it every rate loads on a single factor.
    factors : int
        Number of factors retained from the correlation root.

    Raises
    ------
    CalibrationError
        If some caplet variance is smaller than the variance already
        accumulated from shorter-dated ``λ`` (no real solution).
    """

    def __init__(
        self,
        process,
        caplet_volatility: CapletVolatilityStructure,
        correlation=None,
        factors: int = 1,
    ):
        size = process.size
        if size < 2:
            raise ConfigurationError("Hull-White parameterization needs at least two rates")
        super().__init__(size, factors)
        self._process = process

        if correlation is None:
            if factors != 1:
                raise ConfigurationError("correlation matrix must be given for multi factor models")
            sqrt_corr = np.ones((size - 1, 1))
        else:
            corr = np.asarray(correlation, dtype=np.float64)
            if corr.shape != (size - 1, size - 1):
                raise ConfigurationError(
                    f"correlation must be {size - 1}x{size - 1}, got {corr.shape}"
                )
            if factors > size - 1:
                raise ConfigurationError(f"factors must be at most {size - 1}")
            root = np.asarray(pseudo_sqrt(corr, SalvagingAlgorithm.SPECTRAL))[:, :factors]
            norms = np.linalg.norm(root, axis=1)
            if np.any(norms == 0.0):
                raise ConfigurationError("correlation root has a zero row")
            sqrt_corr = root / norms[:, None]

        self._lambdas = self._bootstrap(caplet_volatility)
        self._diffusion = sqrt_corr * np.asarray(self._lambdas)[:, None]
        self._covariance = self._diffusion @ self._diffusion.T

    def _bootstrap(self, caplet_volatility: CapletVolatilityStructure) -> Tuple[float, ...]:
        fixing_times = self._process.fixing_times
        fixing_dates = self._process.fixing_dates
        dc = caplet_volatility.day_counter
        first_period = fixing_times[1] - fixing_times[0]

        lambdas = []
        for i in range(1, self._size):
            cum_var = sum(
                lambdas[i - j - 1] ** 2 * (fixing_times[j + 1] - fixing_times[j])
                for j in range(1, i)
            )
            vol = caplet_volatility.volatility(fixing_dates[i])
            target = vol * vol * dc.year_fraction(fixing_dates[0], fixing_dates[i])
            residual = target - cum_var
            if residual < 0.0:
                raise CalibrationError(
                    f"caplet variance {target:.6g} at fixing {i} is below the accumulated "
                    f"variance {cum_var:.6g}; no real Hull-White volatility exists"
                )
            lam = math.sqrt(residual / first_period)
            logger.debug("Hull-White lambda[%d] = %.8f", i - 1, lam)
            lambdas.append(lam)
        return tuple(lambdas)

    @property
    def lambdas(self) -> Tuple[float, ...]:
        """Bootstrapped volatilities indexed by periods to fixing minus one."""
        return self._lambdas

    def _first_unfixed(self, t: float) -> int:
        return max(self._process.next_index_reset(t), 1)

    def diffusion(self, t: float, x=None) -> Array:
        m = self._first_unfixed(t)
        n = self._size
        out = np.zeros((n, self._factors))
        out[m:, :] = self._diffusion[: n - m, :]
        return jnp.asarray(out)

    def covariance(self, t: float, x=None) -> Array:
        m = self._first_unfixed(t)
        n = self._size
        out = np.zeros((n, n))
        out[m:, m:] = self._covariance[: n - m, : n - m]
        return jnp.asarray(out)

    def integrated_covariance(self, t: float, x=None) -> Array:
        fixing_times = self._process.fixing_times
        n = self._size
        out = np.zeros((n, n))
        last = predecessor_index(fixing_times, t)
        for i in range(last + 1):
            end = fixing_times[i + 1] if i < last else t
            dt = end - fixing_times[i]
            out[i + 1:, i + 1:] += self._covariance[: n - 1 - i, : n - 1 - i] * dt
        return jnp.asarray(out)
