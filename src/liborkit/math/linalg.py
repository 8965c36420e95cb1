"""Pseudo square roots of correlation and covariance matrices.

A pseudo square root of a symmetric matrix ``M`` is a matrix ``S`` with
``S Sᵀ = M``. Correlation matrices assembled from parametric forms are not
always exactly positive semi-definite in floating point, so a salvaging
algorithm decides what happens to negative eigenvalues:

* ``NONE``     - require a PSD input and return a Cholesky factor.
* ``SPECTRAL`` - clip negative eigenvalues to zero (principal components).
* ``HIGHAM``   - project onto the nearest correlation matrix first.

References
----------
Rebonato, R. & Jäckel, P. (1999). "The most general methodology to create a
valid correlation matrix for risk management and option pricing purposes."
The Journal of Risk, 2(2).

Higham, N. J. (2002). "Computing the nearest correlation matrix - a problem
from finance." IMA Journal of Numerical Analysis, 22(3), 329-343.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Tuple

import jax.numpy as jnp
import numpy as np

from liborkit.errors import ConfigurationError, NumericalConvergenceError

Array = jnp.ndarray

logger = logging.getLogger(__name__)

__all__ = [
    "SalvagingAlgorithm",
    "cholesky_flexible",
    "nearest_correlation",
    "normalize_pseudo_root",
    "pseudo_sqrt",
    "rank_reduced_sqrt",
]

_EIGENVALUE_FLOOR = -1e-16


class SalvagingAlgorithm(str, Enum):
    """Treatment of negative eigenvalues when taking a pseudo square root."""

    NONE = "none"
    SPECTRAL = "spectral"
    HIGHAM = "higham"


def _as_square(matrix) -> Array:
    arr = jnp.asarray(matrix, dtype=jnp.float64)
    if arr.ndim != 2 or arr.shape[0] != arr.shape[1]:
        raise ConfigurationError(f"non square matrix: shape {arr.shape}")
    return arr


def _sorted_eigh(matrix: Array) -> Tuple[Array, Array]:
    """Eigen-decomposition with eigenvalues in decreasing order."""
    values, vectors = jnp.linalg.eigh(matrix)
    return values[::-1], vectors[:, ::-1]


def normalize_pseudo_root(matrix, root) -> Array:
    """Rescale the rows of ``root`` so that ``diag(root rootᵀ) = diag(matrix)``.

    Rows with zero norm are left untouched.
    """
    matrix = jnp.asarray(matrix)
    root = jnp.asarray(root)
    if matrix.shape[0] != root.shape[0]:
        raise ConfigurationError(
            f"matrix/pseudo mismatch: matrix rows are {matrix.shape[0]} "
            f"while pseudo rows are {root.shape[0]}"
        )
    norms = jnp.sum(root * root, axis=1)
    safe = jnp.where(norms > 0.0, norms, 1.0)
    scale = jnp.where(norms > 0.0, jnp.sqrt(jnp.diag(matrix) / safe), 1.0)
    return root * scale[:, None]


def cholesky_flexible(matrix) -> Array:
    """Lower-triangular factor of a positive semi-definite matrix.

    Unlike :func:`jax.numpy.linalg.cholesky` this tolerates singular inputs:
    a zero pivot yields a zero column instead of ``nan``.
    """
    m = np.asarray(matrix, dtype=np.float64)
    n = m.shape[0]
    result = np.zeros_like(m)
    for i in range(n):
        for j in range(i, n):
            s = m[i, j] - np.dot(result[i, :i], result[j, :i])
            if i == j:
                if s <= 0.0:
                    result[i, i] = 0.0
                else:
                    result[i, i] = np.sqrt(s)
            elif result[i, i] > 0.0:
                result[j, i] = s / result[i, i]
    return jnp.asarray(result)


def _project_psd(matrix: Array) -> Array:
    values, vectors = jnp.linalg.eigh(matrix)
    clipped = jnp.maximum(values, 0.0)
    return (vectors * clipped) @ vectors.T


def _project_unit_diagonal(matrix: Array) -> Array:
    n = matrix.shape[0]
    return matrix.at[jnp.arange(n), jnp.arange(n)].set(1.0)


def _norm_inf(matrix: Array) -> float:
    return float(jnp.max(jnp.sum(jnp.abs(matrix), axis=1)))


def nearest_correlation(matrix, max_iterations: int = 40, tolerance: float = 1e-6) -> Array:
    """Higham's alternating projections onto the nearest correlation matrix."""
    a = _as_square(matrix)
    y = a
    x = a
    delta_s = jnp.zeros_like(a)
    last_x, last_y = x, y
    for iteration in range(max_iterations):
        r = y - delta_s
        x = _project_psd(r)
        delta_s = x - r
        y = _project_unit_diagonal(x)

        norm_x = _norm_inf(x)
        norm_y = _norm_inf(y)
        change = max(
            _norm_inf(x - last_x) / norm_x,
            _norm_inf(y - last_y) / norm_y,
            _norm_inf(y - x) / norm_y,
        )
        if change <= tolerance:
            logger.debug("Higham projection converged after %d iterations", iteration + 1)
            break
        last_x, last_y = x, y
    return 0.5 * (y + y.T)


def pseudo_sqrt(matrix, algorithm: SalvagingAlgorithm = SalvagingAlgorithm.SPECTRAL) -> Array:
    """Return ``S`` (same shape as ``matrix``) with ``S Sᵀ ≈ matrix``.

    Parameters
    ----------
    matrix : array_like
        Symmetric ``n × n`` matrix.
    algorithm : SalvagingAlgorithm
        Treatment of negative eigenvalues.

    Raises
    ------
    ConfigurationError
        If the matrix is not square, or has negative eigenvalues and
        ``algorithm`` is ``NONE``.
    """
    m = _as_square(matrix)
    algorithm = SalvagingAlgorithm(algorithm)

    if algorithm is SalvagingAlgorithm.NONE:
        values, _ = _sorted_eigh(m)
        if float(values[-1]) < _EIGENVALUE_FLOOR:
            raise ConfigurationError(f"negative eigenvalue(s) ({float(values[-1])})")
        return cholesky_flexible(m)

    if algorithm is SalvagingAlgorithm.SPECTRAL:
        values, vectors = _sorted_eigh(m)
        root = vectors * jnp.sqrt(jnp.maximum(values, 0.0))
        return normalize_pseudo_root(m, root)

    adjusted = nearest_correlation(m)
    return cholesky_flexible(adjusted)


def rank_reduced_sqrt(
    matrix,
    max_rank: int,
    component_retained_percentage: float = 1.0,
    algorithm: SalvagingAlgorithm = SalvagingAlgorithm.SPECTRAL,
) -> Array:
    """Return an ``n × k`` pseudo square root with ``k <= max_rank``.

    Principal components are kept in decreasing eigenvalue order until
    ``component_retained_percentage`` of the total variance is explained (at
    least one factor, at most ``max_rank``). Rows are renormalised so the
    diagonal of ``S Sᵀ`` matches the input.
    """
    m = _as_square(matrix)
    size = m.shape[0]
    algorithm = SalvagingAlgorithm(algorithm)

    if component_retained_percentage <= 0.0:
        raise ConfigurationError("no eigenvalues retained")
    if component_retained_percentage > 1.0:
        raise ConfigurationError("percentage to be retained > 100%")
    if max_rank < 1:
        raise ConfigurationError("max rank required < 1")

    if algorithm is SalvagingAlgorithm.HIGHAM:
        m_used = nearest_correlation(m)
    else:
        m_used = m
    values, vectors = _sorted_eigh(m_used)

    if algorithm is SalvagingAlgorithm.NONE:
        if float(values[-1]) < _EIGENVALUE_FLOOR:
            raise ConfigurationError(f"negative eigenvalue(s) ({float(values[-1])})")
    values = jnp.maximum(values, 0.0)

    host_values = np.asarray(values)
    enough = component_retained_percentage * float(host_values.sum())
    if component_retained_percentage == 1.0:
        # rounding may otherwise discard trailing factors
        enough *= 1.1

    components = host_values[0]
    retained = 1
    while components < enough and retained < size:
        components += host_values[retained]
        retained += 1
    retained = min(retained, max_rank)

    root = vectors[:, :retained] * jnp.sqrt(values[:retained])
    root = normalize_pseudo_root(m, root)
    if not bool(jnp.all(jnp.isfinite(root))):
        raise NumericalConvergenceError("rank reduced square root is not finite")
    return root
