"""Numerical building blocks: matrix square roots and quadrature."""

from liborkit.math.integrate import IntegrationResult, adaptive_integrate, integrate_subintervals
from liborkit.math.linalg import (
    SalvagingAlgorithm,
    nearest_correlation,
    normalize_pseudo_root,
    pseudo_sqrt,
    rank_reduced_sqrt,
)

__all__ = [
    "IntegrationResult",
    "SalvagingAlgorithm",
    "adaptive_integrate",
    "integrate_subintervals",
    "nearest_correlation",
    "normalize_pseudo_root",
    "pseudo_sqrt",
    "rank_reduced_sqrt",
]
