"""Exception hierarchy shared by the LIBOR market model components.

Four failure kinds are distinguished so that callers can tell a bad input
apart from a numerical breakdown:

* :class:`ConfigurationError` - invalid parameter domain, mismatched model
  sizes or other construction-time problems.
* :class:`NumericalConvergenceError` - quadrature exceeding its evaluation
  budget, infeasible calibration steps.
* :class:`ScheduleMismatchError` - irregular cash flows, maturities missing
  from the schedule, out-of-range time queries.
* :class:`UnsupportedOperationError` - an operation the concrete model cannot
  provide (e.g. a closed form that does not exist).

Each class also derives from the closest builtin so existing ``except
ValueError`` style handlers keep working.
"""

from __future__ import annotations

__all__ = [
    "LiborKitError",
    "ConfigurationError",
    "NumericalConvergenceError",
    "CalibrationError",
    "ScheduleMismatchError",
    "UnsupportedOperationError",
]


class LiborKitError(Exception):
    """Base class for all library errors."""


class ConfigurationError(LiborKitError, ValueError):
    """Raised when a model is constructed or updated with invalid inputs."""


class NumericalConvergenceError(LiborKitError, ArithmeticError):
    """Raised when a numerical routine fails to produce a reliable result."""


class CalibrationError(NumericalConvergenceError):
    """Raised when a calibration step has no feasible solution."""


class ScheduleMismatchError(LiborKitError, LookupError):
    """Raised when a request does not fit the forward-rate schedule."""


class UnsupportedOperationError(LiborKitError, NotImplementedError):
    """Raised when a model cannot provide the requested quantity."""
