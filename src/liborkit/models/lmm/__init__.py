"""LIBOR market model: correlation, volatility, covariance, process and model."""

from liborkit.models.lmm.builder import build_curve, build_model, build_process
from liborkit.models.lmm.calibration import (
    CalibrationHelper,
    CalibrationResult,
    CapletHelper,
    SwaptionHelper,
)
from liborkit.models.lmm.correlation import (
    CorrelationModel,
    ExponentialCorrelationModel,
    LinearExponentialCorrelationModel,
)
from liborkit.models.lmm.covariance import CovarianceParameterization, CovarianceProxy
from liborkit.models.lmm.hull_white import HullWhiteParameterization
from liborkit.models.lmm.model import LiborForwardModel, SwaptionVolatilityMatrix
from liborkit.models.lmm.parameters import ParameterBlock, ParameterLayout, ParameterSpec
from liborkit.models.lmm.pricing import caplet_npvs, ratchet_npvs, simulate_fixings
from liborkit.models.lmm.process import ForwardRateProcess
from liborkit.models.lmm.volatility import (
    FixedVolatilityModel,
    LinearExponentialVolatilityModel,
    VolatilityModel,
)

__all__ = [
    "CalibrationHelper",
    "CalibrationResult",
    "CapletHelper",
    "CorrelationModel",
    "CovarianceParameterization",
    "CovarianceProxy",
    "ExponentialCorrelationModel",
    "FixedVolatilityModel",
    "ForwardRateProcess",
    "HullWhiteParameterization",
    "LiborForwardModel",
    "LinearExponentialCorrelationModel",
    "LinearExponentialVolatilityModel",
    "ParameterBlock",
    "ParameterLayout",
    "ParameterSpec",
    "SwaptionHelper",
    "SwaptionVolatilityMatrix",
    "VolatilityModel",
    "build_curve",
    "build_model",
    "build_process",
    "caplet_npvs",
    "ratchet_npvs",
    "simulate_fixings",
]
