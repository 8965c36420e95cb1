"""Configuration schemas and YAML loading."""

from liborkit.core.config.schemas import (
    ConfigValidationError,
    CorrelationSettings,
    CurveSettings,
    ExponentialCorrelationSettings,
    FixedVolatilitySettings,
    IntegrationSettings,
    LinearExponentialCorrelationSettings,
    LinearExponentialVolatilitySettings,
    LMMConfig,
    ScheduleSettings,
    SimulationSettings,
    VolatilitySettings,
    collect_and_validate,
    discover_config_files,
    load_config,
)

__all__ = [
    "ConfigValidationError",
    "CorrelationSettings",
    "CurveSettings",
    "ExponentialCorrelationSettings",
    "FixedVolatilitySettings",
    "IntegrationSettings",
    "LinearExponentialCorrelationSettings",
    "LinearExponentialVolatilitySettings",
    "LMMConfig",
    "ScheduleSettings",
    "SimulationSettings",
    "VolatilitySettings",
    "collect_and_validate",
    "discover_config_files",
    "load_config",
]
