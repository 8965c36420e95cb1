"""Pydantic-based configuration schemas and helpers."""
from __future__ import annotations

import datetime
from pathlib import Path
from typing import Annotated, Iterable, List, Literal, Optional, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from liborkit.core.utils.dates import convention_from_name, day_counter_from_name


class SimulationSettings(BaseModel):
    """Monte Carlo settings parsed from YAML."""

    model_config = ConfigDict(extra="forbid")

    steps: int = Field(gt=0, description="Grid intervals up to the last fixing")
    paths: int = Field(gt=0, description="Number of Monte Carlo paths")
    seed: int = Field(default=42, ge=0, description="Seed for PRNG initialisation")
    antithetic: bool = Field(default=False, description="Use antithetic variance reduction")

    @model_validator(mode="after")
    def validate_antithetic(self) -> "SimulationSettings":
        if self.antithetic and self.paths % 2 != 0:
            raise ValueError("Antithetic sampling requires an even number of paths")
        return self


class IntegrationSettings(BaseModel):
    """Quadrature controls for integrated covariances without a closed form."""

    model_config = ConfigDict(extra="forbid")

    tolerance: float = Field(default=1e-10, gt=0, description="Absolute tolerance")
    max_evaluations: int = Field(default=10_000, ge=63, description="Budget per sub-interval")
    intervals: int = Field(default=64, gt=0, description="Equal sub-intervals of [0, t]")


class CurveSettings(BaseModel):
    """Discount curve: a flat rate or zero-rate nodes."""

    model_config = ConfigDict(extra="forbid")

    kind: Literal["flat", "zero"] = "flat"
    rate: Optional[float] = Field(default=None, description="Continuously compounded flat rate")
    times: List[float] = Field(default_factory=list)
    rates: List[float] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_nodes(self) -> "CurveSettings":
        if self.kind == "flat":
            if self.rate is None:
                raise ValueError("flat curve requires 'rate'")
        else:
            if not self.times or len(self.times) != len(self.rates):
                raise ValueError("zero curve requires matching, non-empty 'times' and 'rates'")
            if any(t1 <= t0 for t0, t1 in zip(self.times[:-1], self.times[1:])):
                raise ValueError("zero curve times must be strictly increasing")
        return self


class ScheduleSettings(BaseModel):
    """Layout of the forward-rate schedule."""

    model_config = ConfigDict(extra="forbid")

    settlement_date: datetime.date
    size: int = Field(ge=2, description="Number of forward rates")
    tenor_months: int = Field(default=6, gt=0)
    fixing_days: int = Field(default=2, ge=0)
    day_count: str = Field(default="ACT/360")
    calendar: Literal["null", "weekends"] = "weekends"
    convention: str = Field(default="modified_following")

    @field_validator("day_count")
    @classmethod
    def validate_day_count(cls, value: str) -> str:
        day_counter_from_name(value)
        return value

    @field_validator("convention")
    @classmethod
    def validate_convention(cls, value: str) -> str:
        convention_from_name(value)
        return value


class ExponentialCorrelationSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: Literal["exponential"]
    beta: float = Field(ge=0)
    factors: Optional[int] = Field(default=None, gt=0)


class LinearExponentialCorrelationSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: Literal["linear_exponential"]
    alpha: float = Field(ge=-1.0, le=1.0)
    beta: float = Field(ge=0)
    factors: Optional[int] = Field(default=None, gt=0)


CorrelationSettings = Annotated[
    Union[ExponentialCorrelationSettings, LinearExponentialCorrelationSettings],
    Field(discriminator="kind"),
]


class FixedVolatilitySettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: Literal["fixed"]
    volatilities: List[float]

    @field_validator("volatilities")
    @classmethod
    def validate_volatilities(cls, value: List[float]) -> List[float]:
        if any(v < 0 for v in value):
            raise ValueError("volatilities must be non-negative")
        return value


class LinearExponentialVolatilitySettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: Literal["linear_exponential"]
    a: float = Field(ge=0)
    b: float = Field(ge=0)
    c: float = Field(ge=0)
    d: float = Field(ge=0)


VolatilitySettings = Annotated[
    Union[FixedVolatilitySettings, LinearExponentialVolatilitySettings],
    Field(discriminator="kind"),
]


class LMMConfig(BaseModel):
    """Top-level configuration of a LIBOR market model run."""

    model_config = ConfigDict(extra="forbid")

    curve: CurveSettings
    schedule: ScheduleSettings
    correlation: CorrelationSettings
    volatility: VolatilitySettings
    simulation: Optional[SimulationSettings] = None
    integration: IntegrationSettings = Field(default_factory=IntegrationSettings)

    @model_validator(mode="after")
    def validate_sizes(self) -> "LMMConfig":
        size = self.schedule.size
        if isinstance(self.volatility, FixedVolatilitySettings) and len(self.volatility.volatilities) != size:
            raise ValueError(
                f"fixed volatility needs {size} entries, got {len(self.volatility.volatilities)}"
            )
        factors = self.correlation.factors
        if factors is not None and factors > size:
            raise ValueError(f"factors ({factors}) cannot exceed the number of rates ({size})")
        return self

    def to_mc_config(self):
        """Convert to the internal :class:`~liborkit.core.engine.MCConfig`."""
        from liborkit.core.engine import MCConfig

        if self.simulation is None:
            raise ValueError("configuration has no 'simulation' section")
        return MCConfig(
            steps=self.simulation.steps,
            paths=self.simulation.paths,
            antithetic=self.simulation.antithetic,
        )


class ConfigValidationError(RuntimeError):
    """Raised when one or more configuration files fail validation."""

    def __init__(self, errors: list[tuple[Path, ValidationError]]):
        message_lines = ["Configuration validation failed:"]
        for path, error in errors:
            message_lines.append(f"- {path}: {error}")
        super().__init__("\n".join(message_lines))
        self.errors = errors


def _load_yaml(path: Path) -> dict:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration at {path} must contain a mapping")
    return data


def load_config(path: Path | str) -> LMMConfig:
    """Load a configuration file into an :class:`LMMConfig`."""
    target = Path(path)
    payload = _load_yaml(target)
    return LMMConfig.model_validate(payload)


def discover_config_files(paths: Iterable[Path | str]) -> list[Path]:
    """Discover YAML configuration files from provided paths."""
    discovered: list[Path] = []
    seen = set()
    for raw_path in paths:
        path = Path(raw_path)
        if path.is_file() and path.suffix in {".yml", ".yaml"}:
            candidates = [path]
        elif path.is_dir():
            candidates = [c for pattern in ("*.yml", "*.yaml") for c in sorted(path.rglob(pattern))]
        else:
            candidates = []
        for candidate in candidates:
            resolved = candidate.resolve()
            if resolved not in seen:
                discovered.append(resolved)
                seen.add(resolved)
    return discovered


def collect_and_validate(paths: Iterable[Path | str]) -> list[LMMConfig]:
    """Validate all configuration files under the given paths."""
    files = discover_config_files(paths)
    errors: list[tuple[Path, ValidationError]] = []
    configs: list[LMMConfig] = []
    for file in files:
        try:
            configs.append(load_config(file))
        except ValidationError as error:
            errors.append((file, error))
    if errors:
        raise ConfigValidationError(errors)
    return configs


__all__ = [
    "SimulationSettings",
    "IntegrationSettings",
    "CurveSettings",
    "ScheduleSettings",
    "ExponentialCorrelationSettings",
    "LinearExponentialCorrelationSettings",
    "CorrelationSettings",
    "FixedVolatilitySettings",
    "LinearExponentialVolatilitySettings",
    "VolatilitySettings",
    "LMMConfig",
    "load_config",
    "discover_config_files",
    "collect_and_validate",
    "ConfigValidationError",
]
