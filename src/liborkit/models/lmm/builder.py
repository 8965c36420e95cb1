"""Assemble a :class:`LiborForwardModel` from validated configuration."""
from __future__ import annotations

import logging

from liborkit.core.config.schemas import (
    CurveSettings,
    ExponentialCorrelationSettings,
    FixedVolatilitySettings,
    LMMConfig,
    ScheduleSettings,
)
from liborkit.core.utils.dates import (
    NullCalendar,
    ScheduleSpec,
    WeekendsOnly,
    convention_from_name,
    day_counter_from_name,
    libor_schedule,
)
from liborkit.market.curves import FlatCurve, ZeroCurve
from liborkit.models.lmm.correlation import (
    CorrelationModel,
    ExponentialCorrelationModel,
    LinearExponentialCorrelationModel,
)
from liborkit.models.lmm.model import LiborForwardModel
from liborkit.models.lmm.process import ForwardRateProcess
from liborkit.models.lmm.volatility import (
    FixedVolatilityModel,
    LinearExponentialVolatilityModel,
    VolatilityModel,
)

logger = logging.getLogger(__name__)

__all__ = ["build_curve", "build_process", "build_model"]


def build_curve(settings: CurveSettings):
    if settings.kind == "flat":
        return FlatCurve(settings.rate)
    return ZeroCurve(settings.times, settings.rates)


def _schedule_spec(settings: ScheduleSettings) -> ScheduleSpec:
    calendar = WeekendsOnly() if settings.calendar == "weekends" else NullCalendar()
    return ScheduleSpec(
        tenor_months=settings.tenor_months,
        fixing_days=settings.fixing_days,
        calendar=calendar,
        convention=convention_from_name(settings.convention),
        day_counter=day_counter_from_name(settings.day_count),
    )


def build_process(config: LMMConfig) -> ForwardRateProcess:
    curve = build_curve(config.curve)
    spec = _schedule_spec(config.schedule)
    entries = libor_schedule(curve, config.schedule.settlement_date, config.schedule.size, spec)
    return ForwardRateProcess(
        entries,
        spec.day_counter,
        settlement_date=config.schedule.settlement_date,
        curve=curve,
    )


def _correlation(config: LMMConfig) -> CorrelationModel:
    settings = config.correlation
    size = config.schedule.size
    if isinstance(settings, ExponentialCorrelationSettings):
        return ExponentialCorrelationModel(size, settings.beta, settings.factors)
    return LinearExponentialCorrelationModel(size, settings.alpha, settings.beta, settings.factors)


def _volatility(config: LMMConfig, process: ForwardRateProcess) -> VolatilityModel:
    settings = config.volatility
    if isinstance(settings, FixedVolatilitySettings):
        return FixedVolatilityModel(settings.volatilities, process.fixing_times)
    return LinearExponentialVolatilityModel(
        process.fixing_times, settings.a, settings.b, settings.c, settings.d
    )


def build_model(config: LMMConfig) -> LiborForwardModel:
    """Curve, schedule, process and covariance proxy described by ``config``."""
    process = build_process(config)
    model = LiborForwardModel(
        process,
        _volatility(config, process),
        _correlation(config),
        tolerance=config.integration.tolerance,
        max_evaluations=config.integration.max_evaluations,
        intervals=config.integration.intervals,
    )
    logger.info(
        "built LIBOR forward model with %d rates and %d factors",
        process.size,
        process.factors,
    )
    return model
