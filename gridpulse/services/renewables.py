"""Renewable generation forecasting, dispatch and integration analysis.

Solar and wind output are derived from weather samples with simple
physics-flavoured curves; nothing here is fitted to measured data.
"""

import logging
import math
from collections import defaultdict
from collections.abc import Sequence
from datetime import datetime

import numpy as np
import pytz

from gridpulse.config import settings
from gridpulse.exceptions import InvalidInputError
from gridpulse.schemas.renewables import (
    DispatchRecommendation,
    GenerationForecastPoint,
    IntegrationReport,
    RenewableSource,
    WeatherSample,
)
from gridpulse.services.rounding import round_half_up

logger = logging.getLogger(__name__)

_SUNRISE_HOUR = 6
_SUNSET_HOUR = 18
_MAX_CLOUD_ATTENUATION = 0.7
_DERATING_THRESHOLD_C = 25.0

_CUT_IN_SPEED = 3.0     # m/s
_RATED_SPEED = 12.0     # m/s
_CUT_OUT_SPEED = 25.0   # m/s

_COMPASS_POINTS = ("N", "NE", "E", "SE", "S", "SW", "W", "NW")


def _validate_source(source: RenewableSource) -> None:
    if source.capacity <= 0:
        raise InvalidInputError(
            f"Source {source.id}: capacity must be positive (got {source.capacity})"
        )
    if source.efficiency <= 0:
        raise InvalidInputError(
            f"Source {source.id}: efficiency must be positive (got {source.efficiency})"
        )


def _local_hour(ts: datetime, timezone: str) -> int:
    if ts.tzinfo is None:
        return ts.hour
    return ts.astimezone(pytz.timezone(timezone)).hour


def _horizon(weather: Sequence[WeatherSample], hours_ahead: int | None) -> Sequence[WeatherSample]:
    if hours_ahead is None:
        return weather
    return weather[:hours_ahead]


# ── Solar ─────────────────────────────────────────────────────────────────────

def solar_angle_factor(hour: int) -> float:
    """Fraction of peak irradiance at local *hour*; zero outside daylight."""
    if hour < _SUNRISE_HOUR or hour > _SUNSET_HOUR:
        return 0.0
    return math.sin((hour - _SUNRISE_HOUR) / (_SUNSET_HOUR - _SUNRISE_HOUR) * math.pi)


def describe_sky(sample: WeatherSample) -> str:
    if sample.cloud_cover < 20:
        conditions = ["clear"]
    elif sample.cloud_cover < 50:
        conditions = ["partly cloudy"]
    else:
        conditions = ["cloudy"]

    if sample.temperature > 30:
        conditions.append("hot")
    elif sample.temperature < 10:
        conditions.append("cold")
    return ", ".join(conditions)


def forecast_solar(
    source: RenewableSource,
    weather: Sequence[WeatherSample],
    hours_ahead: int | None = None,
    timezone: str | None = None,
) -> list[GenerationForecastPoint]:
    """One generation point per weather sample for a solar plant."""
    _validate_source(source)
    tz = timezone or settings.grid_timezone
    points = []

    for sample in _horizon(weather, hours_ahead):
        sun = solar_angle_factor(_local_hour(sample.timestamp, tz))
        cloud = 1 - (sample.cloud_cover / 100) * _MAX_CLOUD_ATTENUATION
        derating = 1 - max(0.0, (sample.temperature - _DERATING_THRESHOLD_C) / 100)

        predicted = max(0.0, source.capacity * sun * cloud * derating * source.efficiency / 100)
        # Cloudier skies widen the band
        uncertainty = predicted * (0.1 + sample.cloud_cover / 200)

        points.append(
            GenerationForecastPoint(
                source_id=source.id,
                timestamp=sample.timestamp,
                predicted_power=round(predicted, 2),
                confidence_lower=round(max(0.0, predicted - uncertainty), 2),
                confidence_upper=round(predicted + uncertainty, 2),
                weather_conditions=describe_sky(sample),
            )
        )

    logger.info("Solar forecast for source %d: %d points", source.id, len(points))
    return points


# ── Wind ──────────────────────────────────────────────────────────────────────

def wind_power_factor(speed: float) -> float:
    """Turbine power curve as a fraction of rated output."""
    if speed < _CUT_IN_SPEED or speed > _CUT_OUT_SPEED:
        return 0.0
    if speed < _RATED_SPEED:
        return ((speed - _CUT_IN_SPEED) / (_RATED_SPEED - _CUT_IN_SPEED)) ** 3
    return 1.0


def compass_direction(degrees: float) -> str:
    return _COMPASS_POINTS[round_half_up(degrees / 45) % 8]


def forecast_wind(
    source: RenewableSource,
    weather: Sequence[WeatherSample],
    hours_ahead: int | None = None,
) -> list[GenerationForecastPoint]:
    """One generation point per weather sample for a wind farm."""
    _validate_source(source)
    points = []

    for sample in _horizon(weather, hours_ahead):
        predicted = max(
            0.0, source.capacity * wind_power_factor(sample.wind_speed) * source.efficiency / 100
        )
        # Band widens the further the wind is from rated speed
        uncertainty = predicted * (0.15 + abs(sample.wind_speed - _RATED_SPEED) / 50)

        points.append(
            GenerationForecastPoint(
                source_id=source.id,
                timestamp=sample.timestamp,
                predicted_power=round(predicted, 2),
                confidence_lower=round(max(0.0, predicted - uncertainty), 2),
                confidence_upper=round(predicted + uncertainty, 2),
                weather_conditions=(
                    f"Wind {round_half_up(sample.wind_speed)} m/s, "
                    f"{compass_direction(sample.wind_direction)}"
                ),
            )
        )

    logger.info("Wind forecast for source %d: %d points", source.id, len(points))
    return points


def forecast_generation(
    source: RenewableSource,
    weather: Sequence[WeatherSample],
    hours_ahead: int | None = None,
) -> list[GenerationForecastPoint]:
    if source.type == "solar":
        return forecast_solar(source, weather, hours_ahead)
    if source.type == "wind":
        return forecast_wind(source, weather, hours_ahead)
    raise InvalidInputError(f"No generation forecaster for source type '{source.type}'")


# ── Dispatch ──────────────────────────────────────────────────────────────────

def plan_dispatch(
    sources: Sequence[RenewableSource],
    forecasts: Sequence[GenerationForecastPoint],
    target_demand: float,
) -> list[DispatchRecommendation]:
    """Recommend an output level per source, then rescale against *target_demand*.

    Sources without any forecast points are left out.
    """
    if target_demand <= 0:
        raise InvalidInputError(f"target_demand must be positive (got {target_demand})")

    by_source: dict[int, list[float]] = defaultdict(list)
    for point in forecasts:
        by_source[point.source_id].append(point.predicted_power)

    capacity = {s.id: s.capacity for s in sources}
    recommendations: list[DispatchRecommendation] = []

    for source in sources:
        _validate_source(source)
        powers = np.array(by_source.get(source.id, []), dtype=float)
        if powers.size == 0:
            continue

        mean_power = float(powers.mean())
        capacity_factor = mean_power / source.capacity
        variability = float(powers.std()) / mean_power if mean_power > 0 else 0.0
        priority = capacity_factor * (1 - min(0.5, variability)) * 10

        if capacity_factor > 0.8:
            output = source.capacity * 0.9
            reason = "High resource availability, maximise generation"
        elif capacity_factor > 0.5:
            output = mean_power
            reason = "Favourable conditions, hold forecast generation"
        elif capacity_factor > 0.2:
            output = mean_power * 0.8
            reason = "Variable conditions, operate with safety margin"
        else:
            output = 0.0
            reason = "Unfavourable conditions, consider disconnecting"

        recommendations.append(
            DispatchRecommendation(
                source_id=source.id,
                recommended_output=round(output, 2),
                priority=round(priority, 1),
                reason=reason,
            )
        )

    recommendations.sort(key=lambda r: r.priority, reverse=True)

    total = sum(r.recommended_output for r in recommendations)
    if total > target_demand * 1.2:
        scale = (target_demand * 1.1) / total
        for rec in recommendations:
            rec.recommended_output = round(rec.recommended_output * scale, 2)
            rec.reason += " (scaled down for surplus generation)"
    elif total < target_demand * 0.5:
        for rec in recommendations:
            rec.recommended_output = round(capacity[rec.source_id] * 0.95, 2)
            rec.reason += " (maximised for generation deficit)"

    logger.info(
        "Dispatch plan: %d sources, %.1f MW recommended for %.1f MW target",
        len(recommendations),
        sum(r.recommended_output for r in recommendations),
        target_demand,
    )
    return recommendations


# ── Integration ───────────────────────────────────────────────────────────────

def analyze_integration(
    sources: Sequence[RenewableSource], total_demand: float
) -> IntegrationReport:
    """Penetration, variability and an overall integration score for a renewable fleet."""
    if total_demand <= 0:
        raise InvalidInputError(f"total_demand must be positive (got {total_demand})")

    total_capacity = sum(s.capacity for s in sources)
    if not sources or total_capacity <= 0:
        return IntegrationReport(
            renewable_penetration=0.0,
            variability_index=0.0,
            integration_score=0,
            recommendations=[],
        )

    generation = sum(s.current_generation for s in sources)
    penetration = generation / total_demand * 100

    variable_capacity = sum(s.capacity for s in sources if s.type in ("solar", "wind"))
    hydro_share = sum(s.capacity for s in sources if s.type == "hydro") / total_capacity
    variability = variable_capacity / total_capacity * 100

    score = 50.0
    score += min(30.0, penetration / 2)
    score -= min(20.0, variability / 5)
    score += min(20.0, hydro_share * 100 / 5)

    advice = []
    if penetration < 20:
        advice.append("Increase renewable generation capacity to improve sustainability")
    if variability > 70:
        advice.append("High variability detected; consider energy storage systems")
    if hydro_share < 0.2:
        advice.append("Add dispatchable renewables (hydro) to improve stability")
    if penetration > 50 and variability > 60:
        advice.append("Deploy advanced forecasting and control to manage variability")

    return IntegrationReport(
        renewable_penetration=round(penetration, 1),
        variability_index=round(variability, 1),
        integration_score=round_half_up(score),
        recommendations=advice,
    )
