"""Heuristic hourly demand forecasting.

Two independent estimators project the next N hours from the last observed
demand value, and an ensemble blends their point estimates and bands linearly:

* ``DailyProfileForecaster`` — hour-of-day working-window profile times a
  weekend discount, with multiplicative jitter.
* ``TrendSeasonalForecaster`` — trend ratio over the trailing week plus daily
  and weekly sinusoidal seasonality.

Hour-of-day and day-of-week are evaluated in the grid timezone.
"""

import logging
from collections.abc import Sequence
from datetime import datetime

import numpy as np
import pandas as pd
import pytz

from gridpulse.config import settings
from gridpulse.exceptions import InvalidInputError
from gridpulse.schemas.demand import DemandForecastPoint, HistoricalDemandPoint

logger = logging.getLogger(__name__)

# One week of hourly history drives the trend estimate
_TREND_WINDOW_HOURS = 168

_WORKDAY_START_HOUR = 8
_WORKDAY_END_HOUR = 20
_WEEKEND_DISCOUNT = 0.85


# ── Helpers ───────────────────────────────────────────────────────────────────

def _validate(history: Sequence[HistoricalDemandPoint], hours_ahead: int) -> None:
    if not history:
        raise InvalidInputError("Historical demand series is empty; cannot forecast")
    if hours_ahead < 1:
        raise InvalidInputError(f"hours_ahead must be at least 1 (got {hours_ahead})")


def _future_index(last_ts: datetime, hours_ahead: int, timezone: str) -> pd.DatetimeIndex:
    """Hourly timestamps following *last_ts*, expressed in *timezone*.

    Naive timestamps are taken to already be in *timezone*.
    """
    tz = pytz.timezone(timezone)
    start = pd.Timestamp(last_ts)
    if start.tzinfo is None:
        start = start.tz_localize(tz)
    else:
        start = start.tz_convert(tz)
    return pd.date_range(
        start=start + pd.Timedelta(hours=1), periods=hours_ahead, freq="1h"
    )


def _banded_frame(index: pd.DatetimeIndex, yhat: np.ndarray, band: float) -> pd.DataFrame:
    uncertainty = yhat * band
    return pd.DataFrame(
        {
            "ts": index,
            "yhat": yhat,
            "yhat_lower": yhat - uncertainty,
            "yhat_upper": yhat + uncertainty,
        }
    )


def _to_points(frame: pd.DataFrame, model_name: str) -> list[DemandForecastPoint]:
    return [
        DemandForecastPoint(
            timestamp=row.ts.to_pydatetime(),
            predicted_demand=round(float(row.yhat), 2),
            confidence_lower=round(float(row.yhat_lower), 2),
            confidence_upper=round(float(row.yhat_upper), 2),
            model_name=model_name,
        )
        for row in frame.itertuples(index=False)
    ]


def estimate_trend(history: Sequence[HistoricalDemandPoint]) -> float:
    """Relative change between the mean of the second and first half of *history*.

    Returns 0.0 for fewer than two points or when the first half averages zero.
    """
    if len(history) < 2:
        return 0.0

    values = np.array([p.total_demand for p in history], dtype=float)
    half = len(values) // 2
    first_mean = float(values[:half].mean())
    second_mean = float(values[half:].mean())

    if first_mean == 0.0:
        logger.warning("First-half mean demand is zero; trend defaults to 0")
        return 0.0
    return (second_mean - first_mean) / first_mean


# ── Estimators ────────────────────────────────────────────────────────────────

class DailyProfileForecaster:
    """Last observed demand shaped by a working-hours profile and weekend discount."""

    name = "daily-profile"
    band = 0.10

    def __init__(self, timezone: str | None = None) -> None:
        self.timezone = timezone or settings.grid_timezone

    def predict_frame(
        self,
        history: Sequence[HistoricalDemandPoint],
        hours_ahead: int,
        rng: np.random.Generator,
    ) -> pd.DataFrame:
        _validate(history, hours_ahead)
        last = history[-1]
        future = _future_index(last.timestamp, hours_ahead, self.timezone)
        hours = future.hour.to_numpy()
        weekend = future.dayofweek.to_numpy() >= 5

        working = (hours >= _WORKDAY_START_HOUR) & (hours <= _WORKDAY_END_HOUR)
        hour_factor = np.where(
            working,
            1.2 + np.sin((hours - _WORKDAY_START_HOUR) / 12 * np.pi) * 0.3,
            0.7 + rng.random(hours_ahead) * 0.2,
        )
        day_factor = np.where(weekend, _WEEKEND_DISCOUNT, 1.0)
        jitter = 0.95 + rng.random(hours_ahead) * 0.1

        yhat = last.total_demand * hour_factor * day_factor * jitter
        return _banded_frame(future, yhat, self.band)

    def predict(
        self,
        history: Sequence[HistoricalDemandPoint],
        hours_ahead: int = 24,
        rng: np.random.Generator | None = None,
    ) -> list[DemandForecastPoint]:
        rng = rng if rng is not None else np.random.default_rng()
        return _to_points(self.predict_frame(history, hours_ahead, rng), self.name)


class TrendSeasonalForecaster:
    """Trailing-week trend with daily and weekly sinusoidal seasonality."""

    name = "trend-seasonal"
    band = 0.12

    def __init__(self, timezone: str | None = None) -> None:
        self.timezone = timezone or settings.grid_timezone

    def predict_frame(
        self,
        history: Sequence[HistoricalDemandPoint],
        hours_ahead: int,
        rng: np.random.Generator | None = None,
    ) -> pd.DataFrame:
        # rng is accepted for a uniform estimator interface; this estimator is deterministic
        _validate(history, hours_ahead)
        last = history[-1]
        trend = estimate_trend(history[-_TREND_WINDOW_HOURS:])
        future = _future_index(last.timestamp, hours_ahead, self.timezone)
        hours = future.hour.to_numpy()
        weekend = future.dayofweek.to_numpy() >= 5

        steps = np.arange(1, hours_ahead + 1)
        trend_component = last.total_demand * (1 + trend * steps / _TREND_WINDOW_HOURS)
        seasonal_daily = np.sin(hours / 24 * 2 * np.pi) * 0.15
        seasonal_weekly = np.where(weekend, -0.15, 0.05)

        yhat = np.maximum(trend_component * (1 + seasonal_daily + seasonal_weekly), 0.0)
        return _banded_frame(future, yhat, self.band)

    def predict(
        self,
        history: Sequence[HistoricalDemandPoint],
        hours_ahead: int = 24,
        rng: np.random.Generator | None = None,
    ) -> list[DemandForecastPoint]:
        return _to_points(self.predict_frame(history, hours_ahead, rng), self.name)


class EnsembleDemandForecaster:
    """Fixed-weight linear blend of a primary and a secondary estimator."""

    name = "ensemble-daily-profile-trend-seasonal"

    def __init__(
        self,
        primary: DailyProfileForecaster | None = None,
        secondary: TrendSeasonalForecaster | None = None,
        primary_weight: float | None = None,
        timezone: str | None = None,
    ) -> None:
        self.primary = primary or DailyProfileForecaster(timezone)
        self.secondary = secondary or TrendSeasonalForecaster(timezone)
        self.primary_weight = (
            settings.ensemble_primary_weight if primary_weight is None else primary_weight
        )
        if not 0.0 <= self.primary_weight <= 1.0:
            raise InvalidInputError(
                f"primary_weight must be between 0 and 1 (got {self.primary_weight})"
            )

    def predict(
        self,
        history: Sequence[HistoricalDemandPoint],
        hours_ahead: int = 24,
        rng: np.random.Generator | None = None,
    ) -> list[DemandForecastPoint]:
        rng = rng if rng is not None else np.random.default_rng()
        primary = self.primary.predict_frame(history, hours_ahead, rng)
        secondary = self.secondary.predict_frame(history, hours_ahead, rng)

        w = self.primary_weight
        blended = pd.DataFrame({"ts": primary["ts"]})
        for col in ("yhat", "yhat_lower", "yhat_upper"):
            blended[col] = primary[col] * w + secondary[col] * (1 - w)

        logger.info(
            "Ensemble forecast: %d hours from %d history points (primary weight=%.2f)",
            hours_ahead,
            len(history),
            w,
        )
        return _to_points(blended, self.name)


def forecast_demand(
    history: Sequence[HistoricalDemandPoint],
    hours_ahead: int = 24,
    seed: int | None = None,
) -> list[DemandForecastPoint]:
    """Run the default ensemble with a generator seeded from *seed*."""
    return EnsembleDemandForecaster().predict(
        history, hours_ahead, rng=np.random.default_rng(seed)
    )
