"""Tests for the heuristic demand forecasters."""

import math
from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from gridpulse.exceptions import InvalidInputError
from gridpulse.schemas.demand import HistoricalDemandPoint
from gridpulse.services.demand_forecaster import (
    DailyProfileForecaster,
    EnsembleDemandForecaster,
    TrendSeasonalForecaster,
    estimate_trend,
    forecast_demand,
)


def _points(values, end=datetime(2024, 3, 5, 4, 0)):
    n = len(values)
    return [
        HistoricalDemandPoint(timestamp=end - timedelta(hours=n - 1 - i), total_demand=v)
        for i, v in enumerate(values)
    ]


# ── Trend estimate ─────────────────────────────────────────────────────────────

def test_trend_is_relative_change_between_halves():
    assert estimate_trend(_points([100, 100, 200, 200])) == pytest.approx(1.0)


def test_trend_zero_for_single_point():
    assert estimate_trend(_points([500])) == 0.0


def test_trend_zero_when_first_half_is_zero():
    assert estimate_trend(_points([0, 0, 50, 50])) == 0.0


# ── Ensemble ───────────────────────────────────────────────────────────────────

def test_forecast_has_one_point_per_hour(flat_history):
    points = forecast_demand(flat_history, hours_ahead=36, seed=1)
    assert len(points) == 36
    gaps = {b.timestamp - a.timestamp for a, b in zip(points, points[1:])}
    assert gaps == {timedelta(hours=1)}


def test_forecast_starts_one_hour_after_history(flat_history):
    points = forecast_demand(flat_history, hours_ahead=3, seed=1)
    first = points[0].timestamp
    assert first.utcoffset() == timedelta(hours=-5)
    assert first.astimezone(timezone.utc) == datetime(2024, 3, 5, 10, 0, tzinfo=timezone.utc)


def test_band_contains_prediction(flat_history):
    for p in forecast_demand(flat_history, hours_ahead=72, seed=3):
        assert p.confidence_lower <= p.predicted_demand <= p.confidence_upper


def test_flat_history_stays_near_level(flat_history):
    """Next hour is 05:00 on a weekday: both estimators land within ±15% of 1000 MW."""
    first = forecast_demand(flat_history, hours_ahead=1, seed=42)[0]
    assert 850 <= first.predicted_demand <= 1150


def test_seeded_forecast_is_reproducible(flat_history):
    a = forecast_demand(flat_history, hours_ahead=24, seed=123)
    b = forecast_demand(flat_history, hours_ahead=24, seed=123)
    assert [p.predicted_demand for p in a] == [p.predicted_demand for p in b]


def test_model_name_marks_ensemble(flat_history):
    points = forecast_demand(flat_history, hours_ahead=2, seed=0)
    assert {p.model_name for p in points} == {EnsembleDemandForecaster.name}


def test_empty_history_rejected():
    with pytest.raises(InvalidInputError):
        forecast_demand([], hours_ahead=24)


def test_non_positive_horizon_rejected(flat_history):
    with pytest.raises(InvalidInputError):
        forecast_demand(flat_history, hours_ahead=0)


def test_full_primary_weight_matches_daily_profile(flat_history):
    ensemble = EnsembleDemandForecaster(primary_weight=1.0)
    blended = ensemble.predict(flat_history, 24, rng=np.random.default_rng(7))
    profile = DailyProfileForecaster().predict(flat_history, 24, rng=np.random.default_rng(7))
    assert [p.predicted_demand for p in blended] == [p.predicted_demand for p in profile]


def test_invalid_primary_weight_rejected():
    with pytest.raises(InvalidInputError):
        EnsembleDemandForecaster(primary_weight=1.2)


# ── Individual estimators ──────────────────────────────────────────────────────

def test_trend_seasonal_is_deterministic_on_flat_history(flat_history):
    frame = TrendSeasonalForecaster().predict_frame(flat_history, 1)
    expected = 1000 * (1 + math.sin(5 / 24 * 2 * math.pi) * 0.15 + 0.05)
    assert frame["yhat"].iloc[0] == pytest.approx(expected)
    assert frame["yhat_upper"].iloc[0] == pytest.approx(expected * 1.12)


def test_trend_seasonal_never_negative():
    history = _points([1000] * 10 + [1] * 10)
    frame = TrendSeasonalForecaster().predict_frame(history, 168)
    assert (frame["yhat"] >= 0).all()


def test_daily_profile_working_hours_peak():
    # Next hour is 12:00 on a Tuesday
    history = _points([1000.0], end=datetime(2024, 3, 5, 11, 0))
    frame = DailyProfileForecaster().predict_frame(history, 1, np.random.default_rng(0))
    hour_factor = 1.2 + math.sin(4 / 12 * math.pi) * 0.3
    assert 1000 * hour_factor * 0.95 <= frame["yhat"].iloc[0] <= 1000 * hour_factor * 1.05


def test_daily_profile_weekend_discount():
    # Next hour is Saturday 12:00
    history = _points([1000.0], end=datetime(2024, 3, 9, 11, 0))
    frame = DailyProfileForecaster().predict_frame(history, 1, np.random.default_rng(0))
    hour_factor = 1.2 + math.sin(4 / 12 * math.pi) * 0.3
    upper = 1000 * hour_factor * 0.85 * 1.05
    assert frame["yhat"].iloc[0] <= upper


def test_daily_profile_band_is_ten_percent(flat_history):
    frame = DailyProfileForecaster().predict_frame(flat_history, 12, np.random.default_rng(5))
    np.testing.assert_allclose(frame["yhat_lower"], frame["yhat"] * 0.9)
    np.testing.assert_allclose(frame["yhat_upper"], frame["yhat"] * 1.1)
