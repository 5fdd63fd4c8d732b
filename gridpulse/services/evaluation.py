"""Forecast accuracy metrics: MAPE, RMSE and R²."""

import logging
from collections.abc import Sequence

import numpy as np

from gridpulse.exceptions import InvalidInputError
from gridpulse.schemas.demand import AccuracyReport

logger = logging.getLogger(__name__)


def _as_arrays(predicted: Sequence[float], actual: Sequence[float]) -> tuple[np.ndarray, np.ndarray]:
    if len(predicted) != len(actual):
        raise InvalidInputError(
            f"Series length mismatch: {len(predicted)} predicted vs {len(actual)} actual"
        )
    if len(predicted) == 0:
        raise InvalidInputError("Cannot score empty series")
    return np.asarray(predicted, dtype=float), np.asarray(actual, dtype=float)


def mape(predicted: Sequence[float], actual: Sequence[float]) -> float:
    """Mean absolute percentage error in percent; zero actuals are skipped."""
    p, a = _as_arrays(predicted, actual)
    mask = a != 0
    if not mask.any():
        return 0.0
    return float(np.mean(np.abs((a[mask] - p[mask]) / a[mask])) * 100)


def rmse(predicted: Sequence[float], actual: Sequence[float]) -> float:
    p, a = _as_arrays(predicted, actual)
    return float(np.sqrt(np.mean((a - p) ** 2)))


def r2(predicted: Sequence[float], actual: Sequence[float]) -> float:
    """Coefficient of determination.

    A constant actual series has no variance to explain: the score is 1.0 for
    an exact match and 0.0 otherwise.
    """
    p, a = _as_arrays(predicted, actual)
    ss_res = float(np.sum((a - p) ** 2))
    ss_tot = float(np.sum((a - a.mean()) ** 2))
    if ss_tot == 0.0:
        return 1.0 if ss_res == 0.0 else 0.0
    return 1 - ss_res / ss_tot


def evaluate_forecast(predicted: Sequence[float], actual: Sequence[float]) -> AccuracyReport:
    report = AccuracyReport(
        samples=len(actual),
        mape=round(mape(predicted, actual), 3),
        rmse=round(rmse(predicted, actual), 3),
        r2=round(r2(predicted, actual), 4),
    )
    logger.info(
        "Forecast accuracy over %d samples: MAPE=%.2f%% RMSE=%.2f R2=%.3f",
        report.samples,
        report.mape,
        report.rmse,
        report.r2,
    )
    return report
