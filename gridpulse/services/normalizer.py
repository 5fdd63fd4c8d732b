"""Turn a parsed demand history into hourly records for the forecaster."""

import logging

import pandas as pd
import pytz

from gridpulse.config import settings
from gridpulse.schemas.demand import HistoricalDemandPoint

logger = logging.getLogger(__name__)

# Gaps up to this many consecutive hours carry the previous value forward
_MAX_FILL_HOURS = 2


def resample_hourly(df: pd.DataFrame, timezone: str | None = None) -> pd.Series:
    """Hourly mean demand from a ``[ts, demand_mw]`` frame.

    Naive timestamps are read as grid-local time; aware ones are converted.
    The result is indexed by hour in the grid timezone. Short gaps are
    forward-filled, longer ones stay NaN.
    """
    tz = pytz.timezone(timezone or settings.grid_timezone)
    ts = pd.DatetimeIndex(df["ts"])
    ts = ts.tz_localize(tz, nonexistent="shift_forward") if ts.tz is None else ts.tz_convert(tz)

    demand = pd.Series(df["demand_mw"].to_numpy(dtype=float), index=ts, name="demand_mw")
    return demand.resample("1h").mean().ffill(limit=_MAX_FILL_HOURS)


def hourly_history(
    df: pd.DataFrame, timezone: str | None = None
) -> list[HistoricalDemandPoint]:
    """Resample *df* to hours and keep only hours that carry a demand value."""
    hourly = resample_hourly(df, timezone)
    observed = hourly.dropna()

    missing = len(hourly) - len(observed)
    if missing:
        logger.warning("Dropped %d hours with no demand value", missing)
    logger.info("Normalized %d rows to %d hourly records", len(df), len(observed))

    return [
        HistoricalDemandPoint(timestamp=ts.to_pydatetime(), total_demand=max(0.0, value))
        for ts, value in observed.items()
    ]
