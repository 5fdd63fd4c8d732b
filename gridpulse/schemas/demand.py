from datetime import datetime

from pydantic import BaseModel, Field


class HistoricalDemandPoint(BaseModel):
    """One hourly observation of total system demand."""

    timestamp: datetime
    total_demand: float = Field(ge=0, description="Total demand in MW")
    sector_breakdown: dict[str, float] | None = Field(
        default=None, description="Optional demand per sector (residential, industrial, ...)"
    )
    temperature: float | None = None


class DemandForecastPoint(BaseModel):
    timestamp: datetime
    predicted_demand: float
    confidence_lower: float
    confidence_upper: float
    model_name: str


class DemandForecastRequest(BaseModel):
    history: list[HistoricalDemandPoint]
    hours_ahead: int = Field(default=24, ge=1, le=24 * 14)
    seed: int | None = Field(default=None, description="Seed for reproducible output")
    persist: bool = False


class AccuracyRequest(BaseModel):
    predicted: list[float]
    actual: list[float]


class AccuracyReport(BaseModel):
    samples: int
    mape: float = Field(description="Mean absolute percentage error, in percent")
    rmse: float
    r2: float
