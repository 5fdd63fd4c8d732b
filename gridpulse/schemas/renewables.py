from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

SourceType = Literal["solar", "wind", "hydro"]


class WeatherSample(BaseModel):
    timestamp: datetime
    temperature: float = Field(description="°C")
    cloud_cover: float = Field(ge=0, le=100, description="Percent")
    wind_speed: float = Field(ge=0, description="m/s")
    wind_direction: float = Field(default=0.0, ge=0, le=360, description="Degrees")
    humidity: float = Field(default=0.0, ge=0, le=100)
    precipitation: float = Field(default=0.0, ge=0, description="mm")


class RenewableSource(BaseModel):
    id: int
    type: SourceType
    capacity: float = Field(description="Installed capacity in MW")
    efficiency: float = Field(description="Percent of nameplate actually delivered")
    current_generation: float = Field(default=0.0, ge=0)


class GenerationForecastPoint(BaseModel):
    source_id: int
    timestamp: datetime
    predicted_power: float
    confidence_lower: float
    confidence_upper: float
    weather_conditions: str = ""


class DispatchRecommendation(BaseModel):
    source_id: int
    recommended_output: float
    priority: float
    reason: str


class IntegrationReport(BaseModel):
    renewable_penetration: float = Field(description="Percent of demand")
    variability_index: float = Field(description="Percent of capacity that is solar or wind")
    integration_score: int
    recommendations: list[str]


class GenerationForecastRequest(BaseModel):
    source: RenewableSource
    weather: list[WeatherSample]
    hours_ahead: int | None = Field(default=None, ge=1)


class DispatchRequest(BaseModel):
    sources: list[RenewableSource]
    forecasts: list[GenerationForecastPoint]
    target_demand: float = Field(gt=0)


class IntegrationRequest(BaseModel):
    sources: list[RenewableSource]
    total_demand: float = Field(gt=0)
