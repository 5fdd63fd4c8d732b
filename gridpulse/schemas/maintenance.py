from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field

RiskLevel = Literal["low", "medium", "high", "critical"]
MaintenanceType = Literal["preventive", "predictive"]


class EquipmentSnapshot(BaseModel):
    """Condition snapshot of one piece of substation equipment."""

    id: int
    name: str = ""
    type: str = Field(description="transformer, breaker, capacitor, reactor, ...")
    age: float = Field(ge=0, description="Years in service")
    last_maintenance_date: datetime
    operating_hours: float = Field(ge=0)
    average_load: float = Field(ge=0)
    max_load: float = Field(gt=0)
    temperature: float = Field(ge=0, description="Operating temperature in °C")
    vibration: float = Field(ge=0, description="Vibration in mm/s")
    failure_history: int = Field(ge=0, description="Number of recorded failures")


class MaintenancePrediction(BaseModel):
    equipment_id: int
    equipment_name: str
    failure_probability: float = Field(ge=0, le=100)
    risk_level: RiskLevel
    recommended_action: str
    estimated_time_to_failure: int = Field(description="Days")
    priority: int = Field(ge=1, le=10)
    estimated_cost: int = Field(description="USD")
    estimated_downtime: int = Field(description="Hours")


class MaintenanceConstraints(BaseModel):
    max_daily_downtime: float = Field(gt=0, description="Hours of downtime allowed per day")
    available_budget: float = Field(ge=0, description="USD")
    maintenance_teams: int = Field(default=1, ge=1)


class MaintenanceTask(BaseModel):
    equipment_id: int
    scheduled_date: date
    maintenance_type: MaintenanceType
    estimated_duration: int
    estimated_cost: int


class TypeCostReference(BaseModel):
    type: str
    avg_cost: float


class FailurePatternReport(BaseModel):
    common_failure_types: list[str]
    average_time_to_failure: int = Field(description="Days")
    cost_trends: list[TypeCostReference]


class MaintenancePredictRequest(BaseModel):
    equipment: list[EquipmentSnapshot]
    seed: int | None = None
    as_of: datetime | None = Field(
        default=None, description="Reference time for days-since-maintenance (default: now)"
    )


class MaintenanceScheduleRequest(MaintenancePredictRequest):
    constraints: MaintenanceConstraints
    start_date: date | None = None


class MaintenanceScheduleResponse(BaseModel):
    predictions: list[MaintenancePrediction]
    schedule: list[MaintenanceTask]


class FailurePatternRequest(BaseModel):
    equipment: list[EquipmentSnapshot]
