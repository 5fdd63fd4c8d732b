from typing import Literal

from pydantic import BaseModel, Field

RecommendationType = Literal[
    "switch_line", "adjust_voltage", "redistribute_load", "increase_renewable"
]
Priority = Literal["low", "medium", "high"]


class GridNodeSnapshot(BaseModel):
    id: int
    name: str
    voltage: float = Field(ge=0, description="kV")
    capacity: float = Field(gt=0, description="MW")
    current_load: float = Field(ge=0, description="MW")


class TransmissionLineSnapshot(BaseModel):
    id: int
    from_node_id: int
    to_node_id: int
    capacity: float = Field(gt=0, description="MW")
    current_flow: float = Field(ge=0, description="MW")
    resistance: float = Field(default=0.05, ge=0, description="Ohm (per-unit heuristic)")


class OptimizationObjectives(BaseModel):
    minimize_losses: bool = False
    minimize_costs: bool = False
    maximize_renewables: bool = False
    balance_load: bool = False


class OptimizationRecommendation(BaseModel):
    type: RecommendationType
    description: str
    affected_entities: list[int]
    priority: Priority
    estimated_impact: float


class OptimizationResult(BaseModel):
    success: bool = True
    objective_value: float
    recommendations: list[OptimizationRecommendation]
    estimated_savings: int = Field(description="USD")
    execution_time_ms: float


class PowerFlowRequest(BaseModel):
    nodes: list[GridNodeSnapshot]
    lines: list[TransmissionLineSnapshot]
    objectives: OptimizationObjectives = Field(default_factory=OptimizationObjectives)
    persist: bool = False


class TopologyRequest(BaseModel):
    nodes: list[GridNodeSnapshot]
    lines: list[TransmissionLineSnapshot]
    seed: int | None = None
    persist: bool = False


class VoltageRequest(BaseModel):
    nodes: list[GridNodeSnapshot]
    persist: bool = False
