# Request / response records shared by the analytics services and the API layer.
from gridpulse.schemas.demand import (
    AccuracyReport,
    DemandForecastPoint,
    HistoricalDemandPoint,
)
from gridpulse.schemas.maintenance import (
    EquipmentSnapshot,
    FailurePatternReport,
    MaintenanceConstraints,
    MaintenancePrediction,
    MaintenanceTask,
)
from gridpulse.schemas.network import (
    GridNodeSnapshot,
    OptimizationObjectives,
    OptimizationRecommendation,
    OptimizationResult,
    TransmissionLineSnapshot,
)
from gridpulse.schemas.renewables import (
    DispatchRecommendation,
    GenerationForecastPoint,
    IntegrationReport,
    RenewableSource,
    WeatherSample,
)

__all__ = [
    "AccuracyReport",
    "DemandForecastPoint",
    "HistoricalDemandPoint",
    "EquipmentSnapshot",
    "FailurePatternReport",
    "MaintenanceConstraints",
    "MaintenancePrediction",
    "MaintenanceTask",
    "GridNodeSnapshot",
    "OptimizationObjectives",
    "OptimizationRecommendation",
    "OptimizationResult",
    "TransmissionLineSnapshot",
    "DispatchRecommendation",
    "GenerationForecastPoint",
    "IntegrationReport",
    "RenewableSource",
    "WeatherSample",
]
