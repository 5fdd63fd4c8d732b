# Import all ORM models here so Alembic's env.py picks up their metadata automatically.
from gridpulse.models.demand_prediction import DemandPrediction
from gridpulse.models.network_optimization import NetworkOptimization, OptimizationType

__all__ = ["DemandPrediction", "NetworkOptimization", "OptimizationType"]
