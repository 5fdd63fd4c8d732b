from fastapi import APIRouter

from gridpulse.api.v1.endpoints import demand, maintenance, optimization, renewables, system

api_v1_router = APIRouter()

# System / health endpoints (status, config)
api_v1_router.include_router(system.router, tags=["System"])

# Demand forecasting, upload ingestion, accuracy scoring, stored forecasts
api_v1_router.include_router(demand.router, prefix="/demand", tags=["Demand"])

# Equipment risk scoring, maintenance planning, failure patterns
api_v1_router.include_router(maintenance.router, prefix="/maintenance", tags=["Maintenance"])

# Solar / wind generation forecasts, dispatch, integration
api_v1_router.include_router(renewables.router, prefix="/renewables", tags=["Renewables"])

# Power-flow, topology and voltage rule evaluation
api_v1_router.include_router(optimization.router, prefix="/optimization", tags=["Optimization"])
