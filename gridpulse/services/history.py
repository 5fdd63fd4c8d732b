"""Optional persistence of forecast and optimization runs.

The analytics services never call into this module; API endpoints do, and
only when the request asks for it.
"""

import logging
import uuid
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from gridpulse.config import settings
from gridpulse.models.demand_prediction import DemandPrediction
from gridpulse.models.network_optimization import NetworkOptimization, OptimizationType
from gridpulse.schemas.demand import DemandForecastPoint
from gridpulse.schemas.network import OptimizationResult

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1000


async def save_demand_forecast(
    db: AsyncSession, points: Sequence[DemandForecastPoint]
) -> uuid.UUID:
    """Insert one row per forecast hour; returns the run id shared by the rows."""
    run_id = uuid.uuid4()
    rows = [
        {
            "id": uuid.uuid4(),
            "run_id": run_id,
            "prediction_timestamp": p.timestamp,
            "predicted_demand": p.predicted_demand,
            "confidence_lower": p.confidence_lower,
            "confidence_upper": p.confidence_upper,
            "model_name": p.model_name,
            "model_version": settings.app_version,
        }
        for p in points
    ]
    for i in range(0, len(rows), _CHUNK_SIZE):
        await db.execute(pg_insert(DemandPrediction).values(rows[i : i + _CHUNK_SIZE]))
    await db.commit()
    logger.info("Stored %d forecast hours for run %s", len(rows), run_id)
    return run_id


async def load_demand_predictions(db: AsyncSession, limit: int = 24) -> list[DemandPrediction]:
    result = await db.execute(
        select(DemandPrediction)
        .order_by(DemandPrediction.created_at.desc(), DemandPrediction.prediction_timestamp)
        .limit(limit)
    )
    return list(result.scalars().all())


async def save_optimization_run(
    db: AsyncSession,
    optimization_type: OptimizationType,
    inputs: dict,
    result: OptimizationResult,
) -> uuid.UUID:
    run = NetworkOptimization(
        id=uuid.uuid4(),
        optimization_type=optimization_type,
        input_parameters=inputs,
        output_results=result.model_dump(mode="json"),
        recommendation_count=len(result.recommendations),
        savings_estimated=result.estimated_savings,
        execution_time_ms=result.execution_time_ms,
    )
    db.add(run)
    await db.commit()
    logger.info("Stored %s optimization run %s", optimization_type.value, run.id)
    return run.id


async def load_optimization_runs(db: AsyncSession, limit: int = 10) -> list[NetworkOptimization]:
    result = await db.execute(
        select(NetworkOptimization)
        .order_by(NetworkOptimization.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
