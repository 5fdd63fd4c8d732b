"""Predictive-maintenance endpoints.

Scoring is stateless: callers send the equipment condition snapshots they
hold, and receive risk predictions ordered by maintenance priority.
"""

import logging

from fastapi import APIRouter, Depends

from gridpulse.dependencies import make_rng, require_api_key
from gridpulse.schemas.maintenance import (
    FailurePatternReport,
    FailurePatternRequest,
    MaintenancePrediction,
    MaintenancePredictRequest,
    MaintenanceScheduleRequest,
    MaintenanceScheduleResponse,
)
from gridpulse.services.maintenance import (
    analyze_failure_patterns,
    plan_maintenance,
    score_fleet,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/predict",
    summary="Equipment failure-risk scores",
    response_model=list[MaintenancePrediction],
)
async def predict_failures(
    body: MaintenancePredictRequest,
    _: str = Depends(require_api_key),
):
    return score_fleet(body.equipment, rng=make_rng(body.seed), as_of=body.as_of)


@router.post(
    "/schedule",
    summary="Maintenance plan",
    description=(
        "Scores the equipment, then lays out a greedy maintenance calendar under "
        "the daily downtime cap and available budget."
    ),
    response_model=MaintenanceScheduleResponse,
)
async def schedule_maintenance(
    body: MaintenanceScheduleRequest,
    _: str = Depends(require_api_key),
):
    predictions = score_fleet(body.equipment, rng=make_rng(body.seed), as_of=body.as_of)
    schedule = plan_maintenance(predictions, body.constraints, body.start_date)
    return MaintenanceScheduleResponse(predictions=predictions, schedule=schedule)


@router.post(
    "/patterns",
    summary="Failure pattern report",
    response_model=FailurePatternReport,
)
async def failure_patterns(
    body: FailurePatternRequest,
    _: str = Depends(require_api_key),
):
    return analyze_failure_patterns(body.equipment)
