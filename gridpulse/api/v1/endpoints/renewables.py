"""Renewable generation endpoints: forecasts, dispatch and integration analysis."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from gridpulse.dependencies import require_api_key
from gridpulse.exceptions import InvalidInputError
from gridpulse.schemas.renewables import (
    DispatchRecommendation,
    DispatchRequest,
    GenerationForecastPoint,
    GenerationForecastRequest,
    IntegrationReport,
    IntegrationRequest,
)
from gridpulse.services.renewables import (
    analyze_integration,
    forecast_generation,
    plan_dispatch,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/forecast",
    summary="Solar or wind generation forecast",
    description="One generation point per weather sample, for the source's type.",
    response_model=list[GenerationForecastPoint],
)
async def forecast_renewable_generation(
    body: GenerationForecastRequest,
    _: str = Depends(require_api_key),
):
    try:
        return forecast_generation(body.source, body.weather, body.hours_ahead)
    except InvalidInputError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))


@router.post(
    "/dispatch",
    summary="Renewable dispatch recommendations",
    response_model=list[DispatchRecommendation],
)
async def dispatch_renewables(
    body: DispatchRequest,
    _: str = Depends(require_api_key),
):
    try:
        return plan_dispatch(body.sources, body.forecasts, body.target_demand)
    except InvalidInputError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))


@router.post(
    "/integration",
    summary="Renewable integration report",
    response_model=IntegrationReport,
)
async def renewable_integration(
    body: IntegrationRequest,
    _: str = Depends(require_api_key),
):
    try:
        return analyze_integration(body.sources, body.total_demand)
    except InvalidInputError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
