"""Demand forecasting endpoints.

POST /demand/forecast         — ensemble forecast from a JSON history series
POST /demand/forecast/upload  — same, from an uploaded CSV / Excel history file
POST /demand/evaluate         — accuracy of a forecast against observed demand
GET  /demand/predictions      — most recently stored forecast hours
"""

import logging

from fastapi import APIRouter, Depends, Form, HTTPException, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from gridpulse.config import settings
from gridpulse.db.session import get_db
from gridpulse.dependencies import make_rng, require_api_key
from gridpulse.exceptions import InvalidInputError
from gridpulse.schemas.demand import AccuracyRequest, DemandForecastRequest
from gridpulse.services.demand_forecaster import EnsembleDemandForecaster
from gridpulse.services.evaluation import evaluate_forecast
from gridpulse.services.history import load_demand_predictions, save_demand_forecast
from gridpulse.services.normalizer import hourly_history
from gridpulse.services.parser import parse_demand_history

logger = logging.getLogger(__name__)

router = APIRouter()

_ALLOWED_EXTENSIONS = {".csv", ".xlsx"}


@router.post(
    "/forecast",
    summary="Hourly demand forecast",
    description=(
        "Blends a daily-profile and a trend-seasonal estimator into one hourly "
        "forecast with a symmetric confidence band. Pass `seed` for reproducible "
        "output and `persist=true` to store the forecast."
    ),
)
async def forecast_demand(
    body: DemandForecastRequest,
    db: AsyncSession = Depends(get_db),
    _: str = Depends(require_api_key),
):
    forecaster = EnsembleDemandForecaster()
    try:
        points = forecaster.predict(body.history, body.hours_ahead, rng=make_rng(body.seed))
    except InvalidInputError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))

    run_id = await save_demand_forecast(db, points) if body.persist else None

    return {
        "model_name": forecaster.name,
        "hours": len(points),
        "history_points": len(body.history),
        "run_id": str(run_id) if run_id else None,
        "data": points,
    }


@router.post(
    "/forecast/upload",
    summary="Hourly demand forecast from an uploaded history file",
    description=(
        "Accepts a CSV or Excel demand history (timestamp + MW / kW / MWh column), "
        "resamples it to hourly means in the grid timezone and forecasts from it."
    ),
)
async def forecast_demand_from_file(
    file: UploadFile,
    hours_ahead: int = Form(24, ge=1, le=24 * 14),
    seed: int | None = Form(None),
    _: str = Depends(require_api_key),
):
    filename = file.filename or "upload"
    ext = "." + filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if ext not in _ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unsupported file type '{ext}'. Allowed: {sorted(_ALLOWED_EXTENSIONS)}",
        )

    data = await file.read()
    if len(data) > settings.max_upload_size_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="Uploaded file exceeds the configured size limit",
        )

    try:
        parsed = parse_demand_history(data, filename)
        history = hourly_history(parsed, settings.grid_timezone)
        forecaster = EnsembleDemandForecaster()
        points = forecaster.predict(history, hours_ahead, rng=make_rng(seed))
    except InvalidInputError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))

    logger.info("Forecast %d hours from uploaded file '%s'", hours_ahead, filename)
    return {
        "model_name": forecaster.name,
        "file_name": filename,
        "history_points": len(history),
        "hours": len(points),
        "data": points,
    }


@router.post(
    "/evaluate",
    summary="Forecast accuracy",
    description="MAPE, RMSE and R² of predicted versus actual demand.",
)
async def evaluate_demand_forecast(
    body: AccuracyRequest,
    _: str = Depends(require_api_key),
):
    try:
        return evaluate_forecast(body.predicted, body.actual)
    except InvalidInputError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))


@router.get(
    "/predictions",
    summary="Stored forecast hours",
    description="Most recently stored forecast hours, newest run first.",
)
async def get_demand_predictions(
    limit: int = 24,
    db: AsyncSession = Depends(get_db),
    _: str = Depends(require_api_key),
):
    rows = await load_demand_predictions(db, limit)
    data = [
        {
            "run_id": str(r.run_id),
            "prediction_timestamp": r.prediction_timestamp.isoformat(),
            "predicted_demand": r.predicted_demand,
            "confidence_lower": r.confidence_lower,
            "confidence_upper": r.confidence_upper,
            "model_name": r.model_name,
            "actual_demand": r.actual_demand,
            "accuracy": r.accuracy,
        }
        for r in rows
    ]
    return {"returned": len(data), "limit": limit, "data": data}
