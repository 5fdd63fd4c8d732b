import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gridpulse.config import settings
from gridpulse.db.session import get_db
from gridpulse.dependencies import require_api_key

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/status",
    summary="Service status",
    description=(
        "Returns service version, database reachability and the active analytics "
        "configuration. The database is only needed for persistence and history "
        "endpoints. Requires a valid X-API-Key header."
    ),
)
async def get_status(
    db: AsyncSession = Depends(get_db),
    _: str = Depends(require_api_key),
):
    db_status = "ok"
    try:
        await db.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("DB health check failed: %s", exc)
        db_status = "error"

    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "db": db_status,
        "config": {
            "grid_timezone": settings.grid_timezone,
            "ensemble_primary_weight": settings.ensemble_primary_weight,
            "nominal_voltage_kv": settings.nominal_voltage_kv,
            "voltage_tolerance": settings.voltage_tolerance,
            "savings_per_mw_usd": settings.savings_per_mw_usd,
            "max_upload_size_mb": settings.max_upload_size_bytes // (1024 * 1024),
        },
    }
