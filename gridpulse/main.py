import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gridpulse.config import settings
from gridpulse.db.session import engine

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Starting %s v%s (grid timezone %s)",
        settings.app_name,
        settings.app_version,
        settings.grid_timezone,
    )
    yield
    logger.info("Shutting down — disposing DB engine")
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description=(
        "Grid analytics API for the SIN monitoring dashboard: demand forecasting, "
        "equipment failure-risk scoring, renewable generation forecasts and "
        "rule-based power-flow recommendations."
    ),
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Root liveness check (no auth required) ─────────────────────────────────────
@app.get("/health", tags=["System"], summary="Liveness check")
async def health():
    """Returns 200 OK if the service is running."""
    return {"status": "ok"}


# ── Versioned API routes ────────────────────────────────────────────────────────
from gridpulse.api.v1.router import api_v1_router  # noqa: E402 — imported after app creation

app.include_router(api_v1_router, prefix="/api/v1")
