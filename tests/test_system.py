"""Tests for system / health endpoints and configuration defaults."""

import pytest
from httpx import AsyncClient
from pydantic import ValidationError
from sqlalchemy.exc import OperationalError

from gridpulse.config import Settings, settings


# ── GET /health ────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_health_returns_200(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_health_requires_no_auth(client: AsyncClient):
    """Health check must be accessible without an API key."""
    response = await client.get("/health")
    assert response.status_code == 200


# ── GET /api/v1/status (auth required) ────────────────────────────────────────

@pytest.mark.asyncio
async def test_status_rejects_missing_key(client: AsyncClient):
    response = await client.get("/api/v1/status")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_status_rejects_wrong_key(client: AsyncClient):
    response = await client.get(
        "/api/v1/status",
        headers={"X-API-Key": "wrong-key"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_status_with_valid_key(client: AsyncClient, auth_headers: dict):
    response = await client.get("/api/v1/status", headers=auth_headers)
    assert response.status_code == 200

    data = response.json()
    assert data["service"] == settings.app_name
    assert data["version"] == settings.app_version
    assert data["db"] == "ok"

    cfg = data["config"]
    assert cfg["grid_timezone"] == "America/Bogota"
    assert cfg["ensemble_primary_weight"] == settings.ensemble_primary_weight
    assert cfg["nominal_voltage_kv"] == 220.0
    assert cfg["max_upload_size_mb"] == 20


@pytest.mark.asyncio
async def test_status_reports_db_error(client: AsyncClient, auth_headers: dict, db_session):
    db_session.execute.side_effect = OperationalError("SELECT 1", {}, Exception("refused"))
    response = await client.get("/api/v1/status", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["db"] == "error"


# ── GET /docs and /redoc (OpenAPI UI) ─────────────────────────────────────────

@pytest.mark.asyncio
async def test_openapi_docs_accessible(client: AsyncClient):
    response = await client.get("/docs")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_redoc_accessible(client: AsyncClient):
    response = await client.get("/redoc")
    assert response.status_code == 200


# ── Config validation ──────────────────────────────────────────────────────────

def test_default_grid_is_colombia():
    assert settings.grid_timezone == "America/Bogota"


def test_ensemble_weight_default():
    assert settings.ensemble_primary_weight == 0.6


def test_voltage_defaults():
    assert settings.nominal_voltage_kv == 220.0
    assert settings.voltage_tolerance == 0.05


def test_ensemble_weight_out_of_range_rejected():
    with pytest.raises(ValidationError):
        Settings(ensemble_primary_weight=1.5)


def test_voltage_tolerance_must_be_fraction():
    with pytest.raises(ValidationError):
        Settings(voltage_tolerance=0)
