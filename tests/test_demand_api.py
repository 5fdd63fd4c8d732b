"""Tests for the /api/v1/demand endpoints."""

import pytest
from httpx import AsyncClient

from gridpulse.config import settings


def _history_payload(flat_history):
    return [
        {"timestamp": p.timestamp.isoformat(), "total_demand": p.total_demand}
        for p in flat_history
    ]


# ── Auth guards ───────────────────────────────────────────────────────────────

@pytest.mark.asyncio
@pytest.mark.parametrize(
    "method,path",
    [
        ("post", "/api/v1/demand/forecast"),
        ("post", "/api/v1/demand/forecast/upload"),
        ("post", "/api/v1/demand/evaluate"),
        ("get", "/api/v1/demand/predictions"),
    ],
)
async def test_demand_endpoints_require_auth(client: AsyncClient, method: str, path: str):
    response = await getattr(client, method)(path)
    assert response.status_code == 401


# ── POST /demand/forecast ─────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_forecast_returns_requested_hours(client: AsyncClient, auth_headers, flat_history):
    response = await client.post(
        "/api/v1/demand/forecast",
        headers=auth_headers,
        json={"history": _history_payload(flat_history), "hours_ahead": 12, "seed": 1},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["hours"] == 12
    assert body["history_points"] == 48
    assert body["run_id"] is None
    assert len(body["data"]) == 12
    for point in body["data"]:
        assert point["confidence_lower"] <= point["predicted_demand"] <= point["confidence_upper"]


@pytest.mark.asyncio
async def test_seeded_forecast_reproducible(client: AsyncClient, auth_headers, flat_history):
    payload = {"history": _history_payload(flat_history), "hours_ahead": 6, "seed": 99}
    a = await client.post("/api/v1/demand/forecast", headers=auth_headers, json=payload)
    b = await client.post("/api/v1/demand/forecast", headers=auth_headers, json=payload)
    assert a.json()["data"] == b.json()["data"]


@pytest.mark.asyncio
async def test_forecast_rejects_empty_history(client: AsyncClient, auth_headers):
    response = await client.post(
        "/api/v1/demand/forecast", headers=auth_headers, json={"history": []}
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_forecast_rejects_excessive_horizon(client: AsyncClient, auth_headers, flat_history):
    response = await client.post(
        "/api/v1/demand/forecast",
        headers=auth_headers,
        json={"history": _history_payload(flat_history), "hours_ahead": 10_000},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_forecast_persisted_on_request(
    client: AsyncClient, auth_headers, flat_history, db_session
):
    response = await client.post(
        "/api/v1/demand/forecast",
        headers=auth_headers,
        json={"history": _history_payload(flat_history), "hours_ahead": 4, "persist": True},
    )
    assert response.status_code == 200
    assert response.json()["run_id"] is not None
    db_session.execute.assert_awaited_once()
    db_session.commit.assert_awaited_once()


# ── POST /demand/forecast/upload ──────────────────────────────────────────────

@pytest.mark.asyncio
async def test_upload_rejects_unsupported_type(client: AsyncClient, auth_headers):
    response = await client.post(
        "/api/v1/demand/forecast/upload",
        headers=auth_headers,
        files={"file": ("data.txt", b"hello", "text/plain")},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_upload_rejects_empty_file(client: AsyncClient, auth_headers):
    response = await client.post(
        "/api/v1/demand/forecast/upload",
        headers=auth_headers,
        files={"file": ("data.csv", b"", "text/csv")},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_upload_rejects_oversized_file(client: AsyncClient, auth_headers, monkeypatch):
    monkeypatch.setattr(settings, "max_upload_size_bytes", 10)
    response = await client.post(
        "/api/v1/demand/forecast/upload",
        headers=auth_headers,
        files={"file": ("data.csv", b"timestamp,mw\n2024-01-01 00:00,100\n", "text/csv")},
    )
    assert response.status_code == 413


@pytest.mark.asyncio
async def test_upload_success(client: AsyncClient, auth_headers):
    csv_bytes = (
        b"timestamp,mw\n"
        b"2024-01-01 00:00,900\n"
        b"2024-01-01 01:00,950\n"
        b"2024-01-01 02:00,1000\n"
    )
    response = await client.post(
        "/api/v1/demand/forecast/upload",
        headers=auth_headers,
        files={"file": ("history.csv", csv_bytes, "text/csv")},
        data={"hours_ahead": "6", "seed": "5"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["file_name"] == "history.csv"
    assert body["history_points"] == 3
    assert body["hours"] == 6


@pytest.mark.asyncio
async def test_upload_rejects_corrupt_workbook(client: AsyncClient, auth_headers):
    response = await client.post(
        "/api/v1/demand/forecast/upload",
        headers=auth_headers,
        files={"file": ("hist.xlsx", b"not really a workbook", "application/octet-stream")},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_upload_rejects_legacy_xls(client: AsyncClient, auth_headers):
    response = await client.post(
        "/api/v1/demand/forecast/upload",
        headers=auth_headers,
        files={"file": ("hist.xls", b"\xd0\xcf\x11\xe0", "application/vnd.ms-excel")},
    )
    assert response.status_code == 422


# ── POST /demand/evaluate ─────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_evaluate_forecast(client: AsyncClient, auth_headers):
    response = await client.post(
        "/api/v1/demand/evaluate",
        headers=auth_headers,
        json={"predicted": [110, 90], "actual": [100, 100]},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["samples"] == 2
    assert body["mape"] == pytest.approx(10.0)
    assert body["rmse"] == pytest.approx(10.0)


@pytest.mark.asyncio
async def test_evaluate_rejects_length_mismatch(client: AsyncClient, auth_headers):
    response = await client.post(
        "/api/v1/demand/evaluate",
        headers=auth_headers,
        json={"predicted": [1, 2, 3], "actual": [1]},
    )
    assert response.status_code == 422


# ── GET /demand/predictions ───────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_predictions_empty_store(client: AsyncClient, auth_headers):
    response = await client.get("/api/v1/demand/predictions?limit=5", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == {"returned": 0, "limit": 5, "data": []}
