"""Shared pytest fixtures for the GridPulse API test suite."""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from gridpulse.config import settings
from gridpulse.db.session import get_db
from gridpulse.main import app
from gridpulse.schemas.demand import HistoricalDemandPoint


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def db_session() -> AsyncMock:
    """Stand-in AsyncSession: queries return no rows, writes are recorded."""
    result = MagicMock()
    result.scalars.return_value.all.return_value = []

    session = AsyncMock()
    session.execute = AsyncMock(return_value=result)
    session.commit = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
async def client(db_session: AsyncMock) -> AsyncClient:
    """Async test client that talks directly to the ASGI app (no network or DB required)."""

    async def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as ac:
        yield ac
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def api_key() -> str:
    """The API key configured in settings (defaults to 'dev-api-key' in tests)."""
    return settings.api_key


@pytest.fixture
def auth_headers(api_key: str) -> dict[str, str]:
    """Ready-made headers dict with X-API-Key set."""
    return {"X-API-Key": api_key}


@pytest.fixture
def flat_history() -> list[HistoricalDemandPoint]:
    """48 hours at a constant 1000 MW, ending Tuesday 2024-03-05 04:00 grid time."""
    end = datetime(2024, 3, 5, 4, 0)
    return [
        HistoricalDemandPoint(timestamp=end - timedelta(hours=47 - i), total_demand=1000.0)
        for i in range(48)
    ]
