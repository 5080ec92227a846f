"""API test fixtures: httpx.AsyncClient with dependency overrides.

Provides an async test client that exercises the full FastAPI app (all
middleware and exception handlers) with the backtest service rebuilt
around a mock market data provider, so no request leaves the process.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from strategylab.api.deps import get_backtest_service, get_registry
from strategylab.backtesting.service import BacktestService
from strategylab.main import app
from tests.factories import make_instrument, make_series

# A gentle up-down-up path long enough for small MA windows
CLOSES = [100, 101, 102, 104, 103, 101, 99, 98, 100, 103, 106, 108]


# ─── Mock Market Data Provider ───


@pytest.fixture
def mock_provider() -> AsyncMock:
    """Create a mock MarketDataProvider with default return values."""
    mock = AsyncMock()

    async def get_daily_series(symbol, start, end):
        return make_series(CLOSES, symbol=symbol.upper(), start=start)

    mock.get_daily_series.side_effect = get_daily_series
    mock.validate_symbol.return_value = make_instrument("SPY", name="SPDR S&P 500 ETF Trust")
    return mock


@pytest.fixture
def service(mock_provider, registry) -> BacktestService:
    return BacktestService(provider=mock_provider, registry=registry)


@pytest.fixture
def _overrides(service, registry):
    app.dependency_overrides[get_backtest_service] = lambda: service
    app.dependency_overrides[get_registry] = lambda: registry
    yield
    app.dependency_overrides.clear()


# ─── Clients ───


@pytest_asyncio.fixture
async def client(_overrides) -> AsyncClient:
    """Async client against the app with the mock provider wired in."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def lenient_client(_overrides) -> AsyncClient:
    """Like ``client`` but returns 500 responses instead of re-raising."""
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def bare_client() -> AsyncClient:
    """Client with no dependency overrides: for /health and /metrics."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ─── Request Body Factory ───


def make_backtest_item(**overrides) -> dict:
    """One camelCase backtest configuration as a client would send it."""
    body = {
        "symbol": "SPY",
        "startDate": "2024-01-01",
        "endDate": "2024-12-31",
        "initialCapital": 10000,
        "strategyId": "BUY_AND_HOLD",
        "strategyParams": {},
    }
    body.update(overrides)
    return body
