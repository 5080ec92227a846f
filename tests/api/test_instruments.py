"""Tests for GET /api/instruments/validate."""

from __future__ import annotations

import pytest
from httpx import AsyncClient


class TestValidateInstrument:
    @pytest.mark.asyncio
    async def test_known_symbol(self, client: AsyncClient, mock_provider):
        resp = await client.get("/api/instruments/validate", params={"symbol": " spy "})

        assert resp.status_code == 200
        assert resp.json() == {
            "symbol": "SPY",
            "name": "SPDR S&P 500 ETF Trust",
            "assetType": "ETF",
        }
        mock_provider.validate_symbol.assert_awaited_once_with("spy")

    @pytest.mark.asyncio
    async def test_unknown_symbol_is_404(self, client: AsyncClient, mock_provider):
        mock_provider.validate_symbol.return_value = None
        resp = await client.get("/api/instruments/validate", params={"symbol": "ZZZZZZ"})

        assert resp.status_code == 404
        assert resp.json()["detail"] == "Symbol not found or not fetchable: ZZZZZZ"

    @pytest.mark.asyncio
    async def test_missing_symbol_is_400(self, client: AsyncClient):
        resp = await client.get("/api/instruments/validate")
        assert resp.status_code == 400
        assert resp.json()["error"] == "ConfigValidationError"
