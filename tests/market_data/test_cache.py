"""Tests for the in-memory market data cache.

Validates hits, single-flight sharing of concurrent fetches and that
failures and unresolved symbols are never stored. The delegate provider
is an AsyncMock so no HTTP is involved.
"""

from __future__ import annotations

import asyncio
from datetime import date
from unittest.mock import AsyncMock

import pytest

from strategylab.market_data.cache import CachedMarketDataProvider, series_cache_key
from strategylab.market_data.exceptions import DataFetchError
from strategylab.market_data.provider import MarketDataProvider
from tests.factories import make_instrument, make_series

START = date(2024, 1, 1)
END = date(2024, 6, 30)


@pytest.fixture
def delegate() -> AsyncMock:
    fake = AsyncMock()
    fake.get_daily_series.return_value = make_series([100, 101, 102])
    fake.validate_symbol.return_value = make_instrument("AAPL")
    return fake


@pytest.fixture
def cache(delegate) -> CachedMarketDataProvider:
    return CachedMarketDataProvider(delegate)


class TestSeriesCacheKey:
    def test_format(self):
        assert series_cache_key("spy", START, END) == "SPY:2024-01-01:2024-06-30:1d"


class TestSeriesCaching:
    """Tests for get_daily_series() memoization."""

    @pytest.mark.asyncio
    async def test_second_call_is_a_hit(self, cache, delegate):
        first = await cache.get_daily_series("SPY", START, END)
        second = await cache.get_daily_series("spy", START, END)

        assert first is second
        delegate.get_daily_series.assert_awaited_once_with("SPY", START, END)
        assert cache.size == 1

    @pytest.mark.asyncio
    async def test_different_ranges_are_separate_entries(self, cache, delegate):
        await cache.get_daily_series("SPY", START, END)
        await cache.get_daily_series("SPY", START, date(2024, 12, 31))
        assert delegate.get_daily_series.await_count == 2

    @pytest.mark.asyncio
    async def test_concurrent_requests_share_one_fetch(self, cache, delegate):
        """Requests arriving while a fetch is in flight wait for it."""
        release = asyncio.Event()

        async def slow_fetch(symbol, start, end):
            await release.wait()
            return make_series([1, 2, 3], symbol=symbol)

        delegate.get_daily_series.side_effect = slow_fetch

        tasks = [asyncio.ensure_future(cache.get_daily_series("SPY", START, END)) for _ in range(5)]
        await asyncio.sleep(0)
        release.set()
        results = await asyncio.gather(*tasks)

        assert delegate.get_daily_series.await_count == 1
        assert all(r is results[0] for r in results)

    @pytest.mark.asyncio
    async def test_failures_are_not_cached(self, cache, delegate):
        delegate.get_daily_series.side_effect = [
            DataFetchError("Failed to fetch data for SPY"),
            make_series([5, 6]),
        ]

        with pytest.raises(DataFetchError):
            await cache.get_daily_series("SPY", START, END)
        assert cache.size == 0

        series = await cache.get_daily_series("SPY", START, END)
        assert len(series) == 2
        assert delegate.get_daily_series.await_count == 2

    @pytest.mark.asyncio
    async def test_concurrent_waiters_all_see_failure(self, cache, delegate):
        release = asyncio.Event()

        async def failing_fetch(symbol, start, end):
            await release.wait()
            raise DataFetchError(f"Failed to fetch data for {symbol}")

        delegate.get_daily_series.side_effect = failing_fetch

        tasks = [asyncio.ensure_future(cache.get_daily_series("SPY", START, END)) for _ in range(3)]
        await asyncio.sleep(0)
        release.set()
        results = await asyncio.gather(*tasks, return_exceptions=True)

        assert all(isinstance(r, DataFetchError) for r in results)
        assert delegate.get_daily_series.await_count == 1


class TestSymbolCaching:
    """Tests for validate_symbol() memoization."""

    @pytest.mark.asyncio
    async def test_resolved_symbol_is_cached(self, cache, delegate):
        await cache.validate_symbol("AAPL")
        instrument = await cache.validate_symbol("aapl")

        assert instrument.symbol == "AAPL"
        delegate.validate_symbol.assert_awaited_once_with("AAPL")

    @pytest.mark.asyncio
    async def test_unresolved_symbol_is_not_cached(self, cache, delegate):
        delegate.validate_symbol.return_value = None

        assert await cache.validate_symbol("ZZZZ") is None
        assert await cache.validate_symbol("ZZZZ") is None
        assert delegate.validate_symbol.await_count == 2
        assert cache.size == 0


class TestClear:
    @pytest.mark.asyncio
    async def test_clear_forces_refetch(self, cache, delegate):
        await cache.get_daily_series("SPY", START, END)
        await cache.validate_symbol("AAPL")
        assert cache.size == 2

        cache.clear()

        assert cache.size == 0
        await cache.get_daily_series("SPY", START, END)
        assert delegate.get_daily_series.await_count == 2


class TestProtocol:
    def test_cache_is_a_market_data_provider(self, cache):
        assert isinstance(cache, MarketDataProvider)
