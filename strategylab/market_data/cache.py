"""In-memory caching decorator for a MarketDataProvider.

Keys:
    series:  "{SYMBOL}:{start}:{end}:1d"  → PriceSeries
    symbols: "{SYMBOL}"                   → Instrument

Concurrent requests for the same key share one in-flight fetch
(single-flight). Failed fetches and unresolved symbols are not stored, so
the next request tries again.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import date
from typing import TypeVar

from strategylab.backtesting.models import Instrument, PriceSeries
from strategylab.common.logging import get_logger
from strategylab.common.metrics import MARKET_DATA_CACHE_TOTAL
from strategylab.market_data.provider import MarketDataProvider

logger = get_logger("CACHE")

T = TypeVar("T")


def series_cache_key(symbol: str, start: date, end: date) -> str:
    return f"{symbol.upper()}:{start.isoformat()}:{end.isoformat()}:1d"


class CachedMarketDataProvider:
    """Memoizes a delegate provider's results for the life of the process.

    Args:
        delegate: The provider that actually fetches data.
    """

    def __init__(self, delegate: MarketDataProvider) -> None:
        self.delegate = delegate
        self._series: dict[str, PriceSeries] = {}
        self._symbols: dict[str, Instrument] = {}
        self._inflight: dict[tuple[str, str], asyncio.Task] = {}

    async def get_daily_series(self, symbol: str, start: date, end: date) -> PriceSeries:
        key = series_cache_key(symbol, start, end)
        return await self._get_or_fetch(
            "series",
            key,
            self._series,
            lambda: self.delegate.get_daily_series(symbol, start, end),
        )

    async def validate_symbol(self, symbol: str) -> Instrument | None:
        key = symbol.upper()
        return await self._get_or_fetch(
            "symbol",
            key,
            self._symbols,
            lambda: self.delegate.validate_symbol(symbol),
        )

    def clear(self) -> None:
        """Drop every cached entry. In-flight fetches are left to finish."""
        self._series.clear()
        self._symbols.clear()
        logger.info("Market data cache cleared")

    @property
    def size(self) -> int:
        return len(self._series) + len(self._symbols)

    async def _get_or_fetch(
        self,
        kind: str,
        key: str,
        store: dict[str, T],
        fetch: Callable[[], Awaitable[T | None]],
    ) -> T | None:
        if key in store:
            MARKET_DATA_CACHE_TOTAL.labels(kind=kind, result="hit").inc()
            return store[key]

        flight_key = (kind, key)
        task = self._inflight.get(flight_key)
        if task is not None:
            MARKET_DATA_CACHE_TOTAL.labels(kind=kind, result="shared").inc()
        else:
            MARKET_DATA_CACHE_TOTAL.labels(kind=kind, result="miss").inc()
            logger.info(f"Cache miss for {kind}", extra={"data": {"entry": key}})
            task = asyncio.ensure_future(self._load(flight_key, store, fetch))
            self._inflight[flight_key] = task

        # Shielded so one cancelled caller does not cancel the shared fetch
        return await asyncio.shield(task)

    async def _load(
        self,
        flight_key: tuple[str, str],
        store: dict[str, T],
        fetch: Callable[[], Awaitable[T | None]],
    ) -> T | None:
        try:
            value = await fetch()
            if value is not None:
                store[flight_key[1]] = value
            return value
        finally:
            self._inflight.pop(flight_key, None)
