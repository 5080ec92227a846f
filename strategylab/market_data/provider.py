"""Abstract market data provider consumed by the backtest service."""

from __future__ import annotations

from datetime import date
from typing import Protocol, runtime_checkable

from strategylab.backtesting.models import Instrument, PriceSeries


@runtime_checkable
class MarketDataProvider(Protocol):
    """Source of daily price history.

    Implementations handle their own retries; callers see either data or
    a DataFetchError.
    """

    async def get_daily_series(self, symbol: str, start: date, end: date) -> PriceSeries:
        """Fetch daily candles for ``symbol`` covering ``[start, end]``.

        Raises:
            DataFetchError: If the source is unreachable or the payload is
                malformed after bounded retry.
        """
        ...

    async def validate_symbol(self, symbol: str) -> Instrument | None:
        """Resolve ``symbol`` to an Instrument, or None if it is not tradeable."""
        ...
