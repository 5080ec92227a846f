"""Market data exceptions."""

from __future__ import annotations

from strategylab.common.exceptions import StrategyLabError


class DataFetchError(StrategyLabError):
    """Failed to fetch or parse market data from the remote provider."""
