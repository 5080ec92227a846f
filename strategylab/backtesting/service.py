"""Backtest application service.

Use cases exposed to the API layer:
- run_backtests: fetch data and run one or more backtests (comparison mode)
- list_strategies: describe the registered strategies
- validate_instrument: check that a ticker resolves

Each backtest runs in a worker thread via ``asyncio.to_thread``. Runs share
only the immutable price series, so no locking is needed.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence

from strategylab.backtesting.engine import BacktestEngine
from strategylab.backtesting.models import (
    BacktestConfig,
    BacktestResult,
    Instrument,
    PriceSeries,
    StrategyInfo,
)
from strategylab.backtesting.strategies.base import Strategy
from strategylab.backtesting.strategies.registry import StrategyRegistry
from strategylab.common.logging import get_logger
from strategylab.common.metrics import BACKTEST_DURATION_SECONDS, BACKTESTS_RUN_TOTAL
from strategylab.market_data.provider import MarketDataProvider

logger = get_logger("BACKTEST")


class BacktestService:
    """Coordinates market data, the strategy registry and the engine.

    Args:
        provider: Market data source (usually the cached Yahoo provider).
        registry: Strategy registry built at startup.
        engine: Backtest engine; a default instance is created if omitted.
    """

    def __init__(
        self,
        provider: MarketDataProvider,
        registry: StrategyRegistry,
        engine: BacktestEngine | None = None,
    ) -> None:
        self.provider = provider
        self.registry = registry
        self.engine = engine or BacktestEngine()

    async def run_backtests(self, configs: Sequence[BacktestConfig]) -> list[BacktestResult]:
        """Run every config and return results in request order.

        Series for all configs are fetched concurrently; identical requests
        are collapsed by the caching provider. The first failure propagates
        to the caller.

        Args:
            configs: Validated backtest configurations.

        Returns:
            One BacktestResult per config, same order.

        Raises:
            DataFetchError: If market data cannot be fetched.
            UnknownStrategyError: If a config names an unregistered strategy.
            ComputationError: If a run lacks data for its statistics.
        """
        strategies = [self.registry.get(c.strategy_id).strategy for c in configs]

        series_list = await asyncio.gather(
            *(self.provider.get_daily_series(c.symbol, c.start_date, c.end_date) for c in configs)
        )

        logger.info(
            "Running backtests",
            extra={
                "data": {
                    "count": len(configs),
                    "runs": [f"{c.strategy_id}:{c.symbol}" for c in configs],
                }
            },
        )

        results = await asyncio.gather(
            *(
                asyncio.to_thread(self._run_one, strategy, series, config)
                for strategy, series, config in zip(strategies, series_list, configs, strict=True)
            )
        )
        return list(results)

    def _run_one(
        self, strategy: Strategy, series: PriceSeries, config: BacktestConfig
    ) -> BacktestResult:
        start_time = time.perf_counter()
        try:
            window = series.slice(config.start_date, config.end_date)
            result = self.engine.run(strategy, window, config)
        except Exception:
            BACKTESTS_RUN_TOTAL.labels(strategy_id=config.strategy_id, outcome="error").inc()
            raise
        finally:
            BACKTEST_DURATION_SECONDS.labels(strategy_id=config.strategy_id).observe(
                time.perf_counter() - start_time
            )

        BACKTESTS_RUN_TOTAL.labels(strategy_id=config.strategy_id, outcome="success").inc()
        logger.info(
            "Backtest completed",
            extra={
                "data": {
                    "strategy_id": result.strategy_id,
                    "symbol": result.symbol,
                    "trades": result.metrics.number_of_trades,
                    "final_value": str(result.metrics.final_value),
                    "cagr": str(result.metrics.cagr),
                }
            },
        )
        return result

    def list_strategies(self) -> list[StrategyInfo]:
        return self.registry.list_strategies()

    async def validate_instrument(self, symbol: str) -> Instrument | None:
        """Resolve a ticker through the provider; None if it does not exist."""
        return await self.provider.validate_symbol(symbol.strip())
