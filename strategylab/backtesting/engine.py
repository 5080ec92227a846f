"""Backtesting engine: runs one strategy over one price series.

The engine is entirely synchronous: the series is already in memory, no
I/O occurs during simulation, and nothing is retried. Any error raised by
the strategy or the metrics calculator propagates unchanged.

Usage:
    from strategylab.backtesting.engine import BacktestEngine

    result = BacktestEngine().run(strategy, series, config)
"""

from __future__ import annotations

import time

from strategylab.backtesting.metrics import compute_metrics
from strategylab.backtesting.models import BacktestConfig, BacktestResult, PriceSeries
from strategylab.backtesting.strategies.base import Strategy
from strategylab.common.logging import get_logger

logger = get_logger("BACKTEST")


class BacktestEngine:
    """Execute a strategy, then compute and attach its metrics."""

    def run(self, strategy: Strategy, series: PriceSeries, config: BacktestConfig) -> BacktestResult:
        """Run a single backtest.

        Args:
            strategy: Strategy implementation to execute.
            series: Price data already sliced to the backtest window.
            config: Validated backtest configuration.

        Returns:
            BacktestResult with equity curve, trades and metrics.
        """
        start_time = time.monotonic()

        execution = strategy.execute(series, config.initial_capital, config.strategy_config)
        trade_count = len(execution.trades)
        contributions = config.strategy_config.total_contributions(
            config.initial_capital, trade_count
        )
        metrics = compute_metrics(execution.equity_curve, contributions, trade_count)

        logger.debug(
            "Strategy executed",
            extra={
                "data": {
                    "strategy_id": config.strategy_id,
                    "symbol": config.symbol,
                    "days": len(series),
                    "trades": trade_count,
                    "final_value": str(metrics.final_value),
                    "duration_seconds": round(time.monotonic() - start_time, 4),
                }
            },
        )

        return BacktestResult(
            strategy_id=config.strategy_id,
            symbol=config.symbol,
            equity_curve=execution.equity_curve,
            trades=execution.trades,
            metrics=metrics,
        )
