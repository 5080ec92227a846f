"""FastAPI dependencies.

The strategy registry and backtest service are built once in
``create_app()`` and stored on ``app.state``; these functions hand them to
endpoints. Tests replace them through ``app.dependency_overrides``.
"""

from __future__ import annotations

from fastapi import Request

from strategylab.backtesting.service import BacktestService
from strategylab.backtesting.strategies.registry import StrategyRegistry


def get_registry(request: Request) -> StrategyRegistry:
    """Return the strategy registry built at startup."""
    return request.app.state.registry


def get_backtest_service(request: Request) -> BacktestService:
    """Return the application's BacktestService."""
    return request.app.state.backtest_service
