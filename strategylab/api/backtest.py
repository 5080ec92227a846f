"""Backtest API endpoint: run historical simulations.

POST /api/backtest: accepts one or more backtest configurations
(comparison mode) and returns one result per configuration, in order.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from strategylab.api.deps import get_backtest_service, get_registry
from strategylab.backtesting.exceptions import ConfigValidationError
from strategylab.backtesting.schemas import BacktestRequest, BacktestResponse, BacktestResultOut
from strategylab.backtesting.service import BacktestService
from strategylab.backtesting.strategies.registry import StrategyRegistry
from strategylab.common.logging import get_logger

router = APIRouter()
logger = get_logger("API")


@router.post("", response_model=BacktestResponse)
async def run_backtest_endpoint(
    request: BacktestRequest,
    service: BacktestService = Depends(get_backtest_service),
    registry: StrategyRegistry = Depends(get_registry),
) -> BacktestResponse:
    """Run every backtest in the request.

    Every configuration is validated before any market data is fetched, so
    one bad entry rejects the whole request.

    Args:
        request: One or more backtest configurations.
        service: Backtest service from dependency injection.
        registry: Strategy registry from dependency injection.

    Returns:
        BacktestResponse with one result per configuration.

    Raises:
        ConfigValidationError: If the list is empty or any entry is invalid.
        UnknownStrategyError: If an entry names an unknown strategy.
    """
    if not request.backtests:
        raise ConfigValidationError("At least one backtest configuration is required")

    configs = [item.to_config(registry) for item in request.backtests]
    results = await service.run_backtests(configs)

    logger.info(
        "Backtest request completed",
        extra={
            "data": {
                "count": len(results),
                "strategies": [r.strategy_id for r in results],
                "symbols": sorted({r.symbol for r in results}),
            }
        },
    )

    return BacktestResponse(results=[BacktestResultOut.from_domain(r) for r in results])
