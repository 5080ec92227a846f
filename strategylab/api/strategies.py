"""Strategy catalog endpoint.

GET /api/strategies: list available strategies and their parameter schemas.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from strategylab.api.deps import get_backtest_service
from strategylab.backtesting.schemas import StrategyInfoOut
from strategylab.backtesting.service import BacktestService

router = APIRouter()


@router.get("", response_model=list[StrategyInfoOut])
async def list_strategies(
    service: BacktestService = Depends(get_backtest_service),
) -> list[StrategyInfoOut]:
    """Describe every registered strategy, in a stable order."""
    return [StrategyInfoOut.from_domain(info) for info in service.list_strategies()]
