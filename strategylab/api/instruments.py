"""Instrument lookup endpoint.

GET /api/instruments/validate?symbol=SPY: resolve a ticker or 404.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from strategylab.api.deps import get_backtest_service
from strategylab.backtesting.schemas import InstrumentOut
from strategylab.backtesting.service import BacktestService
from strategylab.common.logging import get_logger

router = APIRouter()
logger = get_logger("API")


@router.get("/validate", response_model=InstrumentOut)
async def validate_instrument(
    symbol: str = Query(..., min_length=1, max_length=32),
    service: BacktestService = Depends(get_backtest_service),
) -> InstrumentOut:
    """Check that a ticker exists and return its metadata.

    Raises:
        HTTPException: 404 if the symbol cannot be resolved.
    """
    instrument = await service.validate_instrument(symbol)
    if instrument is None:
        logger.info("Symbol not found", extra={"data": {"symbol": symbol}})
        raise HTTPException(
            status_code=404,
            detail=f"Symbol not found or not fetchable: {symbol}",
        )
    return InstrumentOut.from_domain(instrument)
