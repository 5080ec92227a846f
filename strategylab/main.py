"""FastAPI application factory for StrategyLab.

Run with: uvicorn strategylab.main:app --reload
"""

from __future__ import annotations

import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app as make_metrics_app

from strategylab.api.backtest import router as backtest_router
from strategylab.api.instruments import router as instruments_router
from strategylab.api.strategies import router as strategies_router
from strategylab.backtesting.exceptions import (
    ComputationError,
    ConfigValidationError,
    UnknownStrategyError,
)
from strategylab.backtesting.service import BacktestService
from strategylab.backtesting.strategies.registry import build_default_registry
from strategylab.common.config import get_settings
from strategylab.common.exceptions import StrategyLabError
from strategylab.common.logging import get_logger
from strategylab.common.metrics import set_app_info
from strategylab.common.middleware import (
    PrometheusMiddleware,
    RequestIdMiddleware,
    RequestLoggingMiddleware,
    request_id_var,
)
from strategylab.market_data.cache import CachedMarketDataProvider
from strategylab.market_data.exceptions import DataFetchError
from strategylab.market_data.provider import MarketDataProvider
from strategylab.market_data.yahoo import YahooFinanceProvider

logger = get_logger("SYSTEM")


def error_status(exc: StrategyLabError) -> int:
    """Map an exception family to its HTTP status code."""
    if isinstance(exc, ConfigValidationError | UnknownStrategyError):
        return 400
    if isinstance(exc, ComputationError):
        return 422
    if isinstance(exc, DataFetchError):
        return 502
    return 500


def build_provider() -> MarketDataProvider:
    """Yahoo Finance provider, wrapped in the in-memory cache when enabled."""
    provider: MarketDataProvider = YahooFinanceProvider()
    if get_settings().market_data_cache_enabled:
        provider = CachedMarketDataProvider(provider)
    return provider


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Backtest investment strategies against historical daily prices",
    )

    # Built once and shared by every request
    registry = build_default_registry()
    app.state.registry = registry
    app.state.backtest_service = BacktestService(provider=build_provider(), registry=registry)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Last added = outermost = runs first on request
    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)

    # ─── Exception Handlers ───

    @app.exception_handler(StrategyLabError)
    async def strategylab_exception_handler(
        request: Request, exc: StrategyLabError
    ) -> JSONResponse:
        """Handle all StrategyLab exceptions with structured JSON responses."""
        status_code = error_status(exc)
        log = logger.error if status_code >= 500 else logger.warning
        log(
            f"{type(exc).__name__}: {exc}",
            extra={"data": {"path": str(request.url), "context": exc.context}},
        )
        return JSONResponse(
            status_code=status_code,
            content={
                "error": type(exc).__name__,
                "message": exc.message,
            },
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Malformed request bodies are client errors (400), like bad configs."""
        errors = exc.errors()
        logger.warning(
            "Request validation failed",
            extra={"data": {"path": str(request.url), "errors": errors}},
        )
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()))
        return JSONResponse(
            status_code=400,
            content={
                "error": "ConfigValidationError",
                "message": f"{location}: {first.get('msg', 'invalid request')}",
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions: log traceback, return 500."""
        rid = request_id_var.get("")
        logger.error(
            f"Unhandled {type(exc).__name__}: {exc}",
            extra={
                "data": {
                    "path": str(request.url),
                    "request_id": rid,
                    "traceback": traceback.format_exc(),
                }
            },
        )
        body: dict = {
            "error": "InternalServerError",
            "message": "An unexpected error occurred",
        }
        if rid:
            body["request_id"] = rid
        return JSONResponse(status_code=500, content=body)

    # ─── Health ───

    @app.get("/health")
    async def health_check() -> dict:
        """Liveness probe: confirms the process is running."""
        return {"status": "ok", "version": settings.app_version}

    # ─── Prometheus Metrics ───

    metrics_app = make_metrics_app()
    app.mount("/metrics", metrics_app)
    set_app_info(version=settings.app_version, environment=settings.environment)

    # ─── Router Mounting ───

    app.include_router(backtest_router, prefix="/api/backtest", tags=["backtest"])
    app.include_router(strategies_router, prefix="/api/strategies", tags=["strategies"])
    app.include_router(instruments_router, prefix="/api/instruments", tags=["instruments"])

    logger.info(
        "Application created",
        extra={"data": {"environment": settings.environment, "strategies": registry.ids()}},
    )
    return app


app = create_app()
