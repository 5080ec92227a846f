"""Prometheus metrics definitions for StrategyLab.

All metric objects are centralized here as module-level singletons.
Import what you need from anywhere in the codebase:

    from strategylab.common.metrics import BACKTESTS_RUN_TOTAL

The /metrics endpoint is mounted in strategylab/main.py via
prometheus_client.make_asgi_app().
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram, Info

# ─── App Info ───

APP_INFO = Info("app", "Application metadata")

# ─── HTTP Metrics ───

HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    labelnames=["method", "path_template", "status_code"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    labelnames=["method", "path_template"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

HTTP_REQUESTS_IN_PROGRESS = Gauge(
    "http_requests_in_progress",
    "HTTP requests currently in progress",
    labelnames=["method"],
)

# ─── Business Metrics: Backtests ───

BACKTESTS_RUN_TOTAL = Counter(
    "backtests_run_total",
    "Backtest runs by strategy and outcome",
    labelnames=["strategy_id", "outcome"],
)

BACKTEST_DURATION_SECONDS = Histogram(
    "backtest_duration_seconds",
    "Wall-clock duration of a single backtest run",
    labelnames=["strategy_id"],
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

# ─── Business Metrics: Market Data ───

MARKET_DATA_FETCHES_TOTAL = Counter(
    "market_data_fetches_total",
    "Market data fetch attempts against the remote provider",
    labelnames=["operation", "outcome"],
)

MARKET_DATA_CACHE_TOTAL = Counter(
    "market_data_cache_total",
    "Market data lookups served from cache vs fetched",
    labelnames=["kind", "result"],
)


def set_app_info(version: str, environment: str) -> None:
    """Set the app_info metric values. Called once at startup."""
    APP_INFO.info({"version": version, "environment": environment})
