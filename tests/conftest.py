"""Root test configuration: shared fixtures for all test modules.

IMPORTANT: Environment variables are set BEFORE any strategylab imports
so that config.py can load Settings without a .env file.
"""

from __future__ import annotations

import os

os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_LEVEL", "DEBUG")
os.environ.setdefault("YAHOO_BASE_URL", "https://yahoo.test")
os.environ.setdefault("YAHOO_RATE_LIMIT_PER_SECOND", "1000")

# Now safe to import strategylab modules
from decimal import Decimal

import pytest

from strategylab.backtesting.strategies.registry import StrategyRegistry, build_default_registry
from strategylab.common.config import Settings, get_settings

# ─── Clear cached settings so test env vars are used ───
get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    """Fresh Settings instance built from the test environment."""
    get_settings.cache_clear()
    return get_settings()


@pytest.fixture
def registry() -> StrategyRegistry:
    """The default strategy registry (Buy & Hold, DCA, MA Crossover)."""
    return build_default_registry()


@pytest.fixture
def capital() -> Decimal:
    return Decimal("10000")
