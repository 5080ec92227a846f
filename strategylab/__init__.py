"""StrategyLab: backtest investment strategies against historical daily prices."""

from __future__ import annotations
