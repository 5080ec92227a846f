"""Backtesting-specific exceptions."""

from __future__ import annotations

from strategylab.common.exceptions import StrategyLabError


class ConfigValidationError(StrategyLabError):
    """Backtest configuration or strategy parameters are invalid.

    Raised at construction/parse time, before any simulation runs.
    """


class UnknownStrategyError(StrategyLabError):
    """The caller asked for a strategy id that is not registered."""


class ComputationError(StrategyLabError):
    """A statistic cannot be computed from the data supplied."""


class InsufficientDataError(ComputationError):
    """Not enough candles or equity points for the requested computation."""
