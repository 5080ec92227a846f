"""Immutable value objects for a backtest run.

Everything here is constructed once per run and never mutated. Validation
happens in ``__post_init__`` so an invalid object can never exist; failures
raise ConfigValidationError (bad input) or InsufficientDataError (empty
series / empty slice).

Monetary values are ``decimal.Decimal``; see precision.py for the rounding
rules applied by strategies and the metrics calculator.
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Literal

from strategylab.backtesting.exceptions import ConfigValidationError, InsufficientDataError

if TYPE_CHECKING:
    from strategylab.backtesting.configs import StrategyConfig

TradeAction = Literal["BUY", "SELL"]
ParameterType = Literal["integer", "number"]

# ─── Market Data ───


@dataclass(frozen=True)
class Instrument:
    """A tradeable instrument (stock, ETF, crypto, etc.).

    Attributes:
        symbol: Ticker symbol, never blank.
        name: Human-readable display name.
        asset_type: Provider-reported instrument type (e.g., "EQUITY", "ETF").
    """

    symbol: str
    name: str = ""
    asset_type: str = "UNKNOWN"

    def __post_init__(self) -> None:
        if not self.symbol or not self.symbol.strip():
            raise ConfigValidationError("symbol must not be blank")


@dataclass(frozen=True)
class Candle:
    """A single daily price candle."""

    date: date
    close: Decimal
    open: Decimal = Decimal("0")
    high: Decimal = Decimal("0")
    low: Decimal = Decimal("0")
    volume: int = 0

    def __post_init__(self) -> None:
        if self.date is None:
            raise ConfigValidationError("candle date must not be None")
        if self.close is None:
            raise ConfigValidationError("candle close must not be None", {"date": str(self.date)})


@dataclass(frozen=True)
class PriceSeries:
    """Daily candles for one instrument, sorted ascending by date.

    The candles are sorted at construction; callers may pass them in any
    order. An empty series is rejected.
    """

    instrument: Instrument
    candles: tuple[Candle, ...]

    def __post_init__(self) -> None:
        if self.instrument is None:
            raise ConfigValidationError("instrument must not be None")
        if not self.candles:
            raise InsufficientDataError(
                "price series must contain at least one candle",
                {"symbol": self.instrument.symbol},
            )
        object.__setattr__(self, "candles", tuple(sorted(self.candles, key=lambda c: c.date)))

    def __len__(self) -> int:
        return len(self.candles)

    @property
    def start_date(self) -> date:
        return self.candles[0].date

    @property
    def end_date(self) -> date:
        return self.candles[-1].date

    def closes(self) -> list[Decimal]:
        return [c.close for c in self.candles]

    def slice(self, start: date, end: date) -> PriceSeries:
        """Return the sub-series with dates in ``[start, end]`` (inclusive).

        Raises:
            InsufficientDataError: If no candle falls inside the range.
        """
        selected = tuple(c for c in self.candles if start <= c.date <= end)
        if not selected:
            raise InsufficientDataError(
                f"No candles in range [{start}, {end}] for {self.instrument.symbol}",
                {"symbol": self.instrument.symbol, "start": str(start), "end": str(end)},
            )
        return PriceSeries(instrument=self.instrument, candles=selected)

    def candle_at(self, day: date) -> Candle | None:
        """Find the candle for an exact date, or None if the market was closed."""
        dates = [c.date for c in self.candles]
        idx = bisect.bisect_left(dates, day)
        if idx < len(dates) and dates[idx] == day:
            return self.candles[idx]
        return None


# ─── Strategy Output ───


@dataclass(frozen=True)
class EquityPoint:
    """Portfolio value at the close of one trading day (2 decimal places)."""

    date: date
    portfolio_value: Decimal


@dataclass(frozen=True)
class Trade:
    """A single executed trade.

    Attributes:
        date: Trading day of the fill.
        action: "BUY" or "SELL".
        quantity: Fractional share count, never negative.
        price: Fill price (the day's close).
        reason: Human-readable explanation of why the strategy traded.
    """

    date: date
    action: TradeAction
    quantity: Decimal
    price: Decimal
    reason: str

    def __post_init__(self) -> None:
        if self.action not in ("BUY", "SELL"):
            raise ConfigValidationError(f"Unknown trade action: {self.action}")
        if self.quantity < 0:
            raise ConfigValidationError(
                "trade quantity must not be negative", {"quantity": str(self.quantity)}
            )


@dataclass(frozen=True)
class StrategyExecution:
    """Raw strategy output: one equity point per candle plus the trade log."""

    equity_curve: tuple[EquityPoint, ...]
    trades: tuple[Trade, ...]


# ─── Configuration ───


@dataclass(frozen=True)
class BacktestConfig:
    """Configuration for a single backtest run, validated eagerly.

    Attributes:
        symbol: Ticker to backtest.
        start_date: First day of the simulation window (inclusive).
        end_date: Last day of the simulation window (inclusive), after start_date.
        initial_capital: Starting cash, strictly positive.
        strategy_id: Canonical registry id of the strategy.
        strategy_config: Typed, already-validated strategy parameters.
    """

    symbol: str
    start_date: date
    end_date: date
    initial_capital: Decimal
    strategy_id: str
    strategy_config: StrategyConfig

    def __post_init__(self) -> None:
        if not self.symbol or not self.symbol.strip():
            raise ConfigValidationError("symbol required")
        if self.start_date is None:
            raise ConfigValidationError("startDate required")
        if self.end_date is None:
            raise ConfigValidationError("endDate required")
        if self.start_date >= self.end_date:
            raise ConfigValidationError(
                f"startDate ({self.start_date}) must be before endDate ({self.end_date})",
                {"start_date": str(self.start_date), "end_date": str(self.end_date)},
            )
        if self.initial_capital is None or not self.initial_capital > 0:
            raise ConfigValidationError(
                "initialCapital must be positive",
                {"initial_capital": str(self.initial_capital)},
            )
        if self.strategy_config is None:
            raise ConfigValidationError("strategy configuration required")


# ─── Results ───


@dataclass(frozen=True)
class BacktestMetrics:
    """Performance statistics; every Decimal field has 6 fractional digits."""

    final_value: Decimal
    total_contributions: Decimal
    total_return_pct: Decimal
    cagr: Decimal
    max_drawdown: Decimal
    annualized_volatility: Decimal
    sharpe_ratio: Decimal
    number_of_trades: int


@dataclass(frozen=True)
class BacktestResult:
    """Terminal artifact of one backtest run."""

    strategy_id: str
    symbol: str
    equity_curve: tuple[EquityPoint, ...]
    trades: tuple[Trade, ...]
    metrics: BacktestMetrics


# ─── Strategy Metadata ───


@dataclass(frozen=True)
class StrategyParameter:
    """Describes one strategy parameter for UI/CLI presentation.

    Attributes:
        name: Parameter key as it appears in ``strategyParams``.
        description: Human-readable explanation.
        type: "integer" or "number".
        default_value: Suggested default, as a string.
    """

    name: str
    description: str
    type: ParameterType
    default_value: str


@dataclass(frozen=True)
class StrategyInfo:
    """Public description of a registered strategy."""

    id: str
    display_name: str
    description: str
    parameters: tuple[StrategyParameter, ...] = field(default_factory=tuple)
