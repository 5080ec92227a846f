"""Pydantic wire schemas for the backtest API.

Field names are camelCase on the wire (``startDate``, ``portfolioValue``)
and snake_case in Python. Decimals are serialized as JSON numbers.

Request models convert themselves to domain objects (``to_config``);
response models are built from domain objects (``from_domain``).
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator
from pydantic.alias_generators import to_camel

from strategylab.backtesting.models import (
    BacktestConfig,
    BacktestMetrics,
    BacktestResult,
    EquityPoint,
    Instrument,
    StrategyInfo,
    StrategyParameter,
    Trade,
)
from strategylab.backtesting.strategies.registry import StrategyRegistry

DecimalNumber = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class CamelModel(BaseModel):
    """Base model with camelCase aliases; accepts either spelling on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ─── Requests ───


class BacktestRequestItem(CamelModel):
    """One backtest configuration as submitted by a client."""

    symbol: str
    start_date: dt.date
    end_date: dt.date
    initial_capital: Decimal
    strategy_id: str
    strategy_params: dict[str, str] = Field(default_factory=dict)

    @field_validator("strategy_params", mode="before")
    @classmethod
    def stringify_params(cls, v: object) -> object:
        """Accept JSON numbers as parameter values (``{"frequencyDays": 5}``)."""
        if v is None:
            return {}
        if isinstance(v, dict):
            return {
                k: str(val) if isinstance(val, int | float) and not isinstance(val, bool) else val
                for k, val in v.items()
            }
        return v

    def to_config(self, registry: StrategyRegistry) -> BacktestConfig:
        """Resolve the strategy and build a validated domain config.

        Raises:
            UnknownStrategyError: If strategyId is not registered.
            ConfigValidationError: If parameters or the config are invalid.
        """
        strategy, strategy_config = registry.create(self.strategy_id, self.strategy_params)
        return BacktestConfig(
            symbol=self.symbol.strip().upper(),
            start_date=self.start_date,
            end_date=self.end_date,
            initial_capital=self.initial_capital,
            strategy_id=strategy.strategy_id,
            strategy_config=strategy_config,
        )


class BacktestRequest(CamelModel):
    """Comparison-mode request: one or more backtests run together."""

    backtests: list[BacktestRequestItem] = Field(default_factory=list)


# ─── Results ───


class EquityPointOut(CamelModel):
    date: dt.date
    portfolio_value: DecimalNumber

    @classmethod
    def from_domain(cls, point: EquityPoint) -> EquityPointOut:
        return cls(date=point.date, portfolio_value=point.portfolio_value)


class TradeOut(CamelModel):
    date: dt.date
    action: Literal["BUY", "SELL"]
    quantity: DecimalNumber
    price: DecimalNumber
    reason: str

    @classmethod
    def from_domain(cls, trade: Trade) -> TradeOut:
        return cls(
            date=trade.date,
            action=trade.action,
            quantity=trade.quantity,
            price=trade.price,
            reason=trade.reason,
        )


class MetricsOut(CamelModel):
    final_value: DecimalNumber
    total_contributions: DecimalNumber
    total_return_pct: DecimalNumber
    cagr: DecimalNumber
    max_drawdown: DecimalNumber
    annualized_volatility: DecimalNumber
    sharpe_ratio: DecimalNumber
    number_of_trades: int

    @classmethod
    def from_domain(cls, metrics: BacktestMetrics) -> MetricsOut:
        return cls(
            final_value=metrics.final_value,
            total_contributions=metrics.total_contributions,
            total_return_pct=metrics.total_return_pct,
            cagr=metrics.cagr,
            max_drawdown=metrics.max_drawdown,
            annualized_volatility=metrics.annualized_volatility,
            sharpe_ratio=metrics.sharpe_ratio,
            number_of_trades=metrics.number_of_trades,
        )


class BacktestResultOut(CamelModel):
    strategy_id: str
    symbol: str
    equity_curve: list[EquityPointOut]
    trades: list[TradeOut]
    metrics: MetricsOut

    @classmethod
    def from_domain(cls, result: BacktestResult) -> BacktestResultOut:
        return cls(
            strategy_id=result.strategy_id,
            symbol=result.symbol,
            equity_curve=[EquityPointOut.from_domain(p) for p in result.equity_curve],
            trades=[TradeOut.from_domain(t) for t in result.trades],
            metrics=MetricsOut.from_domain(result.metrics),
        )


class BacktestResponse(CamelModel):
    results: list[BacktestResultOut]


# ─── Strategies & Instruments ───


class StrategyParameterOut(CamelModel):
    name: str
    description: str
    type: Literal["integer", "number"]
    default_value: str

    @classmethod
    def from_domain(cls, param: StrategyParameter) -> StrategyParameterOut:
        return cls(
            name=param.name,
            description=param.description,
            type=param.type,
            default_value=param.default_value,
        )


class StrategyInfoOut(CamelModel):
    id: str
    display_name: str
    description: str
    parameters: list[StrategyParameterOut]

    @classmethod
    def from_domain(cls, info: StrategyInfo) -> StrategyInfoOut:
        return cls(
            id=info.id,
            display_name=info.display_name,
            description=info.description,
            parameters=[StrategyParameterOut.from_domain(p) for p in info.parameters],
        )


class InstrumentOut(CamelModel):
    symbol: str
    name: str
    asset_type: str

    @classmethod
    def from_domain(cls, instrument: Instrument) -> InstrumentOut:
        return cls(symbol=instrument.symbol, name=instrument.name, asset_type=instrument.asset_type)
