"""Dollar Cost Averaging: a fixed cash contribution every N trading days."""

from __future__ import annotations

from decimal import Decimal
from typing import cast

from strategylab.backtesting.configs import DcaConfig, StrategyConfig
from strategylab.backtesting.models import (
    EquityPoint,
    PriceSeries,
    StrategyExecution,
    StrategyParameter,
    Trade,
)
from strategylab.backtesting.precision import EXACT_CONTEXT, divide, multiply, plain, quantize_money
from strategylab.backtesting.strategies.base import Strategy


class DcaStrategy(Strategy):
    """Buy on day 0 with the initial capital, then every ``frequency_days``.

    Never sells. Fractional shares are allowed, so cash is driven to zero
    after every purchase.
    """

    strategy_id = "DCA"
    display_name = "Dollar Cost Averaging (DCA)"
    description = (
        "Buy a fixed dollar amount every N trading days. No selling. Fractional shares allowed."
    )
    parameters = (
        StrategyParameter(
            name="contributionAmount",
            description="Dollar amount to invest each period",
            type="number",
            default_value="500",
        ),
        StrategyParameter(
            name="frequencyDays",
            description="Trading days between contributions (5=weekly, 21=monthly)",
            type="integer",
            default_value="21",
        ),
    )
    config_type = DcaConfig

    def execute(
        self,
        series: PriceSeries,
        initial_capital: Decimal,
        config: StrategyConfig,
    ) -> StrategyExecution:
        params = cast(DcaConfig, self._check_config(config))

        cash = initial_capital
        shares = Decimal("0")
        days_since_contribution = 0
        curve: list[EquityPoint] = []
        trades: list[Trade] = []

        for i, candle in enumerate(series.candles):
            if i == 0:
                bought = divide(cash, candle.close)
                shares = EXACT_CONTEXT.add(shares, bought)
                trades.append(
                    Trade(
                        date=candle.date,
                        action="BUY",
                        quantity=bought,
                        price=candle.close,
                        reason=f"Initial investment of {plain(cash)}",
                    )
                )
                cash = Decimal("0")
                days_since_contribution = 0
            else:
                days_since_contribution += 1
                if days_since_contribution >= params.frequency_days:
                    cash = EXACT_CONTEXT.add(cash, params.contribution_amount)
                    bought = divide(cash, candle.close)
                    shares = EXACT_CONTEXT.add(shares, bought)
                    trades.append(
                        Trade(
                            date=candle.date,
                            action="BUY",
                            quantity=bought,
                            price=candle.close,
                            reason=f"DCA contribution of {plain(params.contribution_amount)}",
                        )
                    )
                    cash = Decimal("0")
                    days_since_contribution = 0

            value = EXACT_CONTEXT.add(multiply(shares, candle.close), cash)
            curve.append(EquityPoint(date=candle.date, portfolio_value=quantize_money(value)))

        return StrategyExecution(equity_curve=tuple(curve), trades=tuple(trades))
