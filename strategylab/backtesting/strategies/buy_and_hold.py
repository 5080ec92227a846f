"""Buy & Hold: invest everything at the first close and never trade again."""

from __future__ import annotations

from decimal import Decimal

from strategylab.backtesting.configs import BuyAndHoldConfig, StrategyConfig
from strategylab.backtesting.models import EquityPoint, PriceSeries, StrategyExecution, Trade
from strategylab.backtesting.precision import divide, multiply, quantize_money
from strategylab.backtesting.strategies.base import Strategy


class BuyAndHoldStrategy(Strategy):
    strategy_id = "BUY_AND_HOLD"
    display_name = "Buy & Hold"
    description = (
        "Invest all initial capital at the start date and hold until end. "
        "No additional contributions."
    )
    config_type = BuyAndHoldConfig

    def execute(
        self,
        series: PriceSeries,
        initial_capital: Decimal,
        config: StrategyConfig,
    ) -> StrategyExecution:
        self._check_config(config)

        first = series.candles[0]
        shares = divide(initial_capital, first.close)
        trades = (
            Trade(
                date=first.date,
                action="BUY",
                quantity=shares,
                price=first.close,
                reason="Initial buy of all capital",
            ),
        )

        curve = tuple(
            EquityPoint(date=c.date, portfolio_value=quantize_money(multiply(shares, c.close)))
            for c in series.candles
        )
        return StrategyExecution(equity_curve=curve, trades=trades)
