"""Moving Average Crossover: fully invested while SMA(short) > SMA(long).

Two states, IN_CASH (initial) and INVESTED. The strategy only trades when
the signal flips, so a persisting condition never produces repeated trades.
"""

from __future__ import annotations

from decimal import Decimal
from typing import cast

from strategylab.backtesting.configs import MaCrossoverConfig, StrategyConfig
from strategylab.backtesting.models import (
    EquityPoint,
    PriceSeries,
    StrategyExecution,
    StrategyParameter,
    Trade,
)
from strategylab.backtesting.precision import divide, multiply, quantize_money
from strategylab.backtesting.sma import compute_sma
from strategylab.backtesting.strategies.base import Strategy


class MaCrossoverStrategy(Strategy):
    strategy_id = "MA_CROSSOVER"
    display_name = "Moving Average Crossover"
    description = (
        "Fully invested when short SMA > long SMA; fully in cash otherwise. "
        "Trades only on signal changes."
    )
    parameters = (
        StrategyParameter(
            name="shortWindow",
            description="Short SMA window (trading days)",
            type="integer",
            default_value="20",
        ),
        StrategyParameter(
            name="longWindow",
            description="Long SMA window (trading days)",
            type="integer",
            default_value="50",
        ),
    )
    config_type = MaCrossoverConfig

    def execute(
        self,
        series: PriceSeries,
        initial_capital: Decimal,
        config: StrategyConfig,
    ) -> StrategyExecution:
        params = cast(MaCrossoverConfig, self._check_config(config))
        short_w, long_w = params.short_window, params.long_window

        closes = series.closes()
        # Raises InsufficientDataError when the series is shorter than a window
        short_sma = compute_sma(closes, short_w)
        long_sma = compute_sma(closes, long_w)

        cash = initial_capital
        shares = Decimal("0")
        invested = False
        curve: list[EquityPoint] = []
        trades: list[Trade] = []

        for candle, short_val, long_val in zip(series.candles, short_sma, long_sma, strict=True):
            if short_val is not None and long_val is not None:
                should_be_invested = short_val > long_val

                if should_be_invested and not invested:
                    shares = divide(cash, candle.close)
                    trades.append(
                        Trade(
                            date=candle.date,
                            action="BUY",
                            quantity=shares,
                            price=candle.close,
                            reason=f"SMA({short_w}) crossed above SMA({long_w})",
                        )
                    )
                    cash = Decimal("0")
                    invested = True
                elif not should_be_invested and invested:
                    cash = multiply(shares, candle.close)
                    trades.append(
                        Trade(
                            date=candle.date,
                            action="SELL",
                            quantity=shares,
                            price=candle.close,
                            reason=f"SMA({short_w}) crossed below SMA({long_w})",
                        )
                    )
                    shares = Decimal("0")
                    invested = False

            value = multiply(shares, candle.close) if invested else cash
            curve.append(EquityPoint(date=candle.date, portfolio_value=quantize_money(value)))

        return StrategyExecution(equity_curve=tuple(curve), trades=tuple(trades))
