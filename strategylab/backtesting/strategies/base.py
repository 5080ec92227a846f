"""Common contract for backtest strategies.

A strategy is stateless: ``execute`` keeps its cash/share accumulators in
local variables, so one instance can serve any number of concurrent runs.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import ClassVar

from strategylab.backtesting.configs import StrategyConfig
from strategylab.backtesting.exceptions import ConfigValidationError
from strategylab.backtesting.models import (
    PriceSeries,
    StrategyExecution,
    StrategyInfo,
    StrategyParameter,
)


class Strategy(ABC):
    """Base class for every strategy variant.

    Subclasses set the class-level metadata and implement ``execute``.
    """

    strategy_id: ClassVar[str]
    display_name: ClassVar[str]
    description: ClassVar[str]
    parameters: ClassVar[tuple[StrategyParameter, ...]] = ()
    config_type: ClassVar[type]

    @abstractmethod
    def execute(
        self,
        series: PriceSeries,
        initial_capital: Decimal,
        config: StrategyConfig,
    ) -> StrategyExecution:
        """Simulate the strategy over ``series``.

        Args:
            series: Sorted daily candles to trade on.
            initial_capital: Starting cash.
            config: Parameters; must be an instance of ``config_type``.

        Returns:
            One equity point per candle and the trades executed.
        """

    def info(self) -> StrategyInfo:
        return StrategyInfo(
            id=self.strategy_id,
            display_name=self.display_name,
            description=self.description,
            parameters=self.parameters,
        )

    def _check_config(self, config: StrategyConfig) -> StrategyConfig:
        """Return ``config`` unchanged if it is a ``config_type``, else raise."""
        if not isinstance(config, self.config_type):
            raise ConfigValidationError(
                f"{self.strategy_id} expects {self.config_type.__name__}, "
                f"got {type(config).__name__}",
                {"strategy_id": self.strategy_id},
            )
        return config
