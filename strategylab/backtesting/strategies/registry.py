"""Strategy registry: strategy ids mapped to implementations and config parsers.

The registry is an explicit object built once at startup with
``build_default_registry()`` and handed to the service layer; there is no
module-level global table.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass

from strategylab.backtesting.configs import (
    BuyAndHoldConfig,
    DcaConfig,
    MaCrossoverConfig,
    StrategyConfig,
)
from strategylab.backtesting.exceptions import UnknownStrategyError
from strategylab.backtesting.models import StrategyInfo
from strategylab.backtesting.strategies.base import Strategy
from strategylab.backtesting.strategies.buy_and_hold import BuyAndHoldStrategy
from strategylab.backtesting.strategies.dca import DcaStrategy
from strategylab.backtesting.strategies.ma_crossover import MaCrossoverStrategy


@dataclass(frozen=True)
class StrategyDefinition:
    """One registry entry.

    Attributes:
        strategy: Stateless strategy implementation.
        parse_config: Builds a typed config from raw string parameters.
    """

    strategy: Strategy
    parse_config: Callable[[Mapping[str, str]], StrategyConfig]

    @property
    def strategy_id(self) -> str:
        return self.strategy.strategy_id


class StrategyRegistry:
    """Ordered table of available strategies.

    Lookups trim whitespace and ignore case, so ``" dca "`` finds ``DCA``.
    """

    def __init__(self, definitions: list[StrategyDefinition] | None = None) -> None:
        self._definitions: dict[str, StrategyDefinition] = {}
        for definition in definitions or []:
            self.register(definition)

    def register(self, definition: StrategyDefinition) -> None:
        key = _normalize(definition.strategy_id)
        if key in self._definitions:
            msg = f"Strategy already registered: {definition.strategy_id}"
            raise ValueError(msg)
        self._definitions[key] = definition

    def ids(self) -> list[str]:
        return [d.strategy_id for d in self._definitions.values()]

    def get(self, strategy_id: str) -> StrategyDefinition:
        """Look up a strategy by id.

        Raises:
            UnknownStrategyError: If no strategy is registered under the id.
        """
        definition = self._definitions.get(_normalize(strategy_id or ""))
        if definition is None:
            raise UnknownStrategyError(
                f"Unknown strategy: {strategy_id}",
                {"strategy_id": strategy_id, "available": self.ids()},
            )
        return definition

    def list_strategies(self) -> list[StrategyInfo]:
        """Describe every registered strategy, in registration order."""
        return [d.strategy.info() for d in self._definitions.values()]

    def create(
        self, strategy_id: str, raw_params: Mapping[str, str] | None = None
    ) -> tuple[Strategy, StrategyConfig]:
        """Resolve a strategy and parse its parameters.

        Args:
            strategy_id: Strategy identifier as supplied by the caller.
            raw_params: Raw string parameters; None is treated as empty.

        Returns:
            (strategy, typed config) pair ready for the engine.

        Raises:
            UnknownStrategyError: If the id is not registered.
            ConfigValidationError: If the parameters are missing or invalid.
        """
        definition = self.get(strategy_id)
        config = definition.parse_config(raw_params or {})
        return definition.strategy, config

    def __contains__(self, strategy_id: object) -> bool:
        return isinstance(strategy_id, str) and _normalize(strategy_id) in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)


def _normalize(strategy_id: str) -> str:
    return strategy_id.strip().upper()


def build_default_registry() -> StrategyRegistry:
    """Registry with Buy & Hold, DCA and MA Crossover, in that order."""
    return StrategyRegistry(
        [
            StrategyDefinition(BuyAndHoldStrategy(), BuyAndHoldConfig.from_params),
            StrategyDefinition(DcaStrategy(), DcaConfig.from_params),
            StrategyDefinition(MaCrossoverStrategy(), MaCrossoverConfig.from_params),
        ]
    )
