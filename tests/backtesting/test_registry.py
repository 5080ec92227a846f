"""Tests for the strategy registry."""

from __future__ import annotations

from decimal import Decimal

import pytest

from strategylab.backtesting.configs import BuyAndHoldConfig, DcaConfig, MaCrossoverConfig
from strategylab.backtesting.exceptions import ConfigValidationError, UnknownStrategyError
from strategylab.backtesting.strategies.buy_and_hold import BuyAndHoldStrategy
from strategylab.backtesting.strategies.dca import DcaStrategy
from strategylab.backtesting.strategies.registry import (
    StrategyDefinition,
    StrategyRegistry,
    build_default_registry,
)


class TestDefaultRegistry:
    """Tests for build_default_registry()."""

    def test_ids_in_stable_order(self, registry):
        assert registry.ids() == ["BUY_AND_HOLD", "DCA", "MA_CROSSOVER"]

    def test_each_build_is_independent(self):
        assert build_default_registry() is not build_default_registry()

    @pytest.mark.parametrize("strategy_id", ["DCA", "dca", "  Dca  "])
    def test_lookup_is_trimmed_and_case_insensitive(self, registry, strategy_id):
        assert registry.get(strategy_id).strategy_id == "DCA"
        assert strategy_id in registry

    @pytest.mark.parametrize("strategy_id", ["RANDOM", "", "BUY AND HOLD"])
    def test_unknown_id(self, registry, strategy_id):
        with pytest.raises(UnknownStrategyError, match="Unknown strategy"):
            registry.get(strategy_id)

    def test_unknown_error_lists_available_ids(self, registry):
        with pytest.raises(UnknownStrategyError) as exc_info:
            registry.get("NOPE")
        assert exc_info.value.context["available"] == ["BUY_AND_HOLD", "DCA", "MA_CROSSOVER"]


class TestListStrategies:
    def test_metadata(self, registry):
        infos = registry.list_strategies()
        assert [i.id for i in infos] == ["BUY_AND_HOLD", "DCA", "MA_CROSSOVER"]
        assert infos[0].display_name == "Buy & Hold"
        assert infos[0].parameters == ()

    def test_dca_parameter_schema(self, registry):
        dca = registry.list_strategies()[1]
        assert [(p.name, p.type, p.default_value) for p in dca.parameters] == [
            ("contributionAmount", "number", "500"),
            ("frequencyDays", "integer", "21"),
        ]

    def test_ma_crossover_parameter_schema(self, registry):
        ma = registry.list_strategies()[2]
        assert [(p.name, p.type, p.default_value) for p in ma.parameters] == [
            ("shortWindow", "integer", "20"),
            ("longWindow", "integer", "50"),
        ]


class TestCreate:
    """Tests for StrategyRegistry.create()."""

    def test_buy_and_hold_without_params(self, registry):
        strategy, config = registry.create("BUY_AND_HOLD", None)
        assert isinstance(strategy, BuyAndHoldStrategy)
        assert config == BuyAndHoldConfig()

    def test_dca_with_params(self, registry):
        strategy, config = registry.create(
            "dca", {"contributionAmount": "250", "frequencyDays": "10"}
        )
        assert isinstance(strategy, DcaStrategy)
        assert config == DcaConfig(Decimal("250"), 10)

    def test_ma_crossover_with_params(self, registry):
        _, config = registry.create("MA_CROSSOVER", {"shortWindow": "5", "longWindow": "20"})
        assert config == MaCrossoverConfig(5, 20)

    def test_invalid_params(self, registry):
        with pytest.raises(ConfigValidationError):
            registry.create("MA_CROSSOVER", {"shortWindow": "50", "longWindow": "20"})

    def test_missing_params(self, registry):
        with pytest.raises(ConfigValidationError, match="Missing required parameter"):
            registry.create("DCA", {})

    def test_unknown_strategy(self, registry):
        with pytest.raises(UnknownStrategyError):
            registry.create("MOMENTUM", {})


class TestCustomRegistry:
    def test_duplicate_registration_rejected(self):
        definition = StrategyDefinition(BuyAndHoldStrategy(), BuyAndHoldConfig.from_params)
        registry = StrategyRegistry([definition])
        with pytest.raises(ValueError, match="already registered"):
            registry.register(definition)

    def test_empty_registry(self):
        registry = StrategyRegistry()
        assert len(registry) == 0
        assert registry.list_strategies() == []
