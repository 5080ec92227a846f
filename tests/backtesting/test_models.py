"""Tests for backtest value objects: validation, sorting, slicing."""

from __future__ import annotations

import dataclasses
from datetime import date
from decimal import Decimal

import pytest

from strategylab.backtesting.configs import DcaConfig
from strategylab.backtesting.exceptions import ConfigValidationError, InsufficientDataError
from strategylab.backtesting.models import BacktestConfig, Candle, Instrument, PriceSeries, Trade
from tests.factories import make_candles, make_config, make_instrument, make_series


class TestInstrument:
    def test_valid_instrument(self):
        inst = Instrument(symbol="SPY", name="SPDR", asset_type="ETF")
        assert inst.symbol == "SPY"

    @pytest.mark.parametrize("symbol", ["", "   "])
    def test_blank_symbol_rejected(self, symbol):
        """A blank symbol is a validation error."""
        with pytest.raises(ConfigValidationError):
            Instrument(symbol=symbol)


class TestCandle:
    def test_close_required(self):
        with pytest.raises(ConfigValidationError):
            Candle(date=date(2024, 1, 2), close=None)

    def test_is_immutable(self):
        candle = Candle(date=date(2024, 1, 2), close=Decimal("100"))
        with pytest.raises(dataclasses.FrozenInstanceError):
            candle.close = Decimal("1")  # type: ignore[misc]


class TestPriceSeries:
    """Tests for PriceSeries construction and queries."""

    def test_candles_sorted_at_construction(self):
        """Candles given out of order are stored ascending by date."""
        candles = make_candles([1, 2, 3])
        series = PriceSeries(instrument=make_instrument(), candles=tuple(reversed(candles)))
        assert [c.date for c in series.candles] == [c.date for c in candles]

    def test_empty_series_rejected(self):
        with pytest.raises(InsufficientDataError):
            PriceSeries(instrument=make_instrument(), candles=())

    def test_start_end_and_len(self):
        series = make_series([10, 11, 12, 13])
        assert len(series) == 4
        assert series.start_date == date(2024, 1, 2)
        assert series.end_date == date(2024, 1, 5)

    def test_closes(self):
        series = make_series([10, 11.5, 12])
        assert series.closes() == [Decimal("10"), Decimal("11.5"), Decimal("12")]

    def test_slice_is_inclusive(self):
        """Both endpoints of the slice range are kept."""
        series = make_series([10, 11, 12, 13, 14])
        sliced = series.slice(date(2024, 1, 3), date(2024, 1, 5))
        assert [c.close for c in sliced.candles] == [Decimal("11"), Decimal("12"), Decimal("13")]
        assert sliced.instrument == series.instrument

    def test_slice_with_no_candles_raises(self):
        series = make_series([10, 11])
        with pytest.raises(InsufficientDataError, match="No candles in range"):
            series.slice(date(2025, 1, 1), date(2025, 2, 1))

    def test_candle_at_found(self):
        series = make_series([10, 11, 12])
        candle = series.candle_at(date(2024, 1, 3))
        assert candle is not None
        assert candle.close == Decimal("11")

    def test_candle_at_missing_date(self):
        series = make_series([10, 11, 12], step_days=2)
        assert series.candle_at(date(2024, 1, 3)) is None
        assert series.candle_at(date(2023, 1, 1)) is None


class TestTrade:
    def test_negative_quantity_rejected(self):
        with pytest.raises(ConfigValidationError):
            Trade(
                date=date(2024, 1, 2),
                action="BUY",
                quantity=Decimal("-1"),
                price=Decimal("10"),
                reason="x",
            )

    def test_unknown_action_rejected(self):
        with pytest.raises(ConfigValidationError):
            Trade(
                date=date(2024, 1, 2),
                action="HOLD",  # type: ignore[arg-type]
                quantity=Decimal("1"),
                price=Decimal("10"),
                reason="x",
            )


class TestBacktestConfig:
    """BacktestConfig validates eagerly at construction."""

    def test_valid_config(self):
        config = make_config()
        assert config.symbol == "SPY"
        assert config.initial_capital == Decimal("10000")

    @pytest.mark.parametrize("symbol", ["", "  "])
    def test_blank_symbol(self, symbol):
        with pytest.raises(ConfigValidationError, match="symbol"):
            make_config(symbol=symbol)

    def test_start_equal_to_end_rejected(self):
        with pytest.raises(ConfigValidationError, match="before endDate"):
            make_config(start_date=date(2024, 5, 1), end_date=date(2024, 5, 1))

    def test_start_after_end_rejected(self):
        with pytest.raises(ConfigValidationError):
            make_config(start_date=date(2024, 6, 1), end_date=date(2024, 5, 1))

    @pytest.mark.parametrize("capital", ["0", "-100"])
    def test_non_positive_capital(self, capital):
        with pytest.raises(ConfigValidationError, match="initialCapital"):
            make_config(initial_capital=Decimal(capital))

    def test_missing_strategy_config(self):
        with pytest.raises(ConfigValidationError):
            BacktestConfig(
                symbol="SPY",
                start_date=date(2024, 1, 1),
                end_date=date(2024, 2, 1),
                initial_capital=Decimal("1"),
                strategy_id="DCA",
                strategy_config=None,  # type: ignore[arg-type]
            )

    def test_carries_typed_strategy_config(self):
        config = make_config(
            strategy_config=DcaConfig(Decimal("500"), 21),
            strategy_id="DCA",
        )
        assert isinstance(config.strategy_config, DcaConfig)
