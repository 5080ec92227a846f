"""Typed strategy configurations.

``StrategyConfig`` is a closed union of three frozen dataclasses. Each
variant validates itself on construction, can be parsed from the raw
string parameters of an API request (``from_params``) and knows how much
capital the strategy contributed over a run (``total_contributions``).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from strategylab.backtesting.exceptions import ConfigValidationError
from strategylab.backtesting.precision import EXACT_CONTEXT

# The first trade of a DCA run spends the initial capital, not a contribution
_INITIAL_TRADE_COUNT = 1


def _required(params: Mapping[str, str], name: str) -> str:
    raw = params.get(name)
    if raw is None or not str(raw).strip():
        raise ConfigValidationError(f"Missing required parameter: {name}", {"parameter": name})
    return str(raw).strip()


def _parse_int(params: Mapping[str, str], name: str) -> int:
    raw = _required(params, name)
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigValidationError(
            f"{name} must be a valid integer: {raw}", {"parameter": name, "value": raw}
        ) from exc


def _parse_decimal(params: Mapping[str, str], name: str) -> Decimal:
    raw = _required(params, name)
    try:
        value = Decimal(raw)
    except InvalidOperation as exc:
        raise ConfigValidationError(
            f"{name} must be a valid number: {raw}", {"parameter": name, "value": raw}
        ) from exc
    if not value.is_finite():
        raise ConfigValidationError(
            f"{name} must be a valid number: {raw}", {"parameter": name, "value": raw}
        )
    return value


@dataclass(frozen=True)
class BuyAndHoldConfig:
    """Buy-and-Hold takes no parameters."""

    @classmethod
    def from_params(cls, params: Mapping[str, str]) -> BuyAndHoldConfig:  # noqa: ARG003
        return cls()

    def total_contributions(self, initial_capital: Decimal, trade_count: int) -> Decimal:  # noqa: ARG002
        return initial_capital


@dataclass(frozen=True)
class DcaConfig:
    """Dollar Cost Averaging parameters.

    Attributes:
        contribution_amount: Cash invested at each periodic contribution.
        frequency_days: Trading days between contributions.
    """

    contribution_amount: Decimal
    frequency_days: int

    def __post_init__(self) -> None:
        if self.contribution_amount is None or not self.contribution_amount > 0:
            raise ConfigValidationError(
                "contributionAmount must be a positive number",
                {"contribution_amount": str(self.contribution_amount)},
            )
        if self.frequency_days is None or self.frequency_days <= 0:
            raise ConfigValidationError(
                "frequencyDays must be a positive integer",
                {"frequency_days": self.frequency_days},
            )

    @classmethod
    def from_params(cls, params: Mapping[str, str]) -> DcaConfig:
        """Parse ``contributionAmount`` and ``frequencyDays`` from raw strings.

        Raises:
            ConfigValidationError: If a parameter is missing, non-numeric or
                not strictly positive.
        """
        amount = _parse_decimal(params, "contributionAmount")
        frequency = _parse_int(params, "frequencyDays")
        return cls(contribution_amount=amount, frequency_days=frequency)

    def total_contributions(self, initial_capital: Decimal, trade_count: int) -> Decimal:
        """Initial capital plus one contribution per trade after the first."""
        contributions = max(0, trade_count - _INITIAL_TRADE_COUNT)
        return EXACT_CONTEXT.add(
            initial_capital,
            EXACT_CONTEXT.multiply(self.contribution_amount, Decimal(contributions)),
        )


@dataclass(frozen=True)
class MaCrossoverConfig:
    """Moving Average Crossover parameters; requires short_window < long_window."""

    short_window: int
    long_window: int

    def __post_init__(self) -> None:
        if self.short_window is None or self.short_window <= 0:
            raise ConfigValidationError(
                "shortWindow must be a positive integer", {"short_window": self.short_window}
            )
        if self.long_window is None or self.long_window <= 0:
            raise ConfigValidationError(
                "longWindow must be a positive integer", {"long_window": self.long_window}
            )
        if self.short_window >= self.long_window:
            raise ConfigValidationError(
                "shortWindow must be less than longWindow",
                {"short_window": self.short_window, "long_window": self.long_window},
            )

    @classmethod
    def from_params(cls, params: Mapping[str, str]) -> MaCrossoverConfig:
        short = _parse_int(params, "shortWindow")
        long = _parse_int(params, "longWindow")
        return cls(short_window=short, long_window=long)

    def total_contributions(self, initial_capital: Decimal, trade_count: int) -> Decimal:  # noqa: ARG002
        return initial_capital


StrategyConfig = BuyAndHoldConfig | DcaConfig | MaCrossoverConfig
