"""Decimal contexts and rounding helpers shared by strategies and metrics.

Money and ratio fields never pass through binary floating point except
where a statistic needs it (mean, stddev, power); those results are
re-quantized here before they leave the metrics calculator.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Context, Decimal

# Share quantities and drawdown ratios: 16 significant digits, half-up
DIVISION_CONTEXT = Context(prec=16, rounding=ROUND_HALF_UP)

# Products and sums of money values stay exact for any realistic magnitude
EXACT_CONTEXT = Context(prec=50, rounding=ROUND_HALF_UP)

# Metrics come from floats, so 400 digits cover any finite value at 6 places
METRIC_CONTEXT = Context(prec=400, rounding=ROUND_HALF_UP)

METRIC_QUANTUM = Decimal("0.000001")
MONEY_QUANTUM = Decimal("0.01")


def divide(numerator: Decimal, denominator: Decimal) -> Decimal:
    """Divide at 16 significant digits, round-half-up."""
    return DIVISION_CONTEXT.divide(numerator, denominator)


def multiply(a: Decimal, b: Decimal) -> Decimal:
    return EXACT_CONTEXT.multiply(a, b)


def to_decimal(value: float | int | Decimal) -> Decimal:
    """Convert a float via its shortest repr so 0.1 stays 0.1."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def quantize_metric(value: float | int | Decimal) -> Decimal:
    """Round to 6 fractional digits, round-half-up."""
    return to_decimal(value).quantize(METRIC_QUANTUM, rounding=ROUND_HALF_UP, context=METRIC_CONTEXT)


def quantize_money(value: Decimal) -> Decimal:
    """Round a portfolio value to cents, round-half-up."""
    return value.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP, context=EXACT_CONTEXT)


def plain(value: Decimal) -> str:
    """Render a decimal without exponent notation (``1E+3`` -> ``1000``)."""
    return format(value, "f")
