"""Metrics calculator for backtest results.

Computes performance statistics from an equity curve:
- Final value, total contributions, total return
- CAGR
- Maximum drawdown
- Annualized volatility (population stddev of daily returns x sqrt(252))
- Sharpe ratio (risk-free rate 0)

Every returned Decimal is quantized to 6 fractional digits, round-half-up.
Floats are used only for mean/stddev/power and re-quantized afterwards.

Usage:
    from strategylab.backtesting.metrics import compute_metrics

    metrics = compute_metrics(execution.equity_curve, contributions, len(execution.trades))
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from decimal import Decimal

from strategylab.backtesting.exceptions import ComputationError, InsufficientDataError
from strategylab.backtesting.models import BacktestMetrics, EquityPoint
from strategylab.backtesting.precision import EXACT_CONTEXT, divide, quantize_metric, to_decimal

TRADING_DAYS_PER_YEAR = 252
DAYS_PER_YEAR = 365.25

_ZERO = Decimal("0")


def compute_metrics(
    equity_curve: Sequence[EquityPoint],
    total_contributions: Decimal,
    trade_count: int,
) -> BacktestMetrics:
    """Compute all metrics for one run.

    Args:
        equity_curve: Daily portfolio values, oldest first.
        total_contributions: Capital put in over the run.
        trade_count: Number of trades executed.

    Returns:
        BacktestMetrics with every decimal field at 6 fractional digits.

    Raises:
        InsufficientDataError: If the curve has fewer than 2 points.
        ComputationError: If CAGR overflows a float.
    """
    if equity_curve is None or len(equity_curve) < 2:
        raise InsufficientDataError(
            "Need at least 2 equity points to compute metrics",
            {"points": 0 if equity_curve is None else len(equity_curve)},
        )

    final_value = equity_curve[-1].portfolio_value
    returns = daily_returns(equity_curve)
    volatility = compute_annualized_volatility(returns)

    return BacktestMetrics(
        final_value=quantize_metric(final_value),
        total_contributions=quantize_metric(total_contributions),
        total_return_pct=compute_total_return(final_value, total_contributions),
        cagr=compute_cagr(equity_curve),
        max_drawdown=compute_max_drawdown(equity_curve),
        annualized_volatility=volatility,
        sharpe_ratio=compute_sharpe(returns, volatility),
        number_of_trades=trade_count,
    )


def compute_total_return(final_value: Decimal, total_contributions: Decimal) -> Decimal:
    """(final - contributions) / contributions; 0 when nothing was contributed."""
    if total_contributions <= 0:
        return quantize_metric(_ZERO)
    gain = EXACT_CONTEXT.subtract(final_value, total_contributions)
    return quantize_metric(divide(gain, total_contributions))


def compute_cagr(equity_curve: Sequence[EquityPoint]) -> Decimal:
    """CAGR = (final / initial) ^ (365.25 / days) - 1.

    Returns 0 when the initial value is not positive, no days elapsed, or
    the growth ratio is not positive.
    """
    first, last = equity_curve[0], equity_curve[-1]
    if first.portfolio_value <= 0:
        return quantize_metric(_ZERO)

    days = (last.date - first.date).days
    if days <= 0:
        return quantize_metric(_ZERO)

    ratio = float(last.portfolio_value) / float(first.portfolio_value)
    if ratio <= 0:
        return quantize_metric(_ZERO)

    years = days / DAYS_PER_YEAR
    try:
        cagr = math.pow(ratio, 1.0 / years) - 1.0
    except OverflowError as exc:
        raise ComputationError(
            "CAGR is too large to represent",
            {"ratio": ratio, "days": days},
        ) from exc
    return quantize_metric(cagr)


def compute_max_drawdown(equity_curve: Sequence[EquityPoint]) -> Decimal:
    """Largest peak-to-trough decline as a fraction in [0, 1].

    The running peak is updated before the drawdown at each point is
    measured, so a non-decreasing curve yields 0.
    """
    peak = equity_curve[0].portfolio_value
    max_dd = _ZERO

    for point in equity_curve:
        value = point.portfolio_value
        if value > peak:
            peak = value
        if peak > 0:
            dd = divide(EXACT_CONTEXT.subtract(peak, value), peak)
            if dd > max_dd:
                max_dd = dd

    return quantize_metric(max_dd)


def daily_returns(equity_curve: Sequence[EquityPoint]) -> list[float]:
    """Simple returns between consecutive points, skipping non-positive bases."""
    returns: list[float] = []
    for prev_point, point in zip(equity_curve, equity_curve[1:]):
        prev = float(prev_point.portfolio_value)
        if prev > 0:
            returns.append((float(point.portfolio_value) - prev) / prev)
    return returns


def compute_annualized_volatility(returns: Sequence[float]) -> Decimal:
    """Population stddev of daily returns x sqrt(252); 0 with no returns."""
    if not returns:
        return quantize_metric(_ZERO)

    mean = sum(returns) / len(returns)
    variance = sum((r - mean) ** 2 for r in returns) / len(returns)
    return quantize_metric(math.sqrt(variance) * math.sqrt(TRADING_DAYS_PER_YEAR))


def compute_sharpe(returns: Sequence[float], volatility: Decimal) -> Decimal:
    """mean(daily returns) / annualized volatility; 0 when volatility is 0."""
    if not returns or volatility == 0:
        return quantize_metric(_ZERO)

    mean = sum(returns) / len(returns)
    return quantize_metric(divide(to_decimal(mean), volatility))
