"""Simple moving average over closing prices."""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from strategylab.backtesting.exceptions import ConfigValidationError, InsufficientDataError
from strategylab.backtesting.precision import EXACT_CONTEXT, quantize_metric


def compute_sma(prices: Sequence[Decimal], window: int) -> list[Decimal | None]:
    """Compute the SMA series for ``window``.

    The output has the same length as ``prices``. Indices ``0..window-2``
    are None (not enough history yet); every later entry is the mean of the
    trailing ``window`` prices rounded to 6 decimal places, half-up. A running
    sum keeps this O(n).

    Args:
        prices: Ordered close prices.
        window: Number of trailing prices to average.

    Returns:
        List of SMA values, None where the window is not yet full.

    Raises:
        ConfigValidationError: If window is not positive.
        InsufficientDataError: If there are fewer prices than ``window``.
    """
    if window <= 0:
        raise ConfigValidationError("window must be positive", {"window": window})
    if len(prices) < window:
        raise InsufficientDataError(
            f"Need at least {window} prices for SMA({window}), got {len(prices)}",
            {"window": window, "prices": len(prices)},
        )

    divisor = Decimal(window)
    result: list[Decimal | None] = []
    running = Decimal("0")

    for i, price in enumerate(prices):
        running = EXACT_CONTEXT.add(running, price)
        if i < window - 1:
            result.append(None)
            continue
        if i >= window:
            running = EXACT_CONTEXT.subtract(running, prices[i - window])
        result.append(quantize_metric(EXACT_CONTEXT.divide(running, divisor)))

    return result
