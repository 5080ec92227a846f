"""Market data module: daily price history from Yahoo Finance.

Provides the provider protocol consumed by the backtest service, the
Yahoo Finance chart API client and an in-memory single-flight cache.
"""

from __future__ import annotations
