"""Backtesting module: strategy simulation and performance metrics.

Runs Buy & Hold, DCA and Moving Average Crossover strategies over a daily
price series and reports CAGR, drawdown, volatility and Sharpe ratio.
The core (models, strategies, metrics, engine) is synchronous and does
no I/O; the service layer fetches data and runs backtests in parallel.
"""

from __future__ import annotations
