"""Base exception for StrategyLab.

All modules should raise subclasses of StrategyLabError instead of generic
exceptions. Subsystem-specific errors live beside their subsystem
(backtesting/exceptions.py, market_data/exceptions.py).
"""

from __future__ import annotations


class StrategyLabError(Exception):
    """Base exception for all StrategyLab errors.

    Args:
        message: Human-readable error description.
        context: Optional dict of structured data for logging/debugging.
    """

    def __init__(self, message: str, context: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            # Filter out anything that looks like a secret
            safe_context = {
                k: "[REDACTED]" if _is_secret_key(k) else v for k, v in self.context.items()
            }
            return f"{super().__str__()} | context={safe_context}"
        return super().__str__()


def _is_secret_key(key: str) -> bool:
    """Check if a dict key name suggests it contains secret data."""
    secret_words = {"key", "secret", "password", "token", "private", "pem", "credential"}
    key_lower = key.lower()
    return any(word in key_lower for word in secret_words)
