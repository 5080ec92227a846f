"""Structured logging setup for StrategyLab.

Every log line includes: timestamp, level, module tag, message, and structured data.
Secrets are automatically redacted from log output.

Usage:
    from strategylab.common.logging import get_logger
    logger = get_logger("BACKTEST")
    logger.info("Backtest completed", extra={"data": {"symbol": "SPY", "trades": 4}})
"""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import UTC, datetime

# Module tags for structured logging
MODULE_TAGS = {
    "BACKTEST",
    "MARKET",
    "CACHE",
    "API",
    "SYSTEM",
    "TEST",
}

# Regex to find secret-looking values in JSON strings
_SECRET_KEY_PATTERN = re.compile(
    r'"([^"]*(?:key|secret|password|token|private|pem|credential)[^"]*)":\s*"([^"]*)"',
    re.IGNORECASE,
)


def _redact_secrets(text: str) -> str:
    """Replace values of secret-looking keys with [REDACTED] in a string."""
    return _SECRET_KEY_PATTERN.sub(r'"\1": "[REDACTED]"', text)


class StructuredFormatter(logging.Formatter):
    """Formats log records as structured, human-readable lines.

    Output format:
        2025-02-15T10:30:00Z | INFO | BACKTEST | Backtest completed | {"symbol": "SPY"}
    """

    def format(self, record: logging.LogRecord) -> str:
        # Imported lazily: middleware imports this module
        from strategylab.common.middleware import request_id_var

        timestamp = datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
        level = record.levelname
        module_tag = getattr(record, "module_tag", "SYSTEM")
        rid = request_id_var.get("")

        # Extract structured data from extra
        data = getattr(record, "data", None)
        if data is not None:
            try:
                data_str = json.dumps(data, default=str)
                data_str = _redact_secrets(data_str)
            except (TypeError, ValueError):
                data_str = str(data)
        else:
            data_str = ""

        message = _redact_secrets(record.getMessage())

        parts = [timestamp, level]
        if rid:
            parts.append(f"rid={rid[:8]}")
        parts.extend([module_tag, message])
        if data_str:
            parts.append(data_str)

        return " | ".join(parts)


class ModuleTagLogger(logging.LoggerAdapter):
    """Logger adapter that injects module_tag and supports structured data.

    Usage:
        logger = get_logger("MARKET")
        logger.info("Fetched series", extra={"data": {"symbol": "SPY"}})
    """

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        extra = kwargs.get("extra", {})
        extra["module_tag"] = self.extra.get("module_tag", "SYSTEM")
        kwargs["extra"] = extra
        return msg, kwargs


# Cache loggers to avoid duplicate handlers
_loggers: dict[str, ModuleTagLogger] = {}


def _resolve_level() -> int:
    from strategylab.common.config import get_settings

    level = logging.getLevelName(get_settings().log_level.upper())
    return level if isinstance(level, int) else logging.INFO


def get_logger(module_tag: str) -> ModuleTagLogger:
    """Get a structured logger with the given module tag.

    Args:
        module_tag: One of the MODULE_TAGS (BACKTEST, MARKET, API, etc.)

    Returns:
        A logger adapter that injects the module tag into every log line.
    """
    if module_tag in _loggers:
        return _loggers[module_tag]

    logger = logging.getLogger(f"strategylab.{module_tag.lower()}")

    # Only add handler if this logger doesn't have one yet
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)
        logger.setLevel(_resolve_level())
        logger.propagate = False

    adapter = ModuleTagLogger(logger, {"module_tag": module_tag})
    _loggers[module_tag] = adapter
    return adapter
