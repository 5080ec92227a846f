"""Application configuration via environment variables.

Uses pydantic-settings to load from .env file and environment variables.
All config is centralized here; import `get_settings()` where needed.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ─── App ───
    app_name: str = "StrategyLab"
    app_version: str = "0.1.0"
    environment: str = "development"
    log_level: str = "INFO"
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # ─── Yahoo Finance ───
    yahoo_base_url: str = "https://query1.finance.yahoo.com"
    yahoo_user_agent: str = "Mozilla/5.0"
    yahoo_timeout_seconds: float = 30.0
    yahoo_series_max_attempts: int = 3
    yahoo_validate_max_attempts: int = 2
    yahoo_backoff_base_seconds: float = 0.5
    yahoo_rate_limit_per_second: float = 2.0

    # ─── Market Data Cache ───
    market_data_cache_enabled: bool = True


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings singleton.

    Uses lru_cache so Settings is only instantiated once.
    In tests, call `get_settings.cache_clear()` to reset.
    """
    return Settings()
