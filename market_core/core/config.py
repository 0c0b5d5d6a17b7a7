"""
Application configuration using Pydantic Settings.
Following Factor 1: Own Your Configuration.

Supports hierarchical environment configuration:
- .env.base: Common non-secret defaults (committed to git)
- .env.{ENVIRONMENT}: Environment-specific overrides (gitignored)
- Environment variables: Highest priority
"""

import os
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

# Get environment from env var, default to development
ENV = os.getenv("ENVIRONMENT", "development")


class Settings(BaseSettings):
    """Application settings with hierarchical env file support."""

    model_config = SettingsConfigDict(
        # Load base first, then environment-specific override
        env_file=[
            ".env.base",  # Common defaults (committed)
            f".env.{ENV}",  # Environment overrides (gitignored)
        ],
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "test", "production"] = "development"

    # Cache / counter store. Empty URL disables caching and rate limiting (fail open).
    redis_url: str = "redis://localhost:6379"

    cors_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # External APIs - Market Data
    fmp_api_key: str = ""  # Financial Modeling Prep (fundamentals)
    fmp_base_url: str = "https://financialmodelingprep.com/api/v3"
    provider_timeout_seconds: float = 15.0  # Upper bound for any single provider call

    # Benchmark used for beta
    benchmark_symbol: str = "SPY"

    # Cache settings - TTL values in seconds by data category
    cache_ttl_quote: int = 60  # Real-time quotes (1 min)
    cache_ttl_search: int = 3600  # Symbol search (1 hour)
    cache_ttl_fundamentals: int = 3600  # Fundamentals per tier (1 hour)
    cache_ttl_risk: int = 3600  # Risk profile (1 hour)
    cache_ttl_market_overview: int = 60  # Indices and sectors (1 min)

    # Rate limiting budgets: (requests, window seconds) per limit class and tier
    rate_limit_api_free: tuple[int, int] = (60, 60)  # 60 per minute
    rate_limit_api_pro: tuple[int, int] = (300, 60)  # 300 per minute
    rate_limit_ai_free: tuple[int, int] = (5, 86400)  # 5 per day
    rate_limit_ai_pro: tuple[int, int] = (100, 3600)  # 100 per hour
    rate_limit_search_free: tuple[int, int] = (10, 3600)  # 10 per hour
    rate_limit_search_pro: tuple[int, int] = (100, 3600)  # 100 per hour

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
