"""
Data Manager Layer - cache-first access to market data.

This module provides a unified interface for fetching and caching market data,
ensuring consistent cache key naming, TTL strategies, and no duplicate API calls.

Usage:
    from market_core.services.data_manager import MarketDataGateway, CacheOperations

    gateway = MarketDataGateway(CacheOperations(redis_cache), provider, settings)
    quote = await gateway.get_quote("AAPL")
    bars = await gateway.get_chart_data("AAPL", "1M")

Cache Key Convention:
    {namespace}:{identifier}[:{qualifier}]

    Examples:
    - quote:AAPL
    - chart:AAPL:1M
    - fundamentals:AAPL:pro
    - market:sectors
"""

from .cache import CacheOperations, CacheStore
from .gateway import MarketDataGateway
from .keys import CacheKeys
from .types import (
    ChartRange,
    MarketIndex,
    MarketSector,
    PricePoint,
    Quote,
    SymbolResult,
    Tier,
)

__all__ = [
    "CacheKeys",
    "CacheOperations",
    "CacheStore",
    "ChartRange",
    "MarketDataGateway",
    "MarketIndex",
    "MarketSector",
    "PricePoint",
    "Quote",
    "SymbolResult",
    "Tier",
]
