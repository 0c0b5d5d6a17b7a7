"""
Cache key generators for the market data layer.

All keys are namespaced by data class: {namespace}:{identifier}[:{qualifier}]

This module provides consistent key generation to ensure:
- No duplicate keys for different data
- Easy invalidation of everything cached for one symbol
- Clear organization by data domain
"""

from .types import ChartRange, Tier


class CacheKeys:
    """
    Cache key generators for consistent naming across services.

    Examples:
        quote:AAPL
        chart:AAPL:1M
        search:apple
        fundamentals:AAPL:pro
        risk:AAPL
        market:indices
    """

    # Namespaces
    QUOTE = "quote"
    CHART = "chart"
    SEARCH = "search"
    FUNDAMENTALS = "fundamentals"
    RISK = "risk"
    MARKET = "market"

    @staticmethod
    def quote(symbol: str) -> str:
        """
        Generate cache key for real-time quote data.

        Args:
            symbol: Stock symbol

        Returns:
            Cache key like 'quote:NVDA'
        """
        return f"{CacheKeys.QUOTE}:{symbol.upper()}"

    @staticmethod
    def chart(symbol: str, chart_range: ChartRange | str) -> str:
        """
        Generate cache key for OHLCV chart data.

        Args:
            symbol: Stock symbol
            chart_range: Chart range (1D, 1W, ...)

        Returns:
            Cache key like 'chart:AAPL:1M'
        """
        range_value = ChartRange(chart_range).value
        return f"{CacheKeys.CHART}:{symbol.upper()}:{range_value}"

    @staticmethod
    def search(query: str) -> str:
        """Cache key for a symbol search; the query is trimmed and lowercased."""
        return f"{CacheKeys.SEARCH}:{query.strip().lower()}"

    @staticmethod
    def fundamentals(symbol: str, tier: Tier | str) -> str:
        """
        Generate cache key for tiered fundamentals.

        Returns:
            Cache key like 'fundamentals:AAPL:free'
        """
        return f"{CacheKeys.FUNDAMENTALS}:{symbol.upper()}:{Tier(tier).value}"

    @staticmethod
    def risk(symbol: str) -> str:
        """Cache key for a computed risk profile, e.g. 'risk:AAPL'."""
        return f"{CacheKeys.RISK}:{symbol.upper()}"

    @staticmethod
    def indices() -> str:
        return f"{CacheKeys.MARKET}:indices"

    @staticmethod
    def sectors() -> str:
        return f"{CacheKeys.MARKET}:sectors"

    @staticmethod
    def for_symbol(symbol: str) -> list[str]:
        """
        Every key that can hold data for a symbol.

        Used for explicit invalidation; search results are not symbol-scoped
        and expire on their own.
        """
        symbol = symbol.upper()
        keys = [
            CacheKeys.quote(symbol),
            CacheKeys.risk(symbol),
        ]
        keys.extend(CacheKeys.fundamentals(symbol, tier) for tier in Tier)
        keys.extend(CacheKeys.chart(symbol, chart_range) for chart_range in ChartRange)
        return keys
