"""
Unit tests for the cache layer.

Tests cover:
- Cache key generation and namespacing
- Chart range TTL policy
- CacheOperations JSON handling and fail-open behavior
- RedisCache fail-open behavior without a client
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from structlog.testing import capture_logs

from market_core.database.redis import RedisCache
from market_core.services.data_manager import CacheKeys, CacheOperations, ChartRange, Tier


class TestCacheKeys:
    """Test cache key generation."""

    def test_quote_key_normalizes_case(self):
        """Verify symbol is uppercased."""
        assert CacheKeys.quote("nvda") == "quote:NVDA"

    def test_chart_key_includes_range(self):
        assert CacheKeys.chart("aapl", "1M") == "chart:AAPL:1M"
        assert CacheKeys.chart("AAPL", ChartRange.YEAR_5) == "chart:AAPL:5Y"

    def test_chart_key_rejects_unknown_range(self):
        with pytest.raises(ValueError):
            CacheKeys.chart("AAPL", "2D")

    def test_search_key_trims_and_lowercases(self):
        assert CacheKeys.search("  Apple Inc ") == "search:apple inc"

    def test_fundamentals_key_per_tier(self):
        assert CacheKeys.fundamentals("msft", "free") == "fundamentals:MSFT:free"
        assert CacheKeys.fundamentals("MSFT", Tier.PRO) == "fundamentals:MSFT:pro"

    def test_market_overview_keys(self):
        assert CacheKeys.indices() == "market:indices"
        assert CacheKeys.sectors() == "market:sectors"

    def test_for_symbol_covers_every_symbol_scoped_key(self):
        """Verify invalidation list includes quote, risk, both tiers and all ranges."""
        keys = CacheKeys.for_symbol("aapl")

        assert "quote:AAPL" in keys
        assert "risk:AAPL" in keys
        assert "fundamentals:AAPL:free" in keys
        assert "fundamentals:AAPL:pro" in keys
        for chart_range in ("1D", "1W", "1M", "3M", "1Y", "5Y"):
            assert f"chart:AAPL:{chart_range}" in keys
        assert len(keys) == 10


class TestChartRangePolicy:
    """Test interval, lookback and TTL per chart range."""

    @pytest.mark.parametrize(
        "chart_range,interval,days,ttl",
        [
            ("1D", "5m", 1, 60),
            ("1W", "30m", 7, 300),
            ("1M", "1d", 30, 3600),
            ("3M", "1d", 90, 3600),
            ("1Y", "1d", 365, 3600),
            ("5Y", "1wk", 1825, 86400),
        ],
    )
    def test_range_policy(self, chart_range, interval, days, ttl):
        range_ = ChartRange(chart_range)
        assert range_.interval == interval
        assert range_.period_days == days
        assert range_.ttl_seconds == ttl

    def test_only_1d_is_intraday(self):
        assert [r.value for r in ChartRange if r.is_intraday] == ["1D"]


class TestCacheOperations:
    """Test CacheOperations wrapper."""

    @pytest.mark.asyncio
    async def test_set_then_get_returns_decoded_value(self, cache, cache_store):
        await cache.set("quote:AAPL", {"price": 190.5}, 60)

        assert await cache.get("quote:AAPL") == {"price": 190.5}
        assert cache_store.ttls["quote:AAPL"] == 60

    @pytest.mark.asyncio
    async def test_get_miss_returns_none(self, cache):
        assert await cache.get("quote:NONE") is None

    @pytest.mark.asyncio
    async def test_undecodable_entry_is_a_miss(self, cache, cache_store):
        cache_store.data["risk:AAPL"] = "{not json"

        assert await cache.get("risk:AAPL") is None

    @pytest.mark.asyncio
    async def test_zero_ttl_skips_write(self, cache, cache_store):
        assert await cache.set("quote:AAPL", {"price": 1}, 0) is False
        assert cache_store.data == {}

    @pytest.mark.asyncio
    async def test_store_errors_are_absorbed(self):
        """Verify a raising store degrades to miss / no-op."""
        store = MagicMock()
        store.get = AsyncMock(side_effect=ConnectionError("down"))
        store.set = AsyncMock(side_effect=ConnectionError("down"))
        store.delete = AsyncMock(side_effect=ConnectionError("down"))
        cache = CacheOperations(store)

        assert await cache.get("k") is None
        assert await cache.set("k", {"a": 1}, 60) is False
        assert await cache.delete("k") is False

    @pytest.mark.asyncio
    async def test_store_errors_are_logged_as_warnings(self):
        store = MagicMock()
        store.get = AsyncMock(side_effect=ConnectionError("down"))
        cache = CacheOperations(store)

        with capture_logs() as logs:
            await cache.get("quote:AAPL")

        assert logs == [
            {
                "event": "Cache get failed",
                "log_level": "warning",
                "key": "quote:AAPL",
                "error": "down",
            }
        ]

    @pytest.mark.asyncio
    async def test_delete_many_counts_existing_keys(self, cache):
        await cache.set("a", 1, 60)
        await cache.set("b", 2, 60)

        assert await cache.delete_many(["a", "b", "c"]) == 2


class TestRedisCacheFailOpen:
    """Test RedisCache without a usable connection."""

    @pytest.mark.asyncio
    async def test_connect_without_url_leaves_client_unset(self):
        redis_cache = RedisCache()
        await redis_cache.connect("")

        assert redis_cache.client is None
        assert redis_cache.available is False

    @pytest.mark.asyncio
    async def test_operations_without_client(self):
        redis_cache = RedisCache()

        assert await redis_cache.get("k") is None
        assert await redis_cache.set("k", "v", 60) is False
        assert await redis_cache.delete("k") is False

    @pytest.mark.asyncio
    async def test_command_errors_are_absorbed(self):
        redis_cache = RedisCache()
        redis_cache.client = MagicMock()
        redis_cache.client.get = AsyncMock(side_effect=ConnectionError("reset"))
        redis_cache.client.set = AsyncMock(side_effect=ConnectionError("reset"))

        assert await redis_cache.get("k") is None
        assert await redis_cache.set("k", "v", 60) is False

    @pytest.mark.asyncio
    async def test_set_passes_ttl_as_expiry(self):
        redis_cache = RedisCache()
        redis_cache.client = MagicMock()
        redis_cache.client.set = AsyncMock(return_value=True)

        assert await redis_cache.set("quote:AAPL", "{}", 60) is True
        redis_cache.client.set.assert_awaited_once_with("quote:AAPL", "{}", ex=60)

    @pytest.mark.asyncio
    async def test_health_check_without_client(self):
        status = await RedisCache().health_check()
        assert status["connected"] is False
