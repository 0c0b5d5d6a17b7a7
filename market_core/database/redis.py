"""
Redis connection and operations.
Following Factor 3: External Dependencies as Services.

Redis backs two capabilities:
- RedisCache: the key-value cache store (get/set/delete with TTL)
- RedisCounterStore: the sliding-window counters behind rate limiting

Both fail open. An unreachable or unconfigured Redis turns reads into misses
and writes into no-ops; nothing here raises to a request handler.
"""

import uuid
from typing import Any

import redis.asyncio as redis
import structlog

logger = structlog.get_logger(__name__)


class RedisCache:
    """Redis connection manager with async support."""

    def __init__(self) -> None:
        self.client: redis.Redis | None = None

    async def connect(self, redis_url: str) -> None:
        """
        Establish connection to Redis.

        A failed or skipped connection leaves the client unset; the cache then
        behaves as permanently empty instead of failing startup.
        """
        if not redis_url:
            logger.warning("Redis URL not configured - caching disabled")
            return

        try:
            client = redis.from_url(redis_url, decode_responses=True)

            # Test connection
            await client.ping()

            self.client = client
            logger.info("Redis connection established", url=redis_url)

        except Exception as e:
            logger.error(
                "Failed to connect to Redis - caching disabled", error=str(e)
            )
            self.client = None

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self.client:
            await self.client.aclose()
            self.client = None
            logger.info("Redis connection closed")

    @property
    def available(self) -> bool:
        return self.client is not None

    async def health_check(self) -> dict[str, bool | str]:
        """Check Redis connection health."""
        try:
            if not self.client:
                return {"connected": False, "error": "No client connection"}

            # Ping Redis
            await self.client.ping()

            # Get server info
            info = await self.client.info()

            return {
                "connected": True,
                "version": info.get("redis_version", "unknown"),
                "memory_usage": info.get("used_memory_human", "unknown"),
            }

        except Exception as e:
            logger.error("Redis health check failed", error=str(e))
            return {"connected": False, "error": str(e)}

    async def get(self, key: str) -> str | None:
        """Get raw value from Redis. Any failure is reported as a miss."""
        if not self.client:
            return None

        try:
            return await self.client.get(key)
        except Exception as e:
            logger.error("Redis get operation failed", key=key, error=str(e))
            return None

    async def set(
        self,
        key: str,
        value: str,
        ttl_seconds: int | None = None,
    ) -> bool:
        """Set raw value in Redis with optional TTL."""
        if not self.client:
            return False

        try:
            await self.client.set(key, value, ex=ttl_seconds)
            return True
        except Exception as e:
            logger.error("Redis set operation failed", key=key, error=str(e))
            return False

    async def delete(self, key: str) -> bool:
        """Delete key from Redis cache."""
        if not self.client:
            return False

        try:
            result: int = await self.client.delete(key)
            return result > 0
        except Exception as e:
            logger.error("Redis delete operation failed", key=key, error=str(e))
            return False


# Sliding-window log, evaluated atomically:
# drop entries older than the window, count what is left, admit if under
# budget. Returns {admitted, count_after, oldest_score}.
SLIDING_WINDOW_SCRIPT = """
local key = KEYS[1]
local now = tonumber(ARGV[1])
local window_ms = tonumber(ARGV[2])
local limit = tonumber(ARGV[3])
local member = ARGV[4]

redis.call('ZREMRANGEBYSCORE', key, 0, now - window_ms)
local count = redis.call('ZCARD', key)
local admitted = 0

if count < limit then
    redis.call('ZADD', key, now, member)
    count = count + 1
    admitted = 1
end

redis.call('PEXPIRE', key, window_ms)

local oldest = redis.call('ZRANGE', key, 0, 0, 'WITHSCORES')
local oldest_score = now
if oldest[2] then
    oldest_score = tonumber(oldest[2])
end

return {admitted, count, oldest_score}
"""


class RedisCounterStore:
    """Sliding-window request counters in Redis sorted sets."""

    def __init__(self, redis_cache: RedisCache) -> None:
        """
        Args:
            redis_cache: Shared RedisCache; its client is reused for counters
        """
        self._redis = redis_cache

    @property
    def available(self) -> bool:
        return self._redis.client is not None

    async def hit(
        self,
        key: str,
        now_ms: int,
        window_ms: int,
        limit: int,
    ) -> tuple[bool, int, int]:
        """
        Record one request against a sliding window.

        Args:
            key: Counter key (namespaced by limit class and tier)
            now_ms: Current time, epoch milliseconds
            window_ms: Window length in milliseconds
            limit: Request budget for the window

        Returns:
            Tuple of (admitted, count_in_window, oldest_entry_ms)

        Raises:
            RuntimeError: If Redis is not connected
            redis.RedisError: On command failure (the limiter fails open on both)
        """
        client = self._redis.client
        if client is None:
            raise RuntimeError("Redis connection not established")

        member = f"{now_ms}:{uuid.uuid4().hex}"
        admitted, count, oldest = await client.eval(
            SLIDING_WINDOW_SCRIPT, 1, key, now_ms, window_ms, limit, member
        )
        return bool(int(admitted)), int(count), int(float(oldest))

    async def reset(self, key: str) -> bool:
        """Drop a counter entirely."""
        return await self._redis.delete(key)

    async def peek(self, key: str, now_ms: int, window_ms: int) -> tuple[int, int]:
        """
        Read a window without recording a request.

        Returns:
            Tuple of (count_in_window, oldest_entry_ms)
        """
        client = self._redis.client
        if client is None:
            raise RuntimeError("Redis connection not established")

        count = await client.zcount(key, now_ms - window_ms + 1, "+inf")
        oldest: list[Any] = await client.zrangebyscore(
            key, now_ms - window_ms + 1, "+inf", start=0, num=1, withscores=True
        )
        oldest_ms = int(oldest[0][1]) if oldest else now_ms
        return int(count), oldest_ms
