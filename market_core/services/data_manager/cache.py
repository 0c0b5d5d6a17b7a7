"""
Cache operations wrapper for the market data layer.

Provides a thin abstraction over the cache store with:
- JSON serialization for complex data types
- TTL management
- Cache hit/miss logging
- Multi-key invalidation

The cache is acceleration only. A miss can happen at any time (expiry,
eviction, outage), and an undecodable entry is treated as a miss.
"""

import json
from collections.abc import Iterable
from typing import Any, Protocol

import structlog

logger = structlog.get_logger(__name__)


class CacheStore(Protocol):
    """Key-value store with TTL. Implementations must not raise."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str, ttl_seconds: int | None = None) -> bool: ...

    async def delete(self, key: str) -> bool: ...


class CacheOperations:
    """
    Cache operations for the gateway, fundamentals and risk services.

    Wraps a CacheStore (normally RedisCache) with:
    - Automatic JSON serialization/deserialization
    - Cache hit/miss logging for monitoring
    - Error isolation: store failures never reach the caller
    """

    def __init__(self, store: CacheStore):
        """
        Initialize cache operations.

        Args:
            store: CacheStore instance (RedisCache from database.redis)
        """
        self._store = store

    async def get(self, key: str) -> Any | None:
        """
        Get cached value by key.

        Args:
            key: Cache key

        Returns:
            Decoded value or None on miss, store error or undecodable payload
        """
        try:
            value = await self._store.get(key)
        except Exception as e:
            logger.warning("Cache get failed", key=key, error=str(e))
            return None

        if value is None:
            logger.debug("Cache miss", key=key)
            return None

        if not isinstance(value, str | bytes):
            logger.debug("Cache hit", key=key)
            return value

        try:
            decoded = json.loads(value)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("Cached value could not be decoded", key=key, error=str(e))
            return None

        logger.debug("Cache hit", key=key)
        return decoded

    async def set(self, key: str, value: Any, ttl_seconds: int) -> bool:
        """
        Set cached value with TTL.

        Args:
            key: Cache key
            value: Value to cache (will be JSON serialized)
            ttl_seconds: Time-to-live in seconds

        Returns:
            True if successful, False otherwise
        """
        if ttl_seconds <= 0:
            logger.debug("Cache write skipped without TTL", key=key)
            return False

        try:
            json_value = json.dumps(value, default=str)
            stored = await self._store.set(key, json_value, ttl_seconds)
        except Exception as e:
            logger.warning("Cache set failed", key=key, error=str(e))
            return False

        if stored:
            logger.debug("Cache set", key=key, ttl=ttl_seconds)
        return bool(stored)

    async def delete(self, key: str) -> bool:
        """
        Delete a cached value.

        Args:
            key: Cache key to delete

        Returns:
            True if key was deleted, False otherwise
        """
        try:
            deleted = await self._store.delete(key)
        except Exception as e:
            logger.warning("Cache delete failed", key=key, error=str(e))
            return False

        logger.debug("Cache delete", key=key, deleted=deleted)
        return bool(deleted)

    async def delete_many(self, keys: Iterable[str]) -> int:
        """Delete several keys; returns how many existed."""
        deleted = 0
        for key in keys:
            if await self.delete(key):
                deleted += 1
        return deleted

