"""
Shared fixtures: in-memory cache and counter stores plus test settings.
"""

from typing import Any

import pytest

from market_core.core.config import Settings
from market_core.services.data_manager.cache import CacheOperations


class InMemoryCacheStore:
    """Dict-backed CacheStore that records TTLs."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int | None] = {}
        self.set_calls = 0

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str, ttl_seconds: int | None = None) -> bool:
        self.data[key] = value
        self.ttls[key] = ttl_seconds
        self.set_calls += 1
        return True

    async def delete(self, key: str) -> bool:
        self.ttls.pop(key, None)
        return self.data.pop(key, None) is not None


class InMemoryCounterStore:
    """Sliding-window log with the same semantics as the Redis script."""

    def __init__(self) -> None:
        self.windows: dict[str, list[int]] = {}
        self.available = True

    def _trim(self, key: str, now_ms: int, window_ms: int) -> list[int]:
        entries = [t for t in self.windows.get(key, []) if t > now_ms - window_ms]
        self.windows[key] = entries
        return entries

    async def hit(
        self, key: str, now_ms: int, window_ms: int, limit: int
    ) -> tuple[bool, int, int]:
        entries = self._trim(key, now_ms, window_ms)
        admitted = len(entries) < limit
        if admitted:
            entries.append(now_ms)
        return admitted, len(entries), min(entries) if entries else now_ms

    async def peek(self, key: str, now_ms: int, window_ms: int) -> tuple[int, int]:
        entries = self._trim(key, now_ms, window_ms)
        return len(entries), min(entries) if entries else now_ms

    async def reset(self, key: str) -> bool:
        return self.windows.pop(key, None) is not None


class FailingCounterStore:
    """Counter store whose backend is unreachable."""

    available = True

    async def hit(self, *args: Any) -> tuple[bool, int, int]:
        raise ConnectionError("Connection refused")

    async def peek(self, *args: Any) -> tuple[int, int]:
        raise ConnectionError("Connection refused")

    async def reset(self, key: str) -> bool:
        raise ConnectionError("Connection refused")


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from .env files."""
    return Settings(
        _env_file=None,
        environment="test",
        redis_url="",
        fmp_api_key="test-fmp-key",
    )


@pytest.fixture
def cache_store() -> InMemoryCacheStore:
    return InMemoryCacheStore()


@pytest.fixture
def cache(cache_store: InMemoryCacheStore) -> CacheOperations:
    return CacheOperations(cache_store)


@pytest.fixture
def counter_store() -> InMemoryCounterStore:
    return InMemoryCounterStore()


@pytest.fixture
def failing_counter_store() -> FailingCounterStore:
    return FailingCounterStore()
