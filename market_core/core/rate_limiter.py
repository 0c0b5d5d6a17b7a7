"""
Rate limiting for API endpoints.
Sliding-window counters in Redis, budgets per limit class and subscription tier.

Admission never depends on the counter store being healthy: with no store,
an unavailable store, or a store error, every request is admitted with the
full budget reported as remaining.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

import structlog

from .config import Settings
from .exceptions import RateLimitError
from .utils.date_utils import now_ms

logger = structlog.get_logger(__name__)


class LimitClass(str, Enum):
    """Independent budgets: general API, AI questions, symbol search."""

    API = "api"
    AI = "ai"
    SEARCH = "search"


@dataclass(frozen=True)
class RateLimitConfig:
    limit: int
    window_seconds: int

    @property
    def window_ms(self) -> int:
        return self.window_seconds * 1000


@dataclass
class RateLimitDecision:
    """Outcome of one admission check. reset is epoch milliseconds."""

    identity: str
    limit_class: str
    tier: str
    success: bool
    remaining: int
    reset: int
    limit: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "limit": self.limit,
            "remaining": self.remaining,
            "reset": self.reset,
        }


class CounterStore(Protocol):
    """Sliding-window counter backend (RedisCounterStore in production)."""

    @property
    def available(self) -> bool: ...

    async def hit(
        self, key: str, now_ms: int, window_ms: int, limit: int
    ) -> tuple[bool, int, int]: ...

    async def peek(self, key: str, now_ms: int, window_ms: int) -> tuple[int, int]: ...

    async def reset(self, key: str) -> bool: ...


def rate_limit_key(limit_class: LimitClass | str, tier: str, identity: str) -> str:
    """Counter key, e.g. 'ratelimit:api:free:user-123'."""
    return f"ratelimit:{LimitClass(limit_class).value}:{tier}:{identity}"


def rate_limit_headers(decision: RateLimitDecision, now: int | None = None) -> dict[str, str]:
    """
    Standard rate-limit response headers.

    Retry-After (seconds, rounded up) is included only for denied requests.
    """
    headers = {
        "X-RateLimit-Limit": str(decision.limit),
        "X-RateLimit-Remaining": str(decision.remaining),
        "X-RateLimit-Reset": str(decision.reset),
    }
    if not decision.success:
        current = now if now is not None else now_ms()
        headers["Retry-After"] = str(max(0, math.ceil((decision.reset - current) / 1000)))
    return headers


class RateLimiter:
    """Redis-based sliding-window rate limiter for API endpoints."""

    def __init__(self, counter_store: CounterStore | None, settings: Settings) -> None:
        """
        Initialize rate limiter.

        Args:
            counter_store: Counter backend; None disables limiting (fail open)
            settings: Budgets per limit class and tier
        """
        self.store = counter_store
        self._configs: dict[tuple[LimitClass, str], RateLimitConfig] = {
            (LimitClass.API, "free"): RateLimitConfig(*settings.rate_limit_api_free),
            (LimitClass.API, "pro"): RateLimitConfig(*settings.rate_limit_api_pro),
            (LimitClass.AI, "free"): RateLimitConfig(*settings.rate_limit_ai_free),
            (LimitClass.AI, "pro"): RateLimitConfig(*settings.rate_limit_ai_pro),
            (LimitClass.SEARCH, "free"): RateLimitConfig(*settings.rate_limit_search_free),
            (LimitClass.SEARCH, "pro"): RateLimitConfig(*settings.rate_limit_search_pro),
        }

    def get_rate_limit_config(self, limit_class: LimitClass | str, tier: str) -> RateLimitConfig:
        """Budget for a (limit class, tier) pair; unknown tiers get the free budget."""
        limit_class = LimitClass(limit_class)
        return self._configs.get((limit_class, tier), self._configs[(limit_class, "free")])

    def _fail_open(
        self, limit_class: LimitClass, identity: str, tier: str, config: RateLimitConfig, now: int
    ) -> RateLimitDecision:
        return RateLimitDecision(
            identity=identity,
            limit_class=limit_class.value,
            tier=tier,
            success=True,
            remaining=config.limit,
            reset=now + config.window_ms,
            limit=config.limit,
        )

    async def check_rate_limit(
        self,
        limit_class: LimitClass | str,
        identity: str,
        tier: str,
    ) -> RateLimitDecision:
        """
        Record a request and decide whether it is admitted.

        Args:
            limit_class: "api", "ai" or "search"
            identity: Stable user identifier
            tier: "free" or "pro"

        Returns:
            RateLimitDecision (never raises)
        """
        limit_class = LimitClass(limit_class)
        config = self.get_rate_limit_config(limit_class, tier)
        now = now_ms()

        if self.store is None or not self.store.available:
            # Counter store not available - allow request (fail open)
            logger.warning(
                "Counter store not available for rate limiting - allowing request",
                limit_class=limit_class.value,
            )
            return self._fail_open(limit_class, identity, tier, config, now)

        key = rate_limit_key(limit_class, tier, identity)
        try:
            admitted, count, oldest = await self.store.hit(
                key, now, config.window_ms, config.limit
            )
        except Exception as e:
            logger.warning(
                "Rate limit check failed - allowing request",
                key=key,
                error=str(e),
                error_type=type(e).__name__,
            )
            return self._fail_open(limit_class, identity, tier, config, now)

        decision = RateLimitDecision(
            identity=identity,
            limit_class=limit_class.value,
            tier=tier,
            success=admitted,
            remaining=max(0, config.limit - count) if admitted else 0,
            reset=oldest + config.window_ms,
            limit=config.limit,
        )

        if not admitted:
            logger.warning(
                "Rate limit exceeded",
                key=key,
                current=count,
                limit=config.limit,
            )
        return decision

    async def enforce_limit(
        self,
        limit_class: LimitClass | str,
        identity: str,
        tier: str,
    ) -> RateLimitDecision:
        """
        Check the limit and raise when denied.

        Raises:
            RateLimitError: If rate limit exceeded (429), carrying the decision
        """
        decision = await self.check_rate_limit(limit_class, identity, tier)
        if not decision.success:
            config = self.get_rate_limit_config(limit_class, tier)
            raise RateLimitError(
                f"Rate limit exceeded. Maximum {config.limit} requests per "
                f"{config.window_seconds} seconds.",
                decision=decision,
            )
        return decision

    async def ai_questions_remaining(self, identity: str, tier: str) -> int:
        """AI questions left in the current window, without consuming one."""
        config = self.get_rate_limit_config(LimitClass.AI, tier)
        if self.store is None or not self.store.available:
            return config.limit

        key = rate_limit_key(LimitClass.AI, tier, identity)
        try:
            count, _ = await self.store.peek(key, now_ms(), config.window_ms)
        except Exception as e:
            logger.warning("AI quota lookup failed", key=key, error=str(e))
            return config.limit
        return max(0, config.limit - count)

    async def reset_rate_limit(
        self, limit_class: LimitClass | str, identity: str, tier: str
    ) -> bool:
        """Clear an identity's counter (admin/testing)."""
        if self.store is None or not self.store.available:
            return False

        key = rate_limit_key(limit_class, tier, identity)
        try:
            return await self.store.reset(key)
        except Exception as e:
            logger.warning("Rate limit reset failed", key=key, error=str(e))
            return False
