"""
Dependencies for market data API endpoints.

Services are built once in the application lifespan and read from app state;
identity and tier come from trusted upstream headers.
"""

from collections.abc import Awaitable, Callable

from fastapi import Depends, Header, Request, Response

from ...core.rate_limiter import LimitClass, RateLimitDecision, RateLimiter, rate_limit_headers
from ...core.validation import validate_tier
from ...database.redis import RedisCache
from ...services.data_manager.gateway import MarketDataGateway
from ...services.fundamentals.aggregator import FundamentalsAggregator
from ...services.risk.engine import RiskScoringEngine

ANONYMOUS_IDENTITY = "anonymous"


def get_redis(request: Request) -> RedisCache:
    """Get RedisCache instance from app state."""
    redis_cache: RedisCache = request.app.state.redis
    return redis_cache


def get_gateway(request: Request) -> MarketDataGateway:
    gateway: MarketDataGateway = request.app.state.gateway
    return gateway


def get_fundamentals_aggregator(request: Request) -> FundamentalsAggregator:
    aggregator: FundamentalsAggregator = request.app.state.fundamentals
    return aggregator


def get_risk_engine(request: Request) -> RiskScoringEngine:
    engine: RiskScoringEngine = request.app.state.risk_engine
    return engine


def get_rate_limiter(request: Request) -> RateLimiter:
    limiter: RateLimiter = request.app.state.rate_limiter
    return limiter


def get_identity(
    request: Request,
    x_user_id: str | None = Header(default=None),
) -> str:
    """
    Stable caller identity.

    Uses the X-User-Id header set by the auth proxy; falls back to the client
    address for unauthenticated callers.
    """
    if x_user_id and x_user_id.strip():
        return x_user_id.strip()
    if request.client and request.client.host:
        return request.client.host
    return ANONYMOUS_IDENTITY


def get_tier(x_user_tier: str | None = Header(default=None)) -> str:
    """Subscription tier from X-User-Tier (default free)."""
    return validate_tier(x_user_tier)


def rate_limited(
    limit_class: LimitClass,
) -> Callable[..., Awaitable[RateLimitDecision]]:
    """
    Build a dependency enforcing a limit class for the caller.

    Usage:
        @router.get("/search", dependencies=[Depends(rate_limited(LimitClass.SEARCH))])
    """

    async def dependency(
        response: Response,
        identity: str = Depends(get_identity),
        tier: str = Depends(get_tier),
        limiter: RateLimiter = Depends(get_rate_limiter),
    ) -> RateLimitDecision:
        decision = await limiter.enforce_limit(limit_class, identity, tier)
        response.headers.update(rate_limit_headers(decision))
        return decision

    return dependency
