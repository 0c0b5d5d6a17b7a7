"""
FastAPI application entry point for the market data service.
Following Factor 11/12: Triggerable & Stateless design.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .api.health import router as health_router
from .api.market import router as market_router
from .api.stocks import router as stocks_router
from .core.config import get_settings
from .core.exceptions import AppError, RateLimitError
from .core.rate_limiter import RateLimiter, rate_limit_headers
from .database.redis import RedisCache, RedisCounterStore
from .services.data_manager.cache import CacheOperations
from .services.data_manager.gateway import MarketDataGateway
from .services.fundamentals.aggregator import FundamentalsAggregator
from .services.market_data.fmp import FinancialModelingPrepProvider
from .services.market_data.yahoo import YahooFinanceProvider
from .services.risk.engine import RiskScoringEngine

# Set the root logger level to INFO so we can see detailed logs
logging.basicConfig(level=logging.INFO)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: build shared clients and services once per worker."""
    settings = get_settings()

    logger.info("Starting market data service", environment=settings.environment)

    redis_cache = RedisCache()
    # Never raises; without Redis the cache misses and the limiter fails open
    await redis_cache.connect(settings.redis_url)

    cache = CacheOperations(redis_cache)
    yahoo = YahooFinanceProvider(settings)
    fmp = FinancialModelingPrepProvider(settings)

    gateway = MarketDataGateway(cache, yahoo, settings)

    # Store in app state for dependency injection
    app.state.redis = redis_cache
    app.state.gateway = gateway
    app.state.fundamentals = FundamentalsAggregator(cache, fmp, settings)
    app.state.risk_engine = RiskScoringEngine(cache, gateway, settings)
    app.state.rate_limiter = RateLimiter(RedisCounterStore(redis_cache), settings)

    logger.info("Market data services started", redis_available=redis_cache.available)

    try:
        yield
    finally:
        await fmp.close()
        await redis_cache.disconnect()
        logger.info("Market data services stopped")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Market Data API",
        description="Quotes, charts, tiered fundamentals and risk scoring",
        version=__version__,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    # CORS middleware for frontend communication
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
        expose_headers=[
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
            "Retry-After",
        ],
    )

    # Global exception handler for custom app errors
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        """
        Render AppError subclasses as the API error envelope with their status.

        Rate limit denials also carry the retry headers.
        """
        error_dict = exc.to_dict()

        log = logger.warning if exc.status_code < 500 else logger.error
        log(
            "Application error occurred",
            path=request.url.path,
            method=request.method,
            **error_dict,
        )

        headers = None
        if isinstance(exc, RateLimitError):
            headers = rate_limit_headers(exc.decision)

        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_response(),
            headers=headers,
        )

    # Include routers
    app.include_router(health_router, prefix="/api", tags=["health"])
    app.include_router(stocks_router)
    app.include_router(market_router)

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint for basic connectivity check."""
        return {
            "message": "Market Data API",
            "version": __version__,
            "environment": settings.environment,
        }

    return app


# Create app instance
app = create_app()


def run() -> None:
    """Serve the API with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "market_core.main:app",
        host="0.0.0.0",  # nosec B104 - Required for Docker container
        port=8000,
        reload=settings.is_development,
        log_config=None,  # Use structlog configuration
    )


if __name__ == "__main__":
    run()
