"""
Stock data endpoints: search, quotes, charts, fundamentals and risk.

Every route validates its inputs before touching a service and runs under
the caller's rate limit (the search class for search, api for the rest).
"""

import asyncio
from typing import Any

import structlog
from fastapi import APIRouter, Depends, Query

from ..core.exceptions import NotFoundError
from ..core.rate_limiter import LimitClass
from ..core.validation import validate_query, validate_range, validate_symbol, validate_symbols
from ..services.data_manager.gateway import MarketDataGateway
from ..services.data_manager.types import Tier
from ..services.fundamentals.aggregator import FundamentalsAggregator
from ..services.risk.engine import RiskScoringEngine
from .dependencies.services import (
    get_fundamentals_aggregator,
    get_gateway,
    get_risk_engine,
    get_tier,
    rate_limited,
)
from .responses import success_response

router = APIRouter(prefix="/api/stocks", tags=["Stocks"])
logger = structlog.get_logger(__name__)

api_limit = Depends(rate_limited(LimitClass.API))
search_limit = Depends(rate_limited(LimitClass.SEARCH))


@router.get("/search", dependencies=[search_limit])
async def search_symbols(
    q: str = Query(default="", description="Company name or partial symbol"),
    gateway: MarketDataGateway = Depends(get_gateway),
) -> dict[str, Any]:
    """Search US-listed equities and ETFs (max 10 results)."""
    query = validate_query(q)
    results = await gateway.search_symbols(query)

    logger.info("Symbol search completed", query=query, result_count=len(results))
    return success_response([r.to_dict() for r in results], query=query)


@router.get("/quotes", dependencies=[api_limit])
async def get_quotes(
    symbols: str = Query(default="", description="Comma-separated symbols"),
    gateway: MarketDataGateway = Depends(get_gateway),
) -> dict[str, Any]:
    """Batch quotes; unknown symbols are omitted."""
    requested = validate_symbols(symbols)
    quotes = await gateway.get_quotes(requested)
    return success_response([q.to_dict() for q in quotes], requested=len(requested))


@router.get("/{symbol}/quote", dependencies=[api_limit])
async def get_quote(
    symbol: str,
    gateway: MarketDataGateway = Depends(get_gateway),
) -> dict[str, Any]:
    symbol = validate_symbol(symbol)
    quote = await gateway.get_quote(symbol)
    if quote is None:
        raise NotFoundError(f"No quote found for {symbol}", symbol=symbol)
    return success_response(quote.to_dict())


@router.get("/{symbol}/chart", dependencies=[api_limit])
async def get_chart(
    symbol: str,
    range: str = Query(default="1M", description="1D, 1W, 1M, 3M, 1Y or 5Y"),
    gateway: MarketDataGateway = Depends(get_gateway),
) -> dict[str, Any]:
    """OHLCV bars, oldest first."""
    symbol = validate_symbol(symbol)
    chart_range = validate_range(range)
    points = await gateway.get_chart_data(symbol, chart_range)
    if not points:
        raise NotFoundError(f"No chart data found for {symbol}", symbol=symbol, range=chart_range)
    return success_response([p.to_dict() for p in points], range=chart_range)


@router.get("/{symbol}/fundamentals", dependencies=[api_limit])
async def get_fundamentals(
    symbol: str,
    tier: str = Depends(get_tier),
    aggregator: FundamentalsAggregator = Depends(get_fundamentals_aggregator),
) -> dict[str, Any]:
    """Fundamentals at the caller's tier; fields above the tier are null."""
    symbol = validate_symbol(symbol)
    view = await aggregator.get_fundamentals(symbol, tier)
    if view is None:
        raise NotFoundError(f"No fundamental data found for {symbol}", symbol=symbol)
    return success_response(view.to_dict())


@router.get("/{symbol}/risk", dependencies=[api_limit])
async def get_risk(
    symbol: str,
    gateway: MarketDataGateway = Depends(get_gateway),
    aggregator: FundamentalsAggregator = Depends(get_fundamentals_aggregator),
    engine: RiskScoringEngine = Depends(get_risk_engine),
) -> dict[str, Any]:
    """
    Composite risk profile.

    Market cap and average volume come from the quote. Leverage and interest
    coverage always come from the pro fundamentals view, so the profile (cached
    per symbol) does not depend on the caller's tier.
    """
    symbol = validate_symbol(symbol)
    quote, fundamentals = await asyncio.gather(
        gateway.get_quote(symbol),
        aggregator.get_fundamentals(symbol, Tier.PRO),
    )
    if quote is None:
        raise NotFoundError(f"No quote found for {symbol}", symbol=symbol)

    profile = await engine.calculate_risk_metrics(
        symbol,
        fundamentals=fundamentals,
        market_cap=quote.market_cap or None,
        avg_volume=quote.avg_volume or None,
    )
    return success_response(profile.to_dict())
