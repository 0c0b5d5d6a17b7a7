"""
Fundamentals Aggregator - tiered fundamentals from financial-statement data.

Flow:
1. Cache lookup on fundamentals:{SYMBOL}:{tier}
2. Concurrent fetch of the tier's provider endpoints
3. Build the canonical record from the field table (first non-null source wins)
4. Blank fields outside the tier's visibility mask
5. Cache for the fundamentals TTL
"""

import asyncio
from typing import Any

import structlog

from ...core.config import Settings
from ...core.utils.date_utils import quarter_of, utcnow
from ..data_manager.cache import CacheOperations
from ..data_manager.keys import CacheKeys
from ..data_manager.types import Tier
from ..market_data.fmp import FinancialModelingPrepProvider
from .fields import (
    BALANCE,
    CASH_FLOW,
    FIELDS,
    FREE_SOURCES,
    GROUPS,
    GROWTH,
    INCOME,
    METRICS,
    PRO_SOURCES,
    RATIOS,
    FieldSpec,
)
from .models import FundamentalsView

logger = structlog.get_logger(__name__)

Sources = dict[str, dict[str, Any] | None]

QUARTER_LABELS = {"Q1": 1, "Q2": 2, "Q3": 3}


def _numeric(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    # NaN
    if number != number:
        return None
    return number


def resolve_field(spec: FieldSpec, sources: Sources) -> float | None:
    """First non-null value across the field's sources, in order."""
    for source, key in spec.sources:
        record = sources.get(source)
        if not record:
            continue
        value = _numeric(record.get(key))
        if value is not None:
            return value
    return None


def fiscal_period(income: dict[str, Any] | None) -> tuple[int, int]:
    """
    (fiscal_year, fiscal_quarter) from the latest income statement.

    Without a usable statement, the current UTC year and calendar quarter.
    """
    now = utcnow()
    if income:
        try:
            year = int(income.get("calendarYear"))
        except (TypeError, ValueError):
            year = None
        if year is not None:
            return year, QUARTER_LABELS.get(str(income.get("period", "")).upper(), 4)
    return now.year, quarter_of(now)


def build_view(symbol: str, tier: Tier, sources: Sources) -> FundamentalsView:
    """
    Map raw sources to a FundamentalsView for a tier.

    Pro sees every field; free sees only fields flagged free, the rest are None.
    """
    groups: dict[str, dict[str, float | None]] = {group: {} for group in GROUPS}
    for spec in FIELDS:
        visible = tier is Tier.PRO or spec.free
        groups[spec.group][spec.name] = resolve_field(spec, sources) if visible else None

    fiscal_year, fiscal_quarter = fiscal_period(sources.get(INCOME))
    return FundamentalsView(
        symbol=symbol,
        tier=tier,
        fiscal_year=fiscal_year,
        fiscal_quarter=fiscal_quarter,
        last_updated=utcnow(),
        **groups,
    )


class FundamentalsAggregator:
    """Tier-aware fundamentals with per-tier caching."""

    def __init__(
        self,
        cache: CacheOperations,
        provider: FinancialModelingPrepProvider,
        settings: Settings,
    ):
        self._cache = cache
        self._provider = provider
        self._settings = settings
        self._fetchers = {
            RATIOS: provider.get_ratios_ttm,
            METRICS: provider.get_key_metrics,
            INCOME: provider.get_income_statement,
            BALANCE: provider.get_balance_sheet,
            CASH_FLOW: provider.get_cash_flow,
            GROWTH: provider.get_financial_growth,
        }
        logger.info("Fundamentals aggregator initialized")

    async def _fetch_sources(self, symbol: str, tier: Tier) -> Sources:
        names = PRO_SOURCES if tier is Tier.PRO else FREE_SOURCES
        results = await asyncio.gather(
            *(self._fetchers[name](symbol) for name in names), return_exceptions=True
        )

        sources: Sources = {}
        for name, result in zip(names, results):
            if isinstance(result, BaseException):
                logger.error(
                    "Fundamentals source failed",
                    symbol=symbol,
                    source=name,
                    error=str(result),
                )
                sources[name] = None
            else:
                sources[name] = result
        return sources

    async def get_fundamentals(
        self, symbol: str, tier: Tier | str = Tier.FREE
    ) -> FundamentalsView | None:
        """
        Get fundamentals for a symbol at a subscription tier.

        Args:
            symbol: Stock symbol (case-insensitive)
            tier: "free" or "pro"

        Returns:
            FundamentalsView, or None when no source returned data
        """
        symbol = symbol.strip().upper()
        if not symbol:
            return None
        tier = Tier(tier)

        key = CacheKeys.fundamentals(symbol, tier)
        cached = await self._cache.get(key)
        if isinstance(cached, dict):
            try:
                return FundamentalsView.from_dict(cached)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Cached payload invalid", key=key, error=str(e))

        sources = await self._fetch_sources(symbol, tier)
        if not any(sources.values()):
            logger.warning("No fundamentals found", symbol=symbol, tier=tier.value)
            return None

        view = build_view(symbol, tier, sources)
        await self._cache.set(key, view.to_dict(), self._settings.cache_ttl_fundamentals)

        logger.info(
            "Fundamentals resolved",
            symbol=symbol,
            tier=tier.value,
            sources=[name for name, record in sources.items() if record],
        )
        return view

    async def clear_fundamentals_cache(self, symbol: str) -> int:
        """Drop both tier entries for a symbol."""
        symbol = symbol.strip().upper()
        return await self._cache.delete_many(
            CacheKeys.fundamentals(symbol, tier) for tier in Tier
        )
