"""
Market Data Gateway - cache-first access to quotes, search, charts and
market overview data.

Every read follows the same shape:
1. Try the cache (decode failure counts as a miss)
2. Fetch from the provider on miss
3. Normalize, cache non-empty results with the data class TTL
4. Return

Provider failures never escape: not-found is a warning, anything else is an
error log, and the caller receives None or an empty list.
"""

import asyncio
from collections.abc import Callable, Iterable
from datetime import timedelta
from typing import Any, TypeVar

import structlog

from ...core.config import Settings
from ...core.utils.date_utils import lookback_window, utcnow
from ..market_data.base import SymbolNotFoundError
from ..market_data.normalize import (
    INDEX_SYMBOLS,
    SECTOR_SYMBOLS,
    normalize_history,
    normalize_index,
    normalize_quote,
    normalize_search_results,
    normalize_sector,
)
from ..market_data.yahoo import YahooFinanceProvider
from .cache import CacheOperations
from .keys import CacheKeys
from .types import ChartRange, MarketIndex, MarketSector, PricePoint, Quote, SymbolResult

logger = structlog.get_logger(__name__)

T = TypeVar("T")

SEARCH_CANDIDATES = 20
SEARCH_LIMIT = 10
INTRADAY_PADDING_DAYS = 5


def _decode_list(cached: Any, factory: Callable[[dict[str, Any]], T], key: str) -> list[T] | None:
    """Rebuild a cached list of dataclasses; None means treat as a miss."""
    if not isinstance(cached, list):
        return None
    try:
        return [factory(item) for item in cached]
    except (KeyError, TypeError, ValueError) as e:
        logger.warning("Cached payload invalid", key=key, error=str(e))
        return None


def _normalize_each(
    raw_quotes: dict[str, dict[str, Any]], normalize: Callable[[str, dict[str, Any]], T]
) -> list[T]:
    """Normalize per symbol, skipping symbols whose payload cannot be read."""
    items: list[T] = []
    for symbol, raw in raw_quotes.items():
        try:
            items.append(normalize(symbol, raw))
        except Exception as e:
            logger.error("Quote normalization failed", symbol=symbol, error=str(e))
    return items


class MarketDataGateway:
    """
    Unified read access to market data.

    Holds no state besides its collaborators; all sharing happens through the
    cache store.
    """

    def __init__(
        self,
        cache: CacheOperations,
        provider: YahooFinanceProvider,
        settings: Settings,
    ):
        """
        Initialize the gateway.

        Args:
            cache: CacheOperations over the shared cache store
            provider: Quote/search/history provider
            settings: Application settings (TTLs)
        """
        self._cache = cache
        self._provider = provider
        self._settings = settings
        logger.info("Market data gateway initialized")

    # =========================================================================
    # Quotes
    # =========================================================================

    async def _cached_quote(self, symbol: str) -> Quote | None:
        key = CacheKeys.quote(symbol)
        cached = await self._cache.get(key)
        if not isinstance(cached, dict):
            return None
        try:
            return Quote.from_dict(cached)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Cached payload invalid", key=key, error=str(e))
            return None

    async def get_quote(self, symbol: str) -> Quote | None:
        """
        Get the current quote for one symbol.

        Args:
            symbol: Stock symbol (case-insensitive)

        Returns:
            Quote, or None when the symbol is unknown or the provider failed
        """
        symbol = symbol.strip().upper()
        if not symbol:
            return None

        cached = await self._cached_quote(symbol)
        if cached is not None:
            return cached

        try:
            raw = await self._provider.get_quote_info(symbol)
        except SymbolNotFoundError:
            logger.warning("Quote symbol not found", symbol=symbol)
            return None
        except Exception as e:
            logger.error("Quote fetch failed", symbol=symbol, error=str(e))
            return None

        try:
            quote = normalize_quote(symbol, raw)
        except Exception as e:
            logger.error("Quote normalization failed", symbol=symbol, error=str(e))
            return None
        if quote is None:
            logger.warning("Quote has no price", symbol=symbol)
            return None

        await self._cache.set(
            CacheKeys.quote(symbol), quote.to_dict(), self._settings.cache_ttl_quote
        )
        return quote

    async def get_quotes(self, symbols: Iterable[str]) -> list[Quote]:
        """
        Get quotes for several symbols.

        Cached symbols are served without a provider call; the remainder is
        fetched in one batch. If the batch fails, the cached quotes are still
        returned. Output follows the caller's order, deduplicated, with unknown
        symbols omitted.
        """
        ordered: list[str] = []
        for raw_symbol in symbols:
            symbol = raw_symbol.strip().upper()
            if symbol and symbol not in ordered:
                ordered.append(symbol)
        if not ordered:
            return []

        cached = await asyncio.gather(*(self._cached_quote(s) for s in ordered))
        found: dict[str, Quote] = {
            symbol: quote for symbol, quote in zip(ordered, cached) if quote is not None
        }

        missing = [symbol for symbol in ordered if symbol not in found]
        if missing:
            try:
                raw_quotes = await self._provider.get_quotes_info(missing)
            except Exception as e:
                logger.error("Batch quote fetch failed", symbols=missing, error=str(e))
                raw_quotes = {}

            for symbol in missing:
                raw = raw_quotes.get(symbol)
                if raw is None:
                    continue
                try:
                    quote = normalize_quote(symbol, raw)
                except Exception as e:
                    logger.error("Quote normalization failed", symbol=symbol, error=str(e))
                    continue
                if quote is None:
                    continue
                found[symbol] = quote
                await self._cache.set(
                    CacheKeys.quote(symbol), quote.to_dict(), self._settings.cache_ttl_quote
                )

        logger.debug(
            "Quotes resolved",
            requested=len(ordered),
            cache_hits=len(ordered) - len(missing),
            returned=len(found),
        )
        return [found[symbol] for symbol in ordered if symbol in found]

    # =========================================================================
    # Search
    # =========================================================================

    async def search_symbols(self, query: str) -> list[SymbolResult]:
        """
        Search US-listed equities and ETFs by name or ticker.

        Returns:
            Up to 10 results in provider relevance order
        """
        query = query.strip()
        if not query:
            return []

        key = CacheKeys.search(query)
        cached = _decode_list(await self._cache.get(key), SymbolResult.from_dict, key)
        if cached is not None:
            return cached

        try:
            raw = await self._provider.search(query, max_results=SEARCH_CANDIDATES)
        except Exception as e:
            logger.error("Symbol search failed", query=query, error=str(e))
            return []

        results = normalize_search_results(raw, SEARCH_LIMIT)
        if results:
            await self._cache.set(
                key, [r.to_dict() for r in results], self._settings.cache_ttl_search
            )
        return results

    # =========================================================================
    # Charts
    # =========================================================================

    async def get_chart_data(
        self, symbol: str, chart_range: ChartRange | str
    ) -> list[PricePoint]:
        """
        Get OHLCV bars for a symbol over a chart range.

        The 1D range pads the request by a few days so the last session is
        found across weekends and holidays, then keeps only that session.

        Returns:
            Time-ascending bars, empty on unknown symbol/range or provider error
        """
        symbol = symbol.strip().upper()
        try:
            range_ = ChartRange(chart_range)
        except ValueError:
            logger.warning("Invalid chart range", symbol=symbol, range=str(chart_range))
            return []

        key = CacheKeys.chart(symbol, range_)
        cached = _decode_list(await self._cache.get(key), PricePoint.from_dict, key)
        if cached is not None:
            return cached

        start, end = lookback_window(range_.period_days)
        if range_.is_intraday:
            start -= timedelta(days=INTRADAY_PADDING_DAYS)

        try:
            frame = await self._provider.get_history(symbol, start, end, range_.interval)
        except SymbolNotFoundError:
            logger.warning("Chart symbol not found", symbol=symbol, range=range_.value)
            return []
        except Exception as e:
            logger.error(
                "Chart fetch failed", symbol=symbol, range=range_.value, error=str(e)
            )
            return []

        try:
            points = normalize_history(frame, last_session_only=range_.is_intraday)
        except Exception as e:
            logger.error(
                "Chart normalization failed", symbol=symbol, range=range_.value, error=str(e)
            )
            return []
        if points:
            await self._cache.set(key, [p.to_dict() for p in points], range_.ttl_seconds)

        logger.debug("Chart resolved", symbol=symbol, range=range_.value, bars=len(points))
        return points

    # =========================================================================
    # Market overview
    # =========================================================================

    async def get_indices(self) -> list[MarketIndex]:
        """Major index proxy ETFs, sorted by symbol."""
        key = CacheKeys.indices()
        cached = _decode_list(await self._cache.get(key), MarketIndex.from_dict, key)
        if cached is not None:
            return cached

        try:
            raw_quotes = await self._provider.get_quotes_info(list(INDEX_SYMBOLS))
        except Exception as e:
            logger.error("Market indices fetch failed", error=str(e))
            return []

        updated_at = utcnow()
        indices = sorted(
            _normalize_each(
                raw_quotes, lambda symbol, raw: normalize_index(symbol, raw, updated_at)
            ),
            key=lambda index: index.symbol,
        )
        if indices:
            await self._cache.set(
                key,
                [index.to_dict() for index in indices],
                self._settings.cache_ttl_market_overview,
            )
        return indices

    async def get_sectors(self) -> list[MarketSector]:
        """SPDR sector ETFs, best to worst daily change."""
        key = CacheKeys.sectors()
        cached = _decode_list(await self._cache.get(key), MarketSector.from_dict, key)
        if cached is not None:
            return cached

        try:
            raw_quotes = await self._provider.get_quotes_info(list(SECTOR_SYMBOLS))
        except Exception as e:
            logger.error("Market sectors fetch failed", error=str(e))
            return []

        sectors = sorted(
            _normalize_each(raw_quotes, normalize_sector),
            key=lambda sector: sector.change_percent,
            reverse=True,
        )
        if sectors:
            await self._cache.set(
                key,
                [sector.to_dict() for sector in sectors],
                self._settings.cache_ttl_market_overview,
            )
        return sectors

    # =========================================================================
    # Invalidation
    # =========================================================================

    async def clear_symbol_cache(self, symbol: str) -> int:
        """
        Drop every cached entry for a symbol (quote, charts, fundamentals, risk).

        Returns:
            Number of keys that existed
        """
        symbol = symbol.strip().upper()
        deleted = await self._cache.delete_many(CacheKeys.for_symbol(symbol))
        logger.info("Symbol cache cleared", symbol=symbol, deleted=deleted)
        return deleted
