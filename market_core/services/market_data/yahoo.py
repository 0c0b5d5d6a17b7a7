"""
Yahoo Finance provider built on yfinance.

yfinance is blocking; every call runs in a worker thread and is bounded by
the configured provider timeout. Results are raw provider dicts/frames,
normalization happens in the gateway.
"""

import asyncio
from collections.abc import Callable
from datetime import datetime
from typing import Any, TypeVar

import pandas as pd
import structlog
import yfinance as yf

from ...core.config import Settings
from .base import ProviderError, SymbolNotFoundError

logger = structlog.get_logger(__name__)

T = TypeVar("T")

BATCH_CONCURRENCY = 8


class YahooFinanceProvider:
    """Quotes, search and OHLCV history from Yahoo Finance."""

    provider_name = "yfinance"

    def __init__(self, settings: Settings):
        self.timeout = settings.provider_timeout_seconds

    async def _run(self, func: Callable[[], T], symbol: str | None = None) -> T:
        """Run a blocking yfinance call off the event loop with a timeout."""
        try:
            return await asyncio.wait_for(asyncio.to_thread(func), timeout=self.timeout)
        except SymbolNotFoundError:
            raise
        except TimeoutError as e:
            raise ProviderError(
                f"yfinance call timed out after {self.timeout}s",
                provider=self.provider_name,
                symbol=symbol,
            ) from e
        except Exception as e:
            raise ProviderError(
                f"yfinance call failed: {e}", provider=self.provider_name, symbol=symbol
            ) from e

    @staticmethod
    def _has_price(info: dict[str, Any] | None) -> bool:
        return bool(info) and info.get("regularMarketPrice") is not None

    async def get_quote_info(self, symbol: str) -> dict[str, Any]:
        """
        Raw quote fields for one symbol.

        Raises:
            SymbolNotFoundError: Unknown symbol or no market price
            ProviderError: Any other failure
        """

        def _load() -> dict[str, Any]:
            info = yf.Ticker(symbol).info
            if not self._has_price(info):
                raise SymbolNotFoundError(
                    f"No quote for {symbol}", provider=self.provider_name, symbol=symbol
                )
            return dict(info)

        return await self._run(_load, symbol=symbol)

    async def get_quotes_info(self, symbols: list[str]) -> dict[str, dict[str, Any]]:
        """
        Raw quote fields for several symbols.

        Each symbol is fetched on its own worker thread with its own timeout,
        at most BATCH_CONCURRENCY at a time, so one slow or failing symbol
        does not cost the rest of the batch. Symbols that fail, time out or
        have no price are omitted from the result.
        """
        semaphore = asyncio.Semaphore(BATCH_CONCURRENCY)

        async def _load_one(symbol: str) -> dict[str, Any] | None:
            async with semaphore:
                try:
                    return await self.get_quote_info(symbol)
                except ProviderError as e:
                    logger.debug("Batch quote entry failed", symbol=symbol, error=str(e))
                    return None

        results = await asyncio.gather(*(_load_one(symbol) for symbol in symbols))
        return {symbol: info for symbol, info in zip(symbols, results) if info is not None}

    async def search(self, query: str, max_results: int = 20) -> list[dict[str, Any]]:
        """Raw search candidates (symbol, shortname, exchange, quoteType, ...)."""

        def _load() -> list[dict[str, Any]]:
            result = yf.Search(query, max_results=max_results, news_count=0)
            return list(result.quotes or [])

        return await self._run(_load)

    async def get_history(
        self,
        symbol: str,
        start: datetime,
        end: datetime,
        interval: str,
    ) -> pd.DataFrame:
        """
        OHLCV bars indexed by bar start time.

        Raises:
            SymbolNotFoundError: No bars for the symbol in the window
            ProviderError: Any other failure
        """

        def _load() -> pd.DataFrame:
            data = yf.Ticker(symbol).history(
                start=start, end=end, interval=interval, auto_adjust=False
            )
            if data is None or data.empty:
                raise SymbolNotFoundError(
                    f"No history for {symbol}", provider=self.provider_name, symbol=symbol
                )
            return data

        return await self._run(_load, symbol=symbol)
