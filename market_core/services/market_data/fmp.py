"""
Financial Modeling Prep client for financial-statement data.

Every endpoint returns a JSON list; only the most recent record is used.
Failures never propagate: an endpoint that cannot be read yields None and the
aggregator treats it as an empty source.
"""

from typing import Any

import httpx
import structlog

from ...core.config import Settings
from .base import HttpProviderBase, ProviderError

logger = structlog.get_logger(__name__)


class FinancialModelingPrepProvider(HttpProviderBase):
    """Raw statement/ratio records from FMP (v3 API)."""

    provider_name = "fmp"

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None):
        super().__init__(
            settings,
            api_key=settings.fmp_api_key,
            base_url=settings.fmp_base_url,
            client=client,
        )

    async def _latest(
        self, endpoint: str, symbol: str, limited: bool = True
    ) -> dict[str, Any] | None:
        """Fetch {endpoint}/{symbol} and return its first record, or None."""
        if not self.configured:
            return None

        params = {"limit": 1} if limited else None
        try:
            payload = await self._get_json(f"{endpoint}/{symbol}", params)
        except ProviderError as e:
            logger.error(
                "FMP request failed",
                endpoint=endpoint,
                symbol=symbol,
                error=str(e),
            )
            return None

        if not isinstance(payload, list) or not payload:
            logger.debug("FMP returned no records", endpoint=endpoint, symbol=symbol)
            return None

        record = payload[0]
        return record if isinstance(record, dict) else None

    async def get_ratios_ttm(self, symbol: str) -> dict[str, Any] | None:
        return await self._latest("ratios-ttm", symbol, limited=False)

    async def get_key_metrics(self, symbol: str) -> dict[str, Any] | None:
        return await self._latest("key-metrics", symbol)

    async def get_income_statement(self, symbol: str) -> dict[str, Any] | None:
        return await self._latest("income-statement", symbol)

    async def get_balance_sheet(self, symbol: str) -> dict[str, Any] | None:
        return await self._latest("balance-sheet-statement", symbol)

    async def get_cash_flow(self, symbol: str) -> dict[str, Any] | None:
        return await self._latest("cash-flow-statement", symbol)

    async def get_financial_growth(self, symbol: str) -> dict[str, Any] | None:
        return await self._latest("financial-growth", symbol)
