"""
Unit tests for the tiered Fundamentals Aggregator.

Tests cover:
- Field resolution precedence across sources
- Free tier mask (free view is a subset of the pro view)
- Provider endpoints fetched per tier
- Not-found handling and per-tier caching
- Fiscal period derivation
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from market_core.core.utils.date_utils import quarter_of, utcnow
from market_core.services.data_manager import Tier
from market_core.services.fundamentals import (
    FIELDS,
    FREE_FIELDS,
    FundamentalsAggregator,
    FundamentalsView,
    build_view,
)
from market_core.services.fundamentals.aggregator import fiscal_period, resolve_field
from market_core.services.fundamentals.fields import GROUPS, METRICS, RATIOS, FieldSpec

RATIOS_TTM = {
    "peRatioTTM": 28.5,
    "pegRatioTTM": 2.1,
    "priceToBookRatioTTM": 45.0,
    "grossProfitMarginTTM": 0.45,
    "returnOnEquityTTM": 1.6,
    "returnOnAssetsTTM": 0.28,
    "debtEquityRatioTTM": 1.8,
    "interestCoverageTTM": 29.0,
    "currentRatioTTM": 0.95,
}
KEY_METRICS = {
    "peRatio": 30.0,
    "pbRatio": 48.0,
    "enterpriseValue": 3.1e12,
    "dividendYield": 0.005,
    "roic": 0.55,
}
INCOME = {
    "calendarYear": "2024",
    "period": "Q2",
    "revenue": 383_285_000_000,
    "netIncome": 96_995_000_000,
    "eps": 6.16,
    "epsdiluted": 6.13,
    "ebitda": 125_820_000_000,
}
BALANCE = {
    "totalAssets": 352_583_000_000,
    "cashAndCashEquivalents": 29_965_000_000,
    "totalDebt": 111_088_000_000,
    "totalStockholdersEquity": 62_146_000_000,
}
CASH_FLOW = {"operatingCashFlow": 110_543_000_000, "freeCashFlow": 99_584_000_000}
GROWTH = {
    "revenueGrowth": -0.028,
    "epsgrowth": 0.003,
    "threeYRevenueGrowthPerShare": 0.36,
    "freeCashFlowGrowth": -0.11,
}


@pytest.fixture
def provider():
    provider = MagicMock()
    provider.get_ratios_ttm = AsyncMock(return_value=dict(RATIOS_TTM))
    provider.get_key_metrics = AsyncMock(return_value=dict(KEY_METRICS))
    provider.get_income_statement = AsyncMock(return_value=dict(INCOME))
    provider.get_balance_sheet = AsyncMock(return_value=dict(BALANCE))
    provider.get_cash_flow = AsyncMock(return_value=dict(CASH_FLOW))
    provider.get_financial_growth = AsyncMock(return_value=dict(GROWTH))
    return provider


@pytest.fixture
def empty_provider(provider):
    for name in (
        "get_ratios_ttm",
        "get_key_metrics",
        "get_income_statement",
        "get_balance_sheet",
        "get_cash_flow",
        "get_financial_growth",
    ):
        getattr(provider, name).return_value = None
    return provider


@pytest.fixture
def aggregator(cache, provider, settings):
    return FundamentalsAggregator(cache, provider, settings)


class TestFieldTable:
    """Test the canonical field table."""

    def test_free_mask_has_nineteen_fields(self):
        assert len(FREE_FIELDS) == 19

    def test_every_field_belongs_to_a_known_group(self):
        assert {spec.group for spec in FIELDS} <= set(GROUPS)

    def test_field_names_unique_within_group(self):
        keys = [(spec.group, spec.name) for spec in FIELDS]
        assert len(keys) == len(set(keys))


class TestResolveField:
    """Test first-non-null source precedence."""

    def test_first_source_wins(self):
        spec = FieldSpec("valuation", "peRatio", ((RATIOS, "peRatioTTM"), (METRICS, "peRatio")))
        sources = {RATIOS: {"peRatioTTM": 28.5}, METRICS: {"peRatio": 30.0}}

        assert resolve_field(spec, sources) == 28.5

    def test_falls_through_null_and_missing_sources(self):
        spec = FieldSpec("valuation", "peRatio", ((RATIOS, "peRatioTTM"), (METRICS, "peRatio")))

        assert resolve_field(spec, {RATIOS: {"peRatioTTM": None}, METRICS: {"peRatio": 30}}) == 30.0
        assert resolve_field(spec, {RATIOS: None, METRICS: {"peRatio": 30}}) == 30.0

    def test_non_numeric_values_are_null(self):
        spec = FieldSpec("valuation", "peRatio", ((RATIOS, "peRatioTTM"),))

        assert resolve_field(spec, {RATIOS: {"peRatioTTM": "n/a"}}) is None
        assert resolve_field(spec, {RATIOS: {"peRatioTTM": float("nan")}}) is None
        assert resolve_field(spec, {RATIOS: {"peRatioTTM": True}}) is None

    def test_field_without_sources_is_always_null(self):
        assert resolve_field(FieldSpec("valuation", "forwardPE", ()), {RATIOS: RATIOS_TTM}) is None


class TestBuildView:
    """Test tier masking on a built view."""

    def sources(self):
        return {
            "ratios": RATIOS_TTM,
            "metrics": KEY_METRICS,
            "income": INCOME,
            "balance": BALANCE,
            "cash_flow": CASH_FLOW,
            "growth": GROWTH,
        }

    def test_free_view_is_subset_of_pro_view(self):
        """Every non-null free value equals the pro value for the same field."""
        free = build_view("AAPL", Tier.FREE, self.sources())
        pro = build_view("AAPL", Tier.PRO, self.sources())

        for spec in FIELDS:
            free_value = free.metric(spec.group, spec.name)
            if free_value is not None:
                assert free_value == pro.metric(spec.group, spec.name)

    def test_non_free_fields_are_null_for_free_tier(self):
        free = build_view("AAPL", Tier.FREE, self.sources())

        for spec in FIELDS:
            if not spec.free:
                assert free.metric(spec.group, spec.name) is None, spec.name

    def test_pro_sees_pro_only_fields(self):
        pro = build_view("AAPL", Tier.PRO, self.sources())

        assert pro.metric("valuation", "pegRatio") == 2.1
        assert pro.metric("leverage", "debtToEquity") == 1.8
        assert pro.metric("cash_flow", "freeCashFlow") == 99_584_000_000
        assert pro.metric("growth", "revenueGrowth3Y") == 0.36

    def test_both_tiers_share_the_same_shape(self):
        free = build_view("AAPL", Tier.FREE, self.sources()).to_dict()
        pro = build_view("AAPL", Tier.PRO, self.sources()).to_dict()

        assert free.keys() == pro.keys()
        assert free["valuation"].keys() == pro["valuation"].keys()

    def test_unsourced_fields_are_null_even_for_pro(self):
        pro = build_view("AAPL", Tier.PRO, self.sources())

        assert pro.metric("valuation", "forwardPE") is None
        assert pro.metric("growth", "revenueGrowthQoQ") is None
        assert pro.metric("leverage", "debtToEbitda") is None
        assert pro.metric("per_share", "dividend") is None

    def test_wire_format_uses_camel_case_groups(self):
        data = build_view("AAPL", Tier.PRO, self.sources()).to_dict()

        assert data["tier"] == "pro"
        assert "incomeStatement" in data
        assert "perShare" in data
        assert data["fiscalYear"] == 2024
        assert data["fiscalQuarter"] == 2


class TestFiscalPeriod:
    """Test fiscal year/quarter derivation from the income statement."""

    def test_quarterly_statement(self):
        assert fiscal_period({"calendarYear": "2024", "period": "Q3"}) == (2024, 3)

    def test_annual_statement_is_fourth_quarter(self):
        assert fiscal_period({"calendarYear": "2023", "period": "FY"}) == (2023, 4)

    def test_missing_statement_uses_current_period(self):
        now = utcnow()
        assert fiscal_period(None) == (now.year, quarter_of(now))
        assert fiscal_period({"period": "Q1"}) == (now.year, quarter_of(now))


class TestGetFundamentals:
    """Test FundamentalsAggregator.get_fundamentals."""

    @pytest.mark.asyncio
    async def test_free_tier_fetches_only_free_sources(self, aggregator, provider):
        view = await aggregator.get_fundamentals("aapl", "free")

        assert view.symbol == "AAPL"
        assert view.tier is Tier.FREE
        provider.get_cash_flow.assert_not_awaited()
        provider.get_financial_growth.assert_not_awaited()
        # Growth source is not fetched for free, so free growth fields are null
        assert view.metric("growth", "revenueGrowthYoy") is None

    @pytest.mark.asyncio
    async def test_pro_tier_fetches_every_source(self, aggregator, provider):
        view = await aggregator.get_fundamentals("AAPL", Tier.PRO)

        provider.get_cash_flow.assert_awaited_once_with("AAPL")
        provider.get_financial_growth.assert_awaited_once_with("AAPL")
        assert view.metric("growth", "revenueGrowthYoy") == -0.028
        assert view.metric("valuation", "peRatio") == 28.5

    @pytest.mark.asyncio
    async def test_unknown_symbol_returns_none_and_is_not_cached(
        self, cache, empty_provider, settings, cache_store
    ):
        aggregator = FundamentalsAggregator(cache, empty_provider, settings)

        assert await aggregator.get_fundamentals("ZZZZ", "pro") is None
        assert cache_store.data == {}

    @pytest.mark.asyncio
    async def test_failing_source_does_not_fail_the_view(self, aggregator, provider):
        """Verify a raising endpoint is treated as an empty source."""
        provider.get_ratios_ttm.side_effect = RuntimeError("boom")

        view = await aggregator.get_fundamentals("AAPL", "free")

        assert view is not None
        # Falls back to the key-metrics source
        assert view.metric("valuation", "peRatio") == 30.0

    @pytest.mark.asyncio
    async def test_cached_per_tier(self, aggregator, provider, cache_store, settings):
        first = await aggregator.get_fundamentals("AAPL", "free")
        second = await aggregator.get_fundamentals("AAPL", "free")

        assert first.to_dict()["valuation"] == second.to_dict()["valuation"]
        provider.get_ratios_ttm.assert_awaited_once()
        assert cache_store.ttls["fundamentals:AAPL:free"] == settings.cache_ttl_fundamentals

        await aggregator.get_fundamentals("AAPL", "pro")
        assert provider.get_ratios_ttm.await_count == 2
        assert "fundamentals:AAPL:pro" in cache_store.data

    @pytest.mark.asyncio
    async def test_corrupt_cache_entry_is_refetched(self, aggregator, provider, cache_store):
        cache_store.data["fundamentals:AAPL:pro"] = '{"symbol": "AAPL"}'

        view = await aggregator.get_fundamentals("AAPL", "pro")

        assert isinstance(view, FundamentalsView)
        provider.get_ratios_ttm.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_invalid_tier_raises(self, aggregator):
        with pytest.raises(ValueError):
            await aggregator.get_fundamentals("AAPL", "enterprise")

    @pytest.mark.asyncio
    async def test_clear_fundamentals_cache_drops_both_tiers(self, aggregator, cache_store):
        await aggregator.get_fundamentals("AAPL", "free")
        await aggregator.get_fundamentals("AAPL", "pro")

        assert await aggregator.clear_fundamentals_cache("aapl") == 2
        assert cache_store.data == {}
