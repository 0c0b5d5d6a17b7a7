"""
Unit tests for risk statistics and scoring.

Tests cover:
- Daily returns, volatility, beta and drawdown
- Threshold classification (debt, coverage, volume, market cap)
- Sub-scores and the weighted composite
- build_risk_profile determinism and level/score agreement
"""

from datetime import UTC, datetime

import numpy as np
import pytest

from market_core.services.data_manager import PricePoint, Tier
from market_core.services.fundamentals import FundamentalsView
from market_core.services.risk import (
    MarketCapCategory,
    RiskLevel,
    RiskProfile,
    build_risk_profile,
)
from market_core.services.risk import metrics, scoring

DAY_MS = 86_400_000
START_MS = 1_704_067_200_000  # 2024-01-01T00:00:00Z


def bench_returns(n: int) -> list[float]:
    """Deterministic, non-flat benchmark return pattern."""
    pattern = [0.01, -0.005, 0.007, -0.012, 0.004, 0.009, -0.003]
    return [pattern[i % len(pattern)] for i in range(n)]


def bars_from_returns(returns: list[float], start_price: float = 100.0) -> list[PricePoint]:
    closes = [start_price]
    for r in returns:
        closes.append(closes[-1] * (1 + r))
    return [
        PricePoint(
            timestamp=START_MS + i * DAY_MS,
            open=c,
            high=c,
            low=c,
            close=c,
            volume=1_000_000,
        )
        for i, c in enumerate(closes)
    ]


def leverage_view(debt_to_equity, interest_coverage) -> FundamentalsView:
    return FundamentalsView(
        symbol="TEST",
        tier=Tier.PRO,
        fiscal_year=2024,
        fiscal_quarter=4,
        last_updated=datetime(2024, 12, 31, tzinfo=UTC),
        leverage={"debtToEquity": debt_to_equity, "interestCoverage": interest_coverage},
    )


class TestReturns:
    """Test return series construction."""

    def test_simple_returns(self):
        returns = metrics.daily_returns([100, 110, 99])
        assert returns.tolist() == pytest.approx([0.1, -0.1])

    def test_zero_and_missing_prices_are_skipped(self):
        """Pairs touching a zero or missing price produce no return."""
        assert metrics.daily_returns([100, 110, 0, 121]).tolist() == pytest.approx([0.1])
        assert metrics.daily_returns([100, None, 105]).size == 0

    def test_too_short_series(self):
        assert metrics.daily_returns([]).size == 0
        assert metrics.daily_returns([100]).size == 0

    def test_timestamped_returns_key_on_later_bar(self):
        result = metrics.timestamped_returns([1, 2, 3], [100, 110, 121])
        assert sorted(result) == [2, 3]
        assert result[3] == pytest.approx(0.1)


class TestVolatility:
    """Test annualized volatility."""

    def test_population_std_annualized_in_percent(self):
        returns = np.array([0.01, -0.01] * 10)
        expected = 0.01 * np.sqrt(252) * 100

        assert metrics.annualized_volatility(returns) == pytest.approx(expected)

    def test_window_below_minimum_is_null(self):
        returns = np.array(bench_returns(19))
        assert metrics.trailing_volatility(returns, 30, 20) is None

    def test_window_uses_trailing_returns(self):
        returns = np.array([0.5] * 10 + bench_returns(30))
        trailing = metrics.trailing_volatility(returns, 30, 20)

        assert trailing == pytest.approx(metrics.annualized_volatility(np.array(bench_returns(30))))

    def test_more_volatile_series_scores_higher(self):
        calm = np.array(bench_returns(60))
        wild = calm * 3
        assert metrics.annualized_volatility(wild) > metrics.annualized_volatility(calm)


class TestBeta:
    """Test beta estimation."""

    def test_scaled_series_has_scaled_beta(self):
        bench = np.array(bench_returns(60))
        assert metrics.beta(bench * 2, bench) == pytest.approx(2.0)

    def test_fewer_than_thirty_observations_is_null(self):
        bench = np.array(bench_returns(29))
        assert metrics.beta(bench, bench) is None

    def test_flat_benchmark_is_null(self):
        assert metrics.beta(np.array(bench_returns(40)), np.zeros(40)) is None

    def test_aligned_beta_uses_shared_timestamps(self):
        bench = {i: r for i, r in enumerate(bench_returns(40))}
        # Extra stock-only observations must not shift the alignment
        stock = {i: 1.5 * r for i, r in bench.items()}
        stock.update({100 + i: 0.2 for i in range(5)})

        assert metrics.aligned_beta(stock, bench) == pytest.approx(1.5)

    def test_aligned_beta_without_shared_timestamps_is_positional(self):
        bench = {i: r for i, r in enumerate(bench_returns(40))}
        stock = {1000 + i: r for i, r in enumerate(bench_returns(40))}

        assert metrics.aligned_beta(stock, bench) == pytest.approx(1.0)


class TestMaxDrawdown:
    """Test peak-to-trough drawdown."""

    def test_largest_decline_from_running_peak(self):
        assert metrics.max_drawdown([100, 120, 90, 130, 117]) == pytest.approx(25.0)

    def test_monotonic_rise_has_no_drawdown(self):
        assert metrics.max_drawdown([1, 2, 3]) == 0.0

    def test_empty_series_is_null(self):
        assert metrics.max_drawdown([]) is None


class TestClassification:
    """Test threshold classification."""

    @pytest.mark.parametrize(
        "value,level",
        [(0.3, RiskLevel.LOW), (0.5, RiskLevel.MEDIUM), (1.5, RiskLevel.MEDIUM), (1.6, RiskLevel.HIGH)],
    )
    def test_debt_risk(self, value, level):
        assert scoring.debt_risk(value) is level

    @pytest.mark.parametrize(
        "value,level",
        [(10, RiskLevel.LOW), (5, RiskLevel.MEDIUM), (2, RiskLevel.MEDIUM), (1.5, RiskLevel.HIGH)],
    )
    def test_interest_coverage_risk(self, value, level):
        assert scoring.interest_coverage_risk(value) is level

    @pytest.mark.parametrize(
        "value,level",
        [(2_000_000, RiskLevel.LOW), (1_000_000, RiskLevel.MEDIUM), (50_000, RiskLevel.HIGH)],
    )
    def test_volume_risk(self, value, level):
        assert scoring.volume_risk(value) is level

    def test_missing_inputs_are_medium(self):
        assert scoring.debt_risk(None) is RiskLevel.MEDIUM
        assert scoring.interest_coverage_risk(None) is RiskLevel.MEDIUM
        assert scoring.volume_risk(None) is RiskLevel.MEDIUM

    @pytest.mark.parametrize(
        "market_cap,category",
        [
            (500e9, MarketCapCategory.MEGA),
            (50e9, MarketCapCategory.LARGE),
            (5e9, MarketCapCategory.MID),
            (500e6, MarketCapCategory.SMALL),
            (100e6, MarketCapCategory.MICRO),
            (None, MarketCapCategory.MID),
        ],
    )
    def test_market_cap_category(self, market_cap, category):
        assert scoring.market_cap_category(market_cap) is category

    @pytest.mark.parametrize(
        "score,level",
        [(0, RiskLevel.LOW), (33, RiskLevel.LOW), (34, RiskLevel.MEDIUM), (66, RiskLevel.MEDIUM), (67, RiskLevel.HIGH), (100, RiskLevel.HIGH)],
    )
    def test_level_bands(self, score, level):
        assert scoring.level_from_score(score) is level


class TestSubScores:
    """Test sub-scores and composite."""

    def test_market_score_without_data_is_neutral(self):
        assert scoring.market_risk_score(None, None, None, None) == 50.0

    def test_market_score_averages_available_components(self):
        # beta 1.0 -> 50, vol 30% -> 60
        assert scoring.market_risk_score(1.0, 30.0, None, None) == pytest.approx(55.0)

    def test_market_components_are_clamped(self):
        assert scoring.market_risk_score(5.0, 90.0, None, None) == 100.0

    def test_low_debt_high_coverage_risk_averages_to_fifty(self):
        debt = scoring.debt_risk(0.3)
        coverage = scoring.interest_coverage_risk(1.5)

        assert debt is RiskLevel.LOW
        assert coverage is RiskLevel.HIGH
        assert scoring.fundamental_risk_score(debt, coverage) == 50

    def test_mega_cap_with_heavy_volume_is_low_liquidity_risk(self):
        score = scoring.liquidity_risk_score(
            scoring.volume_risk(2_000_000), scoring.market_cap_category(500e9)
        )
        assert score == 20

    def test_liquidity_caps_and_floors(self):
        assert scoring.liquidity_risk_score(RiskLevel.HIGH, MarketCapCategory.MEGA) == 20
        assert scoring.liquidity_risk_score(RiskLevel.HIGH, MarketCapCategory.LARGE) == 35
        assert scoring.liquidity_risk_score(RiskLevel.LOW, MarketCapCategory.SMALL) == 60
        assert scoring.liquidity_risk_score(RiskLevel.LOW, MarketCapCategory.MICRO) == 75
        assert scoring.liquidity_risk_score(RiskLevel.MEDIUM, MarketCapCategory.MID) == 50

    def test_overall_score_is_weighted_integer(self):
        assert scoring.overall_risk_score(20, 20, 20) == 20
        assert scoring.overall_risk_score(80, 50, 20) == 53
        assert scoring.overall_risk_score(100, 100, 100) == 100


class TestBuildRiskProfile:
    """Test the pure profile builder."""

    def test_no_inputs_gives_neutral_profile(self):
        profile = build_risk_profile("TEST", [], [])

        assert profile.overall_risk_score == 50
        assert profile.risk_level is RiskLevel.MEDIUM
        assert profile.market_risk.beta is None
        assert profile.market_risk.max_drawdown_1y is None
        assert profile.liquidity_risk.market_cap_category is MarketCapCategory.MID

    def test_leverage_and_liquidity_inputs(self):
        profile = build_risk_profile(
            "TEST",
            [],
            [],
            fundamentals=leverage_view(0.3, 1.5),
            market_cap=500e9,
            avg_volume=2_000_000,
        )

        assert profile.fundamental_risk.debt_risk is RiskLevel.LOW
        assert profile.fundamental_risk.interest_coverage_risk is RiskLevel.HIGH
        assert profile.liquidity_risk.volume_risk is RiskLevel.LOW
        assert profile.liquidity_risk.market_cap_category is MarketCapCategory.MEGA
        # 0.4 * 50 + 0.3 * 50 + 0.3 * 20
        assert profile.overall_risk_score == 41

    def test_full_history_computes_market_statistics(self):
        bench = bench_returns(260)
        prices = bars_from_returns([2 * r for r in bench])
        benchmark = bars_from_returns(bench)

        profile = build_risk_profile("TEST", prices, benchmark)

        assert profile.market_risk.beta == pytest.approx(2.0)
        assert profile.market_risk.volatility_30d is not None
        assert profile.market_risk.volatility_90d is not None
        assert profile.market_risk.max_drawdown_1y > 0

    def test_short_history_leaves_statistics_null(self):
        prices = bars_from_returns(bench_returns(15))

        profile = build_risk_profile("TEST", prices, prices)

        assert profile.market_risk.beta is None
        assert profile.market_risk.volatility_30d is None
        assert profile.market_risk.volatility_90d is None
        assert profile.market_risk.max_drawdown_1y is not None

    def test_deterministic_for_identical_inputs(self):
        bench = bench_returns(120)
        prices = bars_from_returns([1.3 * r for r in bench])
        benchmark = bars_from_returns(bench)
        kwargs = {"fundamentals": leverage_view(1.0, 3.0), "market_cap": 5e9, "avg_volume": 500_000}

        first = build_risk_profile("TEST", prices, benchmark, **kwargs).to_dict()
        second = build_risk_profile("TEST", prices, benchmark, **kwargs).to_dict()
        first.pop("lastUpdated")
        second.pop("lastUpdated")

        assert first == second

    def test_level_always_matches_score(self):
        profile = build_risk_profile("TEST", [], [], market_cap=100e6, avg_volume=10_000)

        assert profile.risk_level is scoring.level_from_score(profile.overall_risk_score)
        assert profile.to_dict()["riskLevel"] == profile.risk_level.value

    def test_cached_level_is_rederived_from_score(self):
        data = build_risk_profile("TEST", [], []).to_dict()
        data["riskLevel"] = "high"

        restored = RiskProfile.from_dict(data)

        assert restored.risk_level is RiskLevel.MEDIUM
