"""
Risk Scoring Engine.

Combines market statistics (beta vs benchmark, volatility, drawdown),
fundamental leverage and liquidity into a 0-100 composite score.
Profiles are cached per symbol; an unreadable cache entry is recomputed.
"""

from collections.abc import Sequence

import structlog

from ...core.config import Settings
from ...core.utils.date_utils import utcnow
from ..data_manager.cache import CacheOperations
from ..data_manager.gateway import MarketDataGateway
from ..data_manager.keys import CacheKeys
from ..data_manager.types import ChartRange, PricePoint
from ..fundamentals.models import FundamentalsView
from . import metrics, scoring
from .models import FundamentalRisk, LiquidityRisk, MarketRisk, RiskProfile

logger = structlog.get_logger(__name__)

HISTORY_RANGE = ChartRange.YEAR_1


def build_risk_profile(
    symbol: str,
    prices: Sequence[PricePoint],
    benchmark: Sequence[PricePoint],
    fundamentals: FundamentalsView | None = None,
    market_cap: float | None = None,
    avg_volume: float | None = None,
) -> RiskProfile:
    """
    Compute a RiskProfile from explicit inputs. Deterministic.

    Args:
        symbol: Stock symbol
        prices: Stock bars, time-ascending
        benchmark: Benchmark bars over the same period, time-ascending
        fundamentals: Source of debt-to-equity and interest coverage
        market_cap: USD market capitalization
        avg_volume: Average daily share volume
    """
    closes = [p.close for p in prices]
    returns = metrics.daily_returns(closes)

    beta = metrics.aligned_beta(
        metrics.timestamped_returns([p.timestamp for p in prices], closes),
        metrics.timestamped_returns(
            [p.timestamp for p in benchmark], [p.close for p in benchmark]
        ),
    )
    market = MarketRisk(
        beta=beta,
        volatility_30d=metrics.trailing_volatility(
            returns, metrics.VOL_30D_WINDOW, metrics.VOL_30D_MIN
        ),
        volatility_90d=metrics.trailing_volatility(
            returns, metrics.VOL_90D_WINDOW, metrics.VOL_90D_MIN
        ),
        max_drawdown_1y=metrics.max_drawdown(closes),
    )

    debt_to_equity = interest_coverage = None
    if fundamentals is not None:
        debt_to_equity = fundamentals.metric("leverage", "debtToEquity")
        interest_coverage = fundamentals.metric("leverage", "interestCoverage")
    fundamental = FundamentalRisk(
        debt_risk=scoring.debt_risk(debt_to_equity),
        interest_coverage_risk=scoring.interest_coverage_risk(interest_coverage),
    )

    liquidity = LiquidityRisk(
        avg_daily_volume=avg_volume,
        volume_risk=scoring.volume_risk(avg_volume),
        market_cap_category=scoring.market_cap_category(market_cap),
    )

    overall = scoring.overall_risk_score(
        scoring.market_risk_score(
            market.beta, market.volatility_30d, market.volatility_90d, market.max_drawdown_1y
        ),
        scoring.fundamental_risk_score(fundamental.debt_risk, fundamental.interest_coverage_risk),
        scoring.liquidity_risk_score(liquidity.volume_risk, liquidity.market_cap_category),
    )

    return RiskProfile(
        symbol=symbol,
        overall_risk_score=overall,
        market_risk=market,
        fundamental_risk=fundamental,
        liquidity_risk=liquidity,
        last_updated=utcnow(),
    )


class RiskScoringEngine:
    """Cache-first risk profiles; missing price data comes from the gateway."""

    def __init__(
        self,
        cache: CacheOperations,
        gateway: MarketDataGateway,
        settings: Settings,
    ):
        self._cache = cache
        self._gateway = gateway
        self._settings = settings

    async def calculate_risk_metrics(
        self,
        symbol: str,
        price_history: Sequence[PricePoint] | None = None,
        fundamentals: FundamentalsView | None = None,
        market_cap: float | None = None,
        avg_volume: float | None = None,
    ) -> RiskProfile:
        """
        Get the risk profile for a symbol.

        Without price_history the 1Y chart is fetched. A benchmark that cannot
        be fetched leaves beta null; it never fails the calculation.
        """
        symbol = symbol.strip().upper()
        key = CacheKeys.risk(symbol)

        cached = await self._cache.get(key)
        if isinstance(cached, dict):
            try:
                return RiskProfile.from_dict(cached)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Cached payload invalid", key=key, error=str(e))

        prices = list(price_history) if price_history else await self._gateway.get_chart_data(
            symbol, HISTORY_RANGE
        )

        benchmark_symbol = self._settings.benchmark_symbol
        try:
            benchmark = await self._gateway.get_chart_data(benchmark_symbol, HISTORY_RANGE)
        except Exception as e:
            logger.warning("Benchmark fetch failed", benchmark=benchmark_symbol, error=str(e))
            benchmark = []

        profile = build_risk_profile(
            symbol,
            prices,
            benchmark,
            fundamentals=fundamentals,
            market_cap=market_cap,
            avg_volume=avg_volume,
        )
        await self._cache.set(key, profile.to_dict(), self._settings.cache_ttl_risk)

        logger.info(
            "Risk profile computed",
            symbol=symbol,
            score=profile.overall_risk_score,
            level=profile.risk_level.value,
            bars=len(prices),
            benchmark_bars=len(benchmark),
        )
        return profile
