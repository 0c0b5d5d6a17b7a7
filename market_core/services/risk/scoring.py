"""
Risk classification thresholds and composite scoring.

Scoring:
- Qualitative levels map to low=20, medium=50, high=80
- Market sub-score: mean of available rescaled components (beta, vol30,
  vol90, drawdown), 50 when none are available
- Fundamental sub-score: mean of debt and interest-coverage level scores
- Liquidity sub-score: volume level score, capped for mega/large caps and
  floored for small/micro caps
- Overall: round(0.4 * market + 0.3 * fundamental + 0.3 * liquidity)
"""

import math
from enum import Enum


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class MarketCapCategory(str, Enum):
    MEGA = "mega"
    LARGE = "large"
    MID = "mid"
    SMALL = "small"
    MICRO = "micro"


LEVEL_SCORES = {
    RiskLevel.LOW: 20,
    RiskLevel.MEDIUM: 50,
    RiskLevel.HIGH: 80,
}

MARKET_WEIGHT = 0.4
FUNDAMENTAL_WEIGHT = 0.3
LIQUIDITY_WEIGHT = 0.3

LOW_BAND_MAX = 33
MEDIUM_BAND_MAX = 66

# USD market cap lower bounds, largest first
MARKET_CAP_BANDS = (
    (200_000_000_000, MarketCapCategory.MEGA),
    (10_000_000_000, MarketCapCategory.LARGE),
    (2_000_000_000, MarketCapCategory.MID),
    (300_000_000, MarketCapCategory.SMALL),
)


def debt_risk(debt_to_equity: float | None) -> RiskLevel:
    if debt_to_equity is None:
        return RiskLevel.MEDIUM
    if debt_to_equity < 0.5:
        return RiskLevel.LOW
    if debt_to_equity <= 1.5:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


def interest_coverage_risk(interest_coverage: float | None) -> RiskLevel:
    if interest_coverage is None:
        return RiskLevel.MEDIUM
    if interest_coverage > 5:
        return RiskLevel.LOW
    if interest_coverage >= 2:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


def volume_risk(avg_volume: float | None) -> RiskLevel:
    if avg_volume is None:
        return RiskLevel.MEDIUM
    if avg_volume > 1_000_000:
        return RiskLevel.LOW
    if avg_volume >= 100_000:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


def market_cap_category(market_cap: float | None) -> MarketCapCategory:
    """Size band; unknown market cap is treated as mid."""
    if market_cap is None:
        return MarketCapCategory.MID
    for lower_bound, category in MARKET_CAP_BANDS:
        if market_cap >= lower_bound:
            return category
    return MarketCapCategory.MICRO


def level_from_score(score: float) -> RiskLevel:
    if score <= LOW_BAND_MAX:
        return RiskLevel.LOW
    if score <= MEDIUM_BAND_MAX:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


def _clamp(value: float) -> float:
    return min(100.0, max(0.0, value))


def market_risk_score(
    beta: float | None,
    volatility_30d: float | None,
    volatility_90d: float | None,
    max_drawdown: float | None,
) -> float:
    components: list[float] = []
    if beta is not None:
        # beta 1.0 -> 50
        components.append(_clamp((beta - 0.5) * 50 + 25))
    for value in (volatility_30d, volatility_90d, max_drawdown):
        if value is not None:
            components.append(_clamp(value * 2))

    if not components:
        return 50.0
    return sum(components) / len(components)


def fundamental_risk_score(debt: RiskLevel, coverage: RiskLevel) -> float:
    return (LEVEL_SCORES[debt] + LEVEL_SCORES[coverage]) / 2


def liquidity_risk_score(volume: RiskLevel, category: MarketCapCategory) -> float:
    score = float(LEVEL_SCORES[volume])
    if category is MarketCapCategory.MEGA:
        return min(score, 20)
    if category is MarketCapCategory.LARGE:
        return min(score, 35)
    if category is MarketCapCategory.SMALL:
        return max(score, 60)
    if category is MarketCapCategory.MICRO:
        return max(score, 75)
    return score


def overall_risk_score(market: float, fundamental: float, liquidity: float) -> int:
    weighted = (
        market * MARKET_WEIGHT
        + fundamental * FUNDAMENTAL_WEIGHT
        + liquidity * LIQUIDITY_WEIGHT
    )
    # Half-up rounding (42.5 -> 43)
    return math.floor(weighted + 0.5)
