"""
Risk scoring.

- metrics: returns, volatility, beta, drawdown (numpy)
- scoring: thresholds, level scores, composite weights
- models: RiskProfile
- engine: RiskScoringEngine (cache-first)
"""

from .engine import RiskScoringEngine, build_risk_profile
from .models import FundamentalRisk, LiquidityRisk, MarketRisk, RiskProfile
from .scoring import MarketCapCategory, RiskLevel

__all__ = [
    "FundamentalRisk",
    "LiquidityRisk",
    "MarketCapCategory",
    "MarketRisk",
    "RiskLevel",
    "RiskProfile",
    "RiskScoringEngine",
    "build_risk_profile",
]
