"""Risk profile models."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from .scoring import MarketCapCategory, RiskLevel, level_from_score


@dataclass
class MarketRisk:
    beta: float | None
    volatility_30d: float | None
    volatility_90d: float | None
    max_drawdown_1y: float | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "beta": self.beta,
            "volatility30D": self.volatility_30d,
            "volatility90D": self.volatility_90d,
            "maxDrawdown1Y": self.max_drawdown_1y,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MarketRisk":
        return cls(
            beta=data.get("beta"),
            volatility_30d=data.get("volatility30D"),
            volatility_90d=data.get("volatility90D"),
            max_drawdown_1y=data.get("maxDrawdown1Y"),
        )


@dataclass
class FundamentalRisk:
    debt_risk: RiskLevel
    interest_coverage_risk: RiskLevel

    def to_dict(self) -> dict[str, Any]:
        return {
            "debtRisk": self.debt_risk.value,
            "interestCoverageRisk": self.interest_coverage_risk.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FundamentalRisk":
        return cls(
            debt_risk=RiskLevel(data["debtRisk"]),
            interest_coverage_risk=RiskLevel(data["interestCoverageRisk"]),
        )


@dataclass
class LiquidityRisk:
    avg_daily_volume: float | None
    volume_risk: RiskLevel
    market_cap_category: MarketCapCategory

    def to_dict(self) -> dict[str, Any]:
        return {
            "avgDailyVolume": self.avg_daily_volume,
            "volumeRisk": self.volume_risk.value,
            "marketCapCategory": self.market_cap_category.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LiquidityRisk":
        return cls(
            avg_daily_volume=data.get("avgDailyVolume"),
            volume_risk=RiskLevel(data["volumeRisk"]),
            market_cap_category=MarketCapCategory(data["marketCapCategory"]),
        )


@dataclass
class RiskProfile:
    """
    Composite risk assessment for one symbol.

    risk_level is derived from overall_risk_score on every access, so the two
    can never disagree (a cached level is ignored on load).
    """

    symbol: str
    overall_risk_score: int
    market_risk: MarketRisk
    fundamental_risk: FundamentalRisk
    liquidity_risk: LiquidityRisk
    last_updated: datetime

    @property
    def risk_level(self) -> RiskLevel:
        return level_from_score(self.overall_risk_score)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "symbol": self.symbol,
            "overallRiskScore": self.overall_risk_score,
            "riskLevel": self.risk_level.value,
            "marketRisk": self.market_risk.to_dict(),
            "fundamentalRisk": self.fundamental_risk.to_dict(),
            "liquidityRisk": self.liquidity_risk.to_dict(),
            "lastUpdated": self.last_updated.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RiskProfile":
        """Create from dictionary."""
        return cls(
            symbol=data["symbol"],
            overall_risk_score=int(data["overallRiskScore"]),
            market_risk=MarketRisk.from_dict(data["marketRisk"]),
            fundamental_risk=FundamentalRisk.from_dict(data["fundamentalRisk"]),
            liquidity_risk=LiquidityRisk.from_dict(data["liquidityRisk"]),
            last_updated=datetime.fromisoformat(data["lastUpdated"]),
        )
