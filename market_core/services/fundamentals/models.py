"""
Fundamentals view model.

Every metric is independently nullable. Both tiers share the same shape:
metrics a tier may not see are present and None.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..data_manager.types import Tier
from .fields import GROUPS

# Python attribute -> wire key for each metric group
GROUP_WIRE_NAMES = {
    "valuation": "valuation",
    "profitability": "profitability",
    "growth": "growth",
    "income_statement": "incomeStatement",
    "balance_sheet": "balanceSheet",
    "cash_flow": "cashFlow",
    "leverage": "leverage",
    "efficiency": "efficiency",
    "per_share": "perShare",
}

MetricGroup = dict[str, float | None]


@dataclass
class FundamentalsView:
    """Tiered fundamentals for one symbol."""

    symbol: str
    tier: Tier
    fiscal_year: int
    fiscal_quarter: int
    last_updated: datetime
    valuation: MetricGroup = field(default_factory=dict)
    profitability: MetricGroup = field(default_factory=dict)
    growth: MetricGroup = field(default_factory=dict)
    income_statement: MetricGroup = field(default_factory=dict)
    balance_sheet: MetricGroup = field(default_factory=dict)
    cash_flow: MetricGroup = field(default_factory=dict)
    leverage: MetricGroup = field(default_factory=dict)
    efficiency: MetricGroup = field(default_factory=dict)
    per_share: MetricGroup = field(default_factory=dict)

    def group(self, name: str) -> MetricGroup:
        return getattr(self, name)

    def metric(self, group: str, name: str) -> float | None:
        return self.group(group).get(name)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data: dict[str, Any] = {
            "symbol": self.symbol,
            "tier": Tier(self.tier).value,
        }
        for group in GROUPS:
            data[GROUP_WIRE_NAMES[group]] = dict(self.group(group))
        data["fiscalYear"] = self.fiscal_year
        data["fiscalQuarter"] = self.fiscal_quarter
        data["lastUpdated"] = self.last_updated.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FundamentalsView":
        """Create from dictionary."""
        groups = {group: dict(data[GROUP_WIRE_NAMES[group]]) for group in GROUPS}
        return cls(
            symbol=data["symbol"],
            tier=Tier(data["tier"]),
            fiscal_year=int(data["fiscalYear"]),
            fiscal_quarter=int(data["fiscalQuarter"]),
            last_updated=datetime.fromisoformat(data["lastUpdated"]),
            **groups,
        )
