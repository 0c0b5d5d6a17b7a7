"""
Data types for the market data layer.

These models define the structure of data returned by the gateway,
ensuring consistent interfaces across all data consumers. Every cached type
round-trips through to_dict()/from_dict() so cache entries stay plain JSON
with the camelCase keys the UI consumes.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class Tier(str, Enum):
    """Subscription tier supplied by the identity provider."""

    FREE = "free"
    PRO = "pro"


class ChartRange(str, Enum):
    """Chart time range. Interval, lookback and TTL all derive from it."""

    DAY_1 = "1D"
    WEEK_1 = "1W"
    MONTH_1 = "1M"
    MONTH_3 = "3M"
    YEAR_1 = "1Y"
    YEAR_5 = "5Y"

    @property
    def is_intraday(self) -> bool:
        """Finest granularity: only the most recent session is kept."""
        return self is ChartRange.DAY_1

    @property
    def interval(self) -> str:
        """Bar interval requested from the provider."""
        interval_map = {
            ChartRange.DAY_1: "5m",
            ChartRange.WEEK_1: "30m",
            ChartRange.MONTH_1: "1d",
            ChartRange.MONTH_3: "1d",
            ChartRange.YEAR_1: "1d",
            ChartRange.YEAR_5: "1wk",
        }
        return interval_map[self]

    @property
    def period_days(self) -> int:
        """Approximate lookback in calendar days."""
        period_map = {
            ChartRange.DAY_1: 1,
            ChartRange.WEEK_1: 7,
            ChartRange.MONTH_1: 30,
            ChartRange.MONTH_3: 90,
            ChartRange.YEAR_1: 365,
            ChartRange.YEAR_5: 1825,
        }
        return period_map[self]

    @property
    def ttl_seconds(self) -> int:
        """Returns the TTL in seconds for this range."""
        ttl_map = {
            ChartRange.DAY_1: 60,  # 1 minute for intraday
            ChartRange.WEEK_1: 300,  # 5 minutes
            ChartRange.MONTH_1: 3600,  # 1 hour
            ChartRange.MONTH_3: 3600,  # 1 hour
            ChartRange.YEAR_1: 3600,  # 1 hour
            ChartRange.YEAR_5: 86400,  # 24 hours for long-term
        }
        return ttl_map[self]


@dataclass
class Quote:
    """Normalized real-time quote."""

    symbol: str
    name: str
    exchange: str
    price: float
    change: float
    change_percent: float
    open: float
    high: float
    low: float
    close: float
    previous_close: float
    volume: int
    avg_volume: int
    market_cap: float
    pe_ratio: float | None
    week_high_52: float
    week_low_52: float
    updated_at: datetime

    @property
    def is_valid(self) -> bool:
        """A quote without a positive price is treated as not found."""
        return self.price is not None and self.price > 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "symbol": self.symbol,
            "name": self.name,
            "exchange": self.exchange,
            "price": self.price,
            "change": self.change,
            "changePercent": self.change_percent,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "previousClose": self.previous_close,
            "volume": self.volume,
            "avgVolume": self.avg_volume,
            "marketCap": self.market_cap,
            "peRatio": self.pe_ratio,
            "weekHigh52": self.week_high_52,
            "weekLow52": self.week_low_52,
            "updatedAt": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Quote":
        """Create from dictionary."""
        pe_ratio = data.get("peRatio")
        return cls(
            symbol=data["symbol"],
            name=data.get("name", data["symbol"]),
            exchange=data.get("exchange", "Unknown"),
            price=float(data["price"]),
            change=float(data.get("change", 0)),
            change_percent=float(data.get("changePercent", 0)),
            open=float(data.get("open", 0)),
            high=float(data.get("high", 0)),
            low=float(data.get("low", 0)),
            close=float(data.get("close", 0)),
            previous_close=float(data.get("previousClose", 0)),
            volume=int(data.get("volume", 0)),
            avg_volume=int(data.get("avgVolume", 0)),
            market_cap=float(data.get("marketCap", 0)),
            pe_ratio=float(pe_ratio) if pe_ratio is not None else None,
            week_high_52=float(data.get("weekHigh52", 0)),
            week_low_52=float(data.get("weekLow52", 0)),
            updated_at=datetime.fromisoformat(data["updatedAt"]),
        )


@dataclass
class PricePoint:
    """OHLCV bar. Timestamp is epoch milliseconds (UTC)."""

    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "timestamp": self.timestamp,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PricePoint":
        """Create from dictionary."""
        return cls(
            timestamp=int(data["timestamp"]),
            open=float(data["open"]),
            high=float(data["high"]),
            low=float(data["low"]),
            close=float(data["close"]),
            volume=int(data["volume"]),
        )


@dataclass
class SymbolResult:
    """Symbol search hit."""

    symbol: str
    name: str
    exchange: str
    type: str  # "EQUITY" or "ETF"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "symbol": self.symbol,
            "name": self.name,
            "exchange": self.exchange,
            "type": self.type,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SymbolResult":
        """Create from dictionary."""
        return cls(
            symbol=data["symbol"],
            name=data.get("name", data["symbol"]),
            exchange=data.get("exchange", ""),
            type=data.get("type", ""),
        )


@dataclass
class MarketIndex:
    """Index proxy ETF snapshot (SPY, DIA, QQQ, IWM)."""

    symbol: str
    name: str
    price: float
    change: float
    change_percent: float
    previous_close: float
    day_high: float
    day_low: float
    volume: int
    updated_at: datetime

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "symbol": self.symbol,
            "name": self.name,
            "price": self.price,
            "change": self.change,
            "changePercent": self.change_percent,
            "previousClose": self.previous_close,
            "dayHigh": self.day_high,
            "dayLow": self.day_low,
            "volume": self.volume,
            "updatedAt": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MarketIndex":
        """Create from dictionary."""
        return cls(
            symbol=data["symbol"],
            name=data["name"],
            price=float(data["price"]),
            change=float(data["change"]),
            change_percent=float(data["changePercent"]),
            previous_close=float(data["previousClose"]),
            day_high=float(data["dayHigh"]),
            day_low=float(data["dayLow"]),
            volume=int(data["volume"]),
            updated_at=datetime.fromisoformat(data["updatedAt"]),
        )


@dataclass
class MarketSector:
    """Sector ETF snapshot. Multi-period changes are not computed yet."""

    symbol: str
    name: str
    change_percent: float
    volume: int
    week_change: float = 0.0
    month_change: float = 0.0
    ytd_change: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "symbol": self.symbol,
            "name": self.name,
            "changePercent": self.change_percent,
            "weekChange": self.week_change,
            "monthChange": self.month_change,
            "ytdChange": self.ytd_change,
            "volume": self.volume,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MarketSector":
        """Create from dictionary."""
        return cls(
            symbol=data["symbol"],
            name=data["name"],
            change_percent=float(data["changePercent"]),
            volume=int(data["volume"]),
            week_change=float(data.get("weekChange", 0)),
            month_change=float(data.get("monthChange", 0)),
            ytd_change=float(data.get("ytdChange", 0)),
        )
