"""
Normalization of raw Yahoo Finance payloads into gateway types.

Quote mapping is a field table: each Quote field lists provider keys in
precedence order plus the value to use when none of them is present.
"""

import math
from datetime import datetime
from typing import Any

import pandas as pd

from ...core.utils.date_utils import utcnow
from ..data_manager.types import MarketIndex, MarketSector, PricePoint, Quote, SymbolResult

# field -> (provider keys in precedence order, default when all missing)
QUOTE_FIELDS: dict[str, tuple[tuple[str, ...], Any]] = {
    "exchange": (("exchange",), "Unknown"),
    "price": (("regularMarketPrice",), 0),
    "change": (("regularMarketChange",), 0),
    "change_percent": (("regularMarketChangePercent",), 0),
    "open": (("regularMarketOpen",), 0),
    "high": (("regularMarketDayHigh",), 0),
    "low": (("regularMarketDayLow",), 0),
    "close": (("regularMarketPrice",), 0),
    "previous_close": (("regularMarketPreviousClose",), 0),
    "volume": (("regularMarketVolume",), 0),
    "avg_volume": (("averageDailyVolume3Month", "averageDailyVolume10Day"), 0),
    "market_cap": (("marketCap",), 0),
    "pe_ratio": (("trailingPE",), None),
    "week_high_52": (("fiftyTwoWeekHigh",), 0),
    "week_low_52": (("fiftyTwoWeekLow",), 0),
}

INT_FIELDS = {"volume", "avg_volume"}

US_EXCHANGES = frozenset(
    {
        "NYQ",
        "NMS",
        "NGM",
        "NCM",
        "NYS",
        "NAS",
        "PCX",
        "ASE",
        "BTS",
        "NYSE",
        "NASDAQ",
        "AMEX",
        "ARCA",
        "BATS",
    }
)

SEARCHABLE_TYPES = frozenset({"EQUITY", "ETF"})

INDEX_SYMBOLS = {
    "SPY": "S&P 500",
    "DIA": "Dow Jones",
    "QQQ": "Nasdaq 100",
    "IWM": "Russell 2000",
}

SECTOR_SYMBOLS = {
    "XLK": "Technology",
    "XLV": "Healthcare",
    "XLF": "Financials",
    "XLE": "Energy",
    "XLI": "Industrials",
    "XLP": "Consumer Staples",
    "XLY": "Consumer Discretionary",
    "XLB": "Materials",
    "XLRE": "Real Estate",
    "XLU": "Utilities",
    "XLC": "Communication",
}

OHLCV_COLUMNS = ["Open", "High", "Low", "Close", "Volume"]


def to_number(value: Any, default: Any = 0, cast: type = float) -> Any:
    """
    Coerce a raw provider value with cast (int or float).

    Missing, NaN, infinite, boolean and unparseable values (e.g. "N/A")
    give default, which is cast too unless it is None.
    """
    number = None
    if value is not None and not isinstance(value, bool):
        try:
            number = float(value)
        except (TypeError, ValueError):
            number = None
    if number is None or not math.isfinite(number):
        return default if default is None else cast(default)
    return cast(number)


def first_present(raw: dict[str, Any], keys: tuple[str, ...], default: Any = None) -> Any:
    """First value among keys that is not None/NaN."""
    for key in keys:
        value = raw.get(key)
        if value is None or (isinstance(value, float) and math.isnan(value)):
            continue
        return value
    return default


def normalize_quote(
    symbol: str, raw: dict[str, Any], updated_at: datetime | None = None
) -> Quote | None:
    """
    Build a Quote from raw provider fields.

    Returns:
        Quote, or None when the provider has no positive price
    """
    values: dict[str, Any] = {}
    for field, (keys, default) in QUOTE_FIELDS.items():
        value = first_present(raw, keys, default)
        if field != "exchange":
            value = to_number(value, default, int if field in INT_FIELDS else float)
        values[field] = value

    quote = Quote(
        symbol=symbol.upper(),
        name=first_present(raw, ("shortName", "longName"), symbol.upper()),
        updated_at=updated_at or utcnow(),
        **values,
    )
    return quote if quote.is_valid else None


def normalize_search_results(raw_quotes: list[dict[str, Any]], limit: int) -> list[SymbolResult]:
    """Keep Yahoo-listed US equities and ETFs, in provider order, up to limit."""
    results: list[SymbolResult] = []
    for raw in raw_quotes:
        if not raw.get("isYahooFinance"):
            continue
        quote_type = raw.get("quoteType")
        exchange = raw.get("exchange")
        if quote_type not in SEARCHABLE_TYPES or exchange not in US_EXCHANGES:
            continue
        symbol = raw.get("symbol")
        if not symbol:
            continue

        results.append(
            SymbolResult(
                symbol=symbol,
                name=raw.get("shortname") or raw.get("longname") or symbol,
                exchange=exchange,
                type=quote_type,
            )
        )
        if len(results) >= limit:
            break
    return results


def normalize_history(frame: pd.DataFrame, last_session_only: bool = False) -> list[PricePoint]:
    """
    Convert a history frame to ascending PricePoints.

    Bars with any missing or non-numeric OHLCV value are dropped. With last_session_only,
    only bars on or after the start of the final bar's trading day are kept.
    """
    if frame is None or frame.empty:
        return []

    bars = frame.copy()
    # Non-numeric cells become NaN and drop with the missing ones
    bars[OHLCV_COLUMNS] = bars[OHLCV_COLUMNS].apply(pd.to_numeric, errors="coerce")
    bars = bars.dropna(subset=OHLCV_COLUMNS).sort_index()
    if bars.empty:
        return []

    if last_session_only:
        session_start = bars.index[-1].normalize()
        bars = bars[bars.index >= session_start]

    points: list[PricePoint] = []
    for ts, row in bars.iterrows():
        points.append(
            PricePoint(
                timestamp=int(pd.Timestamp(ts).timestamp() * 1000),
                open=float(row["Open"]),
                high=float(row["High"]),
                low=float(row["Low"]),
                close=float(row["Close"]),
                volume=int(row["Volume"]),
            )
        )
    return points


def normalize_index(symbol: str, raw: dict[str, Any], updated_at: datetime) -> MarketIndex:
    return MarketIndex(
        symbol=symbol,
        name=INDEX_SYMBOLS.get(symbol, symbol),
        price=to_number(raw.get("regularMarketPrice")),
        change=to_number(raw.get("regularMarketChange")),
        change_percent=to_number(raw.get("regularMarketChangePercent")),
        previous_close=to_number(raw.get("regularMarketPreviousClose")),
        day_high=to_number(raw.get("regularMarketDayHigh")),
        day_low=to_number(raw.get("regularMarketDayLow")),
        volume=to_number(raw.get("regularMarketVolume"), cast=int),
        updated_at=updated_at,
    )


def normalize_sector(symbol: str, raw: dict[str, Any]) -> MarketSector:
    return MarketSector(
        symbol=symbol,
        name=SECTOR_SYMBOLS.get(symbol, symbol),
        change_percent=to_number(raw.get("regularMarketChangePercent")),
        volume=to_number(raw.get("regularMarketVolume"), cast=int),
    )
