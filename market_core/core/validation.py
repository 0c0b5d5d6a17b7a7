"""
Input validation for request parameters.

Everything here runs before any cache or provider call; failures raise
ValidationError (400).
"""

import re

from .exceptions import ValidationError

SYMBOL_PATTERN = re.compile(r"^[A-Za-z0-9.^=\-]{1,10}$")
VALID_RANGES = ("1D", "1W", "1M", "3M", "1Y", "5Y")
VALID_TIERS = ("free", "pro")
MAX_QUERY_LENGTH = 50
MAX_BATCH_SYMBOLS = 50


def validate_symbol(symbol: str | None) -> str:
    """Return the trimmed, uppercased symbol."""
    cleaned = (symbol or "").strip()
    if not SYMBOL_PATTERN.match(cleaned):
        raise ValidationError("Invalid stock symbol", code="VAL_002", symbol=symbol)
    return cleaned.upper()


def validate_symbols(raw: str | None) -> list[str]:
    """Comma-separated symbols, validated and deduplicated in order."""
    parts = [part for part in (raw or "").split(",") if part.strip()]
    if not parts:
        raise ValidationError("At least one symbol is required", code="VAL_003")
    if len(parts) > MAX_BATCH_SYMBOLS:
        raise ValidationError(
            f"At most {MAX_BATCH_SYMBOLS} symbols per request",
            count=len(parts),
        )

    symbols: list[str] = []
    for part in parts:
        symbol = validate_symbol(part)
        if symbol not in symbols:
            symbols.append(symbol)
    return symbols


def validate_range(chart_range: str | None) -> str:
    normalized = (chart_range or "").strip().upper()
    if normalized not in VALID_RANGES:
        raise ValidationError(
            f"Invalid range. Must be one of: {', '.join(VALID_RANGES)}",
            range=chart_range,
        )
    return normalized


def validate_tier(tier: str | None) -> str:
    normalized = (tier or "free").strip().lower()
    if normalized not in VALID_TIERS:
        raise ValidationError("Invalid subscription tier", tier=tier)
    return normalized


def validate_query(query: str | None) -> str:
    cleaned = (query or "").strip()
    if not cleaned:
        raise ValidationError("Search query is required", code="VAL_003")
    if len(cleaned) > MAX_QUERY_LENGTH:
        raise ValidationError(
            f"Search query must be at most {MAX_QUERY_LENGTH} characters"
        )
    return cleaned
