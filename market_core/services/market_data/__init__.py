"""
Market data providers.

This module is organized into the following components:
- base: Provider errors, HTTP client, and sanitization utilities
- yahoo: Quotes, symbol search and price history (yfinance)
- fmp: Financial statements and ratios (Financial Modeling Prep)
- normalize: Raw provider payloads to gateway types
"""

from .base import HttpProviderBase, ProviderError, SymbolNotFoundError
from .fmp import FinancialModelingPrepProvider
from .yahoo import YahooFinanceProvider

__all__ = [
    "FinancialModelingPrepProvider",
    "HttpProviderBase",
    "ProviderError",
    "SymbolNotFoundError",
    "YahooFinanceProvider",
]
