"""
Core utility functions for the market data service.
"""

from .date_utils import lookback_window, now_ms, quarter_of, utcnow

__all__ = [
    "lookback_window",
    "now_ms",
    "quarter_of",
    "utcnow",
]
