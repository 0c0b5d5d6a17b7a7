"""Market data aggregation service: quotes, charts, fundamentals, risk and rate limiting."""

__version__ = "0.1.0"
