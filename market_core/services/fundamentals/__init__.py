"""
Tiered fundamentals.

- fields: canonical field table and free-tier mask
- models: FundamentalsView
- aggregator: FundamentalsAggregator (cache-first, concurrent provider fetch)
"""

from .aggregator import FundamentalsAggregator, build_view
from .fields import FIELDS, FREE_FIELDS, FieldSpec
from .models import FundamentalsView

__all__ = [
    "FIELDS",
    "FREE_FIELDS",
    "FieldSpec",
    "FundamentalsAggregator",
    "FundamentalsView",
    "build_view",
]
