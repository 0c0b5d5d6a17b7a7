"""Standard API response envelope."""

from typing import Any

from ..core.utils.date_utils import utcnow


def success_response(data: Any, **meta: Any) -> dict[str, Any]:
    """{"success": true, "data": ..., "meta": {...}}"""
    return {
        "success": True,
        "data": data,
        "meta": {"timestamp": utcnow().isoformat(), **meta},
    }
