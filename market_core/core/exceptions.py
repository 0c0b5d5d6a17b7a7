"""
Custom exception hierarchy for proper error categorization and HTTP status mapping.

Only two kinds of error are meant to reach a caller as distinguishable outcomes:
- Validation failures (400): malformed symbol/range/tier, rejected before any
  external call
- Rate limiting (429): deliberate admission denial carrying retry information

Not-found results and upstream outages (providers, cache, counter store) are
absorbed inside the services and surface as empty results. NotFoundError is
raised only by the HTTP layer when a service returned nothing.

Usage:
    from market_core.core.exceptions import ValidationError

    raise ValidationError("Invalid stock symbol", code="VAL_002", symbol=raw)
"""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .rate_limiter import RateLimitDecision


class AppError(Exception):
    """
    Base application error with HTTP status mapping.

    All custom exceptions inherit from this to enable consistent error handling.
    """

    # Default status code (subclasses override)
    status_code: int = 500
    error_type: str = "internal_error"
    code: str = "INT_001"

    def __init__(self, message: str, code: str | None = None, **context: Any):
        """
        Initialize error with message and optional context.

        Args:
            message: Human-readable error description
            code: Stable API error code (defaults to the class code)
            **context: Additional key-value pairs for logging (e.g., symbol, tier)
        """
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for structured logging."""
        return {
            "error_type": self.error_type,
            "code": self.code,
            "message": self.message,
            "status_code": self.status_code,
            **self.context,
        }

    def to_response(self) -> dict[str, Any]:
        """API error envelope."""
        return {
            "success": False,
            "error": {"code": self.code, "message": self.message},
        }


# ===== 400-level: Client Errors =====


class ValidationError(AppError):
    """User provided invalid input (symbol, range, tier, query)."""

    status_code = 400
    error_type = "validation_error"
    code = "VAL_001"


class NotFoundError(AppError):
    """Requested resource does not exist."""

    status_code = 404
    error_type = "not_found_error"
    code = "DATA_001"


class RateLimitError(AppError):
    """User exceeded rate limit."""

    status_code = 429
    error_type = "rate_limit_error"
    code = "RATE_001"

    def __init__(self, message: str, decision: "RateLimitDecision", **context: Any):
        """
        Initialize with the denying decision so callers can build retry headers.

        Args:
            message: Error description
            decision: The RateLimitDecision that denied the request
            **context: Additional context
        """
        super().__init__(
            message,
            limit_class=decision.limit_class,
            tier=decision.tier,
            **context,
        )
        self.decision = decision

