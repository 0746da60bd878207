"""
Market Error Taxonomy - Typed exceptions for market operations.

Every error aborts the whole operation it was raised in. The host chain
rolls back all balance, stage and inventory changes made before the raise,
so callers only ever observe the pre-call state of a rejected operation.
"""

from __future__ import annotations

from typing import Optional

__all__ = [
    "MarketError",
    "UnauthorizedError",
    "InvalidStageError",
    "InvalidConfigError",
    "TransferFailedError",
    "SlippageExceededError",
    "InvalidInputError",
    "ArithmeticOverflowError",
    "ReentrancyError",
]


class MarketError(Exception):
    """Root exception for market operations.

    Attributes:
        error_code: Machine-readable code for logs and dashboards.
        detail: Optional extra context for the failure.
    """

    error_code: str = "MARKET_ERROR"

    def __init__(self, message: str, *, detail: Optional[str] = None):
        self.detail = detail
        super().__init__(message)

    def to_dict(self) -> dict:
        """Serialize for structured logging."""
        return {
            "error_code": self.error_code,
            "message": str(self),
            "detail": self.detail,
        }


class UnauthorizedError(MarketError):
    """Caller is not allowed to perform a privileged operation."""

    error_code = "UNAUTHORIZED"


class InvalidStageError(MarketError):
    """Operation attempted outside its lifecycle stage."""

    error_code = "INVALID_STAGE"


class InvalidConfigError(MarketError):
    """Construction parameter out of range or missing."""

    error_code = "INVALID_CONFIG"


class TransferFailedError(MarketError):
    """A collateral or outcome token movement was rejected."""

    error_code = "TRANSFER_FAILED"


class SlippageExceededError(MarketError):
    """Trade net cost violates the caller's collateral limit."""

    error_code = "SLIPPAGE_EXCEEDED"


class InvalidInputError(MarketError):
    """Malformed trade arguments."""

    error_code = "INVALID_INPUT"


class ArithmeticOverflowError(MarketError):
    """Integer result outside the 256-bit range."""

    error_code = "ARITHMETIC_OVERFLOW"


class ReentrancyError(MarketError):
    """A market operation was re-entered while another was in flight."""

    error_code = "REENTRANCY"
