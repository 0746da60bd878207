"""
Checked Integer Arithmetic

Market amounts are 256-bit quantities: collateral and token counts are
unsigned, trade vectors and costs are signed. Python integers never wrap,
so every helper here range-checks its result and raises
ArithmeticOverflowError instead of silently leaving the 256-bit domain.
"""

import numbers

from stdmarket.errors import ArithmeticOverflowError, InvalidInputError


# =============================================================================
# Constants
# =============================================================================

INT256_MIN: int = -(2 ** 255)
INT256_MAX: int = 2 ** 255 - 1
UINT256_MAX: int = 2 ** 256 - 1


def _require_int(value, name: str) -> int:
    # bool is an int subclass but never a valid amount; numpy integers are
    # accepted and normalised to int
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise InvalidInputError(f"{name} must be an integer, got {type(value).__name__}")
    return int(value)


def to_int(value, name: str = "value") -> int:
    """
    Validate that value fits a signed 256-bit integer.

    Raises:
        InvalidInputError: If value is not an integer
        ArithmeticOverflowError: If value is out of range
    """
    value = _require_int(value, name)
    if not INT256_MIN <= value <= INT256_MAX:
        raise ArithmeticOverflowError(f"{name} out of int256 range: {value}")
    return value


def to_uint(value, name: str = "value") -> int:
    """
    Validate that value fits an unsigned 256-bit integer.

    Raises:
        InvalidInputError: If value is not an integer
        ArithmeticOverflowError: If value is negative or too large
    """
    value = _require_int(value, name)
    if not 0 <= value <= UINT256_MAX:
        raise ArithmeticOverflowError(f"{name} out of uint256 range: {value}")
    return value


def checked_add(a: int, b: int) -> int:
    """Signed addition, int256 range."""
    return to_int(a + b, "sum")


def uint_sub(a: int, b: int) -> int:
    """Unsigned subtraction; underflow raises."""
    return to_uint(a - b, "difference")


def uint_mul(a: int, b: int) -> int:
    """Unsigned multiplication, uint256 range."""
    return to_uint(a * b, "product")


def magnitude(value: int) -> int:
    """
    Absolute value of a signed 256-bit integer as an unsigned one.

    abs(INT256_MIN) does not fit int256 but does fit uint256, so the
    result is only checked against the unsigned range.
    """
    return to_uint(abs(to_int(value)), "magnitude")
