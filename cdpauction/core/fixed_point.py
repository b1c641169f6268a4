"""
Fixed-Point Math - WAD/RAY arithmetic for auction accounting.

Conceptual Background:
---------------------
All monetary quantities are unsigned integers interpreted at a fixed
precision:

- **WAD** (10**18): unit prices, discount factors, bids, collateral
- **RAY** (10**27): redemption price, per-second decay rates
- **RAD** (10**45): debt-token amounts owed by an auction (WAD * RAY)

Products are computed exactly and then truncated by the unit:

    wmultiply(x, y) = x * y // WAD
    rmultiply(x, y) = x * y // RAY

Values live in the uint256 range. Any intermediate exceeding it raises
MathOverflowError instead of wrapping, and subtraction below zero raises
MathUnderflowError.

Power:
-----
``rpower(x, n, base)`` raises a base-scaled number to an integer power by
repeated squaring, rounding each intermediate half-up. It is used to
compound the per-second discount update rate over the elapsed seconds.
"""

from decimal import Decimal, ROUND_DOWN, localcontext
from typing import Union

from cdpauction.core.errors import (
    DivisionByZeroError,
    MathOverflowError,
    MathUnderflowError,
)


# =============================================================================
# Constants
# =============================================================================

WAD = 10 ** 18
RAY = 10 ** 27
RAD = 10 ** 45

UINT256_MAX = 2 ** 256 - 1


# =============================================================================
# Checked Integer Arithmetic
# =============================================================================


def _checked(value: int) -> int:
    if value > UINT256_MAX:
        raise MathOverflowError(f"math-overflow: {value} exceeds uint256")
    return value


def addition(x: int, y: int) -> int:
    """x + y, overflow-checked."""
    return _checked(x + y)


def subtract(x: int, y: int) -> int:
    """x - y, underflow-checked."""
    if y > x:
        raise MathUnderflowError(f"math-underflow: {x} - {y}")
    return x - y


def multiply(x: int, y: int) -> int:
    """x * y, overflow-checked."""
    return _checked(x * y)


def divide(x: int, y: int) -> int:
    """Integer division truncating toward zero."""
    if y == 0:
        raise DivisionByZeroError()
    return x // y


def maximum(x: int, y: int) -> int:
    return x if x >= y else y


# =============================================================================
# Scaled Multiplication / Division
# =============================================================================


def wmultiply(x: int, y: int) -> int:
    """Multiply two WAD values (result in WAD)."""
    return multiply(x, y) // WAD


def rmultiply(x: int, y: int) -> int:
    """Multiply by a RAY value, dropping one RAY of precision."""
    return multiply(x, y) // RAY


def wdivide(x: int, y: int) -> int:
    """Divide by a WAD value, keeping x's precision."""
    return divide(multiply(x, WAD), y)


def rdivide(x: int, y: int) -> int:
    """Divide by a RAY value, keeping x's precision."""
    return divide(multiply(x, RAY), y)


def rpower(x: int, n: int, base: int = RAY) -> int:
    """
    Raise a base-scaled number to an integer power.

    Exponentiation by squaring with half-up rounding on every
    intermediate square and product.

    Args:
        x: Base-scaled number (e.g. a RAY per-second rate)
        n: Integer exponent (e.g. elapsed seconds)
        base: Scale of x and of the result

    Returns:
        x ** n at the same scale

    Raises:
        MathOverflowError: If any intermediate leaves the uint256 range
    """
    if n < 0:
        raise ValueError(f"Exponent must be non-negative, got {n}")

    if x == 0:
        return base if n == 0 else 0

    z = x if n % 2 else base
    half = base // 2

    n //= 2
    while n:
        xx = _checked(x * x)
        x = _checked(xx + half) // base
        if n % 2:
            zx = _checked(z * x)
            z = _checked(zx + half) // base
        n //= 2

    return z


# =============================================================================
# Conversions
# =============================================================================


Number = Union[int, str, float, Decimal]


def to_fixed(value: Number, unit: int) -> int:
    """
    Scale a human-readable number to a raw fixed-point integer.

    Floats are routed through their string form so that 0.95 becomes
    exactly 0.95 * unit. Fractions below one raw unit are truncated.
    """
    if isinstance(value, bool):
        raise TypeError("Boolean is not a number")
    if isinstance(value, float):
        value = repr(value)
    with localcontext() as ctx:
        ctx.prec = 120
        scaled = (Decimal(value) * unit).to_integral_value(rounding=ROUND_DOWN)
    if scaled < 0:
        raise MathUnderflowError(f"math-underflow: negative amount {value}")
    return _checked(int(scaled))


def to_wad(value: Number) -> int:
    """Human number -> WAD."""
    return to_fixed(value, WAD)


def to_ray(value: Number) -> int:
    """Human number -> RAY."""
    return to_fixed(value, RAY)


def format_fixed(value: int, unit: int = WAD, places: int = 6) -> str:
    """Render a raw fixed-point integer for logs and CLI output."""
    with localcontext() as ctx:
        ctx.prec = 120
        quantum = Decimal(1).scaleb(-places)
        return str((Decimal(value) / unit).quantize(quantum, rounding=ROUND_DOWN))


__all__ = [
    "WAD",
    "RAY",
    "RAD",
    "UINT256_MAX",
    "addition",
    "subtract",
    "multiply",
    "divide",
    "maximum",
    "wmultiply",
    "rmultiply",
    "wdivide",
    "rdivide",
    "rpower",
    "to_fixed",
    "to_wad",
    "to_ray",
    "format_fixed",
]
