"""
Errors - Named failure conditions for the auction house.

Every failure carries a stable ``reason`` string so callers can branch
on the cause instead of parsing messages. Three families exist:

1. **Authorization** - caller lacks the required privilege
2. **Validation** - malformed or economically invalid input
3. **Arithmetic range** - fixed-point overflow, underflow, division by zero

All three are fatal to the call. No state is mutated before they are
raised.
"""

from decimal import Decimal
from typing import Optional


class AuctionHouseError(Exception):
    """Base class for all auction house failures."""

    reason = "auction-house-error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.reason)


# =============================================================================
# Authorization
# =============================================================================


class UnauthorizedError(AuctionHouseError, PermissionError):
    reason = "account-not-authorized"


# =============================================================================
# Validation
# =============================================================================


class AuctionValidationError(AuctionHouseError, ValueError):
    reason = "invalid-input"


class NoCollateralForSaleError(AuctionValidationError):
    reason = "no-collateral-for-sale"


class NothingToRaiseError(AuctionValidationError):
    reason = "nothing-to-raise"


class DustyAuctionError(AuctionValidationError):
    reason = "dusty-auction"


class InexistentAuctionError(AuctionValidationError):
    reason = "inexistent-auction"


class InvalidBidError(AuctionValidationError):
    reason = "invalid-bid"


class InvalidRedemptionPriceError(AuctionValidationError):
    reason = "invalid-redemption-price"


class InvalidCollateralPriceError(AuctionValidationError):
    reason = "collateral-oracle-invalid-value"


class NullBoughtAmountError(AuctionValidationError):
    reason = "null-bought-amount"


class InvalidLeftToRaiseError(AuctionValidationError):
    reason = "invalid-left-to-raise"


class UnrecognizedParameterError(AuctionValidationError):
    reason = "unrecognized-param"

    def __init__(self, parameter: str):
        self.parameter = parameter
        super().__init__(f"{self.reason}: {parameter}")


class NullAddressError(AuctionValidationError):
    reason = "null-address"


class InsufficientBalanceError(AuctionValidationError):
    reason = "insufficient-balance"


class ParameterBoundError(AuctionValidationError):
    """
    A parameter update violated one of its bounds.

    The message names the offending value, the violated relation and the
    bound, e.g. ``min_discount 0.8 < max_discount 0.95``.

    Attributes:
        parameter: Name of the parameter being modified
        value: Offending raw value
        violation: The relation that holds but must not ("<", "<=", ">", ">=")
        bound: Raw bound the value was compared against
        bound_name: Human name of the bound (another parameter or a unit)
    """

    reason = "invalid-param-value"

    def __init__(
        self,
        parameter: str,
        value: int,
        violation: str,
        bound: int,
        bound_name: Optional[str] = None,
        unit: int = 1,
    ):
        self.parameter = parameter
        self.value = value
        self.violation = violation
        self.bound = bound
        self.bound_name = bound_name or "bound"
        super().__init__(
            f"{self.reason}: {parameter} {_render(value, unit)} {violation} "
            f"{self.bound_name} {_render(bound, unit)}"
        )


def _render(value: int, unit: int) -> str:
    if unit == 1:
        return str(value)
    return format((Decimal(value) / Decimal(unit)).normalize(), "f")


# =============================================================================
# Arithmetic Range
# =============================================================================


class ArithmeticRangeError(AuctionHouseError, ArithmeticError):
    reason = "arithmetic-range"


class MathOverflowError(ArithmeticRangeError):
    reason = "math-overflow"


class MathUnderflowError(ArithmeticRangeError):
    reason = "math-underflow"


class DivisionByZeroError(ArithmeticRangeError):
    reason = "division-by-zero"
