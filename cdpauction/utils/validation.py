"""
Input Validation - Type and range checks for external inputs.

Provides validation for caller-supplied values before they reach the
auction house arithmetic:
- Addresses (20 bytes, optionally non-zero)
- uint256 amounts (no negatives, no values past 2**256 - 1)
- Timestamps (non-zero when they start an auction)
"""

from typing import Any, Optional, Tuple

from cdpauction.crypto import ADDRESS_LENGTH, is_zero_address

# =============================================================================
# Constants
# =============================================================================

MIN_AMOUNT = 0
MAX_AMOUNT = 2**256 - 1
MIN_TIMESTAMP = 0
MIN_START_TIMESTAMP = 1
MAX_TIMESTAMP = 2**256 - 1

MAX_COLLATERAL_TYPE_LENGTH = 32


# =============================================================================
# Validation Functions
# =============================================================================


def validate_bytes(
    data: Any,
    name: str,
    expected_length: Optional[int] = None,
) -> Tuple[bool, str]:
    """
    Validate bytes input.

    Args:
        data: Data to validate
        name: Field name for error messages
        expected_length: Exact expected length

    Returns:
        (is_valid, error_message)
    """
    if not isinstance(data, (bytes, bytearray)):
        return False, f"{name} must be bytes, got {type(data).__name__}"

    if expected_length is not None and len(data) != expected_length:
        return False, f"{name} must be {expected_length} bytes, got {len(data)}"

    return True, ""


def validate_address(address: Any, name: str = "address", allow_zero: bool = True) -> Tuple[bool, str]:
    """Validate a 20-byte address."""
    valid, err = validate_bytes(address, name, expected_length=ADDRESS_LENGTH)
    if not valid:
        return valid, err

    if not allow_zero and is_zero_address(bytes(address)):
        return False, f"{name} must be non-zero"

    return True, ""


def validate_integer(
    value: Any,
    name: str,
    min_val: int = MIN_AMOUNT,
    max_val: int = MAX_AMOUNT,
) -> Tuple[bool, str]:
    """
    Validate integer within bounds.

    Args:
        value: Value to validate
        name: Field name for errors
        min_val: Minimum allowed value
        max_val: Maximum allowed value

    Returns:
        (is_valid, error_message)
    """
    if isinstance(value, bool) or not isinstance(value, int):
        return False, f"{name} must be int, got {type(value).__name__}"

    if value < min_val:
        return False, f"{name} must be >= {min_val}, got {value}"

    if value > max_val:
        return False, f"{name} must be <= {max_val}, got {value}"

    return True, ""


def validate_amount(amount: Any, name: str = "amount") -> Tuple[bool, str]:
    """Validate a uint256 token amount."""
    return validate_integer(amount, name, MIN_AMOUNT, MAX_AMOUNT)


def validate_timestamp(timestamp: Any, min_val: int = MIN_TIMESTAMP) -> Tuple[bool, str]:
    """
    Validate a unix timestamp.

    Auction creation passes ``MIN_START_TIMESTAMP``: a zero start time marks
    an absent auction record.
    """
    return validate_integer(timestamp, "timestamp", min_val, MAX_TIMESTAMP)


def validate_collateral_type(collateral_type: Any) -> Tuple[bool, str]:
    """Validate a collateral type identifier (e.g. "ETH-A")."""
    if not isinstance(collateral_type, str):
        return False, f"collateral_type must be str, got {type(collateral_type).__name__}"

    if not collateral_type or len(collateral_type) > MAX_COLLATERAL_TYPE_LENGTH:
        return False, f"collateral_type must be 1-{MAX_COLLATERAL_TYPE_LENGTH} characters"

    return True, ""


__all__ = [
    "validate_bytes",
    "validate_address",
    "validate_integer",
    "validate_amount",
    "validate_timestamp",
    "validate_collateral_type",
    "MAX_AMOUNT",
    "MIN_START_TIMESTAMP",
]
