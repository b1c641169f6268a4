"""
Hashing and address primitives for the auction house.

This module provides:
- Keccak-256 (Ethereum-style) hashing
- Deterministic 20-byte account addresses
- Hex conversion helpers

Design Notes:
-------------
Accounts (bidders, receivers, the house itself, the liquidation engine)
are identified by 20-byte addresses, mirroring the EVM convention so that
event logs and balances line up with on-chain tooling. Addresses for
simulated principals are derived from a human label:

    address = keccak256(label)[-20:]
"""

from Crypto.Hash import keccak


# =============================================================================
# Constants
# =============================================================================

ADDRESS_LENGTH = 20

# Sentinel for "no account" (e.g. receivers of a deleted auction)
ZERO_ADDRESS = bytes(ADDRESS_LENGTH)


# =============================================================================
# Hashing
# =============================================================================


def keccak256(data: bytes) -> bytes:
    """
    Compute Keccak-256 hash (Ethereum-style).

    Used for: address derivation.
    """
    k = keccak.new(digest_bits=256)
    k.update(data)
    return k.digest()


# =============================================================================
# Addresses
# =============================================================================


def address_from_label(label: str) -> bytes:
    """
    Derive a deterministic address from a human-readable label.

    Args:
        label: Account name (e.g. "alice", "liquidation-engine")

    Returns:
        20-byte address
    """
    if not label:
        raise ValueError("Label must be non-empty")
    return keccak256(label.encode("utf-8"))[-ADDRESS_LENGTH:]


def is_zero_address(address: bytes) -> bool:
    """Check whether an address is the all-zero sentinel."""
    return address == ZERO_ADDRESS


# =============================================================================
# Utility Functions
# =============================================================================


def bytes_to_hex(data: bytes) -> str:
    """Convert bytes to hex string with 0x prefix."""
    return "0x" + data.hex()


def short_address(address: bytes) -> str:
    """Abbreviated hex form for log lines."""
    return bytes_to_hex(address)[:10]


__all__ = [
    "ADDRESS_LENGTH",
    "ZERO_ADDRESS",
    "keccak256",
    "address_from_label",
    "is_zero_address",
    "bytes_to_hex",
    "short_address",
]
