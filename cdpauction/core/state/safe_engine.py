"""
SAFE Engine - In-memory ledger of collateral and debt-token balances.

Conceptual Background:
---------------------
The SAFE engine is the accounting core of a CDP system. For the auction
house only two of its books matter:

1. **Token collateral**: collateral held per (collateral type, account)
2. **Coin balance**: internal debt-token per account (RAD)

Transfers fail as a whole on insufficient balance. ``atomic()`` groups a
sequence of transfers: if anything inside the block raises, every balance
is restored to its state at entry.

Snapshot:
--------
Each ``atomic()`` block snapshots both books on entry. Nested blocks
share the outermost snapshot.
"""

from contextlib import contextmanager
from typing import Dict, Iterator, Tuple

from cdpauction.core.errors import AuctionValidationError, InsufficientBalanceError
from cdpauction.core.fixed_point import RAD, addition, format_fixed
from cdpauction.crypto import short_address
from cdpauction.utils.logger import get_logger
from cdpauction.utils.validation import validate_amount

logger = get_logger("state.safe_engine")


class SAFEEngine:
    """
    Balance book for collateral and internal coins.

    Attributes:
        token_collateral: (collateral_type, account) -> collateral (WAD)
        coin_balance: account -> internal coins (RAD)
        global_unbacked_debt: Total coins created without backing (RAD)
    """

    def __init__(self):
        self.token_collateral: Dict[Tuple[str, bytes], int] = {}
        self.coin_balance: Dict[bytes, int] = {}
        self.global_unbacked_debt: int = 0

        self._atomic_depth = 0

    # =========================================================================
    # State Access
    # =========================================================================

    def collateral_balance(self, collateral_type: str, account: bytes) -> int:
        return self.token_collateral.get((collateral_type, account), 0)

    def coin_balance_of(self, account: bytes) -> int:
        return self.coin_balance.get(account, 0)

    # =========================================================================
    # Minting (simulation setup)
    # =========================================================================

    def modify_collateral_balance(self, collateral_type: str, account: bytes, delta: int) -> None:
        """Add (or remove, if negative) collateral for an account."""
        key = (collateral_type, account)
        current = self.token_collateral.get(key, 0)
        if current + delta < 0:
            raise InsufficientBalanceError(
                f"insufficient-balance: {short_address(account)}... holds {current} {collateral_type}"
            )
        self.token_collateral[key] = addition(current, delta) if delta >= 0 else current + delta

    def create_unbacked_debt(self, coin_destination: bytes, amount: int) -> None:
        """Mint internal coins (RAD) to an account."""
        self._require_amount(amount)
        self.coin_balance[coin_destination] = addition(self.coin_balance_of(coin_destination), amount)
        self.global_unbacked_debt = addition(self.global_unbacked_debt, amount)
        logger.debug(f"Minted {format_fixed(amount, RAD)} coins to {short_address(coin_destination)}...")

    # =========================================================================
    # Transfers
    # =========================================================================

    def transfer_collateral(self, collateral_type: str, src: bytes, dst: bytes, amount: int) -> None:
        """
        Move collateral between accounts.

        Raises:
            InsufficientBalanceError: src holds less than amount
        """
        self._require_amount(amount)
        src_key, dst_key = (collateral_type, src), (collateral_type, dst)

        available = self.token_collateral.get(src_key, 0)
        if available < amount:
            raise InsufficientBalanceError(
                f"insufficient-balance: {short_address(src)}... has {available} "
                f"{collateral_type}, needs {amount}"
            )

        self.token_collateral[src_key] = available - amount
        self.token_collateral[dst_key] = addition(self.token_collateral.get(dst_key, 0), amount)
        logger.debug(
            f"Collateral {collateral_type}: {short_address(src)}... -> "
            f"{short_address(dst)}... {format_fixed(amount)}"
        )

    def transfer_debt_token(self, src: bytes, dst: bytes, amount: int) -> None:
        """
        Move internal coins (RAD) between accounts.

        Raises:
            InsufficientBalanceError: src holds less than amount
        """
        self._require_amount(amount)

        available = self.coin_balance_of(src)
        if available < amount:
            raise InsufficientBalanceError(
                f"insufficient-balance: {short_address(src)}... has {available} coins, needs {amount}"
            )

        self.coin_balance[src] = available - amount
        self.coin_balance[dst] = addition(self.coin_balance_of(dst), amount)
        logger.debug(f"Coins: {short_address(src)}... -> {short_address(dst)}... {amount}")

    # =========================================================================
    # Atomicity
    # =========================================================================

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """
        Run a block of ledger changes all-or-nothing.

        On any exception the balances are restored and the exception
        propagates.
        """
        if self._atomic_depth:
            self._atomic_depth += 1
            try:
                yield
            finally:
                self._atomic_depth -= 1
            return

        snapshot = (
            dict(self.token_collateral),
            dict(self.coin_balance),
            self.global_unbacked_debt,
        )
        self._atomic_depth = 1
        try:
            yield
        except BaseException:
            self.token_collateral, self.coin_balance, self.global_unbacked_debt = snapshot
            logger.debug("Ledger changes rolled back")
            raise
        finally:
            self._atomic_depth = 0

    # =========================================================================
    # Utility
    # =========================================================================

    @staticmethod
    def _require_amount(amount: int) -> None:
        valid, err = validate_amount(amount)
        if not valid:
            raise AuctionValidationError(err)

    def __repr__(self) -> str:
        return f"SAFEEngine(collateral_accounts={len(self.token_collateral)}, coin_accounts={len(self.coin_balance)})"

    def stats(self) -> dict:
        """Get ledger statistics."""
        return {
            "collateral_accounts": len(self.token_collateral),
            "coin_accounts": len(self.coin_balance),
            "total_coins": sum(self.coin_balance.values()),
            "global_unbacked_debt": self.global_unbacked_debt,
        }
