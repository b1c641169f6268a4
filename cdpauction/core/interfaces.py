"""
Interfaces - Capability contracts of the auction house collaborators.

The house never owns balances, prices or liquidation bookkeeping itself.
It talks to four collaborators through these structural types; any object
with matching methods can be plugged in. In-memory implementations live in
``cdpauction.core.state``.
"""

from typing import ContextManager, Optional, Protocol, Tuple


class LedgerLike(Protocol):
    """Holds collateral and debt-token balances."""

    def transfer_collateral(
        self, collateral_type: str, src: bytes, dst: bytes, amount: int
    ) -> None:
        """Move collateral; raise on insufficient balance."""
        ...

    def collateral_balance(self, collateral_type: str, account: bytes) -> int:
        """Collateral (WAD) held by account."""
        ...

    def transfer_debt_token(self, src: bytes, dst: bytes, amount: int) -> None:
        """Move debt-token (RAD); raise on insufficient balance."""
        ...

    def atomic(self) -> ContextManager[None]:
        """Roll back every balance change made inside the block on error."""
        ...


class LiquidationEngineLike(Protocol):
    """Originates auctions and tracks debt currently on auction."""

    address: bytes

    def remove_coins_from_auction(self, amount: int) -> None:
        ...


class PriceSourceLike(Protocol):
    """Delayed price feed for one collateral type."""

    def latest_value_with_validity(self) -> Tuple[int, bool]:
        ...


class OracleRelayerLike(Protocol):
    """Provides the redemption price and per-collateral price sources."""

    address: bytes

    def redemption_price(self) -> int:
        """Last recorded redemption price (RAY)."""
        ...

    def recompute_redemption_price(self) -> int:
        """Update and return the current redemption price (RAY)."""
        ...

    def collateral_type_params(self, collateral_type: str) -> Optional[PriceSourceLike]:
        ...
