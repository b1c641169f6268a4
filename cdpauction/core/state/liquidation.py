"""
Liquidation Engine - Originates auctions and tracks debt on auction.

A minimal liquidation engine: it seizes collateral it already holds,
hands it to the collateral auction house and books the debt the auction
must raise. The house reports back every amount it raised (or dropped on
settlement/termination) through ``remove_coins_from_auction``.
"""

from typing import Optional

from cdpauction.core.fixed_point import RAD, addition, format_fixed, subtract
from cdpauction.crypto import address_from_label
from cdpauction.utils.logger import get_logger

logger = get_logger("state.liquidation")


class LiquidationEngine:
    """
    Liquidation bookkeeping.

    Attributes:
        address: Engine account (holds seized collateral before auction)
        current_on_auction_system_coins: Debt currently being auctioned (RAD)
    """

    def __init__(self, address: Optional[bytes] = None):
        self.address = address or address_from_label("liquidation-engine")
        self.current_on_auction_system_coins: int = 0

    def liquidate(
        self,
        house,
        forgone_collateral_receiver: bytes,
        auction_income_recipient: bytes,
        amount_to_raise: int,
        amount_to_sell: int,
        now: int,
    ) -> int:
        """
        Put seized collateral up for auction.

        The engine must already hold ``amount_to_sell`` collateral in the
        house's ledger and be authorized on the house.

        Returns:
            The new auction id
        """
        auction_id = house.start_auction(
            forgone_collateral_receiver,
            auction_income_recipient,
            amount_to_raise,
            amount_to_sell,
            sender=self.address,
            now=now,
        )
        self.current_on_auction_system_coins = addition(
            self.current_on_auction_system_coins, amount_to_raise
        )
        logger.info(
            f"Liquidation sent to auction {auction_id}: "
            f"on auction={format_fixed(self.current_on_auction_system_coins, RAD)}"
        )
        return auction_id

    def remove_coins_from_auction(self, amount: int) -> None:
        """
        Drop raised (or abandoned) debt from the on-auction total.

        Raises:
            MathUnderflowError: amount exceeds the debt on auction
        """
        self.current_on_auction_system_coins = subtract(self.current_on_auction_system_coins, amount)
        logger.debug(f"Removed {format_fixed(amount, RAD)} coins from auction")

    def __repr__(self) -> str:
        return f"LiquidationEngine(on_auction={self.current_on_auction_system_coins})"
