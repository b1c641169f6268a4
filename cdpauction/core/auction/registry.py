"""
Auction Registry - Counter-indexed collection of live auctions.

An Auction record is either fully populated (live) or absent. Absence
is represented by the id not being in the registry; ``view`` renders an
absent id as the all-zero record so callers that expect the zeroed
layout still see it. Records are immutable; partial fills replace them.
"""

from dataclasses import dataclass, replace
from typing import Dict, Iterator, Optional

from cdpauction.core.errors import AuctionValidationError
from cdpauction.core.fixed_point import addition
from cdpauction.crypto import ZERO_ADDRESS
from cdpauction.utils.logger import get_logger

logger = get_logger("auction.registry")


@dataclass(frozen=True)
class Auction:
    """
    A single collateral auction.

    Attributes:
        amount_to_sell: Remaining collateral offered (WAD)
        amount_to_raise: Remaining debt-token owed (RAD)
        initial_timestamp: Creation time; 0 only for the absent record
        forgone_collateral_receiver: Receives unsold collateral
        auction_income_recipient: Receives the raised debt-token
    """
    amount_to_sell: int
    amount_to_raise: int
    initial_timestamp: int
    forgone_collateral_receiver: bytes
    auction_income_recipient: bytes

    @classmethod
    def empty(cls) -> "Auction":
        """The all-zero record standing for "no auction"."""
        return cls(0, 0, 0, ZERO_ADDRESS, ZERO_ADDRESS)

    @property
    def is_empty(self) -> bool:
        return self.amount_to_sell == 0 or self.amount_to_raise == 0


class AuctionRegistry:
    """
    Live auctions keyed by a monotonically increasing id (first id is 1).
    """

    def __init__(self):
        self._auctions: Dict[int, Auction] = {}
        self.auctions_started: int = 0

    def get(self, auction_id: int) -> Optional[Auction]:
        return self._auctions.get(auction_id)

    def view(self, auction_id: int) -> Auction:
        """Record for an id, or the all-zero record if absent."""
        return self._auctions.get(auction_id) or Auction.empty()

    def next_id(self) -> int:
        """Id the next created auction will receive (overflow-checked)."""
        return addition(self.auctions_started, 1)

    def create(
        self,
        amount_to_sell: int,
        amount_to_raise: int,
        initial_timestamp: int,
        forgone_collateral_receiver: bytes,
        auction_income_recipient: bytes,
    ) -> int:
        """
        Store a new live auction under the next id.

        Returns:
            The new auction id
        """
        auction = Auction(
            amount_to_sell=amount_to_sell,
            amount_to_raise=amount_to_raise,
            initial_timestamp=initial_timestamp,
            forgone_collateral_receiver=forgone_collateral_receiver,
            auction_income_recipient=auction_income_recipient,
        )
        if auction.is_empty:
            raise AuctionValidationError("Cannot store an empty auction")

        auction_id = self.next_id()
        self.auctions_started = auction_id
        self._auctions[auction_id] = auction

        logger.debug(f"Auction {auction_id} stored")
        return auction_id

    def reduce(self, auction_id: int, amount_to_sell: int, amount_to_raise: int) -> Auction:
        """
        Replace the remaining amounts of a live auction.

        Both amounts must stay positive; a fill that empties either one
        deletes the auction instead.
        """
        auction = self._auctions[auction_id]
        if amount_to_sell == 0 or amount_to_raise == 0:
            raise AuctionValidationError("Partial fill cannot empty an auction")

        updated = replace(auction, amount_to_sell=amount_to_sell, amount_to_raise=amount_to_raise)
        self._auctions[auction_id] = updated
        return updated

    def delete(self, auction_id: int) -> Auction:
        """Remove an auction, returning its last record."""
        auction = self._auctions.pop(auction_id)
        logger.debug(f"Auction {auction_id} deleted")
        return auction

    def __contains__(self, auction_id: int) -> bool:
        return auction_id in self._auctions

    def __len__(self) -> int:
        return len(self._auctions)

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._auctions))
