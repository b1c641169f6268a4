"""
Collateral Auction House - Increasing-discount liquidation auctions.

Conceptual Background:
---------------------
When a CDP is liquidated its collateral is seized and sold for the
protocol's debt-token. The house sells it in a Dutch auction: the
collateral is offered at the oracle price times a discount factor, and
the discount deepens every second until it reaches ``max_discount``.

Lifecycle:
---------
1. **Start** (privileged): collateral moves into the house's custody and
   an Auction record is created with the debt to raise.
2. **Buy** (anyone): a bidder pays debt-token and receives collateral at
   the current discounted price. Partial fills shrink the record.
3. **Settle**: once all collateral is sold or all debt raised, leftover
   collateral goes to the forgone-collateral receiver and the record is
   deleted.
4. **Terminate** (privileged): the record is deleted early and all the
   collateral is returned.

Every call runs in two phases. The first computes the full outcome and
raises on any failed check without touching state. The second performs
the outbound calls inside the ledger's atomic block, in a fixed order:

    collateral to bidder -> leftover collateral -> debt-token to recipient
    -> liquidation engine notification -> registry update -> events
"""

import threading
from dataclasses import dataclass
from typing import List, Optional, Tuple

from cdpauction.core.auction.parameters import ParameterStore
from cdpauction.core.auction.pricing import (
    get_adjusted_bid,
    get_auction_discount,
    get_bought_collateral,
    get_collateral_price,
    raw_adjusted_bid,
)
from cdpauction.core.auction.registry import Auction, AuctionRegistry
from cdpauction.core.auth import AuthorizationList
from cdpauction.core.config import AuctionHouseConfig
from cdpauction.core.errors import (
    AuctionValidationError,
    DustyAuctionError,
    InexistentAuctionError,
    InsufficientBalanceError,
    InvalidBidError,
    InvalidCollateralPriceError,
    InvalidLeftToRaiseError,
    InvalidRedemptionPriceError,
    NoCollateralForSaleError,
    NothingToRaiseError,
    NullBoughtAmountError,
)
from cdpauction.core.events import (
    BuyCollateral,
    EventLog,
    SettleAuction,
    StartAuction,
    TerminateAuctionPrematurely,
)
from cdpauction.core.fixed_point import RAD, RAY, format_fixed, multiply, subtract
from cdpauction.core.interfaces import (
    LedgerLike,
    LiquidationEngineLike,
    OracleRelayerLike,
)
from cdpauction.crypto import address_from_label, short_address
from cdpauction.utils.logger import get_logger
from cdpauction.utils.validation import (
    MIN_START_TIMESTAMP,
    MIN_TIMESTAMP,
    validate_address,
    validate_amount,
    validate_collateral_type,
    validate_timestamp,
)

logger = get_logger("auction.house")


AUCTION_HOUSE_TYPE = "COLLATERAL"
AUCTION_TYPE = "INCREASING_DISCOUNT"


# =============================================================================
# Bid Outcome
# =============================================================================


@dataclass(frozen=True)
class BidOutcome:
    """
    Everything a successful bid will do, computed before any mutation.

    Attributes:
        bought_collateral: Collateral sent to the bidder (WAD)
        readjusted_bid: Debt-token charged to the bidder (WAD)
        left_to_sell: Collateral remaining after the bid (WAD)
        left_to_raise: Debt remaining after the bid (RAD)
        sold_all: Whether the bid settles the auction
        removed_from_liquidation: Amount reported to the liquidation engine (RAD)
    """
    bought_collateral: int
    readjusted_bid: int
    left_to_sell: int
    left_to_raise: int
    sold_all: bool
    removed_from_liquidation: int

    @property
    def paid(self) -> int:
        """Debt-token moved from bidder to income recipient (RAD)."""
        return multiply(self.readjusted_bid, RAY)


# =============================================================================
# Collateral Auction House
# =============================================================================


class CollateralAuctionHouse:
    """
    Increasing-discount collateral auction house for one collateral type.

    Attributes:
        collateral_type: Collateral sold by this house
        address: The house's own account (custodian of collateral on sale)
        safe_engine: Ledger holding collateral and debt-token balances
        auctions: Registry of live auctions
        parameters: Validated parameters and collaborators
        authorizations: Principals allowed to call privileged operations
        events: Log of emitted events
    """

    def __init__(
        self,
        safe_engine: LedgerLike,
        liquidation_engine: LiquidationEngineLike,
        oracle_relayer: OracleRelayerLike,
        deployer: bytes,
        config: Optional[AuctionHouseConfig] = None,
        address: Optional[bytes] = None,
    ):
        """
        Deploy the house.

        Args:
            safe_engine: Ledger collaborator
            liquidation_engine: Collaborator notified of raised amounts;
                                authorized to start auctions
            oracle_relayer: Price collaborator
            deployer: Account authorized at deployment
            config: Initial parameters. None = defaults.
            address: House account. None = derived from the collateral type.
        """
        self.config = config or AuctionHouseConfig()

        valid, err = validate_collateral_type(self.config.collateral_type)
        if not valid:
            raise AuctionValidationError(err)
        self.collateral_type = self.config.collateral_type

        self.address = address or address_from_label(
            f"collateral-auction-house:{self.collateral_type}"
        )
        self.safe_engine = safe_engine

        self.events = EventLog()
        self.authorizations = AuthorizationList()
        self.auctions = AuctionRegistry()
        self.parameters = ParameterStore(
            self.config, liquidation_engine, oracle_relayer, self.authorizations
        )

        # Serializes entry points on multi-threaded hosts
        self._lock = threading.RLock()

        self.events.emit(self.authorizations.grant(deployer))
        self.events.emit(self.authorizations.grant(liquidation_engine.address))

        logger.info(
            f"Collateral auction house deployed for {self.collateral_type} "
            f"at {short_address(self.address)}... ({self.parameters})"
        )

    # =========================================================================
    # Parameter Access
    # =========================================================================

    @property
    def minimum_bid(self) -> int:
        return self.parameters.minimum_bid

    @property
    def min_discount(self) -> int:
        return self.parameters.min_discount

    @property
    def max_discount(self) -> int:
        return self.parameters.max_discount

    @property
    def per_second_discount_update_rate(self) -> int:
        return self.parameters.per_second_discount_update_rate

    @property
    def liquidation_engine(self) -> LiquidationEngineLike:
        return self.parameters.liquidation_engine

    @property
    def oracle_relayer(self) -> OracleRelayerLike:
        return self.parameters.oracle_relayer

    @property
    def auctions_started(self) -> int:
        return self.auctions.auctions_started

    # =========================================================================
    # Administration
    # =========================================================================

    def add_authorization(self, account: bytes, *, sender: bytes) -> None:
        """Grant privileged access to an account."""
        with self._lock:
            self.authorizations.require(sender)
            self._require_address(account, "account")
            self.events.emit(self.authorizations.grant(account))

    def remove_authorization(self, account: bytes, *, sender: bytes) -> None:
        """Revoke privileged access from an account."""
        with self._lock:
            self.authorizations.require(sender)
            self._require_address(account, "account")
            self.events.emit(self.authorizations.revoke(account))

    def modify_parameters(self, parameter: str, data, *, sender: bytes) -> None:
        """
        Update a parameter or collaborator.

        Recognized keys: minimum_bid, min_discount, max_discount,
        per_second_discount_update_rate, liquidation_engine, oracle_relayer
        (camelCase spellings are accepted too).
        """
        with self._lock:
            self.authorizations.require(sender)
            self.events.emit_all(self.parameters.modify(parameter, data))

    # =========================================================================
    # Views
    # =========================================================================

    def get_auction(self, auction_id: int) -> Optional[Auction]:
        """Live auction record, or None."""
        return self.auctions.get(auction_id)

    def bids(self, auction_id: int) -> Auction:
        """Auction record with absent ids rendered as the all-zero record."""
        return self.auctions.view(auction_id)

    def get_auction_discount(self, auction_id: int, now: int) -> int:
        """
        Current discount factor of an auction (WAD).

        Returns WAD (no discount) for an absent auction.
        """
        return self._discount(self.auctions.get(auction_id), now)

    def get_collateral_price(self) -> int:
        """Latest valid collateral price (WAD), or 0."""
        return get_collateral_price(self.oracle_relayer, self.collateral_type)

    def get_adjusted_bid(self, auction_id: int, bid: int) -> Tuple[bool, int]:
        """Validate a prospective bid. Returns (valid, adjusted_bid)."""
        return get_adjusted_bid(self.auctions.get(auction_id), bid, self.minimum_bid)

    @staticmethod
    def get_bought_collateral(
        collateral_price: int,
        system_coin_price: int,
        amount_to_sell: int,
        adjusted_bid: int,
        discount: int,
    ) -> Tuple[int, int]:
        """Collateral a bid buys and the bid charged. See pricing module."""
        return get_bought_collateral(
            collateral_price, system_coin_price, amount_to_sell, adjusted_bid, discount
        )

    def get_collateral_bought(self, auction_id: int, bid: int, now: int) -> Tuple[int, int]:
        """
        Quote a bid using a freshly recomputed redemption price.

        Returns:
            (bought_collateral, readjusted_bid); (0, bid) when the auction
            is absent, the bid is invalid or the collateral price is invalid

        Raises:
            InvalidRedemptionPriceError: Redemption price is 0
        """
        return self._quote(auction_id, bid, now, recompute=True)

    def get_approximate_collateral_bought(self, auction_id: int, bid: int, now: int) -> Tuple[int, int]:
        """Like get_collateral_bought, using the last recorded redemption price."""
        return self._quote(auction_id, bid, now, recompute=False)

    def _quote(self, auction_id: int, bid: int, now: int, recompute: bool) -> Tuple[int, int]:
        with self._lock:
            auction = self.auctions.get(auction_id)
            if auction is None:
                return 0, bid

            valid, adjusted_bid = get_adjusted_bid(auction, bid, self.minimum_bid)
            if not valid:
                return 0, bid

            relayer = self.oracle_relayer
            redemption_price = relayer.recompute_redemption_price() if recompute else relayer.redemption_price()
            if redemption_price == 0:
                raise InvalidRedemptionPriceError()

            collateral_price = self.get_collateral_price()
            if collateral_price == 0:
                return 0, bid

            return get_bought_collateral(
                collateral_price,
                redemption_price,
                auction.amount_to_sell,
                adjusted_bid,
                self._discount(auction, now),
            )

    def _discount(self, auction: Optional[Auction], now: int) -> int:
        return get_auction_discount(
            auction,
            now,
            self.min_discount,
            self.max_discount,
            self.per_second_discount_update_rate,
        )

    # =========================================================================
    # Auction Start
    # =========================================================================

    def start_auction(
        self,
        forgone_collateral_receiver: bytes,
        auction_income_recipient: bytes,
        amount_to_raise: int,
        amount_to_sell: int,
        *,
        sender: bytes,
        now: int,
    ) -> int:
        """
        Start a new auction, pulling the collateral from the sender.

        Args:
            forgone_collateral_receiver: Receives unsold collateral
            auction_income_recipient: Receives the raised debt-token
            amount_to_raise: Debt to raise (RAD)
            amount_to_sell: Collateral for sale (WAD)
            sender: Calling account (must be authorized)
            now: Current timestamp

        Returns:
            The new auction id

        Raises:
            UnauthorizedError, AuctionValidationError (malformed input or a
            zero timestamp), NoCollateralForSaleError, NothingToRaiseError,
            DustyAuctionError, MathOverflowError
        """
        with self._lock:
            self.authorizations.require(sender)
            self._require_address(forgone_collateral_receiver, "forgone_collateral_receiver")
            self._require_address(auction_income_recipient, "auction_income_recipient")
            self._require_amount(amount_to_raise, "amount_to_raise")
            self._require_amount(amount_to_sell, "amount_to_sell")
            self._require_timestamp(now, MIN_START_TIMESTAMP)

            if amount_to_sell == 0:
                raise NoCollateralForSaleError()
            if amount_to_raise == 0:
                raise NothingToRaiseError()
            if amount_to_raise < RAY:
                raise DustyAuctionError()

            # Fails before any mutation if the counter would overflow
            self.auctions.next_id()

            with self.safe_engine.atomic():
                self.safe_engine.transfer_collateral(
                    self.collateral_type, sender, self.address, amount_to_sell
                )
                auction_id = self.auctions.create(
                    amount_to_sell=amount_to_sell,
                    amount_to_raise=amount_to_raise,
                    initial_timestamp=now,
                    forgone_collateral_receiver=forgone_collateral_receiver,
                    auction_income_recipient=auction_income_recipient,
                )
            self.events.emit(StartAuction(
                id=auction_id,
                time=now,
                amount_to_sell=amount_to_sell,
                amount_to_raise=amount_to_raise,
            ))

            logger.info(
                f"Auction {auction_id} started: sell={format_fixed(amount_to_sell)} "
                f"{self.collateral_type}, raise={format_fixed(amount_to_raise, RAD)}"
            )
            return auction_id

    # =========================================================================
    # Bidding
    # =========================================================================

    def _compute_bid_outcome(self, auction_id: int, bid: int, now: int) -> BidOutcome:
        """
        Run every check of a bid and compute its outcome without mutating.

        Checks run in order; the first failing one raises.

        Raises:
            InexistentAuctionError, InvalidBidError,
            InvalidRedemptionPriceError, InvalidCollateralPriceError,
            NullBoughtAmountError, InvalidLeftToRaiseError
        """
        auction = self.auctions.get(auction_id)
        if auction is None or auction.is_empty:
            raise InexistentAuctionError()

        valid, _ = validate_amount(bid, "bid")
        if not valid or bid == 0 or bid < self.minimum_bid:
            raise InvalidBidError()

        adjusted_bid = raw_adjusted_bid(auction, bid)

        redemption_price = self.oracle_relayer.recompute_redemption_price()
        if redemption_price == 0:
            raise InvalidRedemptionPriceError()

        collateral_price = self.get_collateral_price()
        if collateral_price == 0:
            raise InvalidCollateralPriceError()

        discount = self._discount(auction, now)
        bought_collateral, readjusted_bid = get_bought_collateral(
            collateral_price,
            redemption_price,
            auction.amount_to_sell,
            adjusted_bid,
            discount,
        )
        if bought_collateral == 0:
            raise NullBoughtAmountError()

        paid = multiply(readjusted_bid, RAY)
        left_to_raise = 0 if paid >= auction.amount_to_raise else auction.amount_to_raise - paid
        if 0 < left_to_raise < RAY:
            raise InvalidLeftToRaiseError()

        left_to_sell = subtract(auction.amount_to_sell, bought_collateral)
        sold_all = left_to_sell == 0 or left_to_raise == 0

        if sold_all:
            # The whole remaining debt leaves the liquidation engine's books
            # once the bid covers it or nothing is left to sell
            bid_rad = multiply(bid, RAY)
            covered = bid_rad >= auction.amount_to_raise or left_to_sell == 0
            removed = auction.amount_to_raise if covered else bid_rad
        else:
            removed = paid

        logger.debug(
            f"Bid on auction {auction_id}: bid={format_fixed(bid)}, "
            f"discount={format_fixed(discount)}, bought={format_fixed(bought_collateral)}, "
            f"paid={format_fixed(readjusted_bid)}, sold_all={sold_all}"
        )

        return BidOutcome(
            bought_collateral=bought_collateral,
            readjusted_bid=readjusted_bid,
            left_to_sell=left_to_sell,
            left_to_raise=left_to_raise,
            sold_all=sold_all,
            removed_from_liquidation=removed,
        )

    def buy_collateral(self, auction_id: int, bid: int, *, sender: bytes, now: int) -> Tuple[int, int]:
        """
        Buy collateral from an auction.

        Args:
            auction_id: Auction to bid on
            bid: Debt-token offered (WAD)
            sender: Bidding account; pays the debt-token
            now: Current timestamp

        Returns:
            (bought_collateral, readjusted_bid)
        """
        with self._lock:
            self._require_address(sender, "sender")
            self._require_timestamp(now)

            outcome = self._compute_bid_outcome(auction_id, bid, now)
            auction = self.auctions.get(auction_id)

            with self.safe_engine.atomic():
                self.safe_engine.transfer_collateral(
                    self.collateral_type, self.address, sender, outcome.bought_collateral
                )
                if outcome.sold_all and outcome.left_to_sell > 0:
                    self.safe_engine.transfer_collateral(
                        self.collateral_type,
                        self.address,
                        auction.forgone_collateral_receiver,
                        outcome.left_to_sell,
                    )
                self.safe_engine.transfer_debt_token(
                    sender, auction.auction_income_recipient, outcome.paid
                )
                self.liquidation_engine.remove_coins_from_auction(outcome.removed_from_liquidation)

                if outcome.sold_all:
                    self.auctions.delete(auction_id)
                else:
                    self.auctions.reduce(auction_id, outcome.left_to_sell, outcome.left_to_raise)

            events: List[object] = [BuyCollateral(
                id=auction_id,
                bidder=sender,
                time=now,
                raised_amount=outcome.readjusted_bid,
                sold_amount=outcome.bought_collateral,
            )]
            if outcome.sold_all:
                events.append(SettleAuction(
                    id=auction_id,
                    time=now,
                    leftover_receiver=auction.forgone_collateral_receiver,
                    leftover_collateral=outcome.left_to_sell,
                ))
            self.events.emit_all(events)

            if outcome.sold_all:
                logger.info(
                    f"Auction {auction_id} settled by {short_address(sender)}...: "
                    f"leftover collateral={format_fixed(outcome.left_to_sell)}"
                )
            else:
                logger.debug(
                    f"Auction {auction_id} partially filled: "
                    f"left_to_sell={format_fixed(outcome.left_to_sell)}, "
                    f"left_to_raise={format_fixed(outcome.left_to_raise, RAD)}"
                )

            return outcome.bought_collateral, outcome.readjusted_bid

    # =========================================================================
    # Termination
    # =========================================================================

    def terminate_auction_prematurely(self, auction_id: int, *, sender: bytes, now: int) -> None:
        """
        End an auction early, returning all remaining collateral.

        The liquidation engine drops the full unraised amount from its books.
        Raises InsufficientBalanceError, before any call, if the house no
        longer holds the auction's collateral.
        """
        with self._lock:
            self.authorizations.require(sender)
            self._require_timestamp(now)

            auction = self.auctions.get(auction_id)
            if auction is None or auction.is_empty:
                raise InexistentAuctionError()

            # The engine is notified before the collateral moves and is not
            # rolled back by the ledger, so the transfer must be known to succeed
            held = self.safe_engine.collateral_balance(self.collateral_type, self.address)
            if held < auction.amount_to_sell:
                raise InsufficientBalanceError(
                    f"insufficient-balance: house holds {format_fixed(held)} {self.collateral_type}, "
                    f"auction {auction_id} needs {format_fixed(auction.amount_to_sell)}"
                )

            with self.safe_engine.atomic():
                self.liquidation_engine.remove_coins_from_auction(auction.amount_to_raise)
                self.safe_engine.transfer_collateral(
                    self.collateral_type,
                    self.address,
                    auction.forgone_collateral_receiver,
                    auction.amount_to_sell,
                )
                self.auctions.delete(auction_id)

            self.events.emit(TerminateAuctionPrematurely(
                id=auction_id,
                time=now,
                leftover_receiver=auction.forgone_collateral_receiver,
                leftover_collateral=auction.amount_to_sell,
            ))

            logger.warning(
                f"Auction {auction_id} terminated prematurely: returned "
                f"{format_fixed(auction.amount_to_sell)} {self.collateral_type}"
            )

    # =========================================================================
    # Input Checks
    # =========================================================================

    @staticmethod
    def _require_address(address, name: str) -> None:
        valid, err = validate_address(address, name)
        if not valid:
            raise AuctionValidationError(err)

    @staticmethod
    def _require_amount(amount, name: str) -> None:
        valid, err = validate_amount(amount, name)
        if not valid:
            raise AuctionValidationError(err)

    @staticmethod
    def _require_timestamp(now, min_val: int = MIN_TIMESTAMP) -> None:
        valid, err = validate_timestamp(now, min_val)
        if not valid:
            raise AuctionValidationError(err)

    # =========================================================================
    # Utility
    # =========================================================================

    def __repr__(self) -> str:
        return (
            f"CollateralAuctionHouse(collateral_type={self.collateral_type!r}, "
            f"active={len(self.auctions)}, started={self.auctions_started})"
        )

    def stats(self) -> dict:
        """Get auction house statistics."""
        return {
            "collateral_type": self.collateral_type,
            "auction_house_type": AUCTION_HOUSE_TYPE,
            "auction_type": AUCTION_TYPE,
            "auctions_started": self.auctions_started,
            "active_auctions": len(self.auctions),
            "authorized_accounts": len(self.authorizations),
            **self.parameters.as_dict(),
        }
