"""
Pricing Engine - Discount curve and bid sizing.

Pure functions of an auction record, the current time and oracle
readings. Nothing here mutates state.

Discount Curve:
--------------
    elapsed = now - initial_timestamp
    discount = max(max_discount, rmultiply(rate ** elapsed, min_discount))

At elapsed == 0 the discount is exactly min_discount. With a rate below
one RAY the discount shrinks every second (collateral gets cheaper) until
it reaches max_discount.

Discounted Price:
----------------
    price = wmultiply(rdivide(collateral_price, redemption_price), discount)
    bought = wdivide(adjusted_bid, price)

A bid that would buy more than what is left is shrunk in proportion so
the buyer pays only for the remaining collateral.
"""

from typing import Optional, Tuple

from cdpauction.core.auction.registry import Auction
from cdpauction.core.fixed_point import (
    RAY,
    WAD,
    addition,
    divide,
    maximum,
    multiply,
    rdivide,
    rmultiply,
    rpower,
    subtract,
    wdivide,
    wmultiply,
)
from cdpauction.core.interfaces import OracleRelayerLike
from cdpauction.utils.logger import get_logger

logger = get_logger("auction.pricing")


def get_auction_discount(
    auction: Optional[Auction],
    now: int,
    min_discount: int,
    max_discount: int,
    per_second_discount_update_rate: int,
) -> int:
    """
    Current discount factor of an auction (WAD).

    Returns WAD for an absent auction. That value is a sentinel, not a
    price anybody can trade at.
    """
    if auction is None or auction.initial_timestamp == 0:
        return WAD

    if auction.initial_timestamp == now:
        return min_discount

    elapsed = subtract(now, auction.initial_timestamp)
    decayed = rmultiply(rpower(per_second_discount_update_rate, elapsed, RAY), min_discount)
    return maximum(decayed, max_discount)


def get_collateral_price(oracle_relayer: OracleRelayerLike, collateral_type: str) -> int:
    """
    Latest collateral price from the relayer's price source (WAD).

    Returns 0 when no source is registered or the reading is invalid.
    """
    price_source = oracle_relayer.collateral_type_params(collateral_type)
    if price_source is None:
        return 0

    price, is_valid = price_source.latest_value_with_validity()
    if not is_valid:
        logger.warning(f"Invalid {collateral_type} price reading ignored")
        return 0
    return price


def raw_adjusted_bid(auction: Auction, bid: int) -> int:
    """Cap a bid at the debt still owed, rounding the cap up."""
    if multiply(bid, RAY) > auction.amount_to_raise:
        return addition(auction.amount_to_raise // RAY, 1)
    return bid


def get_adjusted_bid(auction: Optional[Auction], bid: int, minimum_bid: int) -> Tuple[bool, int]:
    """
    Validate a bid against an auction without mutating anything.

    Returns:
        (valid, adjusted_bid); adjusted_bid is the unchanged bid when invalid
    """
    if auction is None or auction.is_empty:
        return False, bid
    if bid == 0 or bid < minimum_bid:
        return False, bid

    bid_rad = multiply(bid, RAY)
    remaining_to_raise = auction.amount_to_raise - bid_rad if bid_rad <= auction.amount_to_raise else 0

    # A sub-dust remainder could never be settled
    if 0 < remaining_to_raise < RAY:
        return False, bid

    return True, raw_adjusted_bid(auction, bid)


def get_discounted_collateral_price(
    collateral_price: int,
    system_coin_price: int,
    discount: int,
) -> int:
    """Collateral price in system coins after the discount (WAD)."""
    return wmultiply(rdivide(collateral_price, system_coin_price), discount)


def get_bought_collateral(
    collateral_price: int,
    system_coin_price: int,
    amount_to_sell: int,
    adjusted_bid: int,
    discount: int,
) -> Tuple[int, int]:
    """
    Collateral bought by a bid and the bid actually charged.

    Args:
        collateral_price: Collateral price (WAD)
        system_coin_price: Redemption price (RAY)
        amount_to_sell: Collateral left in the auction (WAD)
        adjusted_bid: Bid already capped at the remaining debt (WAD)
        discount: Current discount factor (WAD)

    Returns:
        (bought_collateral, readjusted_bid)
    """
    discounted_price = get_discounted_collateral_price(collateral_price, system_coin_price, discount)
    bought_collateral = wdivide(adjusted_bid, discounted_price)

    if bought_collateral > amount_to_sell:
        readjusted_bid = divide(multiply(adjusted_bid, amount_to_sell), bought_collateral)
        return amount_to_sell, readjusted_bid

    return bought_collateral, adjusted_bid
