"""Increasing-discount collateral auctions"""
from cdpauction.core.auction.registry import Auction, AuctionRegistry
from cdpauction.core.auction.parameters import ParameterStore, canonical_parameter
from cdpauction.core.auction.pricing import (
    get_auction_discount,
    get_collateral_price,
    get_adjusted_bid,
    get_bought_collateral,
    get_discounted_collateral_price,
)
from cdpauction.core.auction.house import (
    AUCTION_HOUSE_TYPE,
    AUCTION_TYPE,
    BidOutcome,
    CollateralAuctionHouse,
)

__all__ = [
    "Auction",
    "AuctionRegistry",
    "ParameterStore",
    "canonical_parameter",
    "get_auction_discount",
    "get_collateral_price",
    "get_adjusted_bid",
    "get_bought_collateral",
    "get_discounted_collateral_price",
    "AUCTION_HOUSE_TYPE",
    "AUCTION_TYPE",
    "BidOutcome",
    "CollateralAuctionHouse",
]
