"""
Parameter Store - Validated auction parameters and collaborator wiring.

Holds the discount curve (min/max discount, per-second update rate),
the minimum bid and the two collaborators the house reports to (the
liquidation engine and the oracle relayer). Every update is checked
against the invariants:

    0 < max_discount <= min_discount <= WAD
    per_second_discount_update_rate <= RAY
    liquidation_engine, oracle_relayer non-zero

A failed check raises before anything is written.
"""

from typing import Dict, List, Optional

from cdpauction.core.auth import AuthorizationList
from cdpauction.core.config import AuctionHouseConfig
from cdpauction.core.errors import (
    AuctionValidationError,
    NullAddressError,
    ParameterBoundError,
    UnrecognizedParameterError,
)
from cdpauction.core.events import ParameterModified
from cdpauction.core.fixed_point import RAY, WAD, format_fixed
from cdpauction.core.interfaces import LiquidationEngineLike, OracleRelayerLike
from cdpauction.crypto import short_address
from cdpauction.utils.logger import get_logger
from cdpauction.utils.validation import validate_address, validate_amount

logger = get_logger("auction.parameters")


# Accepted spellings of each parameter key
PARAMETER_ALIASES: Dict[str, str] = {
    "minimumBid": "minimum_bid",
    "minDiscount": "min_discount",
    "maxDiscount": "max_discount",
    "perSecondDiscountUpdateRate": "per_second_discount_update_rate",
    "liquidationEngine": "liquidation_engine",
    "oracleRelayer": "oracle_relayer",
}

UINT_PARAMETERS = (
    "minimum_bid",
    "min_discount",
    "max_discount",
    "per_second_discount_update_rate",
)
ADDRESS_PARAMETERS = ("liquidation_engine", "oracle_relayer")


def canonical_parameter(parameter: str) -> str:
    """Map a camelCase key to its snake_case form."""
    return PARAMETER_ALIASES.get(parameter, parameter)


class ParameterStore:
    """
    Validated auction parameters.

    Attributes:
        minimum_bid: Smallest admissible bid (WAD)
        min_discount: Discount applied at auction start (WAD)
        max_discount: Floor the discount decays towards (WAD)
        per_second_discount_update_rate: Per-second decay factor (RAY)
        liquidation_engine: Collaborator notified of raised amounts
        oracle_relayer: Source of redemption and collateral prices
    """

    def __init__(
        self,
        config: AuctionHouseConfig,
        liquidation_engine: LiquidationEngineLike,
        oracle_relayer: OracleRelayerLike,
        authorizations: AuthorizationList,
    ):
        self.authorizations = authorizations

        self.minimum_bid = config.minimum_bid
        self.min_discount = config.min_discount
        self.max_discount = config.max_discount
        self.per_second_discount_update_rate = config.per_second_discount_update_rate

        self._check_address("liquidation_engine", liquidation_engine)
        self._check_address("oracle_relayer", oracle_relayer)
        self.liquidation_engine = liquidation_engine
        self.oracle_relayer = oracle_relayer

        # Initial values obey the same rules as later updates
        self._check_uint("minimum_bid", self.minimum_bid)
        self._check_uint("max_discount", self.max_discount)
        self._check_uint("min_discount", self.min_discount)
        self._check_uint("per_second_discount_update_rate", self.per_second_discount_update_rate)

    # =========================================================================
    # Updates
    # =========================================================================

    def modify(self, parameter: str, data) -> List[object]:
        """
        Validate and apply a parameter update.

        Args:
            parameter: Parameter key (snake_case or camelCase)
            data: Raw integer for numeric keys, collaborator object for
                  address keys

        Returns:
            Events produced by the update

        Raises:
            UnrecognizedParameterError: Unknown key
            ParameterBoundError: Value outside its bounds
            NullAddressError: Collaborator with a zero address
        """
        key = canonical_parameter(parameter)

        if key in UINT_PARAMETERS:
            self._check_uint(key, data)
            setattr(self, key, data)
            logger.info(f"Parameter modified: {key}={data}")
            return [ParameterModified(parameter=key, value=data)]

        if key == "liquidation_engine":
            self._check_address(key, data)
            previous = self.liquidation_engine
            events = self.authorizations.swap(previous.address, data.address)
            self.liquidation_engine = data
            logger.info(
                f"Liquidation engine changed: {short_address(previous.address)}... "
                f"-> {short_address(data.address)}..."
            )
            return events + [ParameterModified(parameter=key, value=data.address)]

        if key == "oracle_relayer":
            self._check_address(key, data)
            self.oracle_relayer = data
            logger.info(f"Oracle relayer changed: {short_address(data.address)}...")
            return [ParameterModified(parameter=key, value=data.address)]

        raise UnrecognizedParameterError(parameter)

    # =========================================================================
    # Checks
    # =========================================================================

    def _check_uint(self, key: str, value) -> None:
        valid, err = validate_amount(value, key)
        if not valid:
            raise AuctionValidationError(f"invalid-param-value: {err}")

        if key == "max_discount":
            if value == 0:
                raise ParameterBoundError(key, value, "==", 0, "zero")
            if value > self.min_discount:
                raise ParameterBoundError(key, value, ">", self.min_discount, "min_discount", WAD)
        elif key == "min_discount":
            if value < self.max_discount:
                raise ParameterBoundError(key, value, "<", self.max_discount, "max_discount", WAD)
            if value > WAD:
                raise ParameterBoundError(key, value, ">", WAD, "one", WAD)
        elif key == "per_second_discount_update_rate":
            if value > RAY:
                raise ParameterBoundError(key, value, ">", RAY, "one", RAY)

    @staticmethod
    def _check_address(key: str, collaborator: Optional[object]) -> None:
        address = getattr(collaborator, "address", None)
        valid, err = validate_address(address, key, allow_zero=False)
        if not valid:
            raise NullAddressError(f"null-address: {err}")

    # =========================================================================
    # Utility
    # =========================================================================

    def as_dict(self) -> dict:
        return {
            "minimum_bid": self.minimum_bid,
            "min_discount": self.min_discount,
            "max_discount": self.max_discount,
            "per_second_discount_update_rate": self.per_second_discount_update_rate,
        }

    def __repr__(self) -> str:
        return (
            f"ParameterStore(min_discount={format_fixed(self.min_discount)}, "
            f"max_discount={format_fixed(self.max_discount)}, "
            f"rate={format_fixed(self.per_second_discount_update_rate, RAY, 12)}, "
            f"minimum_bid={format_fixed(self.minimum_bid)})"
        )
