"""
Oracle - Collateral price feeds and the redemption price.

Two collaborators:

1. **PriceSource**: a delayed feed reporting ``(value, is_valid)``
2. **OracleRelayer**: owns the redemption price of the system coin and
   maps each collateral type to its price source

The redemption price drifts by a per-second redemption rate:

    redemption_price = rmultiply(rpower(rate, now - last_update), redemption_price)

Time comes from an injected clock so the relayer stays deterministic.
"""

from typing import Callable, Dict, Optional, Tuple

from cdpauction.core.fixed_point import RAY, format_fixed, rmultiply, rpower, subtract
from cdpauction.crypto import address_from_label
from cdpauction.utils.logger import get_logger

logger = get_logger("state.oracle")


class PriceSource:
    """Price feed for one collateral type (WAD)."""

    def __init__(self, value: int = 0, is_valid: bool = True):
        self.value = value
        self.is_valid = is_valid

    def update_result(self, value: int) -> None:
        """Record a fresh, valid reading."""
        self.value = value
        self.is_valid = True

    def invalidate(self) -> None:
        self.is_valid = False

    def latest_value_with_validity(self) -> Tuple[int, bool]:
        return self.value, self.is_valid

    def __repr__(self) -> str:
        return f"PriceSource(value={format_fixed(self.value)}, valid={self.is_valid})"


class OracleRelayer:
    """
    Redemption price keeper and collateral price source registry.

    Attributes:
        address: Relayer account
        redemption_rate: Per-second redemption price drift (RAY)
        redemption_price_update_time: Time of the last recomputation
    """

    def __init__(
        self,
        redemption_price: int = RAY,
        redemption_rate: int = RAY,
        clock: Optional[Callable[[], int]] = None,
        address: Optional[bytes] = None,
    ):
        self.address = address or address_from_label("oracle-relayer")
        self.redemption_rate = redemption_rate
        self.clock = clock or (lambda: 0)
        self.redemption_price_update_time = self.clock()

        self._redemption_price = redemption_price
        self._price_sources: Dict[str, PriceSource] = {}

    # =========================================================================
    # Redemption Price
    # =========================================================================

    def redemption_price(self) -> int:
        """Last recorded redemption price (RAY)."""
        return self._redemption_price

    def recompute_redemption_price(self) -> int:
        """Compound the redemption rate up to the clock's current time."""
        now = self.clock()
        elapsed = subtract(now, self.redemption_price_update_time)
        if elapsed:
            self._redemption_price = rmultiply(rpower(self.redemption_rate, elapsed, RAY), self._redemption_price)
            self.redemption_price_update_time = now
            logger.debug(f"Redemption price updated to {format_fixed(self._redemption_price, RAY, 9)}")
        return self._redemption_price

    def set_redemption_price(self, redemption_price: int) -> None:
        self._redemption_price = redemption_price
        self.redemption_price_update_time = self.clock()

    # =========================================================================
    # Collateral Types
    # =========================================================================

    def set_price_source(self, collateral_type: str, price_source: PriceSource) -> None:
        self._price_sources[collateral_type] = price_source

    def collateral_type_params(self, collateral_type: str) -> Optional[PriceSource]:
        return self._price_sources.get(collateral_type)

    def __repr__(self) -> str:
        return (
            f"OracleRelayer(redemption_price={format_fixed(self._redemption_price, RAY, 9)}, "
            f"collateral_types={sorted(self._price_sources)})"
        )
