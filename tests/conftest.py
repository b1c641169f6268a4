"""
Shared fixtures: a deployed auction house wired to in-memory collaborators.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional

import pytest

from cdpauction.core.auction import CollateralAuctionHouse
from cdpauction.core.config import AuctionHouseConfig
from cdpauction.core.fixed_point import RAD, WAD
from cdpauction.core.state import LiquidationEngine, OracleRelayer, PriceSource, SAFEEngine
from cdpauction.crypto import address_from_label


COLLATERAL = "ETH-A"
START = 1_700_000_000


@dataclass
class Deployment:
    """A house plus its collaborators and a controllable clock."""
    house: CollateralAuctionHouse
    safe_engine: SAFEEngine
    liquidation_engine: LiquidationEngine
    oracle_relayer: OracleRelayer
    price_source: PriceSource
    governance: bytes
    forgone_receiver: bytes
    income_recipient: bytes
    clock: dict = field(default_factory=lambda: {"now": START})

    @property
    def now(self) -> int:
        return self.clock["now"]

    def advance(self, seconds: int) -> int:
        self.clock["now"] += seconds
        return self.clock["now"]

    def start(self, amount_to_sell: int = 100 * WAD, amount_to_raise: int = 100 * RAD) -> int:
        """Fund the liquidation engine and start an auction."""
        self.safe_engine.modify_collateral_balance(
            COLLATERAL, self.liquidation_engine.address, amount_to_sell
        )
        return self.liquidation_engine.liquidate(
            self.house,
            self.forgone_receiver,
            self.income_recipient,
            amount_to_raise,
            amount_to_sell,
            self.now,
        )

    def fund(self, account: bytes, coins: int = 10_000 * RAD) -> bytes:
        self.safe_engine.create_unbacked_debt(account, coins)
        return account

    def collateral_of(self, account: bytes) -> int:
        return self.safe_engine.collateral_balance(COLLATERAL, account)

    def coins_of(self, account: bytes) -> int:
        return self.safe_engine.coin_balance_of(account)


def deploy(config: Optional[AuctionHouseConfig] = None, collateral_price: int = WAD) -> Deployment:
    clock = {"now": START}
    safe_engine = SAFEEngine()
    liquidation_engine = LiquidationEngine()
    oracle_relayer = OracleRelayer(clock=lambda: clock["now"])
    price_source = PriceSource(collateral_price)
    oracle_relayer.set_price_source(COLLATERAL, price_source)
    governance = address_from_label("governance")

    house = CollateralAuctionHouse(
        safe_engine,
        liquidation_engine,
        oracle_relayer,
        governance,
        config=config or AuctionHouseConfig(collateral_type=COLLATERAL),
    )
    return Deployment(
        house=house,
        safe_engine=safe_engine,
        liquidation_engine=liquidation_engine,
        oracle_relayer=oracle_relayer,
        price_source=price_source,
        governance=governance,
        forgone_receiver=address_from_label("safe-owner"),
        income_recipient=address_from_label("accounting-engine"),
        clock=clock,
    )


@pytest.fixture
def make_deployment() -> Callable[..., Deployment]:
    """Factory for deployments with custom config or collateral price."""
    return deploy


@pytest.fixture
def deployment() -> Deployment:
    """House with min = max discount 0.95, flat rate, price ratio 1.0."""
    return deploy()


@pytest.fixture
def bidder(deployment) -> bytes:
    """An account holding 10,000 coins."""
    return deployment.fund(address_from_label("keeper-alice"))


@pytest.fixture
def second_bidder(deployment) -> bytes:
    return deployment.fund(address_from_label("keeper-bob"))
