"""
Unit tests for parameter updates and authorization.

Tests cover:
1. Numeric parameter bounds
2. Collaborator changes
3. Authorization management
4. Events for every accepted change
"""

import pytest

from cdpauction.core.auction import CollateralAuctionHouse, canonical_parameter
from cdpauction.core.auth import AuthorizationList
from cdpauction.core.config import AuctionHouseConfig
from cdpauction.core.errors import (
    NullAddressError,
    ParameterBoundError,
    UnauthorizedError,
    UnrecognizedParameterError,
)
from cdpauction.core.events import AuthorizationGranted, AuthorizationRevoked, ParameterModified
from cdpauction.core.fixed_point import RAD, RAY, WAD
from cdpauction.core.state import LiquidationEngine, OracleRelayer, SAFEEngine
from cdpauction.crypto import ZERO_ADDRESS, address_from_label


def modify(deployment, parameter, data):
    deployment.house.modify_parameters(parameter, data, sender=deployment.governance)


class TestNumericParameters:
    """Tests for bounded numeric parameters."""

    def test_minimum_bid(self, deployment):
        modify(deployment, "minimum_bid", 10 * WAD)
        assert deployment.house.minimum_bid == 10 * WAD
        assert deployment.house.events.last() == ParameterModified(parameter="minimum_bid", value=10 * WAD)

    def test_camel_case_keys(self, deployment):
        """Both spellings of a key are accepted."""
        modify(deployment, "minimumBid", 7 * WAD)
        assert deployment.house.minimum_bid == 7 * WAD
        assert canonical_parameter("perSecondDiscountUpdateRate") == "per_second_discount_update_rate"

    def test_min_discount_below_max(self, deployment):
        """Lowering min_discount under max_discount names both values."""
        with pytest.raises(ParameterBoundError) as exc:
            modify(deployment, "min_discount", 80 * WAD // 100)
        assert "min_discount 0.8 < max_discount 0.95" in str(exc.value)
        assert exc.value.reason == "invalid-param-value"
        assert deployment.house.min_discount == 95 * WAD // 100

    def test_min_discount_above_one(self, deployment):
        with pytest.raises(ParameterBoundError):
            modify(deployment, "min_discount", WAD + 1)

    def test_discount_range(self, deployment):
        """Widening the range: max first, then min."""
        modify(deployment, "max_discount", 80 * WAD // 100)
        modify(deployment, "min_discount", WAD)
        assert deployment.house.max_discount == 80 * WAD // 100
        assert deployment.house.min_discount == WAD

    def test_max_discount_zero(self, deployment):
        with pytest.raises(ParameterBoundError):
            modify(deployment, "max_discount", 0)

    def test_max_discount_above_min(self, deployment):
        with pytest.raises(ParameterBoundError) as exc:
            modify(deployment, "maxDiscount", 96 * WAD // 100)
        assert "max_discount 0.96 > min_discount 0.95" in str(exc.value)

    def test_rate(self, deployment):
        modify(deployment, "per_second_discount_update_rate", 999_999 * RAY // 1_000_000)
        assert deployment.house.per_second_discount_update_rate == 999_999 * RAY // 1_000_000

    def test_rate_above_one(self, deployment):
        with pytest.raises(ParameterBoundError):
            modify(deployment, "per_second_discount_update_rate", RAY + 1)
        assert deployment.house.per_second_discount_update_rate == RAY

    def test_negative_value(self, deployment):
        with pytest.raises(ValueError):
            modify(deployment, "minimum_bid", -1)

    def test_unrecognized(self, deployment):
        events_before = len(deployment.house.events)
        with pytest.raises(UnrecognizedParameterError) as exc:
            modify(deployment, "bidDuration", 100)
        assert exc.value.reason == "unrecognized-param"
        assert len(deployment.house.events) == events_before

    def test_unauthorized(self, deployment, bidder):
        with pytest.raises(UnauthorizedError):
            deployment.house.modify_parameters("minimum_bid", 0, sender=bidder)
        assert deployment.house.minimum_bid == 5 * WAD

    def test_invalid_initial_config(self):
        """Deployment checks the initial values like any update."""
        config = AuctionHouseConfig(min_discount=80 * WAD // 100, max_discount=95 * WAD // 100)
        with pytest.raises(ParameterBoundError):
            CollateralAuctionHouse(SAFEEngine(), LiquidationEngine(), OracleRelayer(), address_from_label("gov"),
                                   config=config)


class TestCollaborators:
    """Tests for liquidation engine and oracle relayer changes."""

    def test_liquidation_engine_swap(self, deployment):
        """The new engine inherits the old one's authorization."""
        old = deployment.liquidation_engine
        new = LiquidationEngine(address_from_label("liquidation-engine-v2"))
        modify(deployment, "liquidation_engine", new)

        assert deployment.house.liquidation_engine is new
        assert not deployment.house.authorizations.is_authorized(old.address)
        assert deployment.house.authorizations.is_authorized(new.address)

        events = list(deployment.house.events)[-3:]
        assert events == [
            AuthorizationRevoked(account=old.address),
            AuthorizationGranted(account=new.address),
            ParameterModified(parameter="liquidation_engine", value=new.address),
        ]

    def test_new_engine_receives_notifications(self, deployment, bidder):
        new = LiquidationEngine(address_from_label("liquidation-engine-v2"))
        modify(deployment, "liquidationEngine", new)

        deployment.safe_engine.modify_collateral_balance("ETH-A", new.address, 100 * WAD)
        auction_id = new.liquidate(deployment.house, deployment.forgone_receiver, deployment.income_recipient,
                                   100 * RAD, 100 * WAD, deployment.now)
        deployment.house.buy_collateral(auction_id, 19 * WAD, sender=bidder, now=deployment.now)
        assert new.current_on_auction_system_coins == 81 * RAD

    def test_null_liquidation_engine(self, deployment):
        with pytest.raises(NullAddressError):
            modify(deployment, "liquidation_engine", LiquidationEngine(ZERO_ADDRESS))
        assert deployment.house.liquidation_engine is deployment.liquidation_engine

    def test_oracle_relayer(self, deployment):
        relayer = OracleRelayer(redemption_price=2 * RAY, address=address_from_label("oracle-relayer-v2"))
        modify(deployment, "oracleRelayer", relayer)
        assert deployment.house.oracle_relayer is relayer
        assert deployment.house.get_collateral_price() == 0

    def test_null_oracle_relayer(self, deployment):
        with pytest.raises(NullAddressError):
            modify(deployment, "oracle_relayer", object())


class TestAuthorization:
    """Tests for authorization management."""

    def test_add_and_remove(self, deployment):
        keeper = address_from_label("new-admin")
        deployment.house.add_authorization(keeper, sender=deployment.governance)
        assert keeper in deployment.house.authorizations

        deployment.house.remove_authorization(keeper, sender=deployment.governance)
        assert keeper not in deployment.house.authorizations
        assert deployment.house.events.last() == AuthorizationRevoked(account=keeper)

    def test_outsider_cannot_grant(self, deployment, bidder):
        with pytest.raises(UnauthorizedError):
            deployment.house.add_authorization(bidder, sender=bidder)

    def test_deployment_grants(self, deployment):
        assert deployment.house.authorizations.accounts == {
            deployment.governance,
            deployment.liquidation_engine.address,
        }

    def test_list_require(self):
        auths = AuthorizationList()
        account = address_from_label("a")
        with pytest.raises(UnauthorizedError):
            auths.require(account)
        assert auths.grant(account) == AuthorizationGranted(account=account)
        auths.require(account)
        assert len(auths) == 1
