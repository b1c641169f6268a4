"""
Unit tests for the in-memory collaborators.

Tests cover:
1. SAFE engine balances and transfers
2. Atomic blocks and rollback
3. Oracle relayer redemption price drift
4. Liquidation engine bookkeeping
"""

import pytest

from cdpauction.core.errors import AuctionValidationError, InsufficientBalanceError, MathUnderflowError
from cdpauction.core.fixed_point import RAD, RAY, WAD
from cdpauction.core.state import LiquidationEngine, OracleRelayer, PriceSource, SAFEEngine
from cdpauction.crypto import address_from_label


ALICE = address_from_label("alice")
BOB = address_from_label("bob")


@pytest.fixture
def safe_engine():
    engine = SAFEEngine()
    engine.modify_collateral_balance("ETH-A", ALICE, 10 * WAD)
    engine.create_unbacked_debt(ALICE, 100 * RAD)
    return engine


class TestSAFEEngine:
    """Tests for balances and transfers."""

    def test_initial_balances(self, safe_engine):
        assert safe_engine.collateral_balance("ETH-A", ALICE) == 10 * WAD
        assert safe_engine.collateral_balance("ETH-B", ALICE) == 0
        assert safe_engine.coin_balance_of(ALICE) == 100 * RAD
        assert safe_engine.global_unbacked_debt == 100 * RAD

    def test_transfer_collateral(self, safe_engine):
        safe_engine.transfer_collateral("ETH-A", ALICE, BOB, 4 * WAD)
        assert safe_engine.collateral_balance("ETH-A", ALICE) == 6 * WAD
        assert safe_engine.collateral_balance("ETH-A", BOB) == 4 * WAD

    def test_transfer_collateral_insufficient(self, safe_engine):
        with pytest.raises(InsufficientBalanceError):
            safe_engine.transfer_collateral("ETH-A", ALICE, BOB, 11 * WAD)
        assert safe_engine.collateral_balance("ETH-A", ALICE) == 10 * WAD

    def test_transfer_debt_token(self, safe_engine):
        safe_engine.transfer_debt_token(ALICE, BOB, 30 * RAD)
        assert safe_engine.coin_balance_of(ALICE) == 70 * RAD
        assert safe_engine.coin_balance_of(BOB) == 30 * RAD

    def test_transfer_debt_token_insufficient(self, safe_engine):
        with pytest.raises(InsufficientBalanceError):
            safe_engine.transfer_debt_token(BOB, ALICE, 1)

    def test_negative_amount_rejected(self, safe_engine):
        with pytest.raises(AuctionValidationError):
            safe_engine.transfer_debt_token(ALICE, BOB, -1)

    def test_collateral_cannot_go_negative(self, safe_engine):
        with pytest.raises(InsufficientBalanceError):
            safe_engine.modify_collateral_balance("ETH-A", ALICE, -11 * WAD)
        safe_engine.modify_collateral_balance("ETH-A", ALICE, -10 * WAD)
        assert safe_engine.collateral_balance("ETH-A", ALICE) == 0


class TestAtomic:
    """Tests for all-or-nothing blocks."""

    def test_commit(self, safe_engine):
        with safe_engine.atomic():
            safe_engine.transfer_collateral("ETH-A", ALICE, BOB, WAD)
            safe_engine.transfer_debt_token(ALICE, BOB, RAD)
        assert safe_engine.collateral_balance("ETH-A", BOB) == WAD
        assert safe_engine.coin_balance_of(BOB) == RAD

    def test_rollback(self, safe_engine):
        """A failure undoes the earlier transfers of the block."""
        with pytest.raises(InsufficientBalanceError):
            with safe_engine.atomic():
                safe_engine.transfer_collateral("ETH-A", ALICE, BOB, WAD)
                safe_engine.transfer_debt_token(BOB, ALICE, RAD)

        assert safe_engine.collateral_balance("ETH-A", ALICE) == 10 * WAD
        assert safe_engine.collateral_balance("ETH-A", BOB) == 0

    def test_nested_rollback(self, safe_engine):
        """An inner failure rolls back the whole outer block."""
        with pytest.raises(InsufficientBalanceError):
            with safe_engine.atomic():
                safe_engine.transfer_collateral("ETH-A", ALICE, BOB, WAD)
                with safe_engine.atomic():
                    safe_engine.transfer_collateral("ETH-A", ALICE, BOB, 2 * WAD)
                    safe_engine.transfer_collateral("ETH-A", BOB, ALICE, 100 * WAD)

        assert safe_engine.collateral_balance("ETH-A", BOB) == 0

    def test_usable_after_rollback(self, safe_engine):
        with pytest.raises(RuntimeError):
            with safe_engine.atomic():
                safe_engine.transfer_collateral("ETH-A", ALICE, BOB, WAD)
                raise RuntimeError("boom")

        with safe_engine.atomic():
            safe_engine.transfer_collateral("ETH-A", ALICE, BOB, WAD)
        assert safe_engine.collateral_balance("ETH-A", BOB) == WAD


class TestOracleRelayer:
    """Tests for price sources and the redemption price."""

    def test_price_source(self):
        source = PriceSource(200 * WAD)
        assert source.latest_value_with_validity() == (200 * WAD, True)
        source.invalidate()
        assert source.latest_value_with_validity() == (200 * WAD, False)
        source.update_result(210 * WAD)
        assert source.latest_value_with_validity() == (210 * WAD, True)

    def test_collateral_type_params(self):
        relayer = OracleRelayer()
        source = PriceSource(WAD)
        relayer.set_price_source("ETH-A", source)
        assert relayer.collateral_type_params("ETH-A") is source
        assert relayer.collateral_type_params("ETH-B") is None

    def test_redemption_price_drift(self):
        """A rate of 2 per second doubles the price each second."""
        clock = {"now": 100}
        relayer = OracleRelayer(redemption_rate=2 * RAY, clock=lambda: clock["now"])
        clock["now"] = 103
        assert relayer.redemption_price() == RAY
        assert relayer.recompute_redemption_price() == 8 * RAY
        assert relayer.redemption_price_update_time == 103

    def test_recompute_idempotent_within_second(self):
        clock = {"now": 100}
        relayer = OracleRelayer(redemption_price=2 * RAY, redemption_rate=RAY // 2, clock=lambda: clock["now"])
        assert relayer.recompute_redemption_price() == 2 * RAY
        clock["now"] = 101
        assert relayer.recompute_redemption_price() == RAY
        assert relayer.recompute_redemption_price() == RAY


class TestLiquidationEngine:
    """Tests for on-auction bookkeeping."""

    def test_remove_coins(self):
        engine = LiquidationEngine()
        engine.current_on_auction_system_coins = 100 * RAD
        engine.remove_coins_from_auction(40 * RAD)
        assert engine.current_on_auction_system_coins == 60 * RAD

    def test_remove_more_than_booked(self):
        engine = LiquidationEngine()
        with pytest.raises(MathUnderflowError):
            engine.remove_coins_from_auction(1)

    def test_default_address(self):
        assert LiquidationEngine().address == address_from_label("liquidation-engine")
        assert len(LiquidationEngine().address) == 20
