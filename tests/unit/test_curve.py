"""
Tests for BondingCurve: initialize, buy, sell, update_parameters, snapshot, events.

Trades run against the HostLedger-backed market fixture unless they need a
collaborator that fails on demand, in which case the fakes are used.
"""

import pytest

from bonding_curve import (
    BondingCurve, CurveState, CurveEventKind, TokenAccount, TradeSide,
    InvalidAmount, InvalidParameters, InvalidTokenAccount, InvalidTokenMint,
    InsufficientTokens, InsufficientBalance, Overflow, Underflow, Unauthorized,
    LedgerUnitLedger, U64_MAX,
)

from tests.fake_rails import FakeSettlementRail
from tests.market import SETTLEMENT, UNIT


# ============================================================================
# Initialization
# ============================================================================

class TestInitialize:

    def test_new_curve_has_zero_supply(self, curve):
        assert curve.total_supply == 0
        assert curve.authority == "admin"
        assert curve.unit_id == UNIT
        assert curve.state.initial_price == 100
        assert curve.state.slope == 10

    def test_emits_initialized_event(self, curve):
        assert len(curve.events) == 1
        event = curve.events[0]
        assert event.kind is CurveEventKind.INITIALIZED
        assert event.data == {'authority': 'admin', 'initial_price': 100, 'slope': 10}

    @pytest.mark.parametrize("initial_price,slope", [(0, 10), (100, 0), (0, 0)])
    def test_rejects_zero_parameters(self, fake_rail, fake_units, initial_price, slope):
        with pytest.raises(InvalidParameters):
            BondingCurve.initialize(
                "admin", UNIT, initial_price, slope,
                settlement=fake_rail, units=fake_units, address="curve:x", verbose=False,
            )

    def test_verbose_prints_events(self, fake_rail, fake_units, capsys):
        BondingCurve.initialize(
            "admin", UNIT, 100, 10,
            settlement=fake_rail, units=fake_units, address="curve:x", verbose=True,
        )
        assert "INITIALIZED" in capsys.readouterr().out


# ============================================================================
# Buy
# ============================================================================

class TestBuy:

    def test_buy_prices_at_pre_trade_supply(self, market):
        ledger, _, curve = market
        receipt = curve.buy("alice", UNIT, 5)

        assert receipt.side is TradeSide.BUY
        assert receipt.price == 100
        assert receipt.cost == 500
        assert receipt.supply_before == 0
        assert receipt.supply_after == 5
        assert curve.total_supply == 5
        assert ledger.get_balance("alice", UNIT) == 5
        assert ledger.get_balance("alice", SETTLEMENT) == 1_000_000 - 500
        assert ledger.get_balance(curve.address, SETTLEMENT) == 500

    def test_second_buy_sees_higher_price(self, market):
        _, _, curve = market
        curve.buy("alice", UNIT, 5)
        receipt = curve.buy("bob", UNIT, 2)
        assert receipt.price == 150
        assert receipt.cost == 300
        assert curve.total_supply == 7

    def test_buy_zero_fails(self, market):
        ledger, _, curve = market
        logged = len(ledger.transaction_log)
        with pytest.raises(InvalidAmount):
            curve.buy("alice", UNIT, 0)
        assert curve.total_supply == 0
        assert len(ledger.transaction_log) == logged

    def test_buy_wrong_unit_fails(self, curve):
        with pytest.raises(InvalidTokenMint):
            curve.buy("alice", "OTHER", 1)
        assert curve.total_supply == 0

    def test_buy_without_funds_changes_nothing(self, market):
        ledger, _, curve = market
        with pytest.raises(InsufficientBalance):
            curve.buy("admin", UNIT, 1)
        assert curve.total_supply == 0
        assert ledger.get_balance("admin", UNIT) == 0
        assert ledger.get_balance(curve.address, SETTLEMENT) == 0

    def test_buy_cost_overflow_makes_no_external_call(self, fake_rail, fake_units):
        curve = BondingCurve.initialize(
            "admin", UNIT, U64_MAX // 2 + 1, 1,
            settlement=fake_rail, units=fake_units, address="curve:x", verbose=False,
        )
        with pytest.raises(Overflow):
            curve.buy("alice", UNIT, 2)
        assert fake_rail.calls == []
        assert fake_units.calls == []

    def test_buy_price_overflow(self, fake_rail, fake_units):
        state = CurveState("admin", UNIT, 1, 2**40, total_supply=2**40)
        curve = BondingCurve(state, fake_rail, fake_units, "curve:x", verbose=False)
        with pytest.raises(Overflow):
            curve.buy("alice", UNIT, 1)
        assert curve.state is state

    def test_failed_mint_returns_settlement(self, fake_curve, fake_rail, fake_units):
        fake_units.fail_mint = True
        with pytest.raises(RuntimeError, match="mint failed"):
            fake_curve.buy("alice", UNIT, 5)

        assert fake_rail.balance_of("alice") == 1_000_000
        assert fake_rail.balance_of("curve:fake") == 0
        assert fake_rail.calls == [
            ('transfer', 'alice', 'curve:fake', 500),
            ('transfer', 'curve:fake', 'alice', 500),
        ]
        assert fake_curve.total_supply == 0
        assert [e.kind for e in fake_curve.events] == [CurveEventKind.INITIALIZED]

    def test_buy_event(self, curve):
        curve.buy("alice", UNIT, 5)
        event = curve.events[-1]
        assert event.kind is CurveEventKind.BOUGHT
        assert event.data == {'caller': 'alice', 'amount': 5, 'price': 100, 'cost': 500}


# ============================================================================
# Sell
# ============================================================================

class TestSell:

    def test_sell_prices_at_current_supply(self, market):
        ledger, _, curve = market
        curve.buy("alice", UNIT, 5)
        curve.buy("bob", UNIT, 5)

        receipt = curve.sell("alice", UNIT, 5)

        assert receipt.side is TradeSide.SELL
        assert receipt.price == 200
        assert receipt.refund == 1000
        assert curve.total_supply == 5
        assert ledger.get_balance("alice", UNIT) == 0

    def test_sell_zero_fails(self, market):
        _, _, curve = market
        curve.buy("alice", UNIT, 5)
        with pytest.raises(InvalidAmount):
            curve.sell("alice", UNIT, 0)
        assert curve.total_supply == 5

    def test_sell_wrong_unit_fails(self, market):
        _, _, curve = market
        curve.buy("alice", UNIT, 5)
        with pytest.raises(InvalidTokenMint):
            curve.sell("alice", "OTHER", 1)

    def test_sell_more_than_held(self, market):
        ledger, _, curve = market
        curve.buy("alice", UNIT, 5)
        curve.buy("bob", UNIT, 5)
        with pytest.raises(InsufficientTokens):
            curve.sell("alice", UNIT, 6)
        assert curve.total_supply == 10
        assert ledger.get_balance("alice", UNIT) == 5

    def test_presented_account_of_another_owner(self, market):
        _, _, curve = market
        curve.buy("bob", UNIT, 5)
        with pytest.raises(InvalidTokenAccount):
            curve.sell("alice", UNIT, 1, account=TokenAccount("bob", UNIT, 5))

    def test_presented_account_of_another_unit(self, market):
        _, _, curve = market
        curve.buy("alice", UNIT, 5)
        with pytest.raises(InvalidTokenAccount):
            curve.sell("alice", UNIT, 1, account=TokenAccount("alice", "OTHER", 5))

    def test_presented_balance_is_not_trusted(self, market):
        ledger, _, curve = market
        curve.buy("bob", UNIT, 5)
        logged = len(ledger.transaction_log)

        with pytest.raises(InsufficientTokens):
            curve.sell("alice", UNIT, 5, account=TokenAccount("alice", UNIT, 5))

        assert len(ledger.transaction_log) == logged
        assert curve.total_supply == 5

    def test_presented_account_with_real_balance(self, market):
        _, _, curve = market
        curve.buy("alice", UNIT, 3)
        curve.buy("bob", UNIT, 3)
        receipt = curve.sell("alice", UNIT, 3, account=TokenAccount("alice", UNIT, 999))
        assert receipt.refund == 480

    def test_sell_more_than_supply_underflows(self, market):
        ledger, _, curve = market
        # Units issued outside the curve
        LedgerUnitLedger(ledger).mint(UNIT, "alice", 10)

        with pytest.raises(Underflow):
            curve.sell("alice", UNIT, 5)
        assert curve.total_supply == 0
        assert ledger.get_balance("alice", UNIT) == 10

    def test_custody_short_restores_units(self, market):
        ledger, _, curve = market
        curve.buy("alice", UNIT, 5)

        # Refund 750 against 500 in custody
        with pytest.raises(InsufficientBalance):
            curve.sell("alice", UNIT, 5)

        assert curve.total_supply == 5
        assert ledger.get_balance("alice", UNIT) == 5
        assert ledger.get_balance(curve.address, SETTLEMENT) == 500
        assert ledger.get_balance("alice", SETTLEMENT) == 1_000_000 - 500

    def test_custody_short_burns_nothing(self, market):
        ledger, _, curve = market
        curve.buy("alice", UNIT, 5)
        logged = list(ledger.transaction_log)

        with pytest.raises(InsufficientBalance):
            curve.sell("alice", UNIT, 5)

        assert ledger.transaction_log == logged
        assert len(curve.events) == 2

    def test_custody_short_makes_no_unit_call(self, fake_curve, fake_units):
        fake_curve.buy("alice", UNIT, 5)
        calls = list(fake_units.calls)

        with pytest.raises(InsufficientBalance):
            fake_curve.sell("alice", UNIT, 5)

        assert fake_units.calls == calls
        assert fake_units.holdings[(UNIT, "alice")] == 5

    def test_failed_refund_remints_with_fakes(self, fake_units):
        rail = FakeSettlementRail({"alice": 1_000_000, "curve:x": 10_000}, fail_transfers_to="alice")
        curve = BondingCurve(
            CurveState("admin", UNIT, 100, 10, total_supply=5),
            rail, fake_units, "curve:x", verbose=False,
        )
        fake_units.holdings[(UNIT, "alice")] = 5

        with pytest.raises(RuntimeError, match="rail offline"):
            curve.sell("alice", UNIT, 5)

        assert fake_units.holdings[(UNIT, "alice")] == 5
        assert fake_units.calls == [('burn', UNIT, 'alice', 5), ('mint', UNIT, 'alice', 5)]
        assert curve.total_supply == 5

    def test_sell_event(self, market):
        _, _, curve = market
        curve.buy("alice", UNIT, 2)
        curve.buy("bob", UNIT, 2)
        curve.sell("bob", UNIT, 1)
        event = curve.events[-1]
        assert event.kind is CurveEventKind.SOLD
        assert event.data == {'caller': 'bob', 'amount': 1, 'price': 140, 'refund': 140}


# ============================================================================
# update_parameters
# ============================================================================

class TestUpdateParameters:

    def test_authority_updates(self, curve):
        curve.update_parameters("admin", 200, 20)
        assert curve.state.initial_price == 200
        assert curve.state.slope == 20
        assert curve.authority == "admin"

    def test_supply_untouched(self, curve):
        curve.buy("alice", UNIT, 3)
        curve.update_parameters("admin", 200, 20)
        assert curve.total_supply == 3
        assert curve.current_price() == 260

    def test_non_authority_rejected(self, curve):
        with pytest.raises(Unauthorized):
            curve.update_parameters("alice", 200, 20)
        assert curve.state.initial_price == 100
        assert curve.state.slope == 10

    def test_non_authority_rejected_before_parameter_check(self, curve):
        with pytest.raises(Unauthorized):
            curve.update_parameters("alice", 0, 0)

    @pytest.mark.parametrize("initial_price,slope", [(0, 10), (100, 0)])
    def test_zero_values_rejected(self, curve, initial_price, slope):
        with pytest.raises(InvalidParameters):
            curve.update_parameters("admin", initial_price, slope)
        assert curve.state.initial_price == 100
        assert curve.state.slope == 10

    def test_event_carries_old_and_new(self, curve):
        curve.update_parameters("admin", 200, 20)
        event = curve.events[-1]
        assert event.kind is CurveEventKind.PARAMETERS_UPDATED
        assert event.data == {
            'old_initial_price': 100, 'initial_price': 200,
            'old_slope': 10, 'slope': 20,
        }


# ============================================================================
# Snapshot
# ============================================================================

class TestSnapshot:

    def test_pool_info(self, curve):
        curve.buy("alice", UNIT, 5)
        snap = curve.snapshot()
        assert snap.address == curve.address
        assert snap.total_supply == 5
        assert snap.current_price == 150
        assert snap.reserve_integral == 625
        assert snap.custody_balance == 500

    def test_unpriceable_supply(self, fake_rail, fake_units):
        state = CurveState("admin", UNIT, 1, 2**40, total_supply=2**40)
        curve = BondingCurve(state, fake_rail, fake_units, "curve:x", verbose=False)
        assert curve.snapshot().current_price is None
