"""
Atomicity Conformance Tests

INVARIANT: An operation that raises leaves the curve record, every
settlement balance and every unit holding exactly as they were.
"""

import pytest
from hypothesis import example, given, settings, HealthCheck
from hypothesis import strategies as st

from bonding_curve import (
    BondingCurve, CurveError, CurveState, LedgerError,
)

from tests.fake_rails import FakeSettlementRail, FakeUnitLedger
from tests.market import SETTLEMENT, UNIT, build_market


def _observe(ledger, curve):
    wallets = ("admin", "alice", "bob", curve.address)
    return (
        curve.state,
        tuple(ledger.get_balance(w, SETTLEMENT) for w in wallets),
        tuple(ledger.get_balance(w, UNIT) for w in wallets),
        len(curve.events),
    )


class TestFailedTradesChangeNothing:

    @settings(max_examples=40, suppress_health_check=[HealthCheck.too_slow])
    @given(
        held=st.integers(min_value=0, max_value=20),
        amount=st.integers(min_value=0, max_value=40),
        funds=st.integers(min_value=0, max_value=5000),
    )
    @example(held=0, amount=0, funds=0)
    @example(held=5, amount=5, funds=500)
    def test_buy_then_oversell(self, held, amount, funds):
        ledger, _, curve = build_market(funding={"alice": funds, "bob": 10**9})
        if held:
            curve.buy("bob", UNIT, held)

        before = _observe(ledger, curve)
        for op in (curve.buy, curve.sell):
            try:
                op("alice", UNIT, amount)
            except (CurveError, LedgerError):
                assert _observe(ledger, curve) == before
            else:
                before = _observe(ledger, curve)

    @pytest.mark.parametrize("fail_mint", [True, False])
    def test_collaborator_failure(self, fail_mint):
        rail = FakeSettlementRail(
            {"alice": 1000, "curve:x": 1000},
            fail_transfers_to=None if fail_mint else "alice",
        )
        units = FakeUnitLedger(fail_mint=fail_mint)
        units.holdings[(UNIT, "alice")] = 3
        curve = BondingCurve(CurveState("admin", UNIT, 10, 1, total_supply=3), rail, units, "curve:x", verbose=False)

        op = curve.buy if fail_mint else curve.sell
        with pytest.raises(RuntimeError):
            op("alice", UNIT, 2)

        assert curve.total_supply == 3
        assert rail.balances == {"alice": 1000, "curve:x": 1000}
        assert units.holdings[(UNIT, "alice")] == 3
        assert curve.events == []
