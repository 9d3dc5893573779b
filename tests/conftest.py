"""
conftest.py - Shared pytest fixtures for bonding curve tests

Provides:
- A HostLedger-backed market (ledger, registry, curve)
- Fake collaborators for testing the curve in isolation
"""

import pytest

from bonding_curve import BondingCurve

from tests.fake_rails import FakeSettlementRail, FakeUnitLedger
from tests.market import AUTHORITY, UNIT, build_market


# =============================================================================
# HOST LEDGER FIXTURES
# =============================================================================

@pytest.fixture
def market():
    """(ledger, registry, curve) with initial_price=100, slope=10 and funded alice/bob."""
    return build_market()


@pytest.fixture
def ledger(market):
    return market[0]


@pytest.fixture
def registry(market):
    return market[1]


@pytest.fixture
def curve(market):
    return market[2]


# =============================================================================
# FAKE COLLABORATOR FIXTURES
# =============================================================================

@pytest.fixture
def fake_rail():
    return FakeSettlementRail({"alice": 1_000_000, "bob": 1_000_000})


@pytest.fixture
def fake_units():
    return FakeUnitLedger()


@pytest.fixture
def fake_curve(fake_rail, fake_units):
    """Curve on MEME (100 + 10 * supply) wired to fake collaborators."""
    return BondingCurve.initialize(
        AUTHORITY, UNIT, initial_price=100, slope=10,
        settlement=fake_rail, units=fake_units,
        address="curve:fake", verbose=False,
    )
