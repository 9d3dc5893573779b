"""
registry.py - One Curve per Unit, Located by a Derived Address

The host platform addresses each curve by an account derived from the unit
it governs. CurveRegistry plays that role in process: it derives the custody
address, refuses a second curve for the same unit, and dispatches trades to
the curve governing the named unit.
"""

from __future__ import annotations
import hashlib
from typing import Dict, Iterator, List

from .codec import decode_state, encode_state
from .core import (
    CurveState, SettlementRail, TradeReceipt, UnitLedger,
    CurveAlreadyInitialized, CurveNotFound, InvalidTokenMint,
    CURVE_SEED, require_identity,
)
from .curve import BondingCurve


ADDRESS_PREFIX = "curve:"

# Hex characters of the digest kept in an address.
ADDRESS_HEX_CHARS = 40


def derive_curve_address(unit_id: str) -> str:
    """
    Deterministic custody address of the curve governing unit_id.

    Same unit, same address; different units, different addresses.
    """
    require_identity(unit_id, "unit_id")
    digest = hashlib.sha256(CURVE_SEED + unit_id.encode("utf-8")).hexdigest()
    return ADDRESS_PREFIX + digest[:ADDRESS_HEX_CHARS]


class CurveRegistry:
    """
    All curves running against one settlement rail and unit ledger.

    Example:
        registry = CurveRegistry(settlement, units)
        registry.initialize("admin", "MEME", initial_price=100, slope=10)
        registry.buy("alice", "MEME", 5)
    """

    def __init__(self, settlement: SettlementRail, units: UnitLedger, verbose: bool = True):
        self.settlement = settlement
        self.units = units
        self.verbose = verbose
        self._curves: Dict[str, BondingCurve] = {}

    def __contains__(self, unit_id: str) -> bool:
        return unit_id in self._curves

    def __len__(self) -> int:
        return len(self._curves)

    def __iter__(self) -> Iterator[BondingCurve]:
        return iter(self.list_curves())

    def address_for(self, unit_id: str) -> str:
        return derive_curve_address(unit_id)

    def list_curves(self) -> List[BondingCurve]:
        return [self._curves[u] for u in sorted(self._curves)]

    def get(self, unit_id: str) -> BondingCurve:
        try:
            return self._curves[unit_id]
        except KeyError:
            raise CurveNotFound(f"no curve for unit {unit_id}") from None

    def get_by_address(self, address: str) -> BondingCurve:
        for curve in self._curves.values():
            if curve.address == address:
                return curve
        raise CurveNotFound(f"no curve at {address}")

    def initialize(self, authority: str, unit_id: str, initial_price: int, slope: int) -> BondingCurve:
        """
        Create the curve for unit_id and open its custody account.

        Raises:
            CurveAlreadyInitialized: If unit_id already has a curve
            InvalidParameters: If initial_price or slope is zero or above U64_MAX
        """
        if unit_id in self._curves:
            raise CurveAlreadyInitialized(f"curve for {unit_id} already exists")
        address = derive_curve_address(unit_id)
        # Validate parameters before touching the rail
        CurveState(authority=authority, unit_id=unit_id, initial_price=initial_price, slope=slope)
        self.settlement.open_account(address)
        curve = BondingCurve.initialize(
            authority, unit_id, initial_price, slope,
            settlement=self.settlement,
            units=self.units,
            address=address,
            verbose=self.verbose,
        )
        self._curves[unit_id] = curve
        return curve

    # ========================================================================
    # DISPATCH
    # ========================================================================

    def _curve_for_trade(self, unit_id: str) -> BondingCurve:
        if unit_id not in self._curves:
            raise InvalidTokenMint(f"no curve governs unit {unit_id}")
        return self._curves[unit_id]

    def buy(self, caller: str, unit_id: str, amount: int) -> TradeReceipt:
        return self._curve_for_trade(unit_id).buy(caller, unit_id, amount)

    def sell(self, caller: str, unit_id: str, amount: int) -> TradeReceipt:
        return self._curve_for_trade(unit_id).sell(caller, unit_id, amount)

    def update_parameters(self, caller: str, unit_id: str, initial_price: int, slope: int) -> None:
        self.get(unit_id).update_parameters(caller, initial_price, slope)

    # ========================================================================
    # PERSISTENCE
    # ========================================================================

    def export_records(self) -> Dict[str, bytes]:
        """Encoded record of every curve, keyed by custody address."""
        return {curve.address: encode_state(curve.state) for curve in self.list_curves()}

    def load_record(self, data: bytes) -> BondingCurve:
        """
        Restore a curve from an encoded record.

        No INITIALIZED event is emitted: the curve already existed.

        Raises:
            CurveAlreadyInitialized: If the unit already has a curve
            ValueError, InvalidParameters: If the record is malformed
        """
        state = decode_state(data)
        if state.unit_id in self._curves:
            raise CurveAlreadyInitialized(f"curve for {state.unit_id} already exists")
        address = derive_curve_address(state.unit_id)
        self.settlement.open_account(address)
        curve = BondingCurve(state, self.settlement, self.units, address, verbose=self.verbose)
        self._curves[state.unit_id] = curve
        return curve
