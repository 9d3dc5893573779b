"""
curve.py - The Bonding Curve

BondingCurve owns one CurveState and is the only object that replaces it.
It prices trades with pricing.py, moves settlement value through a
SettlementRail, mints and burns through a UnitLedger, and commits the new
supply last.

Every operation applies all of its effects or none:
    1. Preconditions and checked arithmetic run before any external call.
    2. If a later external call fails, the earlier one is reversed.
    3. The local commit happens only after both external calls succeed.

Example:
    curve = BondingCurve.initialize(
        "admin", "MEME", initial_price=100, slope=10,
        settlement=settlement, units=units, address="curve:meme",
    )
    receipt = curve.buy("alice", "MEME", 5)    # price 100, cost 500
    receipt = curve.sell("alice", "MEME", 5)   # price 150, refund 750
"""

from __future__ import annotations
from dataclasses import replace
from typing import Any, List, Optional

from .core import (
    CurveEvent, CurveEventKind, CurveSnapshot, CurveState,
    SettlementRail, TokenAccount, TradeQuote, TradeReceipt, UnitLedger,
    InvalidTokenAccount, InsufficientTokens, Overflow, Unauthorized,
    require_u64,
)
from .ledger import InsufficientBalance
from .pricing import check_trade, current_price, quote_buy, quote_sell, reserve_integral


class BondingCurve:
    """
    A linear bonding curve over one unit.

    Thread Safety:
        Not thread-safe. The host serializes all calls against one curve.
    """

    def __init__(
        self,
        state: CurveState,
        settlement: SettlementRail,
        units: UnitLedger,
        address: str,
        verbose: bool = True,
    ):
        """
        Wrap an existing curve record.

        Use initialize() to create a new curve; this constructor also serves
        records loaded from storage.

        Args:
            state: The curve record
            settlement: Rail moving settlement value
            units: Ledger minting and burning the unit
            address: Custody account of this curve on the settlement rail
            verbose: Print each state transition (default: True)
        """
        self._state = state
        self.settlement = settlement
        self.units = units
        self.address = address
        self.verbose = verbose
        self.events: List[CurveEvent] = []

    @classmethod
    def initialize(
        cls,
        authority: str,
        unit_id: str,
        initial_price: int,
        slope: int,
        settlement: SettlementRail,
        units: UnitLedger,
        address: str,
        verbose: bool = True,
    ) -> BondingCurve:
        """
        Create a curve with zero supply.

        Raises:
            InvalidParameters: If initial_price or slope is zero or above U64_MAX
        """
        state = CurveState(
            authority=authority,
            unit_id=unit_id,
            initial_price=initial_price,
            slope=slope,
        )
        curve = cls(state, settlement, units, address, verbose=verbose)
        curve._emit(
            CurveEventKind.INITIALIZED,
            authority=authority,
            initial_price=initial_price,
            slope=slope,
        )
        return curve

    # ========================================================================
    # READ-ONLY
    # ========================================================================

    @property
    def state(self) -> CurveState:
        return self._state

    @property
    def authority(self) -> str:
        return self._state.authority

    @property
    def unit_id(self) -> str:
        return self._state.unit_id

    @property
    def total_supply(self) -> int:
        return self._state.total_supply

    def current_price(self) -> int:
        """Unit price at the current supply. Raises Overflow if it does not fit in u64."""
        return current_price(self._state)

    def snapshot(self) -> CurveSnapshot:
        """Summary of the curve for display (pool info)."""
        state = self._state
        try:
            price: Optional[int] = current_price(state)
        except Overflow:
            price = None
        return CurveSnapshot(
            address=self.address,
            authority=state.authority,
            unit_id=state.unit_id,
            initial_price=state.initial_price,
            slope=state.slope,
            total_supply=state.total_supply,
            current_price=price,
            reserve_integral=reserve_integral(state),
            custody_balance=self.settlement.balance_of(self.address),
        )

    # ========================================================================
    # TRADES (Mutating)
    # ========================================================================

    def buy(self, caller: str, unit_id: str, amount: int) -> TradeReceipt:
        """
        Buy amount units at the price of the current supply.

        The caller pays price * amount into custody and receives freshly
        minted units.

        Raises:
            InvalidAmount: If amount is zero or above U64_MAX
            InvalidTokenMint: If unit_id is not this curve's unit
            Overflow: If the price, the cost or the new supply overflows
            Whatever the rail or unit ledger raises; nothing is changed
        """
        quote = quote_buy(self._state, amount, unit_id)

        self.settlement.transfer(caller, self.address, quote.total)
        try:
            self.units.mint(unit_id, caller, amount)
        except Exception:
            self.settlement.transfer(self.address, caller, quote.total)
            raise

        self._state = replace(self._state, total_supply=quote.supply_after)
        self._emit(CurveEventKind.BOUGHT, caller=caller, amount=amount,
                   price=quote.price, cost=quote.total)
        return self._receipt(caller, quote)

    def sell(
        self,
        caller: str,
        unit_id: str,
        amount: int,
        account: Optional[TokenAccount] = None,
    ) -> TradeReceipt:
        """
        Sell amount units back at the price of the current supply.

        The refund is priced at the supply when sell() is called, not at the
        price the caller paid. Buying then immediately selling therefore
        returns more than it cost whenever slope > 0.

        Args:
            caller: Seller identity
            unit_id: Unit being sold
            amount: Units to sell
            account: Holding presented by the seller; only its owner and unit
                are checked, the balance is read from the unit ledger

        Raises:
            InvalidAmount: If amount is zero or above U64_MAX
            InvalidTokenMint: If unit_id is not this curve's unit
            InvalidTokenAccount: If account is not caller's holding of this unit
            InsufficientTokens: If caller holds fewer than amount units
            Underflow: If amount exceeds the curve's total supply
            Overflow: If the price or the refund overflows
            InsufficientBalance: If custody holds less than the refund
            Whatever the rail or unit ledger raises; nothing is changed
        """
        check_trade(self._state, unit_id, amount)
        self._check_account(caller, amount, account)
        quote = quote_sell(self._state, amount, unit_id)
        self._check_custody(quote.total)

        self.units.burn(unit_id, caller, amount)
        try:
            self.settlement.transfer(self.address, caller, quote.total)
        except Exception:
            self.units.mint(unit_id, caller, amount)
            raise

        self._state = replace(self._state, total_supply=quote.supply_after)
        self._emit(CurveEventKind.SOLD, caller=caller, amount=amount,
                   price=quote.price, refund=quote.total)
        return self._receipt(caller, quote)

    # ========================================================================
    # ACCESS CONTROL (Mutating)
    # ========================================================================

    def update_parameters(self, caller: str, initial_price: int, slope: int) -> None:
        """
        Replace initial_price and slope. Only the authority may call this.

        Supply is untouched; existing holders are priced on the new curve
        from now on with no retroactive settlement.

        Raises:
            Unauthorized: If caller is not the authority
            InvalidParameters: If either value is zero or above U64_MAX
        """
        old = self._state
        if caller != old.authority:
            raise Unauthorized(f"{caller} is not the authority of {old.unit_id}")
        require_u64(initial_price, "initial_price")
        require_u64(slope, "slope")

        self._state = replace(old, initial_price=initial_price, slope=slope)
        self._emit(
            CurveEventKind.PARAMETERS_UPDATED,
            old_initial_price=old.initial_price,
            initial_price=initial_price,
            old_slope=old.slope,
            slope=slope,
        )

    # ========================================================================
    # INTERNALS
    # ========================================================================

    def _check_account(self, caller: str, amount: int, account: Optional[TokenAccount]) -> None:
        if account is not None and (account.owner != caller or account.unit_id != self._state.unit_id):
            raise InvalidTokenAccount(
                f"account of {account.owner} for {account.unit_id} presented by {caller}"
            )
        # Holdings come from the unit ledger, never from the presented account
        held = self.units.account_of(self._state.unit_id, caller).balance
        if held < amount:
            raise InsufficientTokens(f"{caller} holds {held}, selling {amount}")

    def _check_custody(self, refund: int) -> None:
        available = self.settlement.balance_of(self.address)
        if available < refund:
            raise InsufficientBalance(f"{self.address}: {available} available, {refund} required")

    def _receipt(self, caller: str, quote: TradeQuote) -> TradeReceipt:
        return TradeReceipt(
            side=quote.side,
            caller=caller,
            unit_id=self._state.unit_id,
            amount=quote.amount,
            price=quote.price,
            total=quote.total,
            supply_before=quote.supply_before,
            supply_after=quote.supply_after,
        )

    def _emit(self, kind: CurveEventKind, **data: Any) -> None:
        event = CurveEvent(
            sequence=len(self.events),
            kind=kind,
            unit_id=self._state.unit_id,
            data=data,
        )
        self.events.append(event)
        if self.verbose:
            print(f"✓ {kind.name}: {event!r}")

    def __repr__(self) -> str:
        return f"BondingCurve({self.address}, {self._state!r})"
