"""
Core types for the bonding-curve engine.

This module provides the foundational data structures and protocols:
1. Protocols: SettlementRail and UnitLedger, the two host collaborators
2. Immutable data structures: CurveState, TokenAccount, TradeQuote, TradeReceipt, CurveEvent
3. Exceptions: CurveError and the error kinds raised by curve operations
4. Constants: integer limits, record layout, address seed

Nothing in this module mutates state. The BondingCurve in curve.py is the only
object that replaces a CurveState.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Protocol, runtime_checkable


# ============================================================================
# CONSTANTS
# ============================================================================

# Unsigned 64-bit ceiling for prices, slopes, supplies and trade totals.
U64_MAX = 2**64 - 1

# Unsigned 8-bit ceiling for the record format version.
U8_MAX = 2**8 - 1

# Identities (authority, unit id) are stored in 32 bytes.
IDENTITY_BYTES = 32

# authority + unit_id + initial_price + slope + total_supply + version
RECORD_SIZE = IDENTITY_BYTES + IDENTITY_BYTES + 8 + 8 + 8 + 1

# Seed mixed into custody address derivation.
CURVE_SEED = b"bonding_curve"

# Current record format version (stored in the trailing byte).
CURVE_FORMAT_VERSION = 1


# ============================================================================
# EXCEPTIONS
# ============================================================================

class CurveError(Exception):
    """Base exception for all bonding-curve errors."""
    message = "Bonding curve error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)


class Overflow(CurveError):
    """Raised when checked arithmetic exceeds the unsigned 64-bit range."""
    message = "Operation would result in overflow"


class Underflow(CurveError):
    """Raised when a subtraction would take the supply below zero."""
    message = "Operation would result in underflow"


class InvalidParameters(CurveError):
    """Raised when an initial price or slope is zero or out of range."""
    message = "Invalid parameters provided"


class InvalidAmount(CurveError):
    """Raised when a trade amount is zero or out of range."""
    message = "Amount must be greater than zero"


class InvalidTokenMint(CurveError):
    """Raised when a trade names a unit the curve does not govern."""
    message = "Unit does not match the curve"


class InvalidTokenAccount(CurveError):
    """Raised when a presented holding has the wrong owner or unit."""
    message = "Invalid token account"


class InsufficientTokens(CurveError):
    """Raised when a sell amount exceeds the presented holding."""
    message = "Insufficient tokens in account"


class Unauthorized(CurveError):
    """Raised when anyone but the authority tries to update parameters."""
    message = "Unauthorized access"


class CurveAlreadyInitialized(CurveError):
    """Raised when a second curve is initialized for the same unit."""
    message = "Curve already initialized for this unit"


class CurveNotFound(CurveError):
    """Raised when no curve governs the requested unit or address."""
    message = "No curve found"


def require_u64(value: Any, name: str, error: type = InvalidParameters, minimum: int = 1) -> int:
    """
    Check that value is an int within minimum..U64_MAX.

    Raises:
        TypeError: If value is not an int (bool is rejected too)
        error: If value is outside the range
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be int, got {type(value).__name__}")
    if value < minimum or value > U64_MAX:
        raise error(f"{name} must be in {minimum}..{U64_MAX}, got {value}")
    return value


def require_identity(value: Any, name: str) -> str:
    """Check that value is a non-empty identity fitting in IDENTITY_BYTES."""
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{name} cannot be empty")
    if len(value.encode("utf-8")) > IDENTITY_BYTES:
        raise ValueError(f"{name} exceeds {IDENTITY_BYTES} bytes: {value!r}")
    return value


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class SettlementRail(Protocol):
    """
    Moves settlement value between two parties.

    Implementations raise an exception (InsufficientBalance for the host
    ledger) when the source cannot cover the amount; a failed transfer
    changes nothing.
    """

    def transfer(self, source: str, dest: str, amount: int) -> None:
        ...

    def balance_of(self, holder: str) -> int:
        """Return the settlement balance held by holder (0 if none)."""
        ...

    def open_account(self, address: str) -> None:
        """Make address able to hold settlement value. Idempotent."""
        ...


@runtime_checkable
class UnitLedger(Protocol):
    """
    Mints and burns the traded unit.

    burn() raises when the holder's balance is short; a failed call changes nothing.
    """

    def mint(self, unit_id: str, to: str, amount: int) -> None:
        ...

    def burn(self, unit_id: str, holder: str, amount: int) -> None:
        ...

    def account_of(self, unit_id: str, holder: str) -> 'TokenAccount':
        """Return the holding of unit_id owned by holder."""
        ...


# ============================================================================
# ENUMS
# ============================================================================

class TradeSide(Enum):
    BUY = "buy"
    SELL = "sell"


class CurveEventKind(Enum):
    """
    Informational events emitted on each curve state transition.

    Events are an observability side channel and never drive control flow.
    """
    INITIALIZED = "initialized"
    BOUGHT = "bought"
    SOLD = "sold"
    PARAMETERS_UPDATED = "parameters_updated"


# ============================================================================
# CORE DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class CurveState:
    """
    The persisted curve record: pricing parameters plus outstanding supply.

    Attributes:
        authority: Sole identity allowed to change initial_price and slope.
        unit_id: Identity of the unit this curve governs.
        initial_price: Price of one unit when total_supply is zero.
        slope: Price increase per outstanding unit.
        total_supply: Units outstanding through this curve.
        version: Record format version (one byte).

    Instances are immutable; the curve commits a change by replacing the
    whole record.
    """
    authority: str
    unit_id: str
    initial_price: int
    slope: int
    total_supply: int = 0
    version: int = CURVE_FORMAT_VERSION

    def __post_init__(self):
        require_identity(self.authority, "authority")
        require_identity(self.unit_id, "unit_id")
        require_u64(self.initial_price, "initial_price")
        require_u64(self.slope, "slope")
        require_u64(self.total_supply, "total_supply", error=Overflow, minimum=0)
        if isinstance(self.version, bool) or not isinstance(self.version, int):
            raise TypeError(f"version must be int, got {type(self.version).__name__}")
        if not 0 <= self.version <= U8_MAX:
            raise ValueError(f"version must fit in one byte, got {self.version}")

    def __repr__(self) -> str:
        return (f"CurveState({self.unit_id}: p0={self.initial_price}, "
                f"slope={self.slope}, supply={self.total_supply})")


@dataclass(frozen=True, slots=True)
class TokenAccount:
    """A holding of one unit presented by a seller."""
    owner: str
    unit_id: str
    balance: int


@dataclass(frozen=True, slots=True)
class TradeQuote:
    """
    Outcome of a trade computed without side effects.

    Attributes:
        side: BUY or SELL
        amount: Units traded
        price: Unit price at supply_before
        total: price * amount (cost for a buy, refund for a sell)
        supply_before: Curve supply when the trade is priced
        supply_after: Curve supply once the trade commits
    """
    side: TradeSide
    amount: int
    price: int
    total: int
    supply_before: int
    supply_after: int


@dataclass(frozen=True, slots=True)
class TradeReceipt:
    """Record of a committed trade, returned by buy() and sell()."""
    side: TradeSide
    caller: str
    unit_id: str
    amount: int
    price: int
    total: int
    supply_before: int
    supply_after: int

    @property
    def cost(self) -> int:
        """Settlement value paid by the buyer."""
        if self.side is not TradeSide.BUY:
            raise AttributeError("cost is only defined for buys")
        return self.total

    @property
    def refund(self) -> int:
        """Settlement value paid to the seller."""
        if self.side is not TradeSide.SELL:
            raise AttributeError("refund is only defined for sells")
        return self.total

    def __repr__(self) -> str:
        return (f"TradeReceipt({self.side.value} {self.amount} {self.unit_id} "
                f"@ {self.price} = {self.total}, {self.caller})")


@dataclass(frozen=True, slots=True)
class CurveEvent:
    """
    Informational record of a curve state transition.

    Attributes:
        sequence: Monotonic position within the curve's event log
        kind: What happened
        unit_id: The curve's unit
        data: Event fields (amounts, prices, old/new parameters)
    """
    sequence: int
    kind: CurveEventKind
    unit_id: str
    data: Dict[str, Any] = field(default_factory=dict)

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v}" for k, v in self.data.items())
        return f"CurveEvent(#{self.sequence} {self.kind.value} {self.unit_id}: {fields})"


@dataclass(frozen=True, slots=True)
class CurveSnapshot:
    """
    Read-only view of a curve for display.

    current_price is None when pricing the current supply would overflow.
    """
    address: str
    authority: str
    unit_id: str
    initial_price: int
    slope: int
    total_supply: int
    current_price: Optional[int]
    reserve_integral: int
    custody_balance: int
