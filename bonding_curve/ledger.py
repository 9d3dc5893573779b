"""
ledger.py - In-Memory Host Ledger

The host platform the bonding curve runs against: wallets holding integer
balances of registered units, with issuance and redemption through
SYSTEM_WALLET.

Key responsibilities:
    - Executes batches of moves atomically (all moves succeed or all fail)
    - Validates registration and per-unit balance limits before any mutation
    - Keeps an audit log of every applied transaction
    - Exposes circulating supply and a double-entry conservation check

rails.py adapts this ledger to the SettlementRail and UnitLedger protocols.
"""

from __future__ import annotations
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Set, Tuple

from .core import U64_MAX


# ============================================================================
# CONSTANTS
# ============================================================================

# Reserved wallet for issuance and redemption.
# The system wallet is exempt from balance validation and can hold any balance.
SYSTEM_WALLET = "system"

UNIT_TYPE_SETTLEMENT = "SETTLEMENT"
UNIT_TYPE_TOKEN = "TOKEN"


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LedgerError(Exception):
    """Base exception for all host ledger errors."""
    pass


class InsufficientBalance(LedgerError):
    """Raised when a move would take a wallet below the unit's minimum balance."""
    pass


class BalanceConstraintViolation(LedgerError):
    """Raised when a move would take a wallet above the unit's maximum balance."""
    pass


class UnitNotRegistered(LedgerError):
    """Raised when operating on a unit that has not been registered."""
    pass


class WalletNotRegistered(LedgerError):
    """Raised when operating on a wallet that has not been registered."""
    pass


class ExecuteResult(Enum):
    """
    Outcome of a transaction execution attempt.

    APPLIED: Every move was validated and applied.
    REJECTED: Validation failed; nothing was applied.
    """
    APPLIED = "applied"
    REJECTED = "rejected"


# ============================================================================
# DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class Unit:
    """
    Definition of a unit held in the ledger.

    Attributes:
        symbol: Short identifier (e.g., "LAMPORTS", "MEME").
        name: Human-readable name.
        unit_type: SETTLEMENT or TOKEN.
        min_balance: Lowest balance any non-system wallet may hold.
        max_balance: Highest balance any non-system wallet may hold.
    """
    symbol: str
    name: str
    unit_type: str
    min_balance: int = 0
    max_balance: int = U64_MAX


@dataclass(frozen=True, slots=True)
class Move:
    """
    A single transfer of a positive integer quantity between two wallets.

    Attributes:
        quantity: Amount to transfer.
        unit_symbol: Unit being transferred.
        source: Wallet debited.
        dest: Wallet credited.
        memo: Why the move happened ("buy", "mint", ...).
    """
    quantity: int
    unit_symbol: str
    source: str
    dest: str
    memo: str

    def __post_init__(self):
        if not self.source or not self.source.strip():
            raise ValueError("Move source cannot be empty")
        if not self.dest or not self.dest.strip():
            raise ValueError("Move dest cannot be empty")
        if not self.unit_symbol or not self.unit_symbol.strip():
            raise ValueError("Move unit_symbol cannot be empty")
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise ValueError(f"Move quantity must be int, got {type(self.quantity)}")
        if self.quantity <= 0:
            raise ValueError(f"Move quantity must be positive, got {self.quantity}")
        if self.source == self.dest:
            raise ValueError("Source and dest must be different")

    def __repr__(self) -> str:
        return f"Move({self.quantity} {self.unit_symbol}: {self.source}→{self.dest})"


@dataclass(frozen=True, slots=True)
class PendingTransaction:
    """A batch of moves submitted for atomic execution."""
    moves: Tuple[Move, ...]
    memo: str = ""

    def is_empty(self) -> bool:
        return not self.moves


@dataclass(frozen=True, slots=True)
class Transaction:
    """
    An executed, immutable record of applied moves.

    Attributes:
        moves: Moves that were applied
        memo: Memo copied from the pending transaction
        exec_id: Unique execution identifier (ledger + sequence)
        ledger_name: Name of the ledger that executed this
        sequence_number: Monotonic position within the ledger
    """
    moves: Tuple[Move, ...]
    memo: str
    exec_id: str
    ledger_name: str
    sequence_number: int

    def __post_init__(self):
        if not self.moves:
            raise ValueError("Transaction must have moves")

    def __repr__(self) -> str:
        moves = ", ".join(repr(m) for m in self.moves)
        return f"Transaction({self.exec_id} {self.memo!r}: {moves})"


def build_transaction(moves: List[Move], memo: str = "") -> PendingTransaction:
    """Build a PendingTransaction from a list of moves."""
    return PendingTransaction(moves=tuple(moves), memo=memo)


# ============================================================================
# UNIT FACTORIES
# ============================================================================

def settlement_currency(symbol: str, name: str) -> Unit:
    """
    Create the settlement currency (e.g., lamports).

    Balances can never go negative, so custody cannot pay out more than it holds.
    """
    return Unit(symbol=symbol, name=name, unit_type=UNIT_TYPE_SETTLEMENT)


def token(symbol: str, name: str) -> Unit:
    """Create a fungible token unit, issued and redeemed through SYSTEM_WALLET."""
    return Unit(symbol=symbol, name=name, unit_type=UNIT_TYPE_TOKEN)


# ============================================================================
# LEDGER
# ============================================================================

class HostLedger:
    """
    Wallet ledger with full validation and audit trail.

    Design Principles:
        - Always validates: every move is checked against registration and
          balance limits before any balance changes.
        - Always logs: every applied transaction is recorded.

    Thread Safety:
        Not thread-safe. The host serializes calls.

    Example:
        ledger = HostLedger("main")
        ledger.register_unit(settlement_currency("LAMPORTS", "Lamports"))
        ledger.register_wallet("alice")
        ledger.register_wallet("bob")

        ledger.submit(build_transaction([
            Move(100, "LAMPORTS", "alice", "bob", "payment")
        ]))
    """

    def __init__(self, name: str, verbose: bool = True, test_mode: bool = False):
        """
        Create a ledger.

        Args:
            name: Ledger identifier
            verbose: Print each applied or rejected transaction (default: True)
            test_mode: Allow set_balance() calls (default: False)
        """
        self.name = name
        self.balances: Dict[str, Dict[str, int]] = {}
        self.units: Dict[str, Unit] = {}
        self.registered_wallets: Set[str] = set()
        self.transaction_log: List[Transaction] = []
        self.verbose = verbose
        self._test_mode = test_mode
        self._next_sequence: int = 0

        self.registered_wallets.add(SYSTEM_WALLET)
        self.balances[SYSTEM_WALLET] = defaultdict(int)

    # ========================================================================
    # READ-ONLY
    # ========================================================================

    def get_balance(self, wallet_id: str, unit_symbol: str) -> int:
        """
        Get the balance of a unit in a wallet.

        Raises:
            WalletNotRegistered: If wallet is not registered
            UnitNotRegistered: If unit is not registered
        """
        if wallet_id not in self.registered_wallets:
            raise WalletNotRegistered(f"Wallet {wallet_id} not registered")
        if unit_symbol not in self.units:
            raise UnitNotRegistered(f"Unit {unit_symbol} not registered")
        return self.balances[wallet_id].get(unit_symbol, 0)

    def get_positions(self, unit_symbol: str) -> Dict[str, int]:
        """All non-zero balances of a unit, keyed by wallet."""
        if unit_symbol not in self.units:
            raise UnitNotRegistered(f"Unit {unit_symbol} not registered")
        return {
            wallet: bals[unit_symbol]
            for wallet, bals in sorted(self.balances.items())
            if bals.get(unit_symbol, 0) != 0
        }

    def get_unit(self, symbol: str) -> Unit:
        if symbol not in self.units:
            raise UnitNotRegistered(f"Unit {symbol} not registered")
        return self.units[symbol]

    def list_wallets(self) -> Set[str]:
        return self.registered_wallets.copy()

    def is_registered(self, wallet_id: str) -> bool:
        return wallet_id in self.registered_wallets

    def circulating(self, unit_symbol: str) -> int:
        """
        Units held outside SYSTEM_WALLET.

        For a token this is everything minted and not yet burned.
        """
        if unit_symbol not in self.units:
            raise UnitNotRegistered(f"Unit {unit_symbol} not registered")
        return sum(
            self.balances[w].get(unit_symbol, 0)
            for w in sorted(self.registered_wallets)
            if w != SYSTEM_WALLET
        )

    def verify_double_entry(self) -> Dict[str, Any]:
        """
        Verify that every unit's balances sum to zero across all wallets.

        Issuance debits SYSTEM_WALLET, so the sum including the system wallet
        is always zero if nothing bypassed execute().

        Returns:
            Dict with keys:
            - 'valid': bool
            - 'supplies': Dict[str, int] circulating supply per unit
            - 'discrepancies': List[Dict] with unit and non-zero total
        """
        supplies = {}
        discrepancies = []
        for unit_symbol in sorted(self.units):
            total = sum(self.balances[w].get(unit_symbol, 0) for w in sorted(self.registered_wallets))
            supplies[unit_symbol] = self.circulating(unit_symbol)
            if total != 0:
                discrepancies.append({'unit': unit_symbol, 'total': total})
        return {
            'valid': len(discrepancies) == 0,
            'supplies': supplies,
            'discrepancies': discrepancies,
        }

    # ========================================================================
    # REGISTRATION (Mutating)
    # ========================================================================

    def register_wallet(self, wallet_id: str) -> str:
        """
        Register a new wallet.

        Raises:
            ValueError: If wallet is already registered
        """
        if wallet_id in self.registered_wallets:
            raise ValueError(f"Wallet {wallet_id} already registered")
        self.registered_wallets.add(wallet_id)
        self.balances[wallet_id] = defaultdict(int)
        return wallet_id

    def register_unit(self, unit: Unit) -> None:
        """
        Register a new unit.

        Raises:
            ValueError: If unit symbol is already registered
        """
        if unit.symbol in self.units:
            raise ValueError(f"Unit {unit.symbol} already registered")
        self.units[unit.symbol] = unit
        if self.verbose:
            print(f"📝 Registered: {unit.symbol} ({unit.name}) [{unit.unit_type}]")

    def set_balance(self, wallet_id: str, unit_symbol: str, quantity: int) -> None:
        """
        Set a wallet's balance directly, bypassing double-entry accounting.

        Only available in test mode.

        Raises:
            LedgerError: If called when test_mode is False
        """
        if not self._test_mode:
            raise LedgerError(
                "set_balance() is disabled in production mode. "
                "Use submit() to modify balances. "
                "Set test_mode=True when creating HostLedger for testing."
            )
        if wallet_id not in self.registered_wallets:
            raise WalletNotRegistered(f"Wallet {wallet_id} not registered")
        if unit_symbol not in self.units:
            raise UnitNotRegistered(f"Unit {unit_symbol} not registered")
        self.balances[wallet_id][unit_symbol] = quantity

    # ========================================================================
    # TRANSACTION EXECUTION (Mutating)
    # ========================================================================

    def submit(self, pending: PendingTransaction) -> Transaction:
        """
        Execute a PendingTransaction atomically, raising on rejection.

        Returns:
            The logged Transaction

        Raises:
            UnitNotRegistered, WalletNotRegistered: If a move names an unknown unit or wallet
            InsufficientBalance: If a wallet would fall below the unit's minimum
            BalanceConstraintViolation: If a wallet would exceed the unit's maximum
        """
        if pending.is_empty():
            raise ValueError("Cannot submit an empty transaction")
        try:
            self._validate_pending(pending)
        except LedgerError as e:
            if self.verbose:
                print(f"✗ REJECTED: {pending.memo or 'transaction'}: {e}")
            raise

        sequence = self._next_sequence
        self._next_sequence += 1
        tx = Transaction(
            moves=pending.moves,
            memo=pending.memo,
            exec_id=f"exec:{self.name}:{sequence:012d}",
            ledger_name=self.name,
            sequence_number=sequence,
        )
        self._execute_moves(tx.moves)
        self.transaction_log.append(tx)
        if self.verbose:
            print(f"✓ APPLIED: {tx!r}")
        return tx

    def execute(self, pending: PendingTransaction) -> ExecuteResult:
        """
        Execute a PendingTransaction atomically.

        All moves succeed together or all fail together.

        Returns:
            ExecuteResult.APPLIED if successful
            ExecuteResult.REJECTED if validation failed
        """
        if pending.is_empty():
            return ExecuteResult.APPLIED
        try:
            self.submit(pending)
        except LedgerError:
            return ExecuteResult.REJECTED
        return ExecuteResult.APPLIED

    def _validate_pending(self, pending: PendingTransaction) -> None:
        """
        Validate every move of a pending transaction.

        Checks registration, then nets all moves per (wallet, unit) and checks
        the resulting balances against the unit's limits.
        """
        for move in pending.moves:
            if move.unit_symbol not in self.units:
                raise UnitNotRegistered(f"unit not registered: {move.unit_symbol}")
            if not self.is_registered(move.source):
                raise WalletNotRegistered(f"wallet not registered: {move.source}")
            if not self.is_registered(move.dest):
                raise WalletNotRegistered(f"wallet not registered: {move.dest}")

        net: Dict[Tuple[str, str], int] = defaultdict(int)
        for move in pending.moves:
            net[(move.source, move.unit_symbol)] -= move.quantity
            net[(move.dest, move.unit_symbol)] += move.quantity

        # SYSTEM_WALLET is exempt: it issues and redeems
        for (wallet, unit_sym), delta in sorted(net.items()):
            if wallet == SYSTEM_WALLET:
                continue
            unit = self.units[unit_sym]
            current = self.balances[wallet][unit_sym]
            proposed = current + delta
            if proposed < unit.min_balance:
                raise InsufficientBalance(
                    f"{wallet} {unit_sym}: {current} available, {-delta} required"
                )
            if proposed > unit.max_balance:
                raise BalanceConstraintViolation(
                    f"{wallet} {unit_sym}: {proposed} > max {unit.max_balance}"
                )

    def _execute_moves(self, moves) -> None:
        for move in moves:
            self.balances[move.source][move.unit_symbol] -= move.quantity
            self.balances[move.dest][move.unit_symbol] += move.quantity

    # ========================================================================
    # LEDGER OPERATIONS
    # ========================================================================

    def clone(self) -> HostLedger:
        """
        Create an independent copy of this ledger.

        Modifications to the clone do not affect the original, and vice versa.
        """
        cloned = HostLedger.__new__(HostLedger)
        cloned.name = self.name
        cloned.verbose = self.verbose
        cloned._test_mode = self._test_mode
        cloned.units = dict(self.units)
        cloned.registered_wallets = self.registered_wallets.copy()
        cloned.transaction_log = list(self.transaction_log)
        cloned._next_sequence = self._next_sequence
        cloned.balances = {
            wallet: defaultdict(int, bals) for wallet, bals in self.balances.items()
        }
        return cloned
