"""
bonding_curve - Linear Bonding-Curve Pricing Engine

Prices a unit as initial_price + total_supply * slope and lets holders buy
(mint) or sell (burn) against that price, with parameter updates gated to a
single authority.

Usage:
    from bonding_curve import (
        HostLedger, settlement_currency, token,
        LedgerSettlementRail, LedgerUnitLedger, CurveRegistry,
    )

    ledger = HostLedger("host")
    ledger.register_unit(settlement_currency("LAMPORTS", "Lamports"))
    ledger.register_unit(token("MEME", "Meme Token"))
    ledger.register_wallet("admin")
    ledger.register_wallet("alice")

    registry = CurveRegistry(
        LedgerSettlementRail(ledger, "LAMPORTS"),
        LedgerUnitLedger(ledger),
    )
    registry.initialize("admin", "MEME", initial_price=100, slope=10)

    receipt = registry.buy("alice", "MEME", 5)    # receipt.cost == 500
"""

# Core types
from .core import (
    CurveState,
    CurveSnapshot,
    CurveEvent,
    CurveEventKind,
    TokenAccount,
    TradeQuote,
    TradeReceipt,
    TradeSide,
    SettlementRail,
    UnitLedger,
    CurveError,
    Overflow,
    Underflow,
    InvalidParameters,
    InvalidAmount,
    InvalidTokenMint,
    InvalidTokenAccount,
    InsufficientTokens,
    Unauthorized,
    CurveAlreadyInitialized,
    CurveNotFound,
    U64_MAX,
    RECORD_SIZE,
    CURVE_SEED,
    CURVE_FORMAT_VERSION,
)

# Pricing
from .pricing import (
    checked_add,
    checked_sub,
    checked_mul,
    unit_price,
    current_price,
    trade_total,
    quote_buy,
    quote_sell,
    reserve_integral,
    curve_points,
)

# Curve
from .curve import BondingCurve

# Registry
from .registry import CurveRegistry, derive_curve_address

# Codec
from .codec import encode_state, decode_state

# Host ledger
from .ledger import (
    HostLedger,
    Move,
    PendingTransaction,
    Transaction,
    Unit,
    ExecuteResult,
    LedgerError,
    InsufficientBalance,
    BalanceConstraintViolation,
    UnitNotRegistered,
    WalletNotRegistered,
    build_transaction,
    settlement_currency,
    token,
    SYSTEM_WALLET,
)

# Collaborator adapters
from .rails import LedgerSettlementRail, LedgerUnitLedger

__all__ = [
    # Core
    'CurveState', 'CurveSnapshot', 'CurveEvent', 'CurveEventKind',
    'TokenAccount', 'TradeQuote', 'TradeReceipt', 'TradeSide',
    'SettlementRail', 'UnitLedger',
    'CurveError', 'Overflow', 'Underflow', 'InvalidParameters', 'InvalidAmount',
    'InvalidTokenMint', 'InvalidTokenAccount', 'InsufficientTokens', 'Unauthorized',
    'CurveAlreadyInitialized', 'CurveNotFound',
    'U64_MAX', 'RECORD_SIZE', 'CURVE_SEED', 'CURVE_FORMAT_VERSION',
    # Pricing
    'checked_add', 'checked_sub', 'checked_mul',
    'unit_price', 'current_price', 'trade_total',
    'quote_buy', 'quote_sell', 'reserve_integral', 'curve_points',
    # Curve
    'BondingCurve',
    # Registry
    'CurveRegistry', 'derive_curve_address',
    # Codec
    'encode_state', 'decode_state',
    # Host ledger
    'HostLedger', 'Move', 'PendingTransaction', 'Transaction', 'Unit', 'ExecuteResult',
    'LedgerError', 'InsufficientBalance', 'BalanceConstraintViolation',
    'UnitNotRegistered', 'WalletNotRegistered',
    'build_transaction', 'settlement_currency', 'token', 'SYSTEM_WALLET',
    # Adapters
    'LedgerSettlementRail', 'LedgerUnitLedger',
]

__version__ = '1.0.0'
