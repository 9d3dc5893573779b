"""
pricing.py - Linear Bonding-Curve Pricing

Pure functions over integers in the unsigned 64-bit range:

    unit_price(supply) = initial_price + supply * slope

Every intermediate is checked against U64_MAX and raises Overflow (or
Underflow for subtraction) instead of wrapping or saturating.

Provides:
- Checked arithmetic (checked_add, checked_sub, checked_mul)
- unit_price() and trade_total()
- quote_buy() / quote_sell(): trade outcomes without side effects
- reserve_integral(): area under the curve up to the current supply
- curve_points(): sampled (supply, price) arrays for charting
"""

from typing import Optional, Tuple

import numpy as np

from .core import (
    CurveState, TradeQuote, TradeSide,
    InvalidAmount, InvalidTokenMint, Overflow, Underflow,
    U64_MAX, require_u64,
)


# Charts always span at least this much supply.
MIN_CHART_SUPPLY = 3000

DEFAULT_CHART_POINTS = 100


# ============================================================================
# CHECKED ARITHMETIC
# ============================================================================

def checked_add(a: int, b: int) -> int:
    """a + b, raising Overflow above U64_MAX."""
    result = a + b
    if result > U64_MAX:
        raise Overflow(f"{a} + {b} exceeds u64")
    return result


def checked_sub(a: int, b: int) -> int:
    """a - b, raising Underflow below zero."""
    if b > a:
        raise Underflow(f"{a} - {b} is negative")
    return a - b


def checked_mul(a: int, b: int) -> int:
    """a * b, raising Overflow above U64_MAX."""
    result = a * b
    if result > U64_MAX:
        raise Overflow(f"{a} * {b} exceeds u64")
    return result


# ============================================================================
# PRICING
# ============================================================================

def unit_price(total_supply: int, initial_price: int, slope: int) -> int:
    """
    Price of one unit when total_supply units are outstanding.

    Non-decreasing in total_supply since slope > 0.

    Raises:
        Overflow: If total_supply * slope or the sum exceeds U64_MAX
    """
    return checked_add(initial_price, checked_mul(total_supply, slope))


def current_price(state: CurveState) -> int:
    """Unit price at the curve's current supply."""
    return unit_price(state.total_supply, state.initial_price, state.slope)


def trade_total(price: int, amount: int) -> int:
    """Settlement value for amount units at a flat price."""
    return checked_mul(price, amount)


def check_trade(state: CurveState, unit_id: str, amount: int) -> None:
    """Raise InvalidAmount or InvalidTokenMint for a malformed trade."""
    require_u64(amount, "amount", error=InvalidAmount)
    if unit_id != state.unit_id:
        raise InvalidTokenMint(f"curve governs {state.unit_id}, got {unit_id}")


def quote_buy(state: CurveState, amount: int, unit_id: Optional[str] = None) -> TradeQuote:
    """
    Price a buy of amount units without changing anything.

    The whole amount is priced at the supply before the trade.

    Raises:
        InvalidAmount: If amount is zero or above U64_MAX
        InvalidTokenMint: If unit_id is given and does not match the curve
        Overflow: If the price, the cost or the new supply overflows
    """
    check_trade(state, state.unit_id if unit_id is None else unit_id, amount)
    price = current_price(state)
    cost = trade_total(price, amount)
    supply_after = checked_add(state.total_supply, amount)
    return TradeQuote(
        side=TradeSide.BUY,
        amount=amount,
        price=price,
        total=cost,
        supply_before=state.total_supply,
        supply_after=supply_after,
    )


def quote_sell(state: CurveState, amount: int, unit_id: Optional[str] = None) -> TradeQuote:
    """
    Price a sell of amount units without changing anything.

    The refund uses the supply at the time of the sell, not the price the
    seller originally paid.

    Raises:
        InvalidAmount: If amount is zero or above U64_MAX
        InvalidTokenMint: If unit_id is given and does not match the curve
        Underflow: If amount exceeds the curve's total supply
        Overflow: If the price or the refund overflows
    """
    check_trade(state, state.unit_id if unit_id is None else unit_id, amount)
    supply_after = checked_sub(state.total_supply, amount)
    price = current_price(state)
    refund = trade_total(price, amount)
    return TradeQuote(
        side=TradeSide.SELL,
        amount=amount,
        price=price,
        total=refund,
        supply_before=state.total_supply,
        supply_after=supply_after,
    )


def reserve_integral(state: CurveState) -> int:
    """
    Area under the curve from zero to the current supply.

        initial_price * s + slope * s^2 / 2

    Unbounded Python integer; this is a display figure, not a u64 field.
    """
    s = state.total_supply
    return state.initial_price * s + state.slope * s * s // 2


def curve_points(
    initial_price: int,
    slope: int,
    current_supply: int = 0,
    points: int = DEFAULT_CHART_POINTS,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Sample the curve for charting.

    Supplies run evenly from 0 to max(MIN_CHART_SUPPLY, 2 * current_supply),
    so the current position always sits inside the chart.

    Args:
        initial_price: Price at zero supply
        slope: Price increase per unit
        current_supply: Supply to keep in view
        points: Number of intervals (points + 1 samples)

    Returns:
        (supplies, prices) as float64 arrays. Floats are for display only.
    """
    if points <= 0:
        raise ValueError(f"points must be positive, got {points}")
    if initial_price <= 0 or slope <= 0:
        raise ValueError("initial_price and slope must be positive")
    max_supply = max(MIN_CHART_SUPPLY, 2 * current_supply)
    supplies = np.linspace(0.0, float(max_supply), points + 1)
    prices = float(initial_price) + float(slope) * supplies
    return supplies, prices
