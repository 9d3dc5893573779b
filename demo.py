#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Learn the Bonding Curve Step by Step

Each step builds on the previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3: Setup         - Host ledger, units, wallets, a curve with a custody account
  4-6: Trading       - Buying, selling, rejected trades that change nothing
  7-8: Administration - Parameter updates, persisting and restoring curves
  9:   The Asymmetry  - Why buying then selling returns more than it cost

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass, replace
import sys

from bonding_curve import (
    HostLedger, Move, SYSTEM_WALLET,
    build_transaction, settlement_currency, token,
    LedgerSettlementRail, LedgerUnitLedger, CurveRegistry,
    CurveError, LedgerError,
    quote_buy, quote_sell, curve_points,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    settlement: str = "LAMPORTS"
    unit: str = "MEME"

    initial_price: int = 100
    slope: int = 10

    alice_funding: int = 1_000_000
    bob_funding: int = 1_000_000


CONFIG = DemoConfig()

QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    print(f"\n--- {text} ---\n")


def show_balances(ledger: HostLedger, registry: CurveRegistry):
    curve = registry.get(CONFIG.unit)
    for wallet in ("alice", "bob", curve.address):
        cash = ledger.get_balance(wallet, CONFIG.settlement)
        units = ledger.get_balance(wallet, CONFIG.unit)
        print(f"  {wallet:48s} {cash:>12,} {CONFIG.settlement}  {units:>4} {CONFIG.unit}")
    print(f"  supply={curve.total_supply}  price={curve.current_price()}")


# ============================================================================
# SETUP (Steps 1-3)
# ============================================================================

def step_01_host_ledger():
    step_header(1, "The Host Ledger",
        "The curve runs against a ledger that holds settlement value and units.")

    print(">>> ledger = HostLedger('host')")
    ledger = HostLedger("host", verbose=True)
    ledger.register_unit(settlement_currency(CONFIG.settlement, "Lamports"))
    ledger.register_unit(token(CONFIG.unit, "Meme Token"))
    for wallet in ("admin", "alice", "bob"):
        ledger.register_wallet(wallet)

    section_header("Funding traders through SYSTEM_WALLET")
    ledger.submit(build_transaction([
        Move(CONFIG.alice_funding, CONFIG.settlement, SYSTEM_WALLET, "alice", "funding"),
        Move(CONFIG.bob_funding, CONFIG.settlement, SYSTEM_WALLET, "bob", "funding"),
    ], memo="funding"))

    wait_for_enter()
    return ledger


def step_02_registry(ledger: HostLedger):
    step_header(2, "The Curve Registry",
        "One curve per unit, each with a custody address derived from the unit.")

    registry = CurveRegistry(
        LedgerSettlementRail(ledger, CONFIG.settlement),
        LedgerUnitLedger(ledger),
    )
    print(f">>> registry.address_for({CONFIG.unit!r})")
    print(f"    {registry.address_for(CONFIG.unit)}")

    wait_for_enter()
    return registry


def step_03_initialize(registry: CurveRegistry):
    step_header(3, "Initializing a Curve",
        "price(supply) = initial_price + supply * slope")

    curve = registry.initialize("admin", CONFIG.unit, CONFIG.initial_price, CONFIG.slope)

    section_header("The curve over its first few thousand units")
    supplies, prices = curve_points(CONFIG.initial_price, CONFIG.slope, points=5)
    for s, p in zip(supplies, prices):
        print(f"  supply {s:>8.0f}  price {p:>10.0f}")

    wait_for_enter()
    return curve


# ============================================================================
# TRADING (Steps 4-6)
# ============================================================================

def step_04_buy(ledger: HostLedger, registry: CurveRegistry):
    step_header(4, "Buying",
        "A buy pays price(supply) * amount and mints fresh units.")

    receipt = registry.buy("alice", CONFIG.unit, 5)
    print(f"\n{receipt!r}")
    receipt = registry.buy("bob", CONFIG.unit, 5)
    print(f"{receipt!r}")
    show_balances(ledger, registry)

    wait_for_enter()


def step_05_sell(ledger: HostLedger, registry: CurveRegistry):
    step_header(5, "Selling",
        "A sell burns units and refunds price(supply) * amount from custody.")

    receipt = registry.sell("bob", CONFIG.unit, 2)
    print(f"\n{receipt!r}")
    show_balances(ledger, registry)

    wait_for_enter()


def step_06_rejections(ledger: HostLedger, registry: CurveRegistry):
    step_header(6, "Rejected Trades",
        "A trade that fails leaves every balance and the supply untouched.")

    for description, call in [
        ("sell more than held", lambda: registry.sell("alice", CONFIG.unit, 50)),
        ("buy zero", lambda: registry.buy("alice", CONFIG.unit, 0)),
        ("buy an unknown unit", lambda: registry.buy("alice", "DOGE", 1)),
    ]:
        try:
            call()
        except (CurveError, LedgerError) as e:
            print(f"  ✗ {description}: {type(e).__name__}: {e}")
    show_balances(ledger, registry)

    wait_for_enter()


# ============================================================================
# ADMINISTRATION (Steps 7-8)
# ============================================================================

def step_07_update(registry: CurveRegistry):
    step_header(7, "Updating Parameters",
        "Only the authority may change initial_price and slope.")

    try:
        registry.update_parameters("alice", CONFIG.unit, 1, 1)
    except CurveError as e:
        print(f"  ✗ alice: {type(e).__name__}: {e}")
    registry.update_parameters("admin", CONFIG.unit, 120, 10)

    wait_for_enter()


def step_08_persistence(ledger: HostLedger, registry: CurveRegistry):
    step_header(8, "Persistence",
        "Each curve is an 89-byte record that restores to the same state.")

    records = registry.export_records()
    for address, data in records.items():
        print(f"  {address}: {data.hex()}")

    restored = CurveRegistry(
        LedgerSettlementRail(ledger, CONFIG.settlement), LedgerUnitLedger(ledger), verbose=False,
    )
    for data in records.values():
        restored.load_record(data)
    print(f"\n  restored: {restored.get(CONFIG.unit).state!r}")

    wait_for_enter()


# ============================================================================
# THE ASYMMETRY (Step 9)
# ============================================================================

def step_09_asymmetry(registry: CurveRegistry):
    step_header(9, "The Buy/Sell Asymmetry",
        "Buys are priced before supply rises, sells at the supply they face.")

    state = registry.get(CONFIG.unit).state
    buy = quote_buy(state, 10)
    print(f"  buy 10 now:        cost   {buy.total:,}")

    state_after = replace(state, total_supply=buy.supply_after)
    sell = quote_sell(state_after, 10)
    print(f"  then sell 10:      refund {sell.total:,}")
    print(f"  profit:            {sell.total - buy.total:,} (amount^2 * slope)")

    print("""
    Whoever buys and sells first is paid out of custody, which holds what
    every later buyer paid. The last sellers find custody short and their
    sells are rejected.
    """)


def main():
    print("\nBONDING CURVE TUTORIAL\n")
    ledger = step_01_host_ledger()
    registry = step_02_registry(ledger)
    step_03_initialize(registry)
    step_04_buy(ledger, registry)
    step_05_sell(ledger, registry)
    step_06_rejections(ledger, registry)
    step_07_update(registry)
    step_08_persistence(ledger, registry)
    step_09_asymmetry(registry)

    print("""
    Next steps:
      - See bonding_curve/curve.py for buy(), sell() and update_parameters()
      - Run tests: pytest tests/
    """)


if __name__ == "__main__":
    main()
