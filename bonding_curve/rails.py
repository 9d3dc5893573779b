"""
rails.py - HostLedger Adapters for the Curve Collaborators

LedgerSettlementRail and LedgerUnitLedger let a BondingCurve run against a
HostLedger:

    ledger = HostLedger("host")
    ledger.register_unit(settlement_currency("LAMPORTS", "Lamports"))
    ledger.register_unit(token("MEME", "Meme Token"))

    settlement = LedgerSettlementRail(ledger, "LAMPORTS")
    units = LedgerUnitLedger(ledger)

Each call becomes one atomic transaction on the ledger. Mint and burn move
units between SYSTEM_WALLET and the holder.
"""

from .core import TokenAccount
from .ledger import (
    HostLedger, Move, SYSTEM_WALLET,
    build_transaction,
)


class LedgerSettlementRail:
    """SettlementRail over one settlement currency of a HostLedger."""

    def __init__(self, ledger: HostLedger, currency: str):
        self.ledger = ledger
        self.currency = currency
        # Fail at construction rather than on the first trade
        ledger.get_unit(currency)

    def transfer(self, source: str, dest: str, amount: int) -> None:
        """
        Move amount of the settlement currency from source to dest.

        Raises:
            InsufficientBalance: If source holds less than amount
            WalletNotRegistered: If either party has no account
        """
        self.ledger.submit(build_transaction(
            [Move(amount, self.currency, source, dest, "settlement")],
            memo=f"settlement {source}→{dest}",
        ))

    def balance_of(self, holder: str) -> int:
        if not self.ledger.is_registered(holder):
            return 0
        return self.ledger.get_balance(holder, self.currency)

    def open_account(self, address: str) -> None:
        if not self.ledger.is_registered(address):
            self.ledger.register_wallet(address)

    def __repr__(self) -> str:
        return f"LedgerSettlementRail({self.ledger.name}, {self.currency})"


class LedgerUnitLedger:
    """UnitLedger over the token units of a HostLedger."""

    def __init__(self, ledger: HostLedger):
        self.ledger = ledger

    def mint(self, unit_id: str, to: str, amount: int) -> None:
        """
        Issue amount units of unit_id to a holder.

        Raises:
            UnitNotRegistered: If unit_id is not registered
            WalletNotRegistered: If the holder has no wallet
            BalanceConstraintViolation: If the holder would exceed the unit's maximum
        """
        self.ledger.submit(build_transaction(
            [Move(amount, unit_id, SYSTEM_WALLET, to, "mint")],
            memo=f"mint {unit_id}",
        ))

    def burn(self, unit_id: str, holder: str, amount: int) -> None:
        """
        Redeem amount units of unit_id from a holder.

        Raises:
            InsufficientBalance: If the holder has fewer than amount units
        """
        self.ledger.submit(build_transaction(
            [Move(amount, unit_id, holder, SYSTEM_WALLET, "burn")],
            memo=f"burn {unit_id}",
        ))

    def account_of(self, unit_id: str, holder: str) -> TokenAccount:
        balance = self.ledger.get_balance(holder, unit_id) if self.ledger.is_registered(holder) else 0
        return TokenAccount(owner=holder, unit_id=unit_id, balance=balance)

    def __repr__(self) -> str:
        return f"LedgerUnitLedger({self.ledger.name})"
