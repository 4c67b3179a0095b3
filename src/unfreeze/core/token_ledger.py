"""
Token ledger interface consumed by the unfreeze engine, plus a store-backed
reference implementation.

Balances are kept per (owner, escrow) sub-account. Each sub-account has an
active ``balance`` the owner may spend through the escrow's module and a
``frozen`` balance reserved for that module. Amounts are integers in the
token's smallest unit.

Security considerations:
- Every amount must be a positive integer
- Balances can never go negative; shortfalls raise before anything is written
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Protocol, runtime_checkable

from unfreeze.core import serialization
from unfreeze.core.receipt import (
    EXEC_OK,
    TY_LOG_EXEC_ACTIVE,
    TY_LOG_EXEC_FROZEN,
    TY_LOG_EXEC_TRANSFER_FROZEN,
    Receipt,
    ReceiptAccountChange,
    ReceiptLog,
    make_ledger_log,
)
from unfreeze.core.state_store import PersistentStore
from unfreeze.core.unfreeze_exceptions import (
    FreezeError,
    InsufficientFrozenBalanceError,
    InvalidAmountError,
    NotFoundError,
)

logger = logging.getLogger("unfreeze.core.token_ledger")


@runtime_checkable
class TokenLedger(Protocol):
    """
    Protocol for the balance primitives of one named token.

    Each method returns a Receipt holding the balance-key writes and ledger
    logs, or raises a LedgerError subclass without writing anything.
    """

    def exec_frozen(self, owner: str, escrow: str, amount: int) -> Receipt:
        """Move ``amount`` from owner's active balance to its frozen balance."""
        ...

    def exec_transfer_frozen(self, owner: str, recipient: str, escrow: str, amount: int) -> Receipt:
        """Move ``amount`` from owner's frozen balance to recipient's active balance."""
        ...

    def exec_active(self, owner: str, escrow: str, amount: int) -> Receipt:
        """Move ``amount`` from owner's frozen balance back to its active balance."""
        ...


LedgerFactory = Callable[[PersistentStore, str], TokenLedger]


@dataclass
class TokenAccount:
    owner: str
    escrow: str
    balance: int = 0
    frozen: int = 0

    def to_dict(self) -> dict[str, int | str]:
        return {
            "owner": self.owner,
            "escrow": self.escrow,
            "balance": self.balance,
            "frozen": self.frozen,
        }


class StoreTokenLedger:
    """
    TokenLedger that keeps its sub-accounts in a PersistentStore.

    Key layout: ``<namespace>-<exec_name>-<symbol>-exec-<escrow>:<owner>``.
    """

    def __init__(
        self,
        store: PersistentStore,
        symbol: str,
        exec_name: str = "token",
        namespace: str = "mavl",
    ) -> None:
        if not symbol:
            raise ValueError("Token symbol cannot be empty.")
        self.store = store
        self.symbol = symbol
        self.exec_name = exec_name
        self.namespace = namespace

    # ==================== Accounts ====================

    def account_key(self, owner: str, escrow: str) -> bytes:
        return f"{self.namespace}-{self.exec_name}-{self.symbol}-exec-{escrow}:{owner}".encode("utf-8")

    def get_account(self, owner: str, escrow: str) -> TokenAccount:
        try:
            raw = self.store.get(self.account_key(owner, escrow))
        except NotFoundError:
            return TokenAccount(owner=owner, escrow=escrow)
        data = serialization.decode(raw)
        return TokenAccount(
            owner=owner,
            escrow=escrow,
            balance=int(data.get("balance", 0)),
            frozen=int(data.get("frozen", 0)),
        )

    def _save(self, account: TokenAccount, receipt: Receipt) -> None:
        key = self.account_key(account.owner, account.escrow)
        value = serialization.encode(account.to_dict())
        self.store.put(key, value)
        receipt.add_write(key, value)

    def _change_log(self, ty: int, before: TokenAccount, after: TokenAccount) -> ReceiptLog:
        return make_ledger_log(
            ty,
            ReceiptAccountChange(
                symbol=self.symbol,
                owner=after.owner,
                escrow=after.escrow,
                prev_balance=before.balance,
                balance=after.balance,
                prev_frozen=before.frozen,
                frozen=after.frozen,
            ),
        )

    @staticmethod
    def _check_amount(amount: int) -> None:
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            raise InvalidAmountError(
                "Amount must be a positive integer.",
                details={"amount": amount},
            )

    # ==================== Primitives ====================

    def deposit(self, owner: str, escrow: str, amount: int) -> Receipt:
        """Credit ``amount`` to an owner's active balance at ``escrow``."""
        self._check_amount(amount)
        before = self.get_account(owner, escrow)
        after = TokenAccount(owner, escrow, before.balance + amount, before.frozen)
        receipt = Receipt(ty=EXEC_OK)
        self._save(after, receipt)
        logger.debug("Deposited %d %s to %s at %s", amount, self.symbol, owner, escrow)
        return receipt

    def exec_frozen(self, owner: str, escrow: str, amount: int) -> Receipt:
        self._check_amount(amount)
        before = self.get_account(owner, escrow)
        if before.balance < amount:
            raise FreezeError(
                "Insufficient active balance to freeze.",
                details={
                    "symbol": self.symbol,
                    "owner": owner,
                    "escrow": escrow,
                    "balance": before.balance,
                    "amount": amount,
                },
            )
        after = TokenAccount(owner, escrow, before.balance - amount, before.frozen + amount)
        receipt = Receipt(ty=EXEC_OK)
        self._save(after, receipt)
        receipt.add_log(self._change_log(TY_LOG_EXEC_FROZEN, before, after))
        return receipt

    def exec_transfer_frozen(self, owner: str, recipient: str, escrow: str, amount: int) -> Receipt:
        self._check_amount(amount)
        source_before = self.get_account(owner, escrow)
        if source_before.frozen < amount:
            raise InsufficientFrozenBalanceError(
                "Insufficient frozen balance to transfer.",
                details={
                    "symbol": self.symbol,
                    "owner": owner,
                    "escrow": escrow,
                    "frozen": source_before.frozen,
                    "amount": amount,
                },
            )
        receipt = Receipt(ty=EXEC_OK)
        source_after = TokenAccount(owner, escrow, source_before.balance, source_before.frozen - amount)
        self._save(source_after, receipt)
        receipt.add_log(self._change_log(TY_LOG_EXEC_TRANSFER_FROZEN, source_before, source_after))

        # Re-read so a self-transfer sees the debit above.
        target_before = self.get_account(recipient, escrow)
        target_after = TokenAccount(recipient, escrow, target_before.balance + amount, target_before.frozen)
        self._save(target_after, receipt)
        receipt.add_log(self._change_log(TY_LOG_EXEC_TRANSFER_FROZEN, target_before, target_after))
        return receipt

    def exec_active(self, owner: str, escrow: str, amount: int) -> Receipt:
        self._check_amount(amount)
        before = self.get_account(owner, escrow)
        if before.frozen < amount:
            raise InsufficientFrozenBalanceError(
                "Insufficient frozen balance to activate.",
                details={
                    "symbol": self.symbol,
                    "owner": owner,
                    "escrow": escrow,
                    "frozen": before.frozen,
                    "amount": amount,
                },
            )
        after = TokenAccount(owner, escrow, before.balance + amount, before.frozen - amount)
        receipt = Receipt(ty=EXEC_OK)
        self._save(after, receipt)
        receipt.add_log(self._change_log(TY_LOG_EXEC_ACTIVE, before, after))
        return receipt


def store_ledger_factory(exec_name: str = "token", namespace: str = "mavl") -> LedgerFactory:
    """Build a LedgerFactory producing StoreTokenLedger instances."""

    def factory(store: PersistentStore, symbol: str) -> TokenLedger:
        return StoreTokenLedger(store, symbol, exec_name=exec_name, namespace=namespace)

    return factory
