"""
Unfreeze executor - entry point used by the transaction-execution pipeline.

The executor is constructed with its state store and token-ledger factory
rather than registered in a global plugin table. For each transaction it
decodes the action, runs it against a buffered overlay of the store and
hands back the receipt. A failed action leaves the store untouched; a
successful one is only visible once the caller commits its receipt.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from unfreeze.core.actions import ActionEngine, load_schedule
from unfreeze.core.config import Config
from unfreeze.core.context import (
    ACTION_CREATE,
    ACTION_TERMINATE,
    ACTION_WITHDRAW,
    InvocationContext,
    Transaction,
    UnfreezeAction,
    exec_address,
)
from unfreeze.core.query import WithdrawStatus, withdraw_status
from unfreeze.core.receipt import Receipt
from unfreeze.core.state_store import PersistentStore, StateOverlay
from unfreeze.core.token_ledger import LedgerFactory, store_ledger_factory
from unfreeze.core.unfreeze_exceptions import UnknownActionError, get_error_context

logger = logging.getLogger("unfreeze.core.executor")


class UnfreezeExecutor:
    """Runs unfreeze transactions against an injected store and token ledger."""

    def __init__(
        self,
        store: PersistentStore,
        ledger_factory: LedgerFactory | None = None,
        config: Any = Config,
    ) -> None:
        self.store = store
        self.config = config
        self.ledger_factory = ledger_factory or store_ledger_factory(
            exec_name=config.TOKEN_EXEC, namespace=config.STATE_NAMESPACE
        )
        self.name = config.MODULE_NAME
        self.exec_addr = exec_address(self.name)
        self._handlers: dict[int, Callable[[ActionEngine, Any], Receipt]] = {
            ACTION_CREATE: ActionEngine.create,
            ACTION_WITHDRAW: ActionEngine.withdraw,
            ACTION_TERMINATE: ActionEngine.terminate,
        }
        logger.info(
            "Unfreeze executor initialized (module=%s, execaddr=%s, network=%s)",
            self.name,
            self.exec_addr,
            config.NETWORK_TYPE.value,
        )

    def build_context(self, tx: Transaction, block_time: int, height: int, index: int) -> InvocationContext:
        return InvocationContext(
            tx_hash=tx.tx_hash,
            sender=tx.sender,
            block_time=block_time,
            height=height,
            index=index,
            exec_addr=self.exec_addr,
        )

    def exec_transaction(self, tx: Transaction, block_time: int, height: int, index: int) -> Receipt:
        """
        Execute one transaction and return its receipt without committing it.

        Raises:
            UnfreezeError: Any decode, schedule or ledger failure; nothing is
                written to the store in that case
        """
        if tx.execer != self.name:
            raise UnknownActionError(
                f"Transaction addressed to {tx.execer!r}, not {self.name!r}",
                details={"execer": tx.execer},
            )
        action = UnfreezeAction.decode(tx.payload)
        ctx = self.build_context(tx, block_time, height, index)
        overlay = StateOverlay(self.store)
        engine = ActionEngine(overlay, self.ledger_factory, ctx, self.config)
        try:
            receipt = self._handlers[action.ty](engine, action.body)
        except Exception as exc:
            overlay.discard()
            logger.warning(
                "Unfreeze transaction rejected at height %d index %d",
                height,
                index,
                extra={"event": "unfreeze.tx.rejected", "action": action.name, **get_error_context(exc)},
            )
            raise
        logger.debug(
            "Unfreeze %s produced %d writes (%d buffered) and %d logs",
            action.name,
            len(receipt.kv),
            len(overlay.pending()),
            len(receipt.logs),
        )
        return receipt

    def commit(self, receipt: Receipt) -> None:
        """Apply a receipt's writes to the base store in order."""
        for kv in receipt.kv:
            self.store.put(kv.key, kv.value)

    def execute(self, tx: Transaction, block_time: int, height: int = 0, index: int = 0) -> Receipt:
        """Execute a transaction and commit its receipt on success."""
        receipt = self.exec_transaction(tx, block_time, height, index)
        self.commit(receipt)
        return receipt

    def query_withdraw(self, unfreeze_id: str, now: int) -> WithdrawStatus:
        """Read-only view of what a withdrawal at ``now`` would release."""
        schedule = load_schedule(self.store, unfreeze_id, self.config)
        return withdraw_status(schedule, now)
