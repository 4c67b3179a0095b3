"""
Unfreeze actions: create, withdraw and terminate a vesting schedule.

Each action reads the schedule from the state store, validates, moves tokens
through the injected token ledger, writes the updated schedule back and
returns one receipt with the ledger writes first and the schedule write and
action log last. Any failure raises before a receipt is returned; the caller
discards the writes buffered by the failed action.
"""

from __future__ import annotations

import logging
from typing import Any

from unfreeze.core.config import Config
from unfreeze.core.context import (
    InvocationContext,
    UnfreezeCreate,
    UnfreezeTerminate,
    UnfreezeWithdraw,
)
from unfreeze.core.receipt import (
    EXEC_OK,
    Receipt,
    ReceiptCreate,
    ReceiptTerminate,
    ReceiptWithdraw,
    make_log,
    merge_receipts,
)
from unfreeze.core.schedule import (
    ReleaseMode,
    VestingSchedule,
    compute_release,
    due_periods,
    is_known_release_mode,
    make_unfreeze_id,
    schedule_key,
)
from unfreeze.core.state_store import PersistentStore
from unfreeze.core.token_ledger import LedgerFactory, TokenLedger
from unfreeze.core.unfreeze_exceptions import (
    AlreadyEmptiedError,
    BeforeDueError,
    InvalidParameterError,
    InvalidReleaseModeError,
    NotInitiatorError,
    get_error_context,
)

logger = logging.getLogger("unfreeze.core.actions")


def _require_int(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidParameterError(
            f"{name} must be an integer",
            details={"field": name, "value": value},
        )
    return value


def load_schedule(store: PersistentStore, unfreeze_id: str, config: Any = Config) -> VestingSchedule:
    """
    Load a schedule record.

    Raises:
        NotFoundError: If no record exists under the id
        DecodeError: If the stored bytes are corrupt
    """
    raw = store.get(schedule_key(unfreeze_id, config.STATE_NAMESPACE, config.MODULE_NAME))
    return VestingSchedule.decode(raw)


class ActionEngine:
    """
    Executes one unfreeze action for one transaction.

    The store and ledger factory are injected; the engine never reads the
    wall clock, only ``context.block_time``.
    """

    def __init__(
        self,
        store: PersistentStore,
        ledger_factory: LedgerFactory,
        context: InvocationContext,
        config: Any = Config,
    ) -> None:
        self.store = store
        self.ledger_factory = ledger_factory
        self.context = context
        self.config = config

    def _ledger(self, token_name: str) -> TokenLedger:
        return self.ledger_factory(self.store, token_name)

    def _key(self, unfreeze_id: str) -> bytes:
        return schedule_key(unfreeze_id, self.config.STATE_NAMESPACE, self.config.MODULE_NAME)

    def _save(self, schedule: VestingSchedule, receipt: Receipt) -> None:
        key = self._key(schedule.unfreeze_id)
        value = schedule.encode()
        self.store.put(key, value)
        receipt.add_write(key, value)

    def _log_failure(self, action: str, exc: Exception, **fields: Any) -> None:
        logger.error(
            "unfreeze %s failed: %s",
            action,
            exc,
            extra={
                "event": f"unfreeze.{action}.failed",
                "execaddr": self.context.exec_addr,
                "sender": self.context.sender,
                "height": self.context.height,
                **fields,
                **get_error_context(exc),
            },
        )

    # ==================== Create ====================

    def _validate_create(self, create: UnfreezeCreate) -> None:
        if not create.token_name or not isinstance(create.token_name, str):
            raise InvalidParameterError("Token name cannot be empty.", details={"field": "token_name"})
        if not create.beneficiary or not isinstance(create.beneficiary, str):
            raise InvalidParameterError("Beneficiary cannot be empty.", details={"field": "beneficiary"})
        for name in ("total_count", "start_time", "period", "means", "rate"):
            _require_int(name, getattr(create, name))
        if create.total_count <= 0:
            raise InvalidParameterError(
                "Total count must be positive.",
                details={"field": "total_count", "value": create.total_count},
            )
        if create.period <= 0:
            raise InvalidParameterError(
                "Period must be positive.",
                details={"field": "period", "value": create.period},
            )
        if self.config.VALIDATE_AT_CREATE:
            if not is_known_release_mode(create.means):
                raise InvalidReleaseModeError(
                    f"Unknown release mode {create.means}",
                    details={"means": create.means},
                )
            if create.rate < 0 or (create.means == ReleaseMode.FIXED_AMOUNT and create.rate == 0):
                raise InvalidParameterError(
                    "Release rate out of range for the release mode.",
                    details={"field": "rate", "value": create.rate, "means": create.means},
                )

    def create(self, create: UnfreezeCreate) -> Receipt:
        """
        Lock ``total_count`` tokens of the initiator in escrow and start a schedule.

        The initiator is the transaction sender; the schedule id is derived
        from the transaction hash.
        """
        ctx = self.context
        unfreeze_id = make_unfreeze_id(ctx.tx_hash)
        try:
            self._validate_create(create)
            ledger_receipt = self._ledger(create.token_name).exec_frozen(
                ctx.sender, ctx.exec_addr, create.total_count
            )
        except Exception as exc:
            self._log_failure("create", exc, addr=ctx.sender, amount=create.total_count)
            raise

        schedule = VestingSchedule(
            unfreeze_id=unfreeze_id,
            token_name=create.token_name,
            initiator=ctx.sender,
            beneficiary=create.beneficiary,
            start_time=create.start_time,
            period=create.period,
            means=create.means,
            rate=create.rate,
            total_count=create.total_count,
            remaining=create.total_count,
            withdraw_times=0,
        )
        own = Receipt(ty=EXEC_OK)
        self._save(schedule, own)
        own.add_log(make_log(ReceiptCreate(unfreeze_id=unfreeze_id, initiator=schedule.initiator)))

        logger.info(
            "Unfreeze %s created: %d %s from %s to %s",
            unfreeze_id,
            schedule.total_count,
            schedule.token_name,
            schedule.initiator,
            schedule.beneficiary,
            extra={"event": "unfreeze.create", "unfreeze_id": unfreeze_id},
        )
        return merge_receipts(ledger_receipt, own)

    # ==================== Withdraw ====================

    def withdraw(self, withdraw: UnfreezeWithdraw) -> Receipt:
        """
        Release every tranche matured since the last withdrawal to the beneficiary.
        """
        ctx = self.context
        try:
            schedule = load_schedule(self.store, withdraw.unfreeze_id, self.config)
            if schedule.is_emptied:
                raise AlreadyEmptiedError(
                    "Unfreeze schedule already emptied",
                    details={"unfreeze_id": schedule.unfreeze_id},
                )
            periods = due_periods(schedule, ctx.block_time)
            if periods <= 0:
                raise BeforeDueError(
                    "No period matured since the last withdrawal",
                    details={
                        "unfreeze_id": schedule.unfreeze_id,
                        "withdraw_times": schedule.withdraw_times,
                        "block_time": ctx.block_time,
                    },
                )
            available = compute_release(schedule, periods)
            ledger_receipt = self._ledger(schedule.token_name).exec_transfer_frozen(
                schedule.initiator, schedule.beneficiary, ctx.exec_addr, available
            )
        except Exception as exc:
            self._log_failure("withdraw", exc, unfreeze_id=withdraw.unfreeze_id)
            raise

        schedule.withdraw_times += periods
        schedule.remaining -= available
        own = Receipt(ty=EXEC_OK)
        self._save(schedule, own)
        own.add_log(
            make_log(
                ReceiptWithdraw(
                    withdraw_times=schedule.withdraw_times,
                    beneficiary=schedule.beneficiary,
                )
            )
        )

        logger.info(
            "Unfreeze %s released %d %s to %s (%d periods, %d remaining)",
            schedule.unfreeze_id,
            available,
            schedule.token_name,
            schedule.beneficiary,
            periods,
            schedule.remaining,
            extra={"event": "unfreeze.withdraw", "unfreeze_id": schedule.unfreeze_id},
        )
        return merge_receipts(ledger_receipt, own)

    # ==================== Terminate ====================

    def terminate(self, terminate: UnfreezeTerminate) -> Receipt:
        """
        Return everything still in escrow to the initiator and end the schedule.
        """
        ctx = self.context
        try:
            schedule = load_schedule(self.store, terminate.unfreeze_id, self.config)
            if ctx.sender != schedule.initiator:
                raise NotInitiatorError(
                    "Only the initiator may terminate an unfreeze schedule",
                    details={"unfreeze_id": schedule.unfreeze_id, "sender": ctx.sender},
                )
            if schedule.is_emptied:
                raise AlreadyEmptiedError(
                    "Unfreeze schedule already emptied",
                    details={"unfreeze_id": schedule.unfreeze_id},
                )
            ledger_receipt = self._ledger(schedule.token_name).exec_active(
                schedule.initiator, ctx.exec_addr, schedule.remaining
            )
        except Exception as exc:
            self._log_failure("terminate", exc, unfreeze_id=terminate.unfreeze_id)
            raise

        returned = schedule.remaining
        schedule.remaining = 0
        own = Receipt(ty=EXEC_OK)
        self._save(schedule, own)
        own.add_log(make_log(ReceiptTerminate(unfreeze_id=schedule.unfreeze_id)))

        logger.info(
            "Unfreeze %s terminated, %d %s returned to %s",
            schedule.unfreeze_id,
            returned,
            schedule.token_name,
            schedule.initiator,
            extra={"event": "unfreeze.terminate", "unfreeze_id": schedule.unfreeze_id},
        )
        return merge_receipts(ledger_receipt, own)
