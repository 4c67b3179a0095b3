"""
Receipt model returned to the execution engine.

A receipt is the ordered list of key/value writes plus the ordered list of
typed log entries produced by one action. The engine commits all of it or
none of it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from unfreeze.core import serialization
from unfreeze.core.unfreeze_exceptions import DecodeError

EXEC_ERR = 0
EXEC_OK = 1

# Token ledger log tags
TY_LOG_EXEC_FROZEN = 10
TY_LOG_EXEC_ACTIVE = 11
TY_LOG_EXEC_TRANSFER_FROZEN = 12

# Schedule log tags
TY_LOG_CREATE_UNFREEZE = 2001
TY_LOG_WITHDRAW_UNFREEZE = 2002
TY_LOG_TERMINATE_UNFREEZE = 2003


@dataclass(frozen=True)
class KeyValue:
    key: bytes
    value: bytes


@dataclass(frozen=True)
class ReceiptLog:
    ty: int
    log: bytes


@dataclass
class Receipt:
    """Ordered state writes and logs produced by a single action."""

    ty: int = EXEC_OK
    kv: list[KeyValue] = field(default_factory=list)
    logs: list[ReceiptLog] = field(default_factory=list)

    def extend(self, other: "Receipt") -> "Receipt":
        self.kv.extend(other.kv)
        self.logs.extend(other.logs)
        return self

    def add_write(self, key: bytes, value: bytes) -> None:
        self.kv.append(KeyValue(key, value))

    def add_log(self, log: ReceiptLog) -> None:
        self.logs.append(log)


def merge_receipts(*receipts: Receipt) -> Receipt:
    """Concatenate receipts in order into a new receipt."""
    merged = Receipt(ty=EXEC_OK)
    for receipt in receipts:
        merged.extend(receipt)
    return merged


# ==================== Log payloads ====================


@dataclass(frozen=True)
class ReceiptCreate:
    unfreeze_id: str
    initiator: str

    TY = TY_LOG_CREATE_UNFREEZE

    def to_dict(self) -> dict[str, Any]:
        return {"unfreeze_id": self.unfreeze_id, "initiator": self.initiator}


@dataclass(frozen=True)
class ReceiptWithdraw:
    withdraw_times: int
    beneficiary: str

    TY = TY_LOG_WITHDRAW_UNFREEZE

    def to_dict(self) -> dict[str, Any]:
        return {"withdraw_times": self.withdraw_times, "beneficiary": self.beneficiary}


@dataclass(frozen=True)
class ReceiptTerminate:
    unfreeze_id: str

    TY = TY_LOG_TERMINATE_UNFREEZE

    def to_dict(self) -> dict[str, Any]:
        return {"unfreeze_id": self.unfreeze_id}


@dataclass(frozen=True)
class ReceiptAccountChange:
    """Balance change emitted by the token ledger."""

    symbol: str
    owner: str
    escrow: str
    prev_balance: int
    balance: int
    prev_frozen: int
    frozen: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "owner": self.owner,
            "escrow": self.escrow,
            "prev_balance": self.prev_balance,
            "balance": self.balance,
            "prev_frozen": self.prev_frozen,
            "frozen": self.frozen,
        }


ScheduleLogPayload = Union[ReceiptCreate, ReceiptWithdraw, ReceiptTerminate]

_SCHEDULE_LOG_TYPES = {
    TY_LOG_CREATE_UNFREEZE: ReceiptCreate,
    TY_LOG_WITHDRAW_UNFREEZE: ReceiptWithdraw,
    TY_LOG_TERMINATE_UNFREEZE: ReceiptTerminate,
}

_LEDGER_LOG_TAGS = (TY_LOG_EXEC_FROZEN, TY_LOG_EXEC_ACTIVE, TY_LOG_EXEC_TRANSFER_FROZEN)


def make_log(payload: ScheduleLogPayload) -> ReceiptLog:
    return ReceiptLog(ty=payload.TY, log=serialization.encode(payload.to_dict()))


def make_ledger_log(ty: int, change: ReceiptAccountChange) -> ReceiptLog:
    return ReceiptLog(ty=ty, log=serialization.encode(change.to_dict()))


def decode_log(log: ReceiptLog) -> Union[ScheduleLogPayload, ReceiptAccountChange]:
    """
    Decode a receipt log back into its typed payload.

    Raises:
        DecodeError: If the tag is unknown or the payload does not match it
    """
    data = serialization.decode(log.log)
    if log.ty in _LEDGER_LOG_TAGS:
        payload_type: Any = ReceiptAccountChange
    else:
        payload_type = _SCHEDULE_LOG_TYPES.get(log.ty)
    if payload_type is None:
        raise DecodeError(f"Unknown receipt log tag {log.ty}", details={"ty": log.ty})
    try:
        return payload_type(**data)
    except TypeError as exc:
        raise DecodeError(
            f"Receipt log payload does not match tag {log.ty}",
            details={"ty": log.ty, "reason": str(exc)},
        ) from exc
