"""
Transactions addressed to the unfreeze module and the per-invocation context
built from them.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any, Optional, Union

from unfreeze.core import serialization
from unfreeze.core.unfreeze_exceptions import DecodeError, UnknownActionError

ACTION_CREATE = 1
ACTION_WITHDRAW = 2
ACTION_TERMINATE = 3


def exec_address(name: str) -> str:
    """Deterministic escrow address of a module, derived from its name."""
    digest = hashlib.sha256(f"exec:{name}".encode("utf-8")).digest()
    return f"0x{digest[-20:].hex()}"


@dataclass(frozen=True)
class InvocationContext:
    """Everything an action may know about the transaction invoking it."""

    tx_hash: bytes
    sender: str
    block_time: int
    height: int
    index: int
    exec_addr: str


# ==================== Action payloads ====================


@dataclass(frozen=True)
class UnfreezeCreate:
    token_name: str
    total_count: int
    beneficiary: str
    start_time: int
    period: int
    means: int
    rate: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "token_name": self.token_name,
            "total_count": self.total_count,
            "beneficiary": self.beneficiary,
            "start_time": self.start_time,
            "period": self.period,
            "means": self.means,
            "rate": self.rate,
        }


@dataclass(frozen=True)
class UnfreezeWithdraw:
    unfreeze_id: str

    def to_dict(self) -> dict[str, Any]:
        return {"unfreeze_id": self.unfreeze_id}


@dataclass(frozen=True)
class UnfreezeTerminate:
    unfreeze_id: str

    def to_dict(self) -> dict[str, Any]:
        return {"unfreeze_id": self.unfreeze_id}


ActionBody = Union[UnfreezeCreate, UnfreezeWithdraw, UnfreezeTerminate]

_ACTION_TYPES = {
    ACTION_CREATE: ("create", UnfreezeCreate),
    ACTION_WITHDRAW: ("withdraw", UnfreezeWithdraw),
    ACTION_TERMINATE: ("terminate", UnfreezeTerminate),
}
_ACTION_TAGS = {body_type: ty for ty, (_, body_type) in _ACTION_TYPES.items()}

# Address and id fields must arrive as strings; numeric fields are checked by the actions.
_STRING_FIELDS = {
    ACTION_CREATE: ("token_name", "beneficiary"),
    ACTION_WITHDRAW: ("unfreeze_id",),
    ACTION_TERMINATE: ("unfreeze_id",),
}


@dataclass(frozen=True)
class UnfreezeAction:
    ty: int
    body: ActionBody

    @classmethod
    def of(cls, body: ActionBody) -> "UnfreezeAction":
        return cls(ty=_ACTION_TAGS[type(body)], body=body)

    @property
    def name(self) -> str:
        return _ACTION_TYPES[self.ty][0]

    def encode(self) -> bytes:
        return serialization.encode({"ty": self.ty, self.name: self.body.to_dict()})

    @classmethod
    def decode(cls, payload: bytes) -> "UnfreezeAction":
        """
        Decode a transaction payload.

        Raises:
            DecodeError: If the payload is malformed
            UnknownActionError: If the action tag is not one of create/withdraw/terminate
        """
        data = serialization.decode(payload)
        ty = data.get("ty")
        if isinstance(ty, bool) or not isinstance(ty, int) or ty not in _ACTION_TYPES:
            raise UnknownActionError(f"Unknown unfreeze action {ty!r}", details={"ty": ty})
        name, body_type = _ACTION_TYPES[ty]
        fields = data.get(name)
        if not isinstance(fields, dict):
            raise DecodeError(f"Missing {name} body in unfreeze action", details={"ty": ty})
        try:
            body = body_type(**fields)
        except TypeError as exc:
            raise DecodeError(
                f"Malformed {name} body in unfreeze action",
                details={"ty": ty, "reason": str(exc)},
            ) from exc
        for field_name in _STRING_FIELDS[ty]:
            value = getattr(body, field_name)
            if not isinstance(value, str):
                raise DecodeError(
                    f"{field_name} in {name} body must be a string",
                    details={"ty": ty, "field": field_name, "type": type(value).__name__},
                )
        return cls(ty=ty, body=body)


@dataclass(frozen=True)
class Transaction:
    """A signed transaction as handed over by the execution engine."""

    execer: str
    payload: bytes
    sender: str
    tx_hash: bytes
    nonce: Optional[int] = None

    @classmethod
    def for_action(cls, execer: str, action: UnfreezeAction, sender: str, nonce: int = 0) -> "Transaction":
        """Build a transaction whose hash commits to sender, nonce and payload."""
        payload = action.encode()
        digest = hashlib.sha256()
        digest.update(execer.encode("utf-8"))
        digest.update(sender.encode("utf-8"))
        digest.update(str(nonce).encode("utf-8"))
        digest.update(payload)
        return cls(execer=execer, payload=payload, sender=sender, tx_hash=digest.digest(), nonce=nonce)
