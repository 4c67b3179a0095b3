"""
Vesting schedule record and the pure release arithmetic.

All arithmetic is integer-only with floor division, so every replica computes
the same tranche for the same record and block time.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from enum import IntEnum
from typing import Any

from unfreeze.core import serialization
from unfreeze.core.config import BASIS_POINTS_DENOMINATOR, UNFREEZE_ID_PREFIX
from unfreeze.core.unfreeze_exceptions import (
    DecodeError,
    InvalidParameterError,
    InvalidReleaseModeError,
)

logger = logging.getLogger("unfreeze.core.schedule")


class ReleaseMode(IntEnum):
    PERCENTAGE_BPS = 1
    FIXED_AMOUNT = 2


def is_known_release_mode(means: int) -> bool:
    return means in ReleaseMode._value2member_map_


@dataclass
class VestingSchedule:
    """
    Durable state of one unfreeze contract.

    ``means`` is kept as the raw integer submitted at creation so that a
    record with an unknown release mode can still be stored and reloaded;
    it is only interpreted when a withdrawal computes a tranche.
    """

    unfreeze_id: str
    token_name: str
    initiator: str
    beneficiary: str
    start_time: int
    period: int
    means: int
    rate: int
    total_count: int
    remaining: int
    withdraw_times: int = 0

    @property
    def is_emptied(self) -> bool:
        return self.remaining <= 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VestingSchedule":
        try:
            schedule = cls(
                unfreeze_id=str(data["unfreeze_id"]),
                token_name=str(data["token_name"]),
                initiator=str(data["initiator"]),
                beneficiary=str(data["beneficiary"]),
                start_time=_as_int(data["start_time"]),
                period=_as_int(data["period"]),
                means=_as_int(data["means"]),
                rate=_as_int(data["rate"]),
                total_count=_as_int(data["total_count"]),
                remaining=_as_int(data["remaining"]),
                withdraw_times=_as_int(data.get("withdraw_times", 0)),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise DecodeError(
                "Malformed unfreeze record",
                details={"reason": str(exc)},
            ) from exc
        if schedule.period <= 0:
            raise DecodeError(
                "Unfreeze record has a non-positive period",
                details={"unfreeze_id": schedule.unfreeze_id, "period": schedule.period},
            )
        return schedule

    def encode(self) -> bytes:
        return serialization.encode(self.to_dict())

    @classmethod
    def decode(cls, data: bytes) -> "VestingSchedule":
        return cls.from_dict(serialization.decode(data))


def _as_int(value: Any) -> int:
    # Integers only; bool is an int subclass.
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"expected integer, got {type(value).__name__}")
    return value


def make_unfreeze_id(tx_hash: bytes) -> str:
    return f"{UNFREEZE_ID_PREFIX}0x{tx_hash.hex()}"


def schedule_key(unfreeze_id: str, namespace: str = "mavl", module_name: str = "unfreeze") -> bytes:
    return f"{namespace}-{module_name}-".encode("utf-8") + unfreeze_id.encode("utf-8")


# ==================== Release arithmetic ====================


def matured_periods(schedule: VestingSchedule, now: int) -> int:
    """
    Number of periods matured at ``now``.

    The first period counts as matured once ``now`` reaches ``start_time``.
    """
    return (now + schedule.period - schedule.start_time) // schedule.period


def due_periods(schedule: VestingSchedule, now: int) -> int:
    """Matured periods not yet consumed by a withdrawal (may be <= 0)."""
    return matured_periods(schedule, now) - schedule.withdraw_times


def compute_release(schedule: VestingSchedule, periods: int) -> int:
    """
    Amount released for ``periods`` newly matured periods.

    Percentage mode takes ``rate`` basis points of the current remaining
    balance once and applies it uniformly to every due period; a per-period
    amount that rounds to zero releases everything left. Fixed mode releases
    ``rate`` units per period. The result never exceeds ``remaining``.

    Raises:
        InvalidReleaseModeError: If ``means`` is not a known release mode
        InvalidParameterError: If ``rate`` is negative, or zero in fixed mode
    """
    remaining = schedule.remaining
    if periods <= 0 or remaining <= 0:
        return 0

    if is_known_release_mode(schedule.means) and (
        schedule.rate < 0 or (schedule.means == ReleaseMode.FIXED_AMOUNT and schedule.rate == 0)
    ):
        raise InvalidParameterError(
            f"Release rate out of range for mode {schedule.means}, got {schedule.rate}",
            details={"unfreeze_id": schedule.unfreeze_id, "means": schedule.means, "rate": schedule.rate},
        )

    if schedule.means == ReleaseMode.PERCENTAGE_BPS:
        per_period = remaining * schedule.rate // BASIS_POINTS_DENOMINATOR
        if per_period == 0:
            return remaining
        available = per_period * periods
    elif schedule.means == ReleaseMode.FIXED_AMOUNT:
        if remaining <= schedule.rate:
            return remaining
        available = schedule.rate * periods
    else:
        raise InvalidReleaseModeError(
            f"Unknown release mode {schedule.means}",
            details={"unfreeze_id": schedule.unfreeze_id, "means": schedule.means},
        )

    if available > remaining:
        logger.debug(
            "Release for %s capped at remaining balance (%d > %d)",
            schedule.unfreeze_id,
            available,
            remaining,
        )
        return remaining
    return available
