"""
Read-only status projection over a stored unfreeze schedule.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from unfreeze.core.schedule import VestingSchedule, compute_release, due_periods, matured_periods

STATE_ACTIVE = "active"
STATE_EMPTIED = "emptied"


@dataclass(frozen=True)
class WithdrawStatus:
    unfreeze_id: str
    state: str
    matured_periods: int
    due_periods: int
    available: int
    remaining: int
    withdraw_times: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def withdraw_status(schedule: VestingSchedule, now: int) -> WithdrawStatus:
    """
    What a withdrawal at ``now`` would release, without performing it.

    Raises:
        InvalidReleaseModeError: If the schedule's release mode is unknown
            and a tranche is due
    """
    if schedule.is_emptied:
        return WithdrawStatus(
            unfreeze_id=schedule.unfreeze_id,
            state=STATE_EMPTIED,
            matured_periods=matured_periods(schedule, now),
            due_periods=0,
            available=0,
            remaining=schedule.remaining,
            withdraw_times=schedule.withdraw_times,
        )
    periods = max(due_periods(schedule, now), 0)
    return WithdrawStatus(
        unfreeze_id=schedule.unfreeze_id,
        state=STATE_ACTIVE,
        matured_periods=matured_periods(schedule, now),
        due_periods=periods,
        available=compute_release(schedule, periods),
        remaining=schedule.remaining,
        withdraw_times=schedule.withdraw_times,
    )
