"""
Property-based checks of the vesting invariants: tranches never exceed the
escrowed balance, counters only move forward, and escrow plus released
amounts always add up to the total.
"""

import pytest
from hypothesis import given, settings, strategies as st

from unfreeze.core.config import TestnetConfig
from unfreeze.core.context import exec_address
from unfreeze.core.executor import UnfreezeExecutor
from unfreeze.core.schedule import ReleaseMode, VestingSchedule, compute_release, make_unfreeze_id
from unfreeze.core.state_store import MemoryStateStore
from unfreeze.core.token_ledger import StoreTokenLedger
from unfreeze.core.actions import load_schedule
from unfreeze.core.unfreeze_exceptions import AlreadyEmptiedError, BeforeDueError

from tests.unfreeze_tests.helpers import BENEFICIARY, INITIATOR, START, TOKEN, create_tx, withdraw_tx

modes = st.sampled_from([ReleaseMode.PERCENTAGE_BPS, ReleaseMode.FIXED_AMOUNT])


@given(
    remaining=st.integers(min_value=0, max_value=10**24),
    means=modes,
    rate=st.integers(min_value=1, max_value=10**12),
    periods=st.integers(min_value=0, max_value=10**6),
)
def test_release_never_exceeds_remaining(remaining, means, rate, periods):
    schedule = VestingSchedule(
        unfreeze_id="unfreezeID_0x01",
        token_name=TOKEN,
        initiator=INITIATOR,
        beneficiary=BENEFICIARY,
        start_time=START,
        period=60,
        means=int(means),
        rate=rate,
        total_count=max(remaining, 1),
        remaining=remaining,
    )
    available = compute_release(schedule, periods)
    assert 0 <= available <= remaining
    if remaining > 0 and periods > 0:
        assert available > 0


@given(
    total=st.integers(min_value=1, max_value=10**9),
    means=modes,
    rate=st.integers(min_value=1, max_value=20_000),
    period=st.integers(min_value=1, max_value=10_000),
    steps=st.lists(st.integers(min_value=0, max_value=50_000), min_size=1, max_size=12),
)
@settings(max_examples=60, deadline=None)
def test_withdraw_sequence_preserves_accounting(total, means, rate, period, steps):
    store = MemoryStateStore()
    escrow = exec_address(TestnetConfig.MODULE_NAME)
    ledger = StoreTokenLedger(store, TOKEN)
    for kv in ledger.deposit(INITIATOR, escrow, total).kv:
        store.put(kv.key, kv.value)

    executor = UnfreezeExecutor(store, config=TestnetConfig)
    tx = create_tx(total=total, means=means, rate=rate, period=period)
    executor.execute(tx, START)
    unfreeze_id = make_unfreeze_id(tx.tx_hash)

    now = START
    previous = load_schedule(store, unfreeze_id)
    for step in steps:
        now += step
        try:
            executor.execute(withdraw_tx(unfreeze_id), now)
        except (BeforeDueError, AlreadyEmptiedError):
            assert load_schedule(store, unfreeze_id) == previous
            continue
        current = load_schedule(store, unfreeze_id)
        assert 0 <= current.remaining < previous.remaining
        assert current.withdraw_times > previous.withdraw_times
        previous = current

    released = ledger.get_account(BENEFICIARY, escrow).balance
    frozen = ledger.get_account(INITIATOR, escrow).frozen
    assert frozen == previous.remaining
    assert released + frozen == total


@pytest.mark.parametrize("means", [ReleaseMode.PERCENTAGE_BPS, ReleaseMode.FIXED_AMOUNT])
def test_schedule_always_empties_eventually(means):
    """Repeated withdrawals drain any schedule; percentage mode does not stall on rounding."""
    store = MemoryStateStore()
    escrow = exec_address(TestnetConfig.MODULE_NAME)
    ledger = StoreTokenLedger(store, TOKEN)
    for kv in ledger.deposit(INITIATOR, escrow, 10**6).kv:
        store.put(kv.key, kv.value)
    executor = UnfreezeExecutor(store, config=TestnetConfig)
    tx = create_tx(total=10**6, means=means, rate=1, period=1)
    executor.execute(tx, START)
    unfreeze_id = make_unfreeze_id(tx.tx_hash)

    now = START
    for _ in range(10_000):
        schedule = load_schedule(store, unfreeze_id)
        if schedule.remaining == 0:
            break
        executor.execute(withdraw_tx(unfreeze_id), now)
        now += 10**6
    assert load_schedule(store, unfreeze_id).remaining == 0
