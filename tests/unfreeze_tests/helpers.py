"""Shared builders for unfreeze tests."""

from unfreeze.core.config import TestnetConfig
from unfreeze.core.context import (
    InvocationContext,
    Transaction,
    UnfreezeAction,
    UnfreezeCreate,
    UnfreezeTerminate,
    UnfreezeWithdraw,
    exec_address,
)
from unfreeze.core.schedule import ReleaseMode

INITIATOR = "0xinitiator"
BENEFICIARY = "0xbeneficiary"
OTHER = "0xstranger"
TOKEN = "GOLD"
START = 1_700_000_000
PERIOD = 100


class StrictCreateConfig(TestnetConfig):
    VALIDATE_AT_CREATE = True

def make_context(sender=INITIATOR, block_time=START, tx_hash=b"\x01" * 32, height=1, index=0):
    return InvocationContext(
        tx_hash=tx_hash,
        sender=sender,
        block_time=block_time,
        height=height,
        index=index,
        exec_addr=exec_address(TestnetConfig.MODULE_NAME),
    )


def create_body(total=1000, means=ReleaseMode.PERCENTAGE_BPS, rate=1000, start=START, period=PERIOD):
    return UnfreezeCreate(
        token_name=TOKEN,
        total_count=total,
        beneficiary=BENEFICIARY,
        start_time=start,
        period=period,
        means=int(means),
        rate=rate,
    )


def create_tx(nonce=0, sender=INITIATOR, **kwargs):
    return Transaction.for_action(
        TestnetConfig.MODULE_NAME, UnfreezeAction.of(create_body(**kwargs)), sender, nonce=nonce
    )


def withdraw_tx(unfreeze_id, sender=BENEFICIARY, nonce=0):
    return Transaction.for_action(
        TestnetConfig.MODULE_NAME, UnfreezeAction.of(UnfreezeWithdraw(unfreeze_id)), sender, nonce=nonce
    )


def terminate_tx(unfreeze_id, sender=INITIATOR, nonce=0):
    return Transaction.for_action(
        TestnetConfig.MODULE_NAME, UnfreezeAction.of(UnfreezeTerminate(unfreeze_id)), sender, nonce=nonce
    )
