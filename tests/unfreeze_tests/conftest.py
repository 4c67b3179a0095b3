import pytest

from unfreeze.core.config import TestnetConfig
from unfreeze.core.context import exec_address
from unfreeze.core.executor import UnfreezeExecutor
from unfreeze.core.state_store import MemoryStateStore
from unfreeze.core.token_ledger import StoreTokenLedger, store_ledger_factory

from tests.unfreeze_tests.helpers import INITIATOR, TOKEN


@pytest.fixture
def store():
    return MemoryStateStore()


@pytest.fixture
def ledger_factory():
    return store_ledger_factory(exec_name=TestnetConfig.TOKEN_EXEC, namespace=TestnetConfig.STATE_NAMESPACE)


@pytest.fixture
def executor(store, ledger_factory):
    return UnfreezeExecutor(store, ledger_factory, TestnetConfig)


@pytest.fixture
def escrow():
    return exec_address(TestnetConfig.MODULE_NAME)


@pytest.fixture
def ledger(store):
    """Ledger view over the committed store, for funding and balance checks."""
    return StoreTokenLedger(store, TOKEN, TestnetConfig.TOKEN_EXEC, TestnetConfig.STATE_NAMESPACE)


@pytest.fixture
def funded(ledger, escrow):
    """Give an owner (the initiator by default) an active balance at the unfreeze escrow."""

    def fund(amount=10_000, owner=INITIATOR):
        for kv in ledger.deposit(owner, escrow, amount).kv:
            ledger.store.put(kv.key, kv.value)

    return fund
