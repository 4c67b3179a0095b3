"""
Unfreeze - deterministic token vesting engine

Locks a quantity of a fungible token in escrow and releases it to a
beneficiary on a periodic schedule, as one module of a replicated ledger's
transaction-execution pipeline.

Main Components:
- Actions: create, withdraw and terminate a vesting schedule
- Executor: decodes transactions and produces atomic receipts
- Token ledger and state store interfaces the engine runs against
"""

__version__ = "0.1.0"
__author__ = "Unfreeze Development Team"

__all__ = []
