"""
Unfreeze Core Module

Schedule model, release arithmetic, actions, executor and the ledger/store
interfaces they are built on.
"""

__all__ = []
