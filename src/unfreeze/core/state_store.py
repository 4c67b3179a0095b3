"""
Key/value state storage consumed by the unfreeze engine.

The engine only needs ``get`` and ``put`` over byte keys. ``StateOverlay``
buffers an action's writes on top of a base store so that a failing action
leaves the base untouched; the buffered writes become the receipt's kv list
and are committed by the caller.
"""

from __future__ import annotations

import threading
from typing import Protocol, runtime_checkable

from unfreeze.core.receipt import KeyValue
from unfreeze.core.unfreeze_exceptions import NotFoundError


@runtime_checkable
class PersistentStore(Protocol):
    """
    Protocol for a namespaced byte-key/byte-value store.

    Implementations raise NotFoundError from ``get`` for absent keys.
    """

    def get(self, key: bytes) -> bytes:
        ...

    def put(self, key: bytes, value: bytes) -> None:
        ...


class MemoryStateStore:
    """Dict-backed store used by tests and single-process hosts."""

    def __init__(self, initial: dict[bytes, bytes] | None = None) -> None:
        self._data: dict[bytes, bytes] = dict(initial or {})
        self._lock = threading.RLock()

    def get(self, key: bytes) -> bytes:
        with self._lock:
            try:
                return self._data[key]
            except KeyError:
                raise NotFoundError(
                    "Key not found in state store",
                    details={"key": key.decode("utf-8", "replace")},
                ) from None

    def put(self, key: bytes, value: bytes) -> None:
        with self._lock:
            self._data[key] = value

    def snapshot(self) -> dict[bytes, bytes]:
        with self._lock:
            return dict(self._data)

    def __contains__(self, key: bytes) -> bool:
        with self._lock:
            return key in self._data

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


class StateOverlay:
    """
    Buffered write layer over a PersistentStore.

    Reads see buffered writes first, then fall through to the base store.
    The base store is never written; ``pending()`` returns the writes in the
    order they were made, collapsing repeated writes to one key into its
    latest value at the position of its first write.
    """

    def __init__(self, base: PersistentStore) -> None:
        self._base = base
        self._writes: dict[bytes, bytes] = {}

    def get(self, key: bytes) -> bytes:
        if key in self._writes:
            return self._writes[key]
        return self._base.get(key)

    def put(self, key: bytes, value: bytes) -> None:
        self._writes[key] = value

    def pending(self) -> list[KeyValue]:
        return [KeyValue(key, value) for key, value in self._writes.items()]

    def discard(self) -> None:
        self._writes.clear()
