"""
Standard serialization for records persisted by the unfreeze engine.

Records and receipt log payloads are stored as canonical JSON: sorted keys,
compact separators and ASCII-only output, so every replica produces the same
bytes for the same value.
"""

from __future__ import annotations

import json
from typing import Any

from unfreeze.core.unfreeze_exceptions import DecodeError


def canonical_json(value: Any) -> str:
    """Serialize data into stable JSON for replay-safe storage."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=True)


def encode(value: dict[str, Any]) -> bytes:
    return canonical_json(value).encode("utf-8")


def decode(data: bytes) -> dict[str, Any]:
    """
    Decode bytes produced by :func:`encode`.

    Raises:
        DecodeError: If the bytes are not a UTF-8 JSON object
    """
    try:
        value = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, ValueError, AttributeError) as exc:
        raise DecodeError(
            "Cannot decode stored record",
            details={"reason": str(exc)},
        ) from exc
    if not isinstance(value, dict):
        raise DecodeError(
            "Stored record is not an object",
            details={"type": type(value).__name__},
        )
    return value
