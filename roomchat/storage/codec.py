"""Canonical JSON encoding for stored values.

Lists and hashes hold JSON objects. Equal records must encode to equal
strings, since list entries are removed by value.
"""

import json
from typing import Any


def encode(record: dict[str, Any]) -> str:
    """Encode a record canonically (sorted keys, compact separators)."""
    return json.dumps(record, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def decode(raw: str | bytes) -> dict[str, Any]:
    """Decode a stored value. Raises ValueError unless it is a JSON object."""
    value = json.loads(raw)
    if not isinstance(value, dict):
        raise ValueError(f"Stored value is not an object: {type(value).__name__}")
    return value
