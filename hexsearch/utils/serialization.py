"""
JSON helpers for cached payloads.

Search results are plain dicts/lists; timestamps are rendered as
ISO-8601 strings so a value read back from the cache is identical to the
value returned on a miss.
"""

import json
from datetime import datetime
from typing import Any


def isoformat(value: datetime | None) -> str | None:
    """Render a timestamp for a result payload."""
    return value.isoformat() if value is not None else None


def dumps(value: Any) -> str:
    """Deterministic JSON encoding (sorted keys, compact)."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=_default)


def loads(payload: str) -> Any:
    """Decode a cached payload."""
    return json.loads(payload)


def _default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
