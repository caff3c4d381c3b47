"""
Tracechain Store - Entity Codec
================================
Entity records <-> ledger bytes.

Rules:
- Canonical JSON: sorted keys, no whitespace variability
- Same record ALWAYS produces the same bytes
- Decode failures raise EntityDecodeError, never default to an empty record
"""

import json
from typing import Any

from core.invocation.errors import EntityDecodeError


def encode_entity(record: dict[str, Any]) -> bytes:
    if not isinstance(record, dict):
        raise TypeError("Entity record must be a dict.")
    return json.dumps(
        record,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=True,
    ).encode("utf-8")


def decode_entity(key: str, raw: bytes) -> dict[str, Any]:
    try:
        record = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise EntityDecodeError(key, str(exc)) from exc
    if not isinstance(record, dict):
        raise EntityDecodeError(key, f"expected an object, got {type(record).__name__}")
    return record
