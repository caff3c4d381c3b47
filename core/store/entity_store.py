"""
Tracechain Store - Entity Store Adapter
========================================
Reads and writes one entity by key through the invocation's LedgerStub.

This adapter ONLY serializes and checks existence. It does not validate
entity shape or lifecycle rules. Ledger failures surface as StoreError.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from core.invocation.errors import NotFound, StoreError
from core.invocation.runner import translate_ledger_error
from core.ledger.contracts import LedgerStub
from core.ledger.errors import LedgerError
from core.store.codec import decode_entity, encode_entity

logger = logging.getLogger("tracechain.ledger")


class EntityStore:
    def __init__(self, stub: LedgerStub):
        self._stub = stub

    @property
    def stub(self) -> LedgerStub:
        return self._stub

    def find(self, key: str) -> Optional[dict[str, Any]]:
        """Entity at `key`, or None when the key holds nothing."""
        try:
            raw = self._stub.get(key)
        except LedgerError as exc:
            raise translate_ledger_error(exc) from exc
        if raw is None:
            return None
        return decode_entity(key, raw)

    def get(self, key: str) -> dict[str, Any]:
        record = self.find(key)
        if record is None:
            raise NotFound(key)
        return record

    def put(self, key: str, record: dict[str, Any]) -> None:
        try:
            payload = encode_entity(record)
        except (TypeError, ValueError) as exc:
            raise StoreError(f"cannot encode entity ({exc})", key=key) from exc
        try:
            self._stub.put(key, payload)
        except LedgerError as exc:
            raise translate_ledger_error(exc) from exc
        logger.debug(f"Buffered write of '{key}' ({len(payload)} bytes).")
