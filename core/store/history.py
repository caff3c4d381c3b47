"""
Tracechain Store - Provenance History Reader
=============================================
Replays every committed version of one key, oldest first, exactly as
the ledger reports them.

A deletion yields a tombstone record carrying only {"id": key}.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from core.invocation.runner import translate_ledger_error
from core.ledger.contracts import LedgerStub
from core.ledger.errors import LedgerError
from core.store.codec import decode_entity
from core.time.clock import format_timestamp


@dataclass(frozen=True)
class HistoryEntry:
    record: dict
    tx_id: str
    timestamp: datetime
    is_delete: bool = False

    def to_dict(self) -> dict:
        return {
            "record": self.record,
            "tx_id": self.tx_id,
            "timestamp": format_timestamp(self.timestamp),
            "is_delete": self.is_delete,
        }


def tombstone(key: str) -> dict[str, Any]:
    return {"id": key}


class ProvenanceHistoryReader:
    def __init__(self, stub: LedgerStub):
        self._stub = stub

    def history(self, key: str) -> list[HistoryEntry]:
        try:
            modifications = list(self._stub.history_of(key))
        except LedgerError as exc:
            raise translate_ledger_error(exc) from exc

        entries = []
        for modification in modifications:
            if modification.is_delete:
                record = tombstone(key)
            else:
                record = decode_entity(key, modification.value)
            entries.append(
                HistoryEntry(
                    record=record,
                    tx_id=modification.tx_id,
                    timestamp=modification.timestamp,
                    is_delete=modification.is_delete,
                )
            )
        return entries
