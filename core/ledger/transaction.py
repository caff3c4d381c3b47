"""
Tracechain Ledger - Buffered Transaction
=========================================
Shared read-set / write-set bookkeeping for ledger substrates.

Rules:
- Reads record the committed version they observed (first read wins)
- Writes and deletes are buffered; reads see the transaction's own writes
- Range scans merge committed keys with buffered writes
- A transaction commits or aborts exactly once
- Read-only transactions commit without validation and write nothing

Substrates supply the committed-state hooks and the atomic apply step.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from core.ledger.contracts import CommitReceipt, KeyModification
from core.ledger.errors import LedgerTimestampError, TransactionClosedError


def _validate_key(key: str) -> None:
    if not key or not isinstance(key, str):
        raise ValueError("Ledger key must be a non-empty string.")


class BufferedTransaction:
    """Base class for substrate transactions (not used directly)."""

    def __init__(self, tx_id: str):
        if not tx_id or not isinstance(tx_id, str):
            raise ValueError("tx_id must be a non-empty string.")
        self._tx_id = tx_id
        self._timestamp: Optional[datetime] = None
        # key → committed version observed by this transaction
        self._reads: dict[str, int] = {}
        # key → bytes to write, or None to delete
        self._writes: dict[str, Optional[bytes]] = {}
        self._closed = False

    # ── hooks ─────────────────────────────────────────────────

    def _read_committed(self, key: str) -> tuple[Optional[bytes], int]:
        raise NotImplementedError

    def _scan_committed(
        self, start_key: str, end_key_exclusive: str,
    ) -> Iterable[tuple[str, bytes, int]]:
        raise NotImplementedError

    def _history_committed(self, key: str) -> Iterable[KeyModification]:
        raise NotImplementedError

    def _stamp(self) -> datetime:
        raise NotImplementedError

    def _apply(
        self,
        reads: dict[str, int],
        writes: dict[str, Optional[bytes]],
    ) -> CommitReceipt:
        raise NotImplementedError

    # ── stub API ──────────────────────────────────────────────

    @property
    def tx_id(self) -> str:
        return self._tx_id

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise TransactionClosedError(self._tx_id)

    def get(self, key: str) -> Optional[bytes]:
        self._ensure_open()
        _validate_key(key)
        if key in self._writes:
            return self._writes[key]
        value, version = self._read_committed(key)
        self._reads.setdefault(key, version)
        return value

    def put(self, key: str, value: bytes) -> None:
        self._ensure_open()
        _validate_key(key)
        if not isinstance(value, bytes) or not value:
            raise ValueError("Ledger value must be non-empty bytes.")
        self._writes[key] = value

    def delete(self, key: str) -> None:
        self._ensure_open()
        _validate_key(key)
        self._writes[key] = None

    def range_scan(
        self, start_key: str, end_key_exclusive: str,
    ) -> list[tuple[str, bytes]]:
        self._ensure_open()
        merged: dict[str, Optional[bytes]] = {}
        for key, value, version in self._scan_committed(start_key, end_key_exclusive):
            self._reads.setdefault(key, version)
            merged[key] = value
        for key, value in self._writes.items():
            if start_key <= key < end_key_exclusive:
                merged[key] = value
        return [
            (key, value)
            for key, value in sorted(merged.items())
            if value is not None
        ]

    def history_of(self, key: str) -> list[KeyModification]:
        self._ensure_open()
        _validate_key(key)
        return list(self._history_committed(key))

    def invocation_timestamp(self) -> datetime:
        """Stamped once per transaction; every call returns the same value."""
        self._ensure_open()
        if self._timestamp is None:
            try:
                stamped = self._stamp()
            except Exception as exc:
                raise LedgerTimestampError(
                    f"Transaction {self._tx_id} has no timestamp: {exc}"
                ) from exc
            if not isinstance(stamped, datetime) or stamped.tzinfo is None:
                raise LedgerTimestampError(
                    f"Transaction {self._tx_id} received a non timezone-aware timestamp."
                )
            self._timestamp = stamped
        return self._timestamp

    # ── completion ────────────────────────────────────────────

    @property
    def write_set(self) -> tuple[str, ...]:
        return tuple(sorted(self._writes))

    def commit(self) -> CommitReceipt:
        self._ensure_open()
        self._closed = True
        if not self._writes:
            return CommitReceipt(tx_id=self._tx_id, committed_at=self._timestamp)
        return self._apply(dict(self._reads), dict(self._writes))

    def abort(self) -> None:
        self._closed = True
        self._writes.clear()
        self._reads.clear()
