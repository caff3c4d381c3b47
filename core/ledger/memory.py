"""
Tracechain Ledger - In-Memory Substrate
========================================
Deterministic, thread-safe ledger used in tests, local runs and smoke
scenarios.

Semantics match the Django substrate:
- Per-key version counter (0 = never written)
- Commit validates every observed version under one lock, then applies
  the full write set or nothing
- Every committed write or delete appends a KeyModification to the key's
  history
- Commit timestamps are strictly increasing across the ledger

The lock guards the substrate's own state. It does not serialize
invocations: two transactions may interleave freely and the loser is
rejected at commit.
"""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime, timedelta
from typing import Optional

from core.ledger.contracts import CommitReceipt, KeyModification
from core.ledger.errors import LedgerConflictError
from core.ledger.transaction import BufferedTransaction
from core.time.clock import Clock, SystemClock

logger = logging.getLogger("tracechain.ledger")

_TICK = timedelta(microseconds=1)


class InMemoryTransaction(BufferedTransaction):
    def __init__(self, ledger: "InMemoryLedger", tx_id: str):
        super().__init__(tx_id)
        self._ledger = ledger

    def _read_committed(self, key):
        return self._ledger._read(key)

    def _scan_committed(self, start_key, end_key_exclusive):
        return self._ledger._scan(start_key, end_key_exclusive)

    def _history_committed(self, key):
        return self._ledger._history_of(key)

    def _stamp(self) -> datetime:
        return self._ledger._clock.now_utc()

    def _apply(self, reads, writes) -> CommitReceipt:
        return self._ledger._apply(self._tx_id, self._timestamp, reads, writes)


class InMemoryLedger:
    """Versioned key-value ledger held in process memory."""

    def __init__(self, clock: Clock | None = None):
        self._clock = clock or SystemClock()
        self._lock = threading.Lock()
        self._values: dict[str, bytes] = {}
        self._versions: dict[str, int] = {}
        self._history: dict[str, list[KeyModification]] = {}
        self._last_commit: Optional[datetime] = None

    def begin(self, tx_id: Optional[str] = None) -> InMemoryTransaction:
        return InMemoryTransaction(self, tx_id or uuid.uuid4().hex)

    def peek(self, key: str) -> Optional[bytes]:
        """Committed value of a key, outside any transaction."""
        with self._lock:
            return self._values.get(key)

    def version_of(self, key: str) -> int:
        with self._lock:
            return self._versions.get(key, 0)

    # ── committed-state hooks ────────────────────────────────

    def _read(self, key: str) -> tuple[Optional[bytes], int]:
        with self._lock:
            return self._values.get(key), self._versions.get(key, 0)

    def _scan(self, start_key: str, end_key_exclusive: str) -> list[tuple[str, bytes, int]]:
        with self._lock:
            return [
                (key, self._values[key], self._versions.get(key, 0))
                for key in sorted(self._values)
                if start_key <= key < end_key_exclusive
            ]

    def _history_of(self, key: str) -> tuple[KeyModification, ...]:
        with self._lock:
            return tuple(self._history.get(key, ()))

    def _next_commit_time(self, stamped_at: Optional[datetime]) -> datetime:
        candidate = stamped_at or self._clock.now_utc()
        if self._last_commit is not None and candidate <= self._last_commit:
            candidate = self._last_commit + _TICK
        return candidate

    def _apply(
        self,
        tx_id: str,
        stamped_at: Optional[datetime],
        reads: dict[str, int],
        writes: dict[str, Optional[bytes]],
    ) -> CommitReceipt:
        with self._lock:
            for key, read_version in sorted(reads.items()):
                current = self._versions.get(key, 0)
                if current != read_version:
                    logger.warning(
                        f"Commit rejected for transaction {tx_id}: "
                        f"'{key}' moved from version {read_version} to {current}."
                    )
                    raise LedgerConflictError(tx_id, key, read_version, current)

            committed_at = self._next_commit_time(stamped_at)
            for key in sorted(writes):
                value = writes[key]
                self._versions[key] = self._versions.get(key, 0) + 1
                if value is None:
                    self._values.pop(key, None)
                else:
                    self._values[key] = value
                self._history.setdefault(key, []).append(
                    KeyModification(
                        value=value,
                        tx_id=tx_id,
                        timestamp=committed_at,
                        is_delete=value is None,
                    )
                )
            self._last_commit = committed_at

        logger.debug(
            f"Transaction {tx_id} committed {len(writes)} key(s) "
            f"at {committed_at.isoformat()}."
        )
        return CommitReceipt(
            tx_id=tx_id,
            committed_at=committed_at,
            keys_written=tuple(sorted(writes)),
        )
