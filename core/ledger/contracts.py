"""
Tracechain Ledger - Collaborator Contract
==========================================
The versioned key-value ledger this system consumes but does not control.

Two seams:
    LedgerStub   - what a single invocation sees (get / put / scan /
                   history / invocation timestamp)
    Ledger       - the substrate that opens invocations as transactions
                   and commits their write sets atomically

Consistency model (optimistic):
- Every read records the version of the key it observed
- Writes are buffered until commit
- Commit rejects the whole transaction if any observed key changed
  since it was read (LedgerConflictError); nothing is applied
- A rejected invocation must be resubmitted by the caller

This file contains NO storage logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Protocol


# ══════════════════════════════════════════════════════════════
# KEY MODIFICATION (one committed version of one key)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class KeyModification:
    """
    One committed version of a key, as reported by the ledger.

    Fields:
        value:      Raw bytes written, or None for a deletion.
        tx_id:      Identifier of the committing transaction.
        timestamp:  Commit timestamp (timezone-aware).
        is_delete:  True when this version removed the key.
    """
    value: Optional[bytes]
    tx_id: str
    timestamp: datetime
    is_delete: bool = False

    def __post_init__(self):
        if not self.tx_id or not isinstance(self.tx_id, str):
            raise ValueError("tx_id must be a non-empty string.")
        if not isinstance(self.timestamp, datetime):
            raise ValueError("timestamp must be datetime.")
        if self.is_delete and self.value is not None:
            raise ValueError("Deletion records carry no value.")
        if not self.is_delete and not isinstance(self.value, bytes):
            raise ValueError("Write records must carry bytes.")


@dataclass(frozen=True)
class CommitReceipt:
    """
    Result of a committed transaction.

    committed_at is None only for read-only transactions that never
    asked for a timestamp.
    """
    tx_id: str
    committed_at: Optional[datetime]
    keys_written: tuple[str, ...] = ()

    @property
    def read_only(self) -> bool:
        return not self.keys_written


# ══════════════════════════════════════════════════════════════
# PROTOCOLS
# ══════════════════════════════════════════════════════════════

class LedgerStub(Protocol):
    """The ledger as seen from inside one invocation."""

    def get(self, key: str) -> Optional[bytes]:
        ...

    def put(self, key: str, value: bytes) -> None:
        ...

    def range_scan(
        self, start_key: str, end_key_exclusive: str,
    ) -> Iterable[tuple[str, bytes]]:
        ...

    def history_of(self, key: str) -> Iterable[KeyModification]:
        ...

    def invocation_timestamp(self) -> datetime:
        ...


class LedgerTransaction(LedgerStub, Protocol):
    """A LedgerStub that can be committed or discarded."""

    @property
    def tx_id(self) -> str:
        ...

    def delete(self, key: str) -> None:
        ...

    def commit(self) -> CommitReceipt:
        ...

    def abort(self) -> None:
        ...


class Ledger(Protocol):
    """A ledger substrate that runs invocations as transactions."""

    def begin(self, tx_id: Optional[str] = None) -> LedgerTransaction:
        ...
