"""
Tracechain Sequence - Allocator
================================
Monotonic integer ids per entity kind, backed by one counter record per
kind stored under the kind's sequence key as {"value": n}.

Rules:
- current() is 0 for a kind that was never initialized or allocated
- next() is read, +1, write back, within the caller's transaction
- Two invocations allocating concurrently both read the counter; the
  ledger rejects one of them at commit, so no id is handed out twice
- Counters are never held in process memory
"""

from __future__ import annotations

import logging

from core.invocation.errors import EntityDecodeError
from core.ledger.contracts import LedgerStub
from core.store.entity_store import EntityStore
from core.store.keyspace import ALL_KINDS, EntityKind

logger = logging.getLogger("tracechain.sequence")


class SequenceAllocator:
    def __init__(self, stub: LedgerStub):
        self._store = EntityStore(stub)

    def _read(self, kind: EntityKind) -> int | None:
        record = self._store.find(kind.sequence_key)
        if record is None:
            return None
        value = record.get("value")
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise EntityDecodeError(
                kind.sequence_key, f"counter value must be a non-negative integer, got {value!r}",
            )
        return value

    def current(self, kind: EntityKind) -> int:
        value = self._read(kind)
        return 0 if value is None else value

    def next(self, kind: EntityKind) -> int:
        allocated = self.current(kind) + 1
        self._store.put(kind.sequence_key, {"value": allocated})
        logger.debug(f"Allocated {kind.prefix}{allocated}.")
        return allocated

    def init(self, kind: EntityKind) -> bool:
        """Create a zero counter. Returns False when one already exists."""
        if self._read(kind) is not None:
            return False
        self._store.put(kind.sequence_key, {"value": 0})
        logger.info(f"Initialized sequence '{kind.sequence_key}'.")
        return True

    def init_all(self) -> dict[str, bool]:
        return {kind.sequence_key: self.init(kind) for kind in ALL_KINDS}
