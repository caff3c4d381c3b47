"""
Tracechain Store - Range Enumerator
====================================
Lists every entity of one kind with an id in 1 … counter.

Algorithm:
    1. Read the kind's counter (the scan bound is counter + 1, exclusive)
    2. Scan the digit band "<Prefix>0" ... "<Prefix>:" so lexicographic
       order ("Good10" < "Good2") cannot cut the result short and the
       sequence key is never included
    3. Keep keys whose suffix is a canonical decimal in [1, counter]
    4. Order numerically, then apply the optional stage / owner filters

Pure read. Decode failures surface as errors.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from core.invocation.runner import translate_ledger_error
from core.ledger.contracts import LedgerStub
from core.ledger.errors import LedgerError
from core.sequence.allocator import SequenceAllocator
from core.store.codec import decode_entity
from core.store.keyspace import EntityKind, parse_entity_number

logger = logging.getLogger("tracechain.queries")


@dataclass(frozen=True)
class OwnerFilter:
    """
    Keep entities whose actor in `slot` has id `actor_id`.

    slot is a top-level field holding an actor dict ("retailer",
    "manufacturer", "distributor", "supplier").
    """
    slot: str
    actor_id: str

    def __post_init__(self):
        if not self.slot or not isinstance(self.slot, str):
            raise ValueError("slot must be a non-empty string.")
        if not self.actor_id or not isinstance(self.actor_id, str):
            raise ValueError("actor_id must be a non-empty string.")

    def matches(self, record: dict[str, Any]) -> bool:
        holder = record.get(self.slot) or {}
        return holder.get("id") == self.actor_id


class RangeEnumerator:
    def __init__(self, stub: LedgerStub):
        self._stub = stub
        self._sequence = SequenceAllocator(stub)

    def list(
        self,
        kind: EntityKind,
        stages: Optional[Iterable[str]] = None,
        owner: Optional[OwnerFilter] = None,
    ) -> list[dict[str, Any]]:
        """
        Entities of `kind` ordered by id number.

        `stages` empty or None keeps every stage; otherwise a record is kept
        only if its stage is listed. Stage AND owner must both match.
        """
        counter = self._sequence.current(kind)
        if counter == 0:
            return []
        wanted = frozenset(stages or ())

        try:
            rows = self._stub.range_scan(kind.scan_start, kind.scan_end)
        except LedgerError as exc:
            raise translate_ledger_error(exc) from exc

        numbered = []
        for key, raw in rows:
            number = parse_entity_number(kind, key)
            if number is None or number > counter:
                continue
            numbered.append((number, decode_entity(key, raw)))
        numbered.sort(key=lambda pair: pair[0])

        results = [
            record
            for _, record in numbered
            if (not wanted or record.get("stage") in wanted)
            and (owner is None or owner.matches(record))
        ]
        logger.debug(
            f"Enumerated {len(results)} of {len(numbered)} {kind.name} record(s) "
            f"(counter={counter})."
        )
        return results
