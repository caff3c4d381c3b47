"""
Tracechain Orders Engine - Commercial Lot Deriver
==================================================
Turns the goods referenced by a new order into order-scoped lots.

For each requested item:
    1. Read the Good (NotFound fails the whole order)
    2. Allocate the next Lot id
    3. Copy descriptive fields and the provenance so far
    4. Set the lot's QR code from the request
    5. Persist the lot under its own key and emit an order line

The lot keeps the good's current stage; later stages are appended to the
lot only, never to the source good.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Iterable

from core.invocation.errors import NotFound
from core.ledger.contracts import LedgerStub
from core.sequence.allocator import SequenceAllocator
from core.store.entity_store import EntityStore
from core.store.keyspace import GOOD, LOT, parse_entity_number
from engines.orders.commands import OrderItem

logger = logging.getLogger("tracechain.orders")

COPIED_FIELDS = (
    "code",
    "name",
    "supplier",
    "images",
    "expiry",
    "price",
    "unit",
    "stage",
    "description",
    "certificate_ref",
)


def derive_lot(good: dict[str, Any], lot_id: str, qr_code: str) -> dict[str, Any]:
    lot = {"id": lot_id, "good_id": good["id"]}
    for field_name in COPIED_FIELDS:
        lot[field_name] = copy.deepcopy(good.get(field_name))
    lot["provenance"] = copy.deepcopy(good.get("provenance") or [])
    lot["qr_code"] = qr_code
    return lot


class CommercialLotDeriver:
    def __init__(self, stub: LedgerStub):
        self._store = EntityStore(stub)
        self._sequence = SequenceAllocator(stub)

    def derive(self, items: Iterable[OrderItem]) -> list[dict[str, Any]]:
        """Order lines [{lot, quantity}] in request order."""
        lines = []
        for item in items:
            if parse_entity_number(GOOD, item.good_id) is None:
                raise NotFound(item.good_id)
            good = self._store.get(item.good_id)

            lot_id = LOT.key(self._sequence.next(LOT))
            lot = derive_lot(good, lot_id, item.qr_code)
            self._store.put(lot_id, lot)
            logger.info(f"{lot_id} derived from {item.good_id} at {lot['stage']}.")

            lines.append({"lot": lot, "quantity": item.quantity})
        return lines
