"""
Tracechain Orders Engine - Line Cascade
========================================
Applies one goods stage to the lot of every line in an order.

Each lot is read from the store (not from the order's embedded copy),
checked against the goods workflow, given one provenance entry, written
back, and its snapshot in the order line refreshed. Any failure aborts
the whole invocation.
"""

from __future__ import annotations

import copy
from datetime import datetime
from typing import Any

from core.invocation.errors import StoreError
from core.primitives.actor import Actor
from core.store.entity_store import EntityStore
from engines.goods.events import GOODS_WORKFLOW, append_provenance


def apply_stage_to_lines(
    store: EntityStore,
    order: dict[str, Any],
    stage: str,
    timestamp: datetime,
    actor: Actor,
) -> dict[str, Any]:
    """Copy of `order` whose every line lot has moved to `stage`."""
    updated = copy.deepcopy(order)
    refreshed = []
    for line in updated.get("lines") or []:
        lot_id = (line.get("lot") or {}).get("id")
        if not lot_id:
            raise StoreError(f"order line without a lot id in {order.get('id')}", key=order.get("id"))
        lot = store.get(lot_id)
        GOODS_WORKFLOW.ensure_transition(lot_id, lot.get("stage"), stage)
        lot = append_provenance(lot, stage, timestamp, actor)
        store.put(lot_id, lot)
        refreshed.append({**line, "lot": lot})
    updated["lines"] = refreshed
    return updated
