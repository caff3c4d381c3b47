"""
Tracechain Orders Engine - Stages and Delivery Builders
========================================================
Engine: Orders (placement → approval → shipping → delivery)

PENDING → APPROVED → SHIPPING → SHIPPED, with REJECTED reachable only
from PENDING. REJECTED and SHIPPED are terminal.

Each order-stage step appends one delivery event. The per-line lot stage
that accompanies it is listed in ORDER_LOT_STAGE.
"""

from __future__ import annotations

import copy
from datetime import datetime
from typing import Any

from core.primitives.actor import Actor
from core.primitives.provenance import DeliveryEvent
from core.primitives.workflow import WorkflowDefinition
from engines.goods.events import DISTRIBUTING, EXPORTED, RETAILING


# ══════════════════════════════════════════════════════════════
# STAGES
# ══════════════════════════════════════════════════════════════

PENDING = "PENDING"
APPROVED = "APPROVED"
REJECTED = "REJECTED"
SHIPPING = "SHIPPING"
SHIPPED = "SHIPPED"

ORDER_STAGES = (PENDING, APPROVED, REJECTED, SHIPPING, SHIPPED)

ORDER_WORKFLOW = WorkflowDefinition(
    name="Order",
    initial_state=PENDING,
    terminal_states=frozenset({REJECTED, SHIPPED}),
    transitions={
        PENDING: frozenset({APPROVED, REJECTED}),
        APPROVED: frozenset({SHIPPING}),
        SHIPPING: frozenset({SHIPPED}),
        REJECTED: frozenset(),
        SHIPPED: frozenset(),
    },
)

# Lot stage applied to every line when the order enters the key's stage.
ORDER_LOT_STAGE = {
    APPROVED: EXPORTED,
    SHIPPING: DISTRIBUTING,
    SHIPPED: RETAILING,
}


# ══════════════════════════════════════════════════════════════
# BUILDERS
# ══════════════════════════════════════════════════════════════

def append_delivery(
    order: dict[str, Any],
    stage: str,
    date: datetime,
    address: str,
    actor: Actor,
) -> dict[str, Any]:
    """Copy of `order` with one more delivery event and the new stage."""
    updated = copy.deepcopy(order)
    event = DeliveryEvent(stage=stage, date=date, address=address, actor=actor)
    updated["delivery_history"] = (
        list(updated.get("delivery_history") or []) + [event.to_dict()]
    )
    updated["stage"] = stage
    return updated


def build_order_record(
    *,
    order_id: str,
    lines: list[dict[str, Any]],
    signatures: list[str],
    qr_code: str,
    created_at: str,
    retailer: Actor,
) -> dict[str, Any]:
    """A PENDING order without delivery history; see append_delivery."""
    return {
        "id": order_id,
        "lines": lines,
        "delivery_history": [],
        "signatures": list(signatures),
        "stage": PENDING,
        "created_at": created_at,
        "updated_at": None,
        "finished_at": None,
        "qr_code": qr_code,
        "retailer": retailer.to_dict(),
        "manufacturer": None,
        "distributor": None,
    }
