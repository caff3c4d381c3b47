"""
Tracechain Orders Engine - Application Service
===============================================
Order lifecycle: create (retailer) → approve | reject (manufacturer) →
ship → finish (distributor).

Every transition checks role, then existence, then the order workflow,
then ownership. It appends one delivery event, cascades the matching
goods stage to every line's lot, binds the acting party and stamps the
order with the invocation timestamp.
"""

from __future__ import annotations

import logging
from typing import Any

from core.invocation.errors import NotFound
from core.ledger.contracts import LedgerStub
from core.permissions.evaluator import require_role
from core.primitives.actor import Actor
from core.sequence.allocator import SequenceAllocator
from core.store.entity_store import EntityStore
from core.store.keyspace import ORDER, parse_entity_number
from core.time.clock import format_timestamp
from engines.orders.cascade import apply_stage_to_lines
from engines.orders.commands import (
    ORDERS_APPROVE,
    ORDERS_CREATE,
    ORDERS_FINISH,
    ORDERS_REJECT,
    ORDERS_SHIP,
    OrderCreateRequest,
    OrderDecisionRequest,
    OrderDeliveryRequest,
)
from engines.orders.events import (
    APPROVED,
    ORDER_LOT_STAGE,
    ORDER_WORKFLOW,
    PENDING,
    REJECTED,
    SHIPPED,
    SHIPPING,
    append_delivery,
    build_order_record,
)
from engines.orders.lot_deriver import CommercialLotDeriver
from engines.orders.policies import bound_actor_policy

logger = logging.getLogger("tracechain.orders")

OPERATION_STAGE = {
    ORDERS_APPROVE: APPROVED,
    ORDERS_REJECT: REJECTED,
    ORDERS_SHIP: SHIPPING,
    ORDERS_FINISH: SHIPPED,
}

# Slot the acting party is written to on each transition.
OPERATION_SLOT = {
    ORDERS_APPROVE: "manufacturer",
    ORDERS_REJECT: "manufacturer",
    ORDERS_SHIP: "distributor",
}


class OrderLifecycleService:
    """Order state machine bound to one invocation's ledger stub."""

    def __init__(self, stub: LedgerStub):
        self._stub = stub
        self._store = EntityStore(stub)
        self._sequence = SequenceAllocator(stub)
        self._deriver = CommercialLotDeriver(stub)

    def create(self, actor: Actor, request: OrderCreateRequest) -> dict[str, Any]:
        require_role(ORDERS_CREATE, actor)
        timestamp = self._stub.invocation_timestamp()

        order_id = ORDER.key(self._sequence.next(ORDER))
        lines = self._deriver.derive(request.items)

        order = build_order_record(
            order_id=order_id,
            lines=lines,
            signatures=list(request.signatures),
            qr_code=request.qr_code,
            created_at=format_timestamp(timestamp),
            retailer=actor,
        )
        address = request.address if request.address else actor.address
        order = append_delivery(order, PENDING, timestamp, address, actor)

        self._store.put(order_id, order)
        logger.info(
            f"{order_id} placed by '{actor.id}' with {len(lines)} line(s)."
        )
        return order

    def approve(self, actor: Actor, request: OrderDecisionRequest) -> dict[str, Any]:
        return self._transition(ORDERS_APPROVE, actor, request.order_id, actor.address)

    def reject(self, actor: Actor, request: OrderDecisionRequest) -> dict[str, Any]:
        return self._transition(ORDERS_REJECT, actor, request.order_id, actor.address)

    def ship(self, actor: Actor, request: OrderDeliveryRequest) -> dict[str, Any]:
        return self._transition(
            ORDERS_SHIP, actor, request.order_id, request.address,
            signature=request.signature,
        )

    def finish(self, actor: Actor, request: OrderDeliveryRequest) -> dict[str, Any]:
        return self._transition(
            ORDERS_FINISH, actor, request.order_id, request.address,
            signature=request.signature,
        )

    def _transition(
        self,
        operation: str,
        actor: Actor,
        order_id: str,
        address: str,
        signature: str | None = None,
    ) -> dict[str, Any]:
        require_role(operation, actor)
        order = self.get(order_id)
        stage = OPERATION_STAGE[operation]
        ORDER_WORKFLOW.ensure_transition(order_id, order.get("stage"), stage)
        bound_actor_policy(operation, order, actor)

        timestamp = self._stub.invocation_timestamp()
        stamped = format_timestamp(timestamp)

        lot_stage = ORDER_LOT_STAGE.get(stage)
        if lot_stage is not None:
            order = apply_stage_to_lines(self._store, order, lot_stage, timestamp, actor)

        previous_stage = order.get("stage")
        order = append_delivery(order, stage, timestamp, address or "", actor)

        slot = OPERATION_SLOT.get(operation)
        if slot is not None:
            order[slot] = actor.to_dict()
        if signature is not None:
            order["signatures"] = list(order.get("signatures") or []) + [signature]
        order["updated_at"] = stamped
        if stage == SHIPPED:
            order["finished_at"] = stamped

        self._store.put(order_id, order)
        logger.info(f"{order_id} moved {previous_stage} → {stage} by '{actor.id}'.")
        return order

    def get(self, order_id: str) -> dict[str, Any]:
        if parse_entity_number(ORDER, order_id) is None:
            raise NotFound(order_id)
        return self._store.get(order_id)
