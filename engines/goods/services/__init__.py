"""
Tracechain Goods Engine - Application Service
==============================================
Goods lifecycle: cultivate → harvest → import → manufacture → export →
distribute → retail-import → sell.

Every stage operation checks, in this order:
    1. Role         (RoleMismatch)
    2. Existence    (NotFound)
    3. Transition   (InvalidStageTransition)
    4. Ownership    (PermissionDenied)
then appends one provenance entry stamped with the invocation timestamp
and writes the record back. Stage operations accept a Good id or a Lot id.
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
from core.store.keyspace import GOOD, TRACKED_KINDS, kind_for_id, parse_entity_number
from engines.goods.commands import (
    GOODS_CULTIVATE,
    GOODS_DISTRIBUTE,
    GOODS_EXPORT,
    GOODS_HARVEST,
    GOODS_IMPORT,
    GOODS_MANUFACTURE,
    GOODS_REGISTER,
    GOODS_RETAIL_IMPORT,
    GOODS_SELL,
    GOODS_UPDATE,
    GoodCreateRequest,
    GoodUpdateRequest,
    StageRequest,
    apply_field_updates,
)
from engines.goods.events import (
    CULTIVATED,
    DISTRIBUTING,
    EXPORTED,
    GOODS_WORKFLOW,
    HARVESTED,
    IMPORTED,
    MANUFACTURED,
    RETAILING,
    SOLD,
    append_provenance,
    build_good_record,
)
from engines.goods.policies import bound_supplier_policy, stage_owner_policy

logger = logging.getLogger("tracechain.goods")

OPERATION_STAGE = {
    GOODS_CULTIVATE: CULTIVATED,
    GOODS_HARVEST: HARVESTED,
    GOODS_IMPORT: IMPORTED,
    GOODS_MANUFACTURE: MANUFACTURED,
    GOODS_EXPORT: EXPORTED,
    GOODS_DISTRIBUTE: DISTRIBUTING,
    GOODS_RETAIL_IMPORT: RETAILING,
    GOODS_SELL: SOLD,
    GOODS_REGISTER: MANUFACTURED,
}


class GoodsLifecycleService:
    """Goods state machine bound to one invocation's ledger stub."""

    def __init__(self, stub: LedgerStub):
        self._stub = stub
        self._store = EntityStore(stub)
        self._sequence = SequenceAllocator(stub)

    # ── creation ──────────────────────────────────────────────

    def cultivate(self, actor: Actor, request: GoodCreateRequest) -> dict[str, Any]:
        return self._create(GOODS_CULTIVATE, actor, request)

    def register_good(self, actor: Actor, request: GoodCreateRequest) -> dict[str, Any]:
        """A manufacturer registers a good that enters the chain already manufactured."""
        return self._create(GOODS_REGISTER, actor, request)

    def _create(self, operation: str, actor: Actor, request: GoodCreateRequest) -> dict[str, Any]:
        require_role(operation, actor)
        timestamp = self._stub.invocation_timestamp()
        good_id = GOOD.key(self._sequence.next(GOOD))
        record = build_good_record(
            good_id=good_id,
            details=request.details,
            stage=OPERATION_STAGE[operation],
            timestamp=timestamp,
            actor=actor,
        )
        self._store.put(good_id, record)
        logger.info(f"{good_id} created at {record['stage']} by '{actor.id}'.")
        return record

    # ── stage transitions ────────────────────────────────────

    def harvest(self, actor: Actor, request: StageRequest) -> dict[str, Any]:
        return self.advance(actor, request)

    def import_good(self, actor: Actor, request: StageRequest) -> dict[str, Any]:
        return self.advance(actor, request)

    def manufacture(self, actor: Actor, request: StageRequest) -> dict[str, Any]:
        return self.advance(actor, request)

    def export(self, actor: Actor, request: StageRequest) -> dict[str, Any]:
        return self.advance(actor, request)

    def distribute(self, actor: Actor, request: StageRequest) -> dict[str, Any]:
        return self.advance(actor, request)

    def retail_import(self, actor: Actor, request: StageRequest) -> dict[str, Any]:
        return self.advance(actor, request)

    def sell(self, actor: Actor, request: StageRequest) -> dict[str, Any]:
        return self.advance(actor, request)

    def advance(self, actor: Actor, request: StageRequest) -> dict[str, Any]:
        operation = request.operation
        require_role(operation, actor)

        record = self.get(request.item_id)
        stage = OPERATION_STAGE[operation]
        GOODS_WORKFLOW.ensure_transition(record["id"], record.get("stage"), stage)
        stage_owner_policy(operation, record, actor)

        timestamp = self._stub.invocation_timestamp()
        updated = append_provenance(record, stage, timestamp, actor)
        apply_field_updates(updated, request.updates)

        self._store.put(updated["id"], updated)
        logger.info(
            f"{updated['id']} moved {record.get('stage')} → {stage} by '{actor.id}'."
        )
        return updated

    # ── gated field update ───────────────────────────────────

    def update_good(self, actor: Actor, request: GoodUpdateRequest) -> dict[str, Any]:
        require_role(GOODS_UPDATE, actor)
        if parse_entity_number(GOOD, request.good_id) is None:
            raise NotFound(request.good_id)
        record = self._store.get(request.good_id)
        bound_supplier_policy(record, actor)

        # id, supplier, provenance and stage always come from the stored record
        updated = apply_field_updates(dict(record), request.updates)
        self._store.put(request.good_id, updated)
        logger.info(
            f"{request.good_id} fields updated by '{actor.id}': "
            f"{', '.join(name for name, _ in request.updates) or 'none'}."
        )
        return updated

    # ── reads ─────────────────────────────────────────────────

    def get(self, item_id: str) -> dict[str, Any]:
        """A tracked item (Good or Lot) by id."""
        if kind_for_id(item_id, TRACKED_KINDS) is None:
            raise NotFound(item_id)
        return self._store.get(item_id)
