"""
Tracechain Goods Engine - Policies
===================================
Ownership rules for goods operations.

Manufacture: only the manufacturer who imported the item.
Export:      only the manufacturer who manufactured the item.
Update:      only the actor bound to the good's supplier slot (the cultivating
             supplier, or the manufacturer that registered it).
"""

from __future__ import annotations

from typing import Any, Mapping

from core.permissions.evaluator import require_bound_actor, require_stage_actor
from core.primitives.actor import Actor
from engines.goods.commands import GOODS_EXPORT, GOODS_MANUFACTURE, GOODS_UPDATE
from engines.goods.events import IMPORTED, MANUFACTURED

OWNERSHIP_STAGE = {
    GOODS_MANUFACTURE: IMPORTED,
    GOODS_EXPORT: MANUFACTURED,
}


def stage_owner_policy(operation: str, record: Mapping[str, Any], actor: Actor) -> None:
    """Raise PermissionDenied unless the caller owns the predecessor stage."""
    stage = OWNERSHIP_STAGE.get(operation)
    if stage is None:
        return
    require_stage_actor(operation, record, stage, actor)


def bound_supplier_policy(record: Mapping[str, Any], actor: Actor) -> None:
    require_bound_actor(GOODS_UPDATE, record, "supplier", actor)
