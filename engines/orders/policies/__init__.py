"""
Tracechain Orders Engine - Policies
====================================
Ownership rules for order operations.

Create / Approve / Reject / Ship bind the caller to a slot; only Finish
requires the caller to already hold one (the distributor who shipped).
"""

from __future__ import annotations

from typing import Any, Mapping

from core.permissions.evaluator import require_bound_actor
from core.primitives.actor import Actor
from engines.orders.commands import ORDERS_FINISH

BOUND_SLOT = {
    ORDERS_FINISH: "distributor",
}


def bound_actor_policy(operation: str, order: Mapping[str, Any], actor: Actor) -> None:
    slot = BOUND_SLOT.get(operation)
    if slot is None:
        return
    require_bound_actor(operation, order, slot, actor)
