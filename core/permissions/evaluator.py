"""
Tracechain Permissions - Deterministic Role and Ownership Checks
=================================================================
Two layers, checked in this order by every lifecycle operation:

    1. Role       - the caller's role is one the operation admits
                    (RoleMismatch)
    2. Ownership  - the caller is the actor recorded for a named stage,
                    or the actor bound to a named slot (PermissionDenied)

Ownership is looked up by stage name, never by list position.
"""

from __future__ import annotations

from typing import Any, Mapping

from core.invocation.errors import PermissionDenied, RoleMismatch
from core.permissions.registry import admitted_roles, resolve_required_role
from core.primitives.actor import Actor
from core.primitives.provenance import actor_id_of, find_latest


def require_role(operation: str, actor: Actor) -> None:
    required = resolve_required_role(operation)
    if required is None:
        raise ValueError(f"No role mapping for operation '{operation}'.")
    allowed = admitted_roles(required)
    if actor.role not in allowed:
        names = " or ".join(sorted(role.value for role in allowed))
        raise RoleMismatch(operation, names, actor.role.value)


def require_stage_actor(
    operation: str,
    entity: Mapping[str, Any],
    stage: str,
    actor: Actor,
) -> None:
    """The caller must be the actor of the latest `stage` provenance entry."""
    entry = find_latest(entity.get("provenance") or (), stage)
    entity_id = entity.get("id", "?")
    if entry is None:
        raise PermissionDenied(
            operation, entity_id, f"no {stage} entry in provenance.",
        )
    owner = actor_id_of(entry)
    if owner != actor.id:
        raise PermissionDenied(
            operation,
            entity_id,
            f"{stage} was recorded by '{owner}', not '{actor.id}'.",
        )


def require_bound_actor(
    operation: str,
    entity: Mapping[str, Any],
    slot: str,
    actor: Actor,
) -> None:
    """The caller must be the actor bound to `slot` (e.g. supplier)."""
    bound = entity.get(slot) or {}
    entity_id = entity.get("id", "?")
    if bound.get("id") != actor.id:
        holder = bound.get("id") or "nobody"
        raise PermissionDenied(
            operation,
            entity_id,
            f"{slot} is bound to '{holder}', not '{actor.id}'.",
        )
