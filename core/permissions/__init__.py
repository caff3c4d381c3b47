"""
Tracechain Permissions - Public API
====================================
"""

from core.permissions.evaluator import (
    require_bound_actor,
    require_role,
    require_stage_actor,
)
from core.permissions.registry import OPERATION_ROLES, resolve_required_role

__all__ = [
    "OPERATION_ROLES",
    "require_bound_actor",
    "require_role",
    "require_stage_actor",
    "resolve_required_role",
]
