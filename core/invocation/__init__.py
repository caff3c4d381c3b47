"""
Tracechain Invocation
======================
One operation, one transaction, one typed outcome.
"""

from core.invocation.errors import (
    ConflictingWrite,
    EntityDecodeError,
    IdentityNotVerified,
    InvalidPayload,
    InvalidStageTransition,
    NotFound,
    PermissionDenied,
    ReasonCode,
    RoleMismatch,
    StoreError,
    SupplyChainError,
    TimestampUnavailable,
    UnknownRole,
)
from core.invocation.runner import run_invocation, translate_ledger_error

__all__ = [
    "ConflictingWrite",
    "EntityDecodeError",
    "IdentityNotVerified",
    "InvalidPayload",
    "InvalidStageTransition",
    "NotFound",
    "PermissionDenied",
    "ReasonCode",
    "RoleMismatch",
    "StoreError",
    "SupplyChainError",
    "TimestampUnavailable",
    "UnknownRole",
    "run_invocation",
    "translate_ledger_error",
]
