"""
Tracechain Invocation - Errors
===============================
The caller-facing error taxonomy.

Every failed invocation raises exactly one SupplyChainError subclass and
commits nothing. Each error carries a machine-readable `code` and says
whether resubmitting the same invocation can succeed (`retryable`).
"""

from __future__ import annotations

from typing import Iterable, Optional


class ReasonCode:
    """
    Known error codes.

    Convention: SCREAMING_SNAKE_CASE.
    """

    # ── Authorization ─────────────────────────────────────────
    ROLE_MISMATCH = "ROLE_MISMATCH"
    UNKNOWN_ROLE = "UNKNOWN_ROLE"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    IDENTITY_NOT_VERIFIED = "IDENTITY_NOT_VERIFIED"

    # ── State ─────────────────────────────────────────────────
    NOT_FOUND = "NOT_FOUND"
    INVALID_STAGE_TRANSITION = "INVALID_STAGE_TRANSITION"
    INVALID_PAYLOAD = "INVALID_PAYLOAD"

    # ── Ledger ────────────────────────────────────────────────
    TIMESTAMP_UNAVAILABLE = "TIMESTAMP_UNAVAILABLE"
    STORE_ERROR = "STORE_ERROR"
    ENTITY_DECODE_ERROR = "ENTITY_DECODE_ERROR"
    CONFLICTING_WRITE = "CONFLICTING_WRITE"


class SupplyChainError(Exception):
    """Base error for every invocation outcome other than success."""

    code = ReasonCode.STORE_ERROR
    retryable = False

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": str(self),
            "retryable": self.retryable,
        }


# ══════════════════════════════════════════════════════════════
# AUTHORIZATION
# ══════════════════════════════════════════════════════════════

class RoleMismatch(SupplyChainError):
    """Caller's role is not the one the operation requires."""

    code = ReasonCode.ROLE_MISMATCH

    def __init__(self, operation: str, required: str, actual: str):
        self.operation = operation
        self.required = required
        self.actual = actual
        super().__init__(
            f"Operation '{operation}' requires role '{required}', "
            f"caller has role '{actual}'."
        )


class UnknownRole(SupplyChainError):
    """Role claim is not one of the closed set of roles."""

    code = ReasonCode.UNKNOWN_ROLE

    def __init__(self, role):
        self.role = role
        super().__init__(f"Unknown role '{role}'.")


class PermissionDenied(SupplyChainError):
    """Caller has the right role but does not own the entity."""

    code = ReasonCode.PERMISSION_DENIED

    def __init__(self, operation: str, entity_id: str, detail: str):
        self.operation = operation
        self.entity_id = entity_id
        self.detail = detail
        super().__init__(
            f"Operation '{operation}' on '{entity_id}' denied: {detail}"
        )


class IdentityNotVerified(SupplyChainError):
    """The actor claim could not be bound to a platform credential."""

    code = ReasonCode.IDENTITY_NOT_VERIFIED

    def __init__(self, actor_id: str, detail: str = "claim rejected by verifier"):
        self.actor_id = actor_id
        self.detail = detail
        super().__init__(f"Identity of actor '{actor_id}' not verified: {detail}")


# ══════════════════════════════════════════════════════════════
# STATE
# ══════════════════════════════════════════════════════════════

class NotFound(SupplyChainError):
    code = ReasonCode.NOT_FOUND

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"'{key}' does not exist.")


class InvalidStageTransition(SupplyChainError):
    """Requested stage is not reachable from the entity's current stage."""

    code = ReasonCode.INVALID_STAGE_TRANSITION

    def __init__(
        self,
        entity_id: str,
        current: str,
        requested: str,
        allowed: Iterable[str] = (),
    ):
        self.entity_id = entity_id
        self.current = current
        self.requested = requested
        self.allowed = tuple(allowed)
        allowed_text = ", ".join(self.allowed) if self.allowed else "none"
        super().__init__(
            f"'{entity_id}' cannot move from '{current}' to '{requested}'. "
            f"Allowed: {allowed_text}."
        )


class InvalidPayload(SupplyChainError):
    code = ReasonCode.INVALID_PAYLOAD

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"Invalid payload for '{operation}': {detail}")


# ══════════════════════════════════════════════════════════════
# LEDGER
# ══════════════════════════════════════════════════════════════

class TimestampUnavailable(SupplyChainError):
    code = ReasonCode.TIMESTAMP_UNAVAILABLE

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Invocation timestamp unavailable: {detail}")


class StoreError(SupplyChainError):
    """The ledger failed to read or write."""

    code = ReasonCode.STORE_ERROR

    def __init__(self, detail: str, key: Optional[str] = None):
        self.detail = detail
        self.key = key
        where = f" at '{key}'" if key else ""
        super().__init__(f"Store failure{where}: {detail}")


class EntityDecodeError(StoreError):
    """Stored bytes are not a valid entity record."""

    code = ReasonCode.ENTITY_DECODE_ERROR

    def __init__(self, key: str, detail: str):
        super().__init__(f"cannot decode stored value ({detail})", key=key)


class ConflictingWrite(SupplyChainError):
    """Another invocation changed a key this one read. Resubmit."""

    code = ReasonCode.CONFLICTING_WRITE
    retryable = True

    def __init__(self, tx_id: str, key: str):
        self.tx_id = tx_id
        self.key = key
        super().__init__(
            f"Transaction {tx_id} lost a write race on '{key}'. "
            f"Resubmit the invocation."
        )
