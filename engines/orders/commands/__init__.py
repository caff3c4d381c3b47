"""
Tracechain Orders Engine - Request Commands
============================================
Typed order requests built from invocation payloads.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from core.invocation.errors import InvalidPayload


# ══════════════════════════════════════════════════════════════
# OPERATION CONSTANTS
# ══════════════════════════════════════════════════════════════

ORDERS_CREATE = "orders.create"
ORDERS_APPROVE = "orders.approve"
ORDERS_REJECT = "orders.reject"
ORDERS_SHIP = "orders.ship"
ORDERS_FINISH = "orders.finish"

ORDERS_OPERATIONS = frozenset({
    ORDERS_CREATE,
    ORDERS_APPROVE,
    ORDERS_REJECT,
    ORDERS_SHIP,
    ORDERS_FINISH,
})


def _optional_text(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string.")
    return value


def _order_id(payload: Mapping[str, Any]) -> str:
    order_id = payload.get("id")
    if not order_id or not isinstance(order_id, str):
        raise ValueError("id must be a non-empty string.")
    return order_id


# ══════════════════════════════════════════════════════════════
# REQUEST COMMANDS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class OrderItem:
    """One requested line: which good, how much, and the lot's QR code."""
    good_id: str
    quantity: str
    qr_code: str = ""

    def __post_init__(self):
        if not self.good_id or not isinstance(self.good_id, str):
            raise ValueError("good_id must be a non-empty string.")
        if not self.quantity or not isinstance(self.quantity, str):
            raise ValueError("quantity must be a non-empty string.")
        if not isinstance(self.qr_code, str):
            raise ValueError("qr_code must be a string.")

    @classmethod
    def from_dict(cls, data: Any) -> OrderItem:
        if not isinstance(data, Mapping):
            raise ValueError("each item must be an object.")
        return cls(
            good_id=data.get("good_id") or "",
            quantity=data.get("quantity") or "",
            qr_code=_optional_text(data, "qr_code"),
        )


@dataclass(frozen=True)
class OrderCreateRequest:
    items: tuple
    address: Optional[str] = None
    signatures: tuple = ()
    qr_code: str = ""

    def __post_init__(self):
        if not isinstance(self.items, tuple) or len(self.items) == 0:
            raise ValueError("items must be a non-empty list.")
        if not all(isinstance(item, OrderItem) for item in self.items):
            raise ValueError("items must be OrderItem.")
        if self.address is not None and not isinstance(self.address, str):
            raise ValueError("address must be a string.")
        if not all(isinstance(sig, str) for sig in self.signatures):
            raise ValueError("signatures must be strings.")

    @classmethod
    def from_payload(cls, payload: Any) -> OrderCreateRequest:
        if not isinstance(payload, Mapping):
            raise InvalidPayload(ORDERS_CREATE, "payload must be an object.")
        try:
            items = payload.get("items")
            if not isinstance(items, (list, tuple)):
                raise ValueError("items must be a non-empty list.")
            signatures = payload.get("signatures") or ()
            if not isinstance(signatures, (list, tuple)):
                raise ValueError("signatures must be a list of strings.")
            return cls(
                items=tuple(OrderItem.from_dict(item) for item in items),
                address=payload.get("address") or None,
                signatures=tuple(signatures),
                qr_code=_optional_text(payload, "qr_code"),
            )
        except ValueError as exc:
            raise InvalidPayload(ORDERS_CREATE, str(exc)) from exc


@dataclass(frozen=True)
class OrderDecisionRequest:
    """Approve or reject a pending order."""
    operation: str
    order_id: str

    def __post_init__(self):
        if self.operation not in (ORDERS_APPROVE, ORDERS_REJECT):
            raise ValueError(f"{self.operation} is not an order decision.")
        if not self.order_id:
            raise ValueError("id must be a non-empty string.")

    @classmethod
    def from_payload(cls, operation: str, payload: Any) -> OrderDecisionRequest:
        if isinstance(payload, str):
            payload = {"id": payload}
        if not isinstance(payload, Mapping):
            raise InvalidPayload(operation, "payload must be an object.")
        try:
            return cls(operation=operation, order_id=_order_id(payload))
        except ValueError as exc:
            raise InvalidPayload(operation, str(exc)) from exc


@dataclass(frozen=True)
class OrderDeliveryRequest:
    """Ship or finish an order; carries the delivery address and a signature."""
    operation: str
    order_id: str
    address: str = ""
    signature: str = ""

    def __post_init__(self):
        if self.operation not in (ORDERS_SHIP, ORDERS_FINISH):
            raise ValueError(f"{self.operation} is not a delivery step.")
        if not self.order_id:
            raise ValueError("id must be a non-empty string.")

    @classmethod
    def from_payload(cls, operation: str, payload: Any) -> OrderDeliveryRequest:
        if not isinstance(payload, Mapping):
            raise InvalidPayload(operation, "payload must be an object.")
        try:
            return cls(
                operation=operation,
                order_id=_order_id(payload),
                address=_optional_text(payload, "address"),
                signature=_optional_text(payload, "signature"),
            )
        except ValueError as exc:
            raise InvalidPayload(operation, str(exc)) from exc
