"""
Tracechain Goods Engine - Request Commands
===========================================
Typed goods requests built from invocation payloads.

Request dataclasses validate in __post_init__ (ValueError); the
from_payload constructors turn any malformed payload into InvalidPayload.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from core.invocation.errors import InvalidPayload


# ══════════════════════════════════════════════════════════════
# OPERATION CONSTANTS
# ══════════════════════════════════════════════════════════════

GOODS_CULTIVATE = "goods.cultivate"
GOODS_HARVEST = "goods.harvest"
GOODS_IMPORT = "goods.import"
GOODS_MANUFACTURE = "goods.manufacture"
GOODS_EXPORT = "goods.export"
GOODS_DISTRIBUTE = "goods.distribute"
GOODS_RETAIL_IMPORT = "goods.retail_import"
GOODS_SELL = "goods.sell"
GOODS_REGISTER = "goods.register"
GOODS_UPDATE = "goods.update"

GOODS_STAGE_OPERATIONS = frozenset({
    GOODS_HARVEST,
    GOODS_IMPORT,
    GOODS_MANUFACTURE,
    GOODS_EXPORT,
    GOODS_DISTRIBUTE,
    GOODS_RETAIL_IMPORT,
    GOODS_SELL,
})

# Descriptive fields a caller may set. id, supplier, provenance and stage
# are never taken from a payload.
TEXT_FIELDS = (
    "code",
    "name",
    "expiry",
    "price",
    "amount",
    "unit",
    "description",
    "certificate_ref",
    "qr_code",
)
DESCRIPTIVE_FIELDS = TEXT_FIELDS + ("images",)

# Fields each stage operation may change alongside the stage.
STAGE_UPDATABLE_FIELDS = {
    GOODS_HARVEST: ("amount",),
    GOODS_IMPORT: ("images", "price"),
    GOODS_MANUFACTURE: ("images", "expiry", "qr_code"),
    GOODS_EXPORT: ("price",),
    GOODS_DISTRIBUTE: (),
    GOODS_RETAIL_IMPORT: ("price",),
    GOODS_SELL: ("price",),
}


def _clean_field(field_name: str, value: Any) -> Any:
    if field_name == "images":
        if not isinstance(value, (list, tuple)):
            raise ValueError("images must be a list of strings.")
        if not all(isinstance(item, str) for item in value):
            raise ValueError("images must be a list of strings.")
        return tuple(value)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string.")
    return value


def _pick_fields(payload: Mapping[str, Any], allowed) -> tuple:
    return tuple(
        (field_name, _clean_field(field_name, payload[field_name]))
        for field_name in allowed
        if field_name in payload
    )


def _require_mapping(operation: str, payload: Any) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise InvalidPayload(operation, "payload must be an object.")
    return payload


def _item_id(payload: Mapping[str, Any]) -> str:
    item_id = payload.get("id")
    if not item_id or not isinstance(item_id, str):
        raise ValueError("id must be a non-empty string.")
    return item_id


# ══════════════════════════════════════════════════════════════
# REQUEST COMMANDS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class GoodCreateRequest:
    """Create a Good (cultivate, or register an already manufactured one)."""
    operation: str
    fields: tuple

    def __post_init__(self):
        if self.operation not in (GOODS_CULTIVATE, GOODS_REGISTER):
            raise ValueError(f"{self.operation} does not create goods.")
        values = dict(self.fields)
        if not values.get("name"):
            raise ValueError("name must be non-empty.")
        for field_name in values:
            if field_name not in DESCRIPTIVE_FIELDS:
                raise ValueError(f"{field_name} is not a descriptive field.")

    @property
    def details(self) -> dict:
        return dict(self.fields)

    @classmethod
    def from_payload(cls, operation: str, payload: Any) -> GoodCreateRequest:
        payload = _require_mapping(operation, payload)
        try:
            return cls(
                operation=operation,
                fields=_pick_fields(payload, DESCRIPTIVE_FIELDS),
            )
        except ValueError as exc:
            raise InvalidPayload(operation, str(exc)) from exc


@dataclass(frozen=True)
class StageRequest:
    """Move one tracked item (Good or Lot) to the operation's stage."""
    operation: str
    item_id: str
    updates: tuple = ()

    def __post_init__(self):
        if self.operation not in GOODS_STAGE_OPERATIONS:
            raise ValueError(f"{self.operation} is not a stage operation.")
        if not self.item_id or not isinstance(self.item_id, str):
            raise ValueError("id must be a non-empty string.")
        allowed = STAGE_UPDATABLE_FIELDS[self.operation]
        for field_name, _ in self.updates:
            if field_name not in allowed:
                raise ValueError(f"{self.operation} cannot change {field_name}.")

    @classmethod
    def from_payload(cls, operation: str, payload: Any) -> StageRequest:
        payload = _require_mapping(operation, payload)
        try:
            return cls(
                operation=operation,
                item_id=_item_id(payload),
                updates=_pick_fields(
                    payload, STAGE_UPDATABLE_FIELDS.get(operation, ()),
                ),
            )
        except ValueError as exc:
            raise InvalidPayload(operation, str(exc)) from exc


@dataclass(frozen=True)
class GoodUpdateRequest:
    """Change descriptive fields of a Good without a stage transition."""
    good_id: str
    updates: tuple = ()

    def __post_init__(self):
        if not self.good_id or not isinstance(self.good_id, str):
            raise ValueError("id must be a non-empty string.")
        for field_name, _ in self.updates:
            if field_name not in DESCRIPTIVE_FIELDS:
                raise ValueError(f"{field_name} is not a descriptive field.")

    @classmethod
    def from_payload(cls, payload: Any) -> GoodUpdateRequest:
        payload = _require_mapping(GOODS_UPDATE, payload)
        try:
            return cls(
                good_id=_item_id(payload),
                updates=_pick_fields(payload, DESCRIPTIVE_FIELDS),
            )
        except ValueError as exc:
            raise InvalidPayload(GOODS_UPDATE, str(exc)) from exc


def apply_field_updates(record: dict, updates: tuple, *, only_existing: bool = True) -> dict:
    """Set each (field, value) on `record`; tuples become JSON lists."""
    for field_name, value in updates:
        if only_existing and field_name not in record:
            continue
        record[field_name] = list(value) if isinstance(value, tuple) else value
    return record
