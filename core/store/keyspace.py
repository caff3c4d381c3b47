"""
Tracechain Store - Keyspace
============================
Entity keys are "<Prefix><n>" with n a canonical decimal ≥ 1
("Good7", "Lot12", "Order3"). Each kind owns one fixed sequence key.

Sequence keys share the prefix ("GoodSequence") but never fall in the
digit band "<Prefix>0" ... "<Prefix>:" used for enumeration.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class EntityKind:
    """
    Fields:
        name:          Human label ("good")
        prefix:        Key prefix ("Good")
        sequence_key:  Key of the counter record ("GoodSequence")
    """
    name: str
    prefix: str
    sequence_key: str

    def __post_init__(self):
        if not self.prefix or not self.prefix.isalpha():
            raise ValueError("prefix must be a non-empty alphabetic string.")
        if not self.sequence_key.startswith(self.prefix):
            raise ValueError("sequence_key must start with the prefix.")

    def key(self, number: int) -> str:
        return entity_key(self, number)

    @property
    def scan_start(self) -> str:
        return f"{self.prefix}0"

    @property
    def scan_end(self) -> str:
        # ":" is the character right after "9"
        return f"{self.prefix}:"


GOOD = EntityKind(name="good", prefix="Good", sequence_key="GoodSequence")
LOT = EntityKind(name="lot", prefix="Lot", sequence_key="LotSequence")
ORDER = EntityKind(name="order", prefix="Order", sequence_key="OrderSequence")

ALL_KINDS = (GOOD, LOT, ORDER)
TRACKED_KINDS = (GOOD, LOT)


def entity_key(kind: EntityKind, number: int) -> str:
    if not isinstance(number, int) or isinstance(number, bool) or number < 1:
        raise ValueError("Entity number must be an integer ≥ 1.")
    return f"{kind.prefix}{number}"


def parse_entity_number(kind: EntityKind, key: str) -> Optional[int]:
    """n for a well-formed "<Prefix><n>" key, else None."""
    if not isinstance(key, str) or not key.startswith(kind.prefix):
        return None
    suffix = key[len(kind.prefix):]
    if not suffix or not suffix.isascii() or not suffix.isdigit():
        return None
    if suffix[0] == "0":
        return None
    return int(suffix)


def kind_for_id(entity_id: str, kinds=ALL_KINDS) -> Optional[EntityKind]:
    for kind in kinds:
        if parse_entity_number(kind, entity_id) is not None:
            return kind
    return None


def kind_by_name(name: str) -> EntityKind:
    for kind in ALL_KINDS:
        if kind.name == name or kind.prefix == name:
            return kind
    raise ValueError(f"Unknown entity kind '{name}'.")
