"""
Tracechain Provenance Primitive - Dated History Entries
========================================================
ProvenanceEvent: one goods-stage step (stage, timestamp, actor).
DeliveryEvent:   one order-stage step (stage, date, address, actor).

Both are appended to an entity's history list and never edited. Entities
store them as plain dicts; these classes build those dicts.

Ownership is decided by named lookup: the latest entry whose stage
matches, never a position in the list.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional

from core.primitives.actor import Actor
from core.time.clock import format_timestamp


@dataclass(frozen=True)
class ProvenanceEvent:
    stage: str
    timestamp: datetime
    actor: Actor

    def __post_init__(self):
        if not self.stage or not isinstance(self.stage, str):
            raise ValueError("stage must be a non-empty string.")
        if not isinstance(self.timestamp, datetime) or self.timestamp.tzinfo is None:
            raise ValueError("timestamp must be a timezone-aware datetime.")
        if not isinstance(self.actor, Actor):
            raise TypeError("actor must be Actor.")

    def to_dict(self) -> dict:
        return {
            "stage": self.stage,
            "timestamp": format_timestamp(self.timestamp),
            "actor": self.actor.to_dict(),
        }


@dataclass(frozen=True)
class DeliveryEvent:
    stage: str
    date: datetime
    address: str
    actor: Actor

    def __post_init__(self):
        if not self.stage or not isinstance(self.stage, str):
            raise ValueError("stage must be a non-empty string.")
        if not isinstance(self.date, datetime) or self.date.tzinfo is None:
            raise ValueError("date must be a timezone-aware datetime.")
        if not isinstance(self.address, str):
            raise ValueError("address must be a string.")
        if not isinstance(self.actor, Actor):
            raise TypeError("actor must be Actor.")

    def to_dict(self) -> dict:
        return {
            "stage": self.stage,
            "date": format_timestamp(self.date),
            "address": self.address,
            "actor": self.actor.to_dict(),
        }


def find_latest(entries: Iterable[Mapping[str, Any]], stage: str) -> Optional[Mapping[str, Any]]:
    """Latest history entry recorded for `stage`, or None."""
    found = None
    for entry in entries:
        if entry.get("stage") == stage:
            found = entry
    return found


def actor_id_of(entry: Optional[Mapping[str, Any]]) -> Optional[str]:
    if not entry:
        return None
    actor = entry.get("actor") or {}
    return actor.get("id")
