"""
Tracechain Goods Engine - Stages and Provenance Builders
=========================================================
Engine: Goods (cultivation → sale)

Every stage-changing operation appends exactly one provenance entry and
sets the record's stage to that entry's stage. Earlier entries are never
touched.
"""

from __future__ import annotations

import copy
from datetime import datetime
from typing import Any

from core.primitives.actor import Actor
from core.primitives.provenance import ProvenanceEvent
from core.primitives.workflow import WorkflowDefinition


# ══════════════════════════════════════════════════════════════
# STAGES
# ══════════════════════════════════════════════════════════════

CULTIVATED = "CULTIVATED"
HARVESTED = "HARVESTED"
IMPORTED = "IMPORTED"
MANUFACTURED = "MANUFACTURED"
EXPORTED = "EXPORTED"
DISTRIBUTING = "DISTRIBUTING"
RETAILING = "RETAILING"
SOLD = "SOLD"

GOODS_STAGES = (
    CULTIVATED,
    HARVESTED,
    IMPORTED,
    MANUFACTURED,
    EXPORTED,
    DISTRIBUTING,
    RETAILING,
    SOLD,
)

GOODS_WORKFLOW = WorkflowDefinition(
    name="Good",
    initial_state=CULTIVATED,
    terminal_states=frozenset({SOLD}),
    transitions={
        CULTIVATED: frozenset({HARVESTED}),
        HARVESTED: frozenset({IMPORTED, EXPORTED}),
        IMPORTED: frozenset({MANUFACTURED, EXPORTED}),
        MANUFACTURED: frozenset({EXPORTED}),
        EXPORTED: frozenset({DISTRIBUTING}),
        DISTRIBUTING: frozenset({RETAILING}),
        RETAILING: frozenset({SOLD}),
        SOLD: frozenset(),
    },
)


# ══════════════════════════════════════════════════════════════
# PROVENANCE BUILDERS
# ══════════════════════════════════════════════════════════════

def append_provenance(
    record: dict[str, Any],
    stage: str,
    timestamp: datetime,
    actor: Actor,
) -> dict[str, Any]:
    """Copy of `record` with one more provenance entry and the new stage."""
    updated = copy.deepcopy(record)
    entry = ProvenanceEvent(stage=stage, timestamp=timestamp, actor=actor)
    updated["provenance"] = list(updated.get("provenance") or []) + [entry.to_dict()]
    updated["stage"] = stage
    return updated


def build_good_record(
    *,
    good_id: str,
    details: dict[str, Any],
    stage: str,
    timestamp: datetime,
    actor: Actor,
) -> dict[str, Any]:
    """A new Good whose provenance holds a single `stage` entry by `actor`."""
    record = {
        "id": good_id,
        "code": details.get("code", ""),
        "name": details.get("name", ""),
        "supplier": actor.to_dict(),
        "provenance": [],
        "images": list(details.get("images", ())),
        "expiry": details.get("expiry", ""),
        "price": details.get("price", ""),
        "amount": details.get("amount", ""),
        "unit": details.get("unit", ""),
        "stage": stage,
        "description": details.get("description", ""),
        "certificate_ref": details.get("certificate_ref", ""),
        "qr_code": details.get("qr_code", ""),
    }
    return append_provenance(record, stage, timestamp, actor)
