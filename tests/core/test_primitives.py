"""
Tests for core.primitives - actors, workflows and provenance entries.
"""

from datetime import datetime, timezone

import pytest

from core.invocation.errors import InvalidStageTransition, UnknownRole
from core.primitives.actor import Actor, Role, User
from core.primitives.provenance import (
    DeliveryEvent,
    ProvenanceEvent,
    actor_id_of,
    find_latest,
)
from core.primitives.workflow import WorkflowDefinition

START = datetime(2026, 3, 1, 8, 0, 0, tzinfo=timezone.utc)

SUPPLIER_CLAIM = {
    "user_id": "S1",
    "role": "supplier",
    "user_code": "SUP-001",
    "phone_number": "+254700000001",
    "email": "s1@farm.example",
    "full_name": "Green Valley Farm",
    "user_name": "greenvalley",
    "address": "Plot 7, Nakuru",
    "avatar": "avatars/s1.png",
    "status": "active",
    "signature": "sig-s1",
    "password": "hunter2",
}


def _workflow():
    return WorkflowDefinition(
        name="Parcel",
        initial_state="NEW",
        terminal_states=frozenset({"DONE", "VOID"}),
        transitions={
            "NEW": frozenset({"SENT", "VOID"}),
            "SENT": frozenset({"DONE"}),
            "DONE": frozenset(),
            "VOID": frozenset(),
        },
    )


# ══════════════════════════════════════════════════════════════
# ACTOR
# ══════════════════════════════════════════════════════════════

class TestRole:
    @pytest.mark.parametrize("raw", ["retailer", "RETAILER", "  Retailer "])
    def test_parse_normalizes(self, raw):
        assert Role.parse(raw) is Role.RETAILER

    @pytest.mark.parametrize("raw", ["admin", "", None, 3])
    def test_unknown_role(self, raw):
        with pytest.raises(UnknownRole):
            Role.parse(raw)


class TestUserAndActor:
    def test_claim_drops_unknown_keys(self):
        user = User.from_dict(SUPPLIER_CLAIM)
        assert user.user_id == "S1"
        assert not hasattr(user, "password")

    def test_signature_hidden_from_repr(self):
        assert "sig-s1" not in repr(User.from_dict(SUPPLIER_CLAIM))

    def test_non_string_field_rejected(self):
        with pytest.raises(ValueError, match="phone_number"):
            User.from_dict({"user_id": "S1", "role": "supplier", "phone_number": 700})

    def test_missing_user_id_rejected(self):
        with pytest.raises(ValueError, match="user_id"):
            User.from_dict({"role": "supplier"})

    def test_actor_projection(self):
        actor = Actor.from_user(User.from_dict(SUPPLIER_CLAIM))
        assert actor.to_dict() == {
            "id": "S1",
            "code": "SUP-001",
            "phone": "+254700000001",
            "name": "Green Valley Farm",
            "address": "Plot 7, Nakuru",
            "avatar": "avatars/s1.png",
            "role": "supplier",
        }

    def test_actor_from_unknown_role(self):
        user = User.from_dict({"user_id": "X1", "role": "auditor"})
        with pytest.raises(UnknownRole):
            Actor.from_user(user)

    def test_actor_dict_shape(self):
        actor = Actor(id="M1", role=Role.MANUFACTURER, name="Mill")
        assert actor.to_dict() == {
            "id": "M1",
            "code": "",
            "phone": "",
            "name": "Mill",
            "address": "",
            "avatar": "",
            "role": "manufacturer",
        }


# ══════════════════════════════════════════════════════════════
# WORKFLOW
# ══════════════════════════════════════════════════════════════

class TestWorkflowDefinition:
    def test_valid_transition(self):
        workflow = _workflow()
        assert workflow.is_valid_transition("NEW", "SENT")
        assert not workflow.is_valid_transition("NEW", "DONE")

    def test_states(self):
        assert _workflow().states == frozenset({"NEW", "SENT", "DONE", "VOID"})

    def test_terminal(self):
        workflow = _workflow()
        assert workflow.is_terminal("VOID")
        assert workflow.allowed_next_states("VOID") == frozenset()

    def test_ensure_transition_raises(self):
        with pytest.raises(InvalidStageTransition) as exc_info:
            _workflow().ensure_transition("Parcel1", "NEW", "DONE")
        error = exc_info.value
        assert error.current == "NEW"
        assert error.requested == "DONE"
        assert error.allowed == ("SENT", "VOID")

    def test_ensure_transition_from_missing_stage(self):
        with pytest.raises(InvalidStageTransition):
            _workflow().ensure_transition("Parcel1", None, "SENT")

    def test_terminal_with_outgoing_rejected(self):
        with pytest.raises(ValueError, match="Terminal state"):
            WorkflowDefinition(
                name="Broken",
                initial_state="A",
                terminal_states=frozenset({"B"}),
                transitions={"A": frozenset({"B"}), "B": frozenset({"A"})},
            )

    def test_initial_state_must_be_known(self):
        with pytest.raises(ValueError, match="initial_state"):
            WorkflowDefinition(
                name="Broken",
                initial_state="Z",
                terminal_states=frozenset(),
                transitions={"A": frozenset()},
            )


# ══════════════════════════════════════════════════════════════
# PROVENANCE
# ══════════════════════════════════════════════════════════════

class TestProvenanceEntries:
    def test_provenance_event_dict(self):
        actor = Actor(id="S1", role=Role.SUPPLIER)
        event = ProvenanceEvent(stage="CULTIVATED", timestamp=START, actor=actor)
        assert event.to_dict() == {
            "stage": "CULTIVATED",
            "timestamp": "2026-03-01T08:00:00+00:00",
            "actor": actor.to_dict(),
        }

    def test_delivery_event_dict(self):
        actor = Actor(id="R1", role=Role.RETAILER)
        event = DeliveryEvent(stage="PENDING", date=START, address="Shop 4", actor=actor)
        assert event.to_dict() == {
            "stage": "PENDING",
            "date": "2026-03-01T08:00:00+00:00",
            "address": "Shop 4",
            "actor": actor.to_dict(),
        }

    def test_naive_timestamp_rejected(self):
        actor = Actor(id="S1", role=Role.SUPPLIER)
        with pytest.raises(ValueError, match="timezone-aware"):
            ProvenanceEvent(stage="CULTIVATED", timestamp=datetime(2026, 3, 1), actor=actor)

    def test_find_latest_picks_last_match(self):
        entries = [
            {"stage": "IMPORTED", "actor": {"id": "M1"}},
            {"stage": "MANUFACTURED", "actor": {"id": "M1"}},
            {"stage": "IMPORTED", "actor": {"id": "M2"}},
        ]
        assert actor_id_of(find_latest(entries, "IMPORTED")) == "M2"

    def test_find_latest_missing(self):
        assert find_latest([], "IMPORTED") is None
        assert actor_id_of(None) is None
