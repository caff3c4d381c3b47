"""
Tracechain Workflow Primitive - Stage Transition Tables
========================================================
Generic, deterministic state machine schema.

Used by:
    Goods engine   - CULTIVATED → HARVESTED → ... → SOLD
    Orders engine  - PENDING → APPROVED → SHIPPING → SHIPPED | REJECTED

RULES:
- Invalid transitions are rejected (InvalidStageTransition), never skipped
- Terminal stages allow no further transition
- A definition is immutable once built

This file contains NO persistence logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional

from core.invocation.errors import InvalidStageTransition


@dataclass(frozen=True)
class WorkflowDefinition:
    """
    Valid stages and transitions for one entity type.

    Fields:
        name:            Identifier for this workflow (e.g. "Good")
        initial_state:   Stage every new entity starts in
        terminal_states: Stages with no outgoing transition
        transitions:     {from_stage → frozenset(allowed next stages)}
    """
    name: str
    initial_state: str
    terminal_states: FrozenSet[str]
    transitions: Dict[str, FrozenSet[str]]

    def __post_init__(self):
        if not self.name:
            raise ValueError("Workflow name must be non-empty.")
        if not self.initial_state:
            raise ValueError("initial_state must be non-empty.")
        if self.initial_state not in self.transitions:
            raise ValueError(
                f"initial_state '{self.initial_state}' not in transitions."
            )
        for terminal in self.terminal_states:
            if self.transitions.get(terminal):
                raise ValueError(
                    f"Terminal state '{terminal}' must have no outgoing transitions."
                )

    @property
    def states(self) -> FrozenSet[str]:
        reachable = set(self.transitions)
        for targets in self.transitions.values():
            reachable.update(targets)
        return frozenset(reachable)

    def is_valid_transition(self, from_state: str, to_state: str) -> bool:
        allowed = self.transitions.get(from_state, frozenset())
        return to_state in allowed

    def is_terminal(self, state: str) -> bool:
        return state in self.terminal_states

    def allowed_next_states(self, from_state: str) -> FrozenSet[str]:
        return self.transitions.get(from_state, frozenset())

    def ensure_transition(
        self,
        entity_id: str,
        from_state: Optional[str],
        to_state: str,
    ) -> None:
        """Raise InvalidStageTransition unless from_state → to_state is allowed."""
        if from_state is None or not self.is_valid_transition(from_state, to_state):
            raise InvalidStageTransition(
                entity_id,
                str(from_state),
                to_state,
                sorted(self.allowed_next_states(from_state or "")),
            )
