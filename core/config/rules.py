"""
Tracechain Core Config - Deployment Rules
==========================================
Settings that change how invocations are admitted and where state lives.
Values come from the SUPPLY_CHAIN settings mapping, never from engine code.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

LEDGER_BACKEND_MEMORY = "memory"
LEDGER_BACKEND_DJANGO = "django"

VALID_LEDGER_BACKENDS = frozenset({LEDGER_BACKEND_MEMORY, LEDGER_BACKEND_DJANGO})


@dataclass(frozen=True)
class SupplyChainConfig:
    """
    Fields:
        require_verified_identity:  every actor claim must pass an
                                    IdentityVerifier before any state is read
        ledger_backend:             "memory" | "django"
    """

    require_verified_identity: bool = False
    ledger_backend: str = LEDGER_BACKEND_DJANGO

    def __post_init__(self) -> None:
        if not isinstance(self.require_verified_identity, bool):
            raise ValueError("require_verified_identity must be a boolean.")
        if self.ledger_backend not in VALID_LEDGER_BACKENDS:
            raise ValueError(
                f"ledger_backend must be one of {sorted(VALID_LEDGER_BACKENDS)}, "
                f"got '{self.ledger_backend}'."
            )

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> SupplyChainConfig:
        data = data or {}
        unknown = set(data) - {"REQUIRE_VERIFIED_IDENTITY", "LEDGER_BACKEND"}
        if unknown:
            raise ValueError(f"Unknown SUPPLY_CHAIN settings: {sorted(unknown)}.")
        return cls(
            require_verified_identity=data.get("REQUIRE_VERIFIED_IDENTITY", False),
            ledger_backend=data.get("LEDGER_BACKEND", LEDGER_BACKEND_DJANGO),
        )

    def to_dict(self) -> dict:
        return {
            "REQUIRE_VERIFIED_IDENTITY": self.require_verified_identity,
            "LEDGER_BACKEND": self.ledger_backend,
        }
