"""
Tracechain Invocation Adapter Wiring
=====================================
Builds the process-wide SupplyChainContract from Django settings.

This module is adapter-only glue:
- reads SUPPLY_CHAIN from settings
- picks the ledger substrate
- no lifecycle logic
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from django.conf import settings

from adapters.invocation.contract import SupplyChainContract
from core.config.rules import LEDGER_BACKEND_MEMORY, SupplyChainConfig
from core.invocation.identity import IdentityVerifier
from core.ledger.django_store import DjangoLedger
from core.ledger.memory import InMemoryLedger

logger = logging.getLogger("tracechain.invocation")

_CONTRACT_LOCK = threading.Lock()
_CONTRACT: SupplyChainContract | None = None


def load_config() -> SupplyChainConfig:
    return SupplyChainConfig.from_mapping(getattr(settings, "SUPPLY_CHAIN", None))


def _create_contract(identity_verifier: Optional[IdentityVerifier]) -> SupplyChainContract:
    config = load_config()
    if config.ledger_backend == LEDGER_BACKEND_MEMORY:
        ledger = InMemoryLedger()
    else:
        ledger = DjangoLedger()
    logger.info(
        f"Supply chain contract wired on the '{config.ledger_backend}' ledger "
        f"(verified identity required: {config.require_verified_identity})."
    )
    return SupplyChainContract(
        ledger,
        identity_verifier=identity_verifier,
        config=config,
    )


def build_contract(identity_verifier: Optional[IdentityVerifier] = None) -> SupplyChainContract:
    """
    Lazy singleton wiring for adapter runtime.

    The verifier is only used the first time the contract is built.
    """
    global _CONTRACT
    with _CONTRACT_LOCK:
        if _CONTRACT is None:
            _CONTRACT = _create_contract(identity_verifier)
        return _CONTRACT


def reset_contract() -> None:
    """Drop the cached contract (settings changes, tests)."""
    global _CONTRACT
    with _CONTRACT_LOCK:
        _CONTRACT = None
