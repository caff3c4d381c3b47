"""
Tracechain Ledger
==================
Versioned key-value ledger with optimistic transactions.

Public API:
    Ledger, LedgerStub, LedgerTransaction   - collaborator contracts
    KeyModification, CommitReceipt          - ledger records
    InMemoryLedger                          - process-local substrate
    DjangoLedger                            - ORM-backed substrate
"""

from core.ledger.contracts import (
    CommitReceipt,
    KeyModification,
    Ledger,
    LedgerStub,
    LedgerTransaction,
)
from core.ledger.django_store import DjangoLedger
from core.ledger.errors import (
    LedgerConflictError,
    LedgerError,
    LedgerTimestampError,
    TransactionClosedError,
)
from core.ledger.memory import InMemoryLedger

__all__ = [
    "CommitReceipt",
    "DjangoLedger",
    "InMemoryLedger",
    "KeyModification",
    "Ledger",
    "LedgerConflictError",
    "LedgerError",
    "LedgerStub",
    "LedgerTimestampError",
    "LedgerTransaction",
    "TransactionClosedError",
]
