"""
Tracechain Invocation - Runner
===============================
Executes one operation as one ledger transaction.

Flow:
    1. Begin a transaction on the ledger
    2. Run the operation against it (the transaction is its LedgerStub)
    3. On any error: abort, nothing is committed
    4. On success: commit; a lost write race becomes ConflictingWrite

Ledger substrate errors are translated here so callers only ever see
SupplyChainError subclasses.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, TypeVar

from core.invocation.errors import (
    ConflictingWrite,
    StoreError,
    SupplyChainError,
    TimestampUnavailable,
)
from core.ledger.contracts import Ledger, LedgerStub
from core.ledger.errors import (
    LedgerConflictError,
    LedgerError,
    LedgerTimestampError,
)

logger = logging.getLogger("tracechain.invocation")

T = TypeVar("T")


def translate_ledger_error(exc: LedgerError) -> SupplyChainError:
    if isinstance(exc, LedgerConflictError):
        return ConflictingWrite(exc.tx_id, exc.key)
    if isinstance(exc, LedgerTimestampError):
        return TimestampUnavailable(str(exc))
    return StoreError(str(exc))


def run_invocation(
    ledger: Ledger,
    operation: Callable[[LedgerStub], T],
    *,
    name: str,
    tx_id: Optional[str] = None,
) -> T:
    """
    Run `operation` inside a fresh transaction and commit its writes.

    Returns whatever the operation returns. Raises exactly one
    SupplyChainError on failure.
    """
    tx = ledger.begin(tx_id)
    try:
        result = operation(tx)
    except SupplyChainError as exc:
        tx.abort()
        logger.info(f"Invocation '{name}' ({tx.tx_id}) rejected: {exc.code}: {exc}")
        raise
    except LedgerError as exc:
        tx.abort()
        translated = translate_ledger_error(exc)
        logger.info(
            f"Invocation '{name}' ({tx.tx_id}) rejected: "
            f"{translated.code}: {translated}"
        )
        raise translated from exc
    except Exception:
        tx.abort()
        logger.exception(f"Invocation '{name}' ({tx.tx_id}) failed unexpectedly.")
        raise

    try:
        receipt = tx.commit()
    except LedgerError as exc:
        translated = translate_ledger_error(exc)
        if translated.retryable:
            logger.warning(f"Invocation '{name}' ({tx.tx_id}) conflicted: {translated}")
        else:
            logger.error(f"Invocation '{name}' ({tx.tx_id}) failed to commit: {exc}")
        raise translated from exc

    if receipt.keys_written:
        logger.info(
            f"Invocation '{name}' ({receipt.tx_id}) committed "
            f"{', '.join(receipt.keys_written)}."
        )
    else:
        logger.debug(f"Invocation '{name}' ({receipt.tx_id}) completed read-only.")
    return result
