"""
Tracechain Ledger - Django Substrate
=====================================
Ledger backed by the Django ORM (WorldStateEntry + KeyModificationRecord).

Commit flow:
    1. Open one atomic block
    2. Lock and re-read the version of every key the transaction observed
    3. Reject the whole transaction on any version drift
    4. Bump versions, write world state, append history rows
    5. Leave the atomic block (all rows land or none do)

A concurrent writer that slips past step 2 still collides on the
(key, version) uniqueness constraint in history; that IntegrityError is
reported as a conflict, not a storage failure.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta
from typing import Optional

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Max

from core.ledger.contracts import CommitReceipt, KeyModification
from core.ledger.errors import LedgerConflictError, LedgerError
from core.ledger.transaction import BufferedTransaction
from core.time.clock import Clock, SystemClock

logger = logging.getLogger("tracechain.ledger")

_TICK = timedelta(microseconds=1)
_VERSION_CONSTRAINT = "uq_key_history_version"


def _as_bytes(raw) -> Optional[bytes]:
    if raw is None:
        return None
    return bytes(raw)


def _is_version_conflict(exc: IntegrityError) -> bool:
    cause = getattr(exc, "__cause__", None)
    diag = getattr(cause, "diag", None)
    constraint_name = getattr(diag, "constraint_name", None)
    if constraint_name == _VERSION_CONSTRAINT:
        return True
    message = str(exc)
    return (
        _VERSION_CONSTRAINT in message
        or "tracechain_key_history.key" in message
        or "tracechain_world_state.key" in message
    )


class DjangoTransaction(BufferedTransaction):
    def __init__(self, ledger: "DjangoLedger", tx_id: str):
        super().__init__(tx_id)
        self._ledger = ledger

    def _read_committed(self, key):
        from core.ledger.models import WorldStateEntry

        entry = WorldStateEntry.objects.using(self._ledger.using).filter(key=key).first()
        if entry is None:
            return None, 0
        if entry.is_deleted:
            return None, entry.version
        return _as_bytes(entry.value), entry.version

    def _scan_committed(self, start_key, end_key_exclusive):
        from core.ledger.models import WorldStateEntry

        rows = (
            WorldStateEntry.objects.using(self._ledger.using)
            .filter(
                key__gte=start_key,
                key__lt=end_key_exclusive,
                is_deleted=False,
            )
            .order_by("key")
        )
        return [(row.key, _as_bytes(row.value), row.version) for row in rows]

    def _history_committed(self, key):
        from core.ledger.models import KeyModificationRecord

        return [
            KeyModification(
                value=_as_bytes(record.value),
                tx_id=record.tx_id,
                timestamp=record.committed_at,
                is_delete=record.is_delete,
            )
            for record in (
                KeyModificationRecord.objects.using(self._ledger.using)
                .filter(key=key)
                .order_by("version")
            )
        ]

    def _stamp(self) -> datetime:
        return self._ledger._clock.now_utc()

    def _apply(self, reads, writes) -> CommitReceipt:
        return self._ledger._apply(self._tx_id, self._timestamp, reads, writes)


class DjangoLedger:
    """Versioned key-value ledger persisted through the Django ORM."""

    def __init__(self, clock: Clock | None = None, using: str = "default"):
        self._clock = clock or SystemClock()
        self._using = using

    @property
    def using(self) -> str:
        return self._using

    def begin(self, tx_id: Optional[str] = None) -> DjangoTransaction:
        return DjangoTransaction(self, tx_id or uuid.uuid4().hex)

    def peek(self, key: str) -> Optional[bytes]:
        from core.ledger.models import WorldStateEntry

        entry = WorldStateEntry.objects.using(self._using).filter(
            key=key, is_deleted=False,
        ).first()
        return None if entry is None else _as_bytes(entry.value)

    def version_of(self, key: str) -> int:
        from core.ledger.models import WorldStateEntry

        entry = WorldStateEntry.objects.using(self._using).filter(key=key).first()
        return 0 if entry is None else entry.version

    def _commit_time(self, stamped_at: Optional[datetime]) -> datetime:
        from core.ledger.models import KeyModificationRecord

        candidate = stamped_at or self._clock.now_utc()
        latest = (
            KeyModificationRecord.objects.using(self._using)
            .aggregate(latest=Max("committed_at"))["latest"]
        )
        if latest is not None and candidate <= latest:
            candidate = latest + _TICK
        return candidate

    def _apply(
        self,
        tx_id: str,
        stamped_at: Optional[datetime],
        reads: dict[str, int],
        writes: dict[str, Optional[bytes]],
    ) -> CommitReceipt:
        attempted: list[str] = []
        try:
            with transaction.atomic(using=self._using):
                committed_at = self._apply_locked(
                    tx_id, stamped_at, reads, writes, attempted,
                )
        except LedgerConflictError:
            raise
        except IntegrityError as exc:
            if attempted and _is_version_conflict(exc):
                # the failing insert belongs to the last key started
                key = attempted[-1]
                current = self.version_of(key)
                logger.warning(
                    f"Commit rejected for transaction {tx_id}: "
                    f"concurrent write to '{key}', now at version {current}."
                )
                raise LedgerConflictError(tx_id, key, reads.get(key, -1), current) from exc
            raise LedgerError(f"Transaction {tx_id} failed to commit: {exc}") from exc
        except DatabaseError as exc:
            logger.error(f"Transaction {tx_id} failed to commit: {exc}")
            raise LedgerError(f"Transaction {tx_id} failed to commit: {exc}") from exc

        logger.debug(
            f"Transaction {tx_id} committed {len(writes)} key(s) "
            f"at {committed_at.isoformat()}."
        )
        return CommitReceipt(
            tx_id=tx_id,
            committed_at=committed_at,
            keys_written=tuple(sorted(writes)),
        )

    def _apply_locked(
        self,
        tx_id: str,
        stamped_at: Optional[datetime],
        reads: dict[str, int],
        writes: dict[str, Optional[bytes]],
        attempted: list[str],
    ) -> datetime:
        from core.ledger.models import KeyModificationRecord, WorldStateEntry

        entries = WorldStateEntry.objects.using(self._using).select_for_update()

        for key, read_version in sorted(reads.items()):
            row = entries.filter(key=key).first()
            current = 0 if row is None else row.version
            if current != read_version:
                logger.warning(
                    f"Commit rejected for transaction {tx_id}: "
                    f"'{key}' moved from version {read_version} to {current}."
                )
                raise LedgerConflictError(tx_id, key, read_version, current)

        committed_at = self._commit_time(stamped_at)

        for key in sorted(writes):
            attempted.append(key)
            value = writes[key]
            row = entries.filter(key=key).first()
            if row is None:
                row = WorldStateEntry(key=key, version=0)
            row.version += 1
            row.value = value
            row.is_deleted = value is None
            row.updated_tx_id = tx_id
            if row.version == 1:
                row.save(using=self._using, force_insert=True)
            else:
                row.save(using=self._using)

            KeyModificationRecord(
                key=key,
                version=row.version,
                value=value,
                tx_id=tx_id,
                committed_at=committed_at,
                is_delete=value is None,
            ).save(using=self._using, force_insert=True)

        return committed_at
