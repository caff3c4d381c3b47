"""
Tracechain Ledger - Django Models
==================================
Persistent world state and per-key history for the Django substrate.

RULES:
- WorldStateEntry holds the latest committed value and version of a key
- KeyModificationRecord is append-only: one row per committed version
- (key, version) is unique in history, so two commits racing on the same
  key cannot both land
- Deleted keys keep their world-state row (is_deleted=True) so the
  version counter never restarts

This file contains NO commit logic.
"""

from django.db import models


class WorldStateEntry(models.Model):
    key = models.CharField(
        primary_key=True,
        max_length=255,
        help_text="Ledger key, e.g. Good12 or GoodSequence.",
    )
    value = models.BinaryField(
        null=True,
        blank=True,
        help_text="Latest committed value. Null once deleted.",
    )
    version = models.PositiveBigIntegerField(
        default=0,
        help_text="Number of committed modifications of this key.",
    )
    is_deleted = models.BooleanField(default=False)
    updated_tx_id = models.CharField(max_length=64)

    class Meta:
        db_table = "tracechain_world_state"
        ordering = ["key"]
        indexes = [
            models.Index(
                fields=["is_deleted", "key"],
                name="idx_ws_live_key",
            ),
        ]

    def __str__(self):
        return f"{self.key}@{self.version}"


class KeyModificationRecord(models.Model):
    id = models.BigAutoField(primary_key=True)
    key = models.CharField(max_length=255)
    version = models.PositiveBigIntegerField()
    value = models.BinaryField(null=True, blank=True)
    tx_id = models.CharField(max_length=64)
    committed_at = models.DateTimeField()
    is_delete = models.BooleanField(default=False)

    class Meta:
        db_table = "tracechain_key_history"
        ordering = ["key", "version"]
        constraints = [
            models.UniqueConstraint(
                fields=["key", "version"],
                name="uq_key_history_version",
            ),
        ]
        indexes = [
            models.Index(
                fields=["key", "version"],
                name="idx_key_history_lookup",
            ),
        ]

    def save(self, *args, **kwargs):
        """History rows are INSERT only."""
        if not self._state.adding:
            raise PermissionError(
                "Key history is append-only. "
                "Cannot update a persisted modification record."
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise PermissionError("Key history records are never deleted.")

    def __str__(self):
        marker = " (delete)" if self.is_delete else ""
        return f"{self.key}@{self.version} tx={self.tx_id}{marker}"
