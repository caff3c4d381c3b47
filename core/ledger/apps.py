"""
Tracechain Ledger - App Configuration
======================================
Registers the Django-backed ledger substrate.

This app:
- Stores world state and per-key history
- Commits buffered transactions atomically with version checks

This app does NOT:
- Interpret stored values
- Allocate ids or enforce lifecycle rules
"""

from django.apps import AppConfig


class LedgerConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "core.ledger"
    label = "ledger"
    verbose_name = "Tracechain Ledger"
