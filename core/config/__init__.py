"""
Tracechain Core Config - Public API
====================================
"""

from core.config.rules import (
    LEDGER_BACKEND_DJANGO,
    LEDGER_BACKEND_MEMORY,
    SupplyChainConfig,
)

__all__ = [
    "LEDGER_BACKEND_DJANGO",
    "LEDGER_BACKEND_MEMORY",
    "SupplyChainConfig",
]
