"""
Tracechain Invocation Adapter
==============================
"""

from adapters.invocation.contract import SupplyChainContract

__all__ = ["SupplyChainContract"]
