"""
Tracechain Ledger - Errors
===========================
Error types raised by ledger substrates.

These are substrate errors, NOT invocation outcomes. The invocation
layer translates them into the caller-facing taxonomy.
"""


class LedgerError(Exception):
    """Base error for ledger substrate operations."""
    pass


class LedgerConflictError(LedgerError):
    """A key read by the transaction changed before it committed."""

    def __init__(self, tx_id: str, key: str, read_version: int, current_version: int):
        self.tx_id = tx_id
        self.key = key
        self.read_version = read_version
        self.current_version = current_version
        super().__init__(
            f"Transaction {tx_id} read '{key}' at version {read_version} "
            f"but it is now at version {current_version}."
        )


class LedgerTimestampError(LedgerError):
    """The ledger could not supply an invocation timestamp."""
    pass


class TransactionClosedError(LedgerError):
    """Operation attempted on a committed or aborted transaction."""

    def __init__(self, tx_id: str):
        self.tx_id = tx_id
        super().__init__(f"Transaction {tx_id} is already closed.")
