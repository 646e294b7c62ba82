"""
Ledger Store: document collections with atomic batches and subscriptions.

Backends:
    MemoryLedgerStore -- in-process, used by tests and single-node runs.
    SqlLedgerStore    -- SQLAlchemy-backed (``ops_kernel.store.sql``).
"""

from ops_kernel.store.base import (
    Append,
    Document,
    Increment,
    LedgerStore,
    OpKind,
    Subscription,
    WriteBatch,
    WriteOp,
)
from ops_kernel.store.memory import MemoryLedgerStore

__all__ = [
    "Append",
    "Document",
    "Increment",
    "LedgerStore",
    "MemoryLedgerStore",
    "OpKind",
    "Subscription",
    "WriteBatch",
    "WriteOp",
]
