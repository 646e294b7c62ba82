"""
In-process Ledger Store backend (``ops_kernel.store.memory``).

Dict-backed store used by tests and single-process deployments.  One
re-entrant lock serializes commits; reads return deep copies so callers can
never mutate committed state.
"""

from __future__ import annotations

import copy
import threading

from ops_kernel.logging_config import get_logger
from ops_kernel.store.base import (
    Document,
    Filter,
    LedgerStore,
    StagedDocument,
    WriteOp,
    matches,
    stage_operations,
)

logger = get_logger("store.memory")


class MemoryLedgerStore(LedgerStore):
    """Ledger Store held entirely in memory."""

    def __init__(self) -> None:
        super().__init__()
        self._collections: dict[str, dict[str, StagedDocument]] = {}
        self._lock = threading.RLock()

    def get(self, collection: str, filter: Filter = None) -> list[Document]:
        with self._lock:
            docs = self._collections.get(collection, {})
            return [
                Document(doc_id, copy.deepcopy(stored.data), stored.version)
                for doc_id, stored in docs.items()
                if matches(stored.data, filter)
            ]

    def get_by_id(self, collection: str, doc_id: str) -> Document | None:
        with self._lock:
            stored = self._collections.get(collection, {}).get(doc_id)
            if stored is None:
                return None
            return Document(doc_id, copy.deepcopy(stored.data), stored.version)

    def _load(self, collection: str, doc_id: str) -> StagedDocument | None:
        return self._collections.get(collection, {}).get(doc_id)

    def _commit(self, ops: list[WriteOp]) -> None:
        with self._lock:
            staged = stage_operations(ops, self._load)
            for (collection, doc_id), state in staged.items():
                docs = self._collections.setdefault(collection, {})
                if state is None:
                    docs.pop(doc_id, None)
                else:
                    docs[doc_id] = state

    def clear(self) -> None:
        """Drop every collection. FOR TESTING ONLY."""
        with self._lock:
            self._collections.clear()
