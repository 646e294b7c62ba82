"""
Ledger Store contract (``ops_kernel.store.base``).

Responsibility
--------------
Defines the document-store surface every workflow talks to: queries by
collection + equality filter, single-document writes, atomic multi-document
batches, field transforms (``Increment``, ``Append``) and live
subscriptions.  Backends implement only reads and ``_commit``; staging of a
batch against current state is shared here so both backends apply identical
semantics.

Invariants enforced
-------------------
* A batch is all-or-nothing: every operation is staged against a copy of
  current state and nothing is published unless all operations stage.
* ``expected_version`` on an update/delete must equal the stored version or
  the whole batch fails with ``OptimisticLockError``.
* Updates and deletes of a missing document fail the batch with
  ``MissingDocumentError``.
* Versions start at 1 and increase by one per applied write.

Failure modes
-------------
* ``StoreError`` / ``MissingDocumentError`` -- nothing persisted.
* ``OptimisticLockError`` -- nothing persisted; caller re-reads.
"""

from __future__ import annotations

import copy
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping
from uuid import uuid4

from ops_kernel.exceptions import (
    MissingDocumentError,
    OptimisticLockError,
    StoreError,
)
from ops_kernel.logging_config import get_logger

logger = get_logger("store")


# =========================================================================
# Values
# =========================================================================


@dataclass(frozen=True)
class Document:
    """Immutable snapshot of a stored document."""

    id: str
    data: dict[str, Any]
    version: int

    def get(self, path: str, default: Any = None) -> Any:
        """Resolve a dotted field path, e.g. ``leave_balance.sick.used``."""
        return resolve_path(self.data, path, default)


@dataclass(frozen=True)
class Increment:
    """Field transform: add ``amount`` to the stored number (missing = 0)."""

    amount: int | float


@dataclass(frozen=True)
class Append:
    """Field transform: append ``item`` to the stored list (missing = [])."""

    item: Any


class OpKind(str, Enum):
    CREATE = "create"
    SET = "set"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class WriteOp:
    """One mutation inside a batch."""

    kind: OpKind
    collection: str
    doc_id: str
    data: Mapping[str, Any] | None = None
    expected_version: int | None = None


@dataclass(frozen=True)
class StagedDocument:
    """Post-commit state of one document (``None`` in a stage map = deleted)."""

    data: dict[str, Any]
    version: int


DocKey = tuple[str, str]
Filter = Mapping[str, Any] | None


# =========================================================================
# Field-path helpers
# =========================================================================


def resolve_path(data: Mapping[str, Any], path: str, default: Any = None) -> Any:
    """``a.b.c`` -> data["a"]["b"]["c"], or ``default`` when any hop is missing."""
    current: Any = data
    for part in path.split("."):
        if isinstance(current, Mapping) and part in current:
            current = current[part]
        else:
            return default
    return current


def matches(data: Mapping[str, Any], filter: Filter) -> bool:
    """Equality match on every (dotted) key of ``filter``."""
    if not filter:
        return True
    missing = object()
    return all(
        resolve_path(data, key, missing) == expected
        for key, expected in filter.items()
    )


def _apply_value(current: Any, value: Any, path: str) -> Any:
    if isinstance(value, Increment):
        base = 0 if current is None else current
        if not isinstance(base, (int, float)) or isinstance(base, bool):
            raise StoreError(f"Cannot increment non-numeric field '{path}'")
        return base + value.amount
    if isinstance(value, Append):
        base = [] if current is None else current
        if not isinstance(base, list):
            raise StoreError(f"Cannot append to non-list field '{path}'")
        return [*base, copy.deepcopy(value.item)]
    return copy.deepcopy(value)


def apply_update(data: Mapping[str, Any], partial: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of ``data`` with ``partial`` merged in.

    Keys are dotted paths; intermediate maps are created as needed.
    Transforms are resolved against the value currently at the path.
    """
    result = copy.deepcopy(dict(data))
    for path, value in partial.items():
        parts = path.split(".")
        node = result
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        leaf = parts[-1]
        node[leaf] = _apply_value(node.get(leaf), value, path)
    return result


def materialize(data: Mapping[str, Any]) -> dict[str, Any]:
    """Resolve a full document body (create/set) against an empty document."""
    return apply_update({}, data)


def stage_operations(
    ops: list[WriteOp],
    load: Callable[[str, str], StagedDocument | None],
) -> dict[DocKey, StagedDocument | None]:
    """Stage ``ops`` in order against current state.

    ``load`` returns the committed state of a document.  Raises before
    returning anything if any operation cannot apply, so callers publish
    either the complete stage map or nothing.
    """
    staged: dict[DocKey, StagedDocument | None] = {}
    for op in ops:
        key = (op.collection, op.doc_id)
        current = staged[key] if key in staged else load(op.collection, op.doc_id)

        if op.kind in (OpKind.UPDATE, OpKind.DELETE):
            if current is None:
                raise MissingDocumentError(op.collection, op.doc_id)
            if op.expected_version is not None and current.version != op.expected_version:
                raise OptimisticLockError(
                    op.collection, op.doc_id, op.expected_version, current.version,
                )

        if op.kind is OpKind.CREATE:
            if current is not None:
                raise StoreError(f"Document already exists: {op.collection}/{op.doc_id}")
            staged[key] = StagedDocument(materialize(op.data or {}), 1)
        elif op.kind is OpKind.SET:
            version = current.version + 1 if current is not None else 1
            staged[key] = StagedDocument(materialize(op.data or {}), version)
        elif op.kind is OpKind.UPDATE:
            staged[key] = StagedDocument(
                apply_update(current.data, op.data or {}), current.version + 1,
            )
        else:
            staged[key] = None
    return staged


# =========================================================================
# Batch
# =========================================================================


class WriteBatch:
    """Collects mutations and commits them as one indivisible unit."""

    def __init__(self, store: LedgerStore):
        self._store = store
        self._ops: list[WriteOp] = []
        self._committed = False

    def __len__(self) -> int:
        return len(self._ops)

    @property
    def operations(self) -> tuple[WriteOp, ...]:
        return tuple(self._ops)

    def create(self, collection: str, data: Mapping[str, Any], doc_id: str | None = None) -> str:
        doc_id = doc_id or uuid4().hex
        self._ops.append(WriteOp(OpKind.CREATE, collection, doc_id, dict(data)))
        return doc_id

    def set(self, collection: str, doc_id: str, data: Mapping[str, Any]) -> WriteBatch:
        self._ops.append(WriteOp(OpKind.SET, collection, doc_id, dict(data)))
        return self

    def update(
        self,
        collection: str,
        doc_id: str,
        partial: Mapping[str, Any],
        expected_version: int | None = None,
    ) -> WriteBatch:
        self._ops.append(
            WriteOp(OpKind.UPDATE, collection, doc_id, dict(partial), expected_version)
        )
        return self

    def delete(
        self, collection: str, doc_id: str, expected_version: int | None = None,
    ) -> WriteBatch:
        self._ops.append(WriteOp(OpKind.DELETE, collection, doc_id, None, expected_version))
        return self

    def commit(self) -> None:
        if self._committed:
            raise StoreError("Batch already committed")
        self._committed = True
        if not self._ops:
            return
        self._store.commit_operations(list(self._ops))


# =========================================================================
# Subscriptions
# =========================================================================


SnapshotCallback = Callable[[list[Document]], None]


@dataclass(eq=False)
class Subscription:
    """Handle returned by ``LedgerStore.subscribe``."""

    collection: str
    callback: SnapshotCallback
    filter: Filter = None
    active: bool = True
    _owner: LedgerStore | None = field(default=None, repr=False)

    def cancel(self) -> None:
        self.active = False
        if self._owner is not None:
            self._owner._remove_subscription(self)


# =========================================================================
# Store contract
# =========================================================================


class LedgerStore(ABC):
    """
    Abstract document store.

    Contract:
        Backends implement ``get``, ``get_by_id`` and ``_commit``.  Every
        write -- including single-document helpers -- goes through
        ``commit_operations`` so atomicity, versioning, logging and
        subscriber notification behave identically.
    """

    def __init__(self) -> None:
        self._subscriptions: dict[str, list[Subscription]] = {}
        self._sub_lock = threading.Lock()

    # -- reads ------------------------------------------------------------

    @abstractmethod
    def get(self, collection: str, filter: Filter = None) -> list[Document]:
        """All documents in ``collection`` matching ``filter``."""

    @abstractmethod
    def get_by_id(self, collection: str, doc_id: str) -> Document | None:
        """A single document, or None."""

    # -- writes -----------------------------------------------------------

    @abstractmethod
    def _commit(self, ops: list[WriteOp]) -> None:
        """Apply ``ops`` atomically or raise without persisting anything."""

    def batch(self) -> WriteBatch:
        return WriteBatch(self)

    def create(self, collection: str, data: Mapping[str, Any], doc_id: str | None = None) -> str:
        batch = self.batch()
        new_id = batch.create(collection, data, doc_id)
        batch.commit()
        return new_id

    def update(
        self,
        collection: str,
        doc_id: str,
        partial: Mapping[str, Any],
        expected_version: int | None = None,
    ) -> None:
        self.batch().update(collection, doc_id, partial, expected_version).commit()

    def delete(self, collection: str, doc_id: str, expected_version: int | None = None) -> None:
        self.batch().delete(collection, doc_id, expected_version).commit()

    def commit_operations(self, ops: list[WriteOp]) -> None:
        """Commit a list of operations as one batch, then notify observers."""
        try:
            self._commit(ops)
        except Exception:
            logger.warning(
                "batch_rejected",
                extra={
                    "operation_count": len(ops),
                    "collections": sorted({op.collection for op in ops}),
                },
                exc_info=True,
            )
            raise
        logger.debug(
            "batch_committed",
            extra={
                "operation_count": len(ops),
                "collections": sorted({op.collection for op in ops}),
            },
        )
        self._notify({op.collection for op in ops})

    # -- subscriptions ----------------------------------------------------

    def subscribe(
        self,
        collection: str,
        callback: SnapshotCallback,
        filter: Filter = None,
    ) -> Subscription:
        """Push the matching documents now and after every committed change."""
        sub = Subscription(collection, callback, dict(filter) if filter else None, _owner=self)
        with self._sub_lock:
            self._subscriptions.setdefault(collection, []).append(sub)
        self._deliver(sub)
        return sub

    def _remove_subscription(self, sub: Subscription) -> None:
        with self._sub_lock:
            subs = self._subscriptions.get(sub.collection, [])
            if sub in subs:
                subs.remove(sub)

    def _notify(self, collections: set[str]) -> None:
        for collection in collections:
            with self._sub_lock:
                subs = list(self._subscriptions.get(collection, ()))
            for sub in subs:
                self._deliver(sub)

    def _deliver(self, sub: Subscription) -> None:
        if not sub.active:
            return
        snapshot = self.get(sub.collection, sub.filter)
        try:
            sub.callback(snapshot)
        except Exception:  # noqa: BLE001
            # Committed writes never fail because of an observer.
            logger.exception(
                "subscription_callback_failed",
                extra={"collection": sub.collection},
            )
