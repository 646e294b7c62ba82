"""
SQL Ledger Store backend (``ops_kernel.store.sql``).

Responsibility
--------------
Persists documents as rows of ``ledger_documents`` (one JSON body per row)
through SQLAlchemy.  Batch staging is shared with the in-memory backend;
this module only maps the stage map onto INSERT / UPDATE / DELETE inside a
single database transaction.

Invariants enforced
-------------------
* One transaction per batch: the stage map is applied and committed, or the
  session is rolled back and nothing is persisted.
* Rows touched by a batch are read ``FOR UPDATE`` so two writers on
  PostgreSQL serialize on the documents they share.
* SQLite shares one connection between threads (StaticPool); all session
  use is serialized by an in-process lock in that case.

Failure modes
-------------
* ``OptimisticLockError`` / ``MissingDocumentError`` / ``StoreError`` from
  staging -- rolled back and re-raised unchanged.
* Any ``SQLAlchemyError`` -- rolled back and re-raised as ``StoreError``.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager, nullcontext
from typing import Iterator

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ops_kernel.exceptions import OpsKernelError, StoreError
from ops_kernel.logging_config import get_logger
from ops_kernel.models.document import DocumentRecord
from ops_kernel.store.base import (
    DocKey,
    Document,
    Filter,
    LedgerStore,
    StagedDocument,
    WriteOp,
    matches,
    stage_operations,
)

logger = get_logger("store.sql")


class SqlLedgerStore(LedgerStore):
    """Ledger Store backed by a relational database."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        serialize: bool | None = None,
    ) -> None:
        super().__init__()
        self._session_factory = session_factory
        if serialize is None:
            bind = session_factory.kw.get("bind")
            serialize = bind is not None and bind.dialect.name == "sqlite"
        self._lock = threading.RLock() if serialize else None

    def _guard(self):
        return self._lock if self._lock is not None else nullcontext()

    @contextmanager
    def _session(self) -> Iterator[Session]:
        with self._guard():
            session = self._session_factory()
            try:
                yield session
            finally:
                session.close()

    # -- reads ------------------------------------------------------------

    def get(self, collection: str, filter: Filter = None) -> list[Document]:
        try:
            with self._session() as session:
                rows = session.scalars(
                    select(DocumentRecord)
                    .where(DocumentRecord.collection == collection)
                    .order_by(DocumentRecord.created_at, DocumentRecord.doc_id)
                ).all()
                return [row.to_dto() for row in rows if matches(row.data, filter)]
        except SQLAlchemyError as exc:
            raise StoreError(f"Query on '{collection}' failed: {exc}") from exc

    def get_by_id(self, collection: str, doc_id: str) -> Document | None:
        try:
            with self._session() as session:
                row = self._select_row(session, collection, doc_id)
                return row.to_dto() if row is not None else None
        except SQLAlchemyError as exc:
            raise StoreError(f"Read of {collection}/{doc_id} failed: {exc}") from exc

    @staticmethod
    def _select_row(
        session: Session, collection: str, doc_id: str, lock: bool = False,
    ) -> DocumentRecord | None:
        stmt = select(DocumentRecord).where(
            DocumentRecord.collection == collection,
            DocumentRecord.doc_id == doc_id,
        )
        if lock:
            stmt = stmt.with_for_update()
        return session.scalars(stmt).one_or_none()

    # -- writes -----------------------------------------------------------

    def _commit(self, ops: list[WriteOp]) -> None:
        with self._session() as session:
            rows: dict[DocKey, DocumentRecord | None] = {}

            def load(collection: str, doc_id: str) -> StagedDocument | None:
                key = (collection, doc_id)
                if key not in rows:
                    rows[key] = self._select_row(session, collection, doc_id, lock=True)
                row = rows[key]
                return row.to_staged() if row is not None else None

            try:
                staged = stage_operations(ops, load)
                for (collection, doc_id), state in staged.items():
                    row = rows.get((collection, doc_id))
                    if state is None:
                        if row is not None:
                            session.delete(row)
                    elif row is None:
                        session.add(DocumentRecord(
                            collection=collection,
                            doc_id=doc_id,
                            data=state.data,
                            version=state.version,
                        ))
                    else:
                        row.data = state.data
                        row.version = state.version
                session.commit()
            except OpsKernelError:
                session.rollback()
                raise
            except SQLAlchemyError as exc:
                session.rollback()
                raise StoreError(
                    f"Batch commit failed: {exc}", operation_count=len(ops),
                ) from exc
