"""
Module: ops_kernel.models.document
Responsibility: ORM persistence for Ledger Store documents.

Architecture position: Kernel > Models.  May import from db/base.py and the
    store value types only.

Invariants enforced:
    - UNIQUE(collection, doc_id): one row per logical document.
    - version >= 1; the store bumps it by one per applied write.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, CheckConstraint, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ops_kernel.db.base import TrackedBase
from ops_kernel.store.base import Document, StagedDocument


class DocumentRecord(TrackedBase):
    """One document of one collection, stored as a JSON body."""

    __tablename__ = "ledger_documents"

    __table_args__ = (
        UniqueConstraint("collection", "doc_id", name="uq_ledger_documents_key"),
        CheckConstraint("version >= 1", name="ck_ledger_documents_version"),
        Index("ix_ledger_documents_collection", "collection"),
    )

    collection: Mapped[str] = mapped_column(String(100), nullable=False)
    doc_id: Mapped[str] = mapped_column(String(200), nullable=False)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    version: Mapped[int] = mapped_column(nullable=False, default=1)

    def __repr__(self) -> str:
        return f"<DocumentRecord {self.collection}/{self.doc_id} v{self.version}>"

    def to_dto(self) -> Document:
        """Convert ORM row to an immutable store snapshot."""
        return Document(self.doc_id, dict(self.data), self.version)

    def to_staged(self) -> StagedDocument:
        return StagedDocument(dict(self.data), self.version)
