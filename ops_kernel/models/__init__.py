"""ORM models for the SQL Ledger Store."""

from ops_kernel.models.document import DocumentRecord

__all__ = ["DocumentRecord"]
