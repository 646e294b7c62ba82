"""
Shared helpers for module workflow services.

Used by ops_modules/*/service.py to load request documents, validate input
before any store write, and turn a resolved transition into the status
update of an atomic batch.

Architecture: Modules layer. Imports only from ops_kernel.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from ops_kernel.exceptions import NotFoundError, ValidationError
from ops_kernel.store.base import Document, LedgerStore


@dataclass(frozen=True)
class ActionResult:
    """Outcome handed back to the presentation layer."""

    success: bool
    message: str
    entity_id: str | None = None


def load_document(store: LedgerStore, collection: str, doc_id: str) -> Document:
    """Read a document or raise ``NotFoundError``."""
    doc = store.get_by_id(collection, doc_id)
    if doc is None:
        raise NotFoundError(collection, doc_id)
    return doc


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def require_fields(
    data: Mapping[str, Any], names: Iterable[str], errors: list[str],
) -> None:
    for name in names:
        if is_blank(data.get(name)):
            errors.append(f"'{name}' is required")


def stored_date(value: Any) -> date:
    """Calendar day of a stored ``YYYY-MM-DD`` or ISO datetime string.

    Raises:
        ValueError: The value does not start with an ISO date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def parse_date(value: Any, name: str, errors: list[str]) -> date | None:
    """ISO date from a string or ``date``; appends to ``errors`` on failure."""
    if isinstance(value, date) or (isinstance(value, str) and value.strip()):
        try:
            return stored_date(value)
        except ValueError:
            pass
    errors.append(f"'{name}' must be an ISO date, got {value!r}")
    return None


def parse_quantity(value: Any, name: str, errors: list[str]) -> int | None:
    """Positive whole quantity; appends to ``errors`` on failure."""
    if isinstance(value, bool):
        errors.append(f"'{name}' must be a positive integer, got {value!r}")
        return None
    try:
        qty = int(str(value).strip())
    except (TypeError, ValueError):
        errors.append(f"'{name}' must be a positive integer, got {value!r}")
        return None
    if qty <= 0:
        errors.append(f"'{name}' must be a positive integer, got {value!r}")
        return None
    return qty


def parse_money(value: Any, name: str, errors: list[str]) -> Decimal | None:
    """Non-negative Decimal amount; appends to ``errors`` on failure."""
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, TypeError, ValueError):
        errors.append(f"'{name}' must be a number, got {value!r}")
        return None
    if not amount.is_finite() or amount < 0:
        errors.append(f"'{name}' must be a non-negative number, got {value!r}")
        return None
    return amount


def raise_if_errors(entity_type: str, errors: list[str]) -> None:
    if errors:
        raise ValidationError(entity_type, errors)


def inventory_ref(line: Mapping[str, Any]) -> str | None:
    """The line's inventory reference, or None when blank (non-catalog line)."""
    ref = line.get("inventory_id")
    if is_blank(ref):
        return None
    return str(ref).strip()
