"""
Procurement Domain Models (``ops_modules.procurement.models``).

Purchase orders raised against vendors, optionally on behalf of a
supply-chain request the store could not fulfil.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

PURCHASE_ORDERS = "purchase_orders"


class PurchaseOrderStatus(str, Enum):
    PENDING_ACCOUNT_MANAGER = "Pending Account Manager"
    APPROVED = "Approved"
    RECEIVED = "Received"
    REJECTED = "Rejected"


class PurchaseOrderAction(str, Enum):
    APPROVE = "Approve"
    REJECT = "Reject"
    RECEIVE = "Receive"


@dataclass(frozen=True)
class OrderLine:
    """One ordered item.  Amounts may be given as str, int or Decimal."""

    item_name: str
    quantity: int
    unit_price: Decimal | str | int
    unit: str = ""
    inventory_id: str = ""


@dataclass(frozen=True)
class PurchaseOrder:
    vendor_name: str
    items: tuple[OrderLine, ...] = field(default_factory=tuple)
    vendor_id: str = ""
    po_number: str = ""
    original_request_id: str = ""


def line_document(line: OrderLine, quantity: int, unit_price: Decimal) -> dict[str, Any]:
    """Stored form of a line; money is kept as a decimal string."""
    return {
        "item_name": line.item_name,
        "quantity": quantity,
        "unit": line.unit,
        "unit_price": str(unit_price),
        "total_price": str(quantity * unit_price),
        "inventory_id": line.inventory_id,
    }
