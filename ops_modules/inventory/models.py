"""
Inventory Domain Models (``ops_modules.inventory.models``).

Stock items and assets.  ``quantity`` is the single source of truth for
stock on hand; no reserved quantity is modelled, and it may go negative
when issues outrun receipts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ops_kernel.logging_config import get_logger

logger = get_logger("modules.inventory.models")

INVENTORY = "inventory"


class ItemStatus(str, Enum):
    IN_USE = "In Use"
    IN_STOCK = "In Stock"
    MAINTENANCE = "Maintenance"


@dataclass(frozen=True)
class InventoryItem:
    """A catalogued item: an individual asset or a stock line (e.g. kitchen)."""

    type: str
    model: str
    item_code: str = ""
    item_name: str = ""
    sub_category: str = ""
    quantity: int = 0
    unit: str = ""
    location: str = ""
    condition: str = ""
    status: ItemStatus = ItemStatus.IN_STOCK
    assigned_to: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    def to_document(self) -> dict[str, Any]:
        document = dict(self.extra)
        document.update({
            "type": self.type,
            "model": self.model,
            "item_code": self.item_code,
            "item_name": self.item_name,
            "sub_category": self.sub_category,
            "quantity": self.quantity,
            "unit": self.unit,
            "location": self.location,
            "condition": self.condition,
            "status": self.status.value,
            "assigned_to": self.assigned_to,
        })
        return document
