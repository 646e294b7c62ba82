"""
Inventory Module Service (``ops_modules.inventory.service``).

Responsibility
--------------
Direct edits to the inventory collection: bulk add, update, delete, asset
issue / return, and bulk stock-count updates.  Workflow-driven quantity
changes (supply-chain issue, goods receipt) live in their own modules.

Invariants
----------
- Multi-item operations (``add_items``, ``update_kitchen_stock``) are one
  atomic batch.
- Quantities stay whole numbers.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from ops_kernel.domain.actor import Actor
from ops_kernel.domain.clock import Clock, SystemClock
from ops_kernel.exceptions import NotFoundError
from ops_kernel.logging_config import get_logger
from ops_kernel.store.base import Document, LedgerStore
from ops_modules._workflow_helpers import (
    ActionResult,
    is_blank,
    load_document,
    raise_if_errors,
)
from ops_modules.inventory.models import INVENTORY, InventoryItem, ItemStatus

logger = get_logger("modules.inventory.service")


class InventoryService:
    """Inventory item maintenance."""

    def __init__(self, store: LedgerStore, clock: Clock | None = None):
        self._store = store
        self._clock = clock or SystemClock()

    def add_items(self, items: Iterable[InventoryItem], actor: Actor) -> list[str]:
        """Create every item in one batch and return the new ids in order."""
        items = list(items)
        errors: list[str] = []
        if not items:
            errors.append("no items supplied")
        for index, item in enumerate(items):
            if is_blank(item.type) or is_blank(item.model):
                errors.append(f"item {index}: 'type' and 'model' are required")
            if isinstance(item.quantity, bool) or not isinstance(item.quantity, int):
                errors.append(f"item {index}: 'quantity' must be a whole number")
        raise_if_errors("inventory_item", errors)

        batch = self._store.batch()
        ids = [batch.create(INVENTORY, item.to_document()) for item in items]
        batch.commit()
        logger.info("inventory_items_added", extra={"item_count": len(ids), "actor_id": actor.actor_id})
        return ids

    def update_item(self, item_id: str, changes: Mapping[str, Any], actor: Actor) -> ActionResult:
        doc = load_document(self._store, INVENTORY, item_id)
        errors: list[str] = []
        if "quantity" in changes and (
            isinstance(changes["quantity"], bool) or not isinstance(changes["quantity"], int)
        ):
            errors.append("'quantity' must be a whole number")
        if "status" in changes:
            try:
                ItemStatus(changes["status"])
            except ValueError:
                errors.append(f"unknown item status {changes['status']!r}")
        raise_if_errors("inventory_item", errors)

        update = {k: getattr(v, "value", v) for k, v in changes.items()}
        self._store.update(INVENTORY, item_id, update, expected_version=doc.version)
        logger.info(
            "inventory_item_updated",
            extra={"item_id": item_id, "fields": sorted(changes), "actor_id": actor.actor_id},
        )
        return ActionResult(True, "Item updated.", item_id)

    def delete_item(self, item_id: str, actor: Actor) -> ActionResult:
        doc = load_document(self._store, INVENTORY, item_id)
        self._store.delete(INVENTORY, item_id, expected_version=doc.version)
        logger.info("inventory_item_deleted", extra={"item_id": item_id, "actor_id": actor.actor_id})
        return ActionResult(True, "Item deleted.", item_id)

    def issue_asset(self, item_id: str, employee_name: str, actor: Actor) -> ActionResult:
        """Assign an asset to an employee and mark it ``In Use``."""
        raise_if_errors(
            "asset_issue",
            ["'employee_name' is required"] if is_blank(employee_name) else [],
        )
        doc = load_document(self._store, INVENTORY, item_id)
        if doc.get("status") == ItemStatus.IN_USE.value:
            return ActionResult(
                False, f"Asset is already assigned to {doc.get('assigned_to')}.", item_id,
            )
        self._store.update(
            INVENTORY,
            item_id,
            {
                "status": ItemStatus.IN_USE.value,
                "assigned_to": employee_name.strip(),
                "issue_date": self._clock.today().isoformat(),
            },
            expected_version=doc.version,
        )
        logger.info(
            "asset_issued",
            extra={"item_id": item_id, "assigned_to": employee_name, "actor_id": actor.actor_id},
        )
        return ActionResult(True, f"Asset issued to {employee_name.strip()}.", item_id)

    def return_asset(self, item_id: str, actor: Actor) -> ActionResult:
        """Take an asset back into stock and clear its assignment."""
        doc = load_document(self._store, INVENTORY, item_id)
        self._store.update(
            INVENTORY,
            item_id,
            {
                "status": ItemStatus.IN_STOCK.value,
                "assigned_to": "",
                "issue_date": None,
                "return_date": self._clock.today().isoformat(),
            },
            expected_version=doc.version,
        )
        logger.info(
            "asset_returned",
            extra={"item_id": item_id, "previous_holder": doc.get("assigned_to"), "actor_id": actor.actor_id},
        )
        return ActionResult(True, "Asset returned to stock.", item_id)

    def update_kitchen_stock(
        self, counts: Iterable[tuple[str, int]], actor: Actor,
    ) -> ActionResult:
        """Overwrite stock counts for several items in one batch."""
        counts = list(counts)
        errors: list[str] = []
        for item_id, quantity in counts:
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
                errors.append(f"{item_id}: quantity must be a non-negative whole number")
        raise_if_errors("stock_count", errors)

        for item_id, _ in counts:
            if self._store.get_by_id(INVENTORY, item_id) is None:
                raise NotFoundError(INVENTORY, item_id)

        batch = self._store.batch()
        for item_id, quantity in counts:
            batch.update(INVENTORY, item_id, {"quantity": quantity})
        batch.commit()
        logger.info("kitchen_stock_updated", extra={"item_count": len(counts), "actor_id": actor.actor_id})
        return ActionResult(True, "Stock updated successfully.")

    def items_of_type(self, item_type: str) -> list[Document]:
        return self._store.get(INVENTORY, {"type": item_type})
