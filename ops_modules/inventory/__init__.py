"""
Inventory Module (``ops_modules.inventory``).

Item and asset maintenance.  Quantity changes caused by workflows come from
``ops_modules.supply_chain`` (issue) and ``ops_modules.procurement``
(goods receipt).
"""

from ops_modules.inventory.models import INVENTORY, InventoryItem, ItemStatus
from ops_modules.inventory.service import InventoryService

__all__ = ["INVENTORY", "InventoryItem", "InventoryService", "ItemStatus"]
