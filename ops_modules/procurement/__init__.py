"""
Procurement Module (``ops_modules.procurement``).

Purchase orders: creation, account-manager approval and goods receipt into
inventory.
"""

from ops_modules.procurement.models import (
    PURCHASE_ORDERS,
    OrderLine,
    PurchaseOrder,
    PurchaseOrderAction,
    PurchaseOrderStatus,
)
from ops_modules.procurement.service import ProcurementService
from ops_modules.procurement.workflows import PURCHASE_ORDER_WORKFLOW

__all__ = [
    "PURCHASE_ORDERS",
    "PURCHASE_ORDER_WORKFLOW",
    "OrderLine",
    "ProcurementService",
    "PurchaseOrder",
    "PurchaseOrderAction",
    "PurchaseOrderStatus",
]
