"""
Supply-Chain Domain Models (``ops_modules.supply_chain.models``).

Internal stock requests raised by departments and fulfilled by the store
(or routed to purchase when the store cannot fulfil them).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

SUPPLY_CHAIN_REQUESTS = "supply_chain_requests"


class SupplyRequestStatus(str, Enum):
    PENDING_ACCOUNT_MANAGER = "Pending Account Manager"
    PENDING_STORE = "Pending Store"
    FORWARDED_TO_PURCHASE = "Forwarded to Purchase"
    ISSUED = "Issued"
    REJECTED = "Rejected"


class SupplyRequestAction(str, Enum):
    APPROVE = "Approve"
    REJECT = "Reject"
    FORWARD_TO_PURCHASE = "Forward to Purchase"
    ISSUE = "Issue"
    RESTOCK = "Restock"


@dataclass(frozen=True)
class RequestLine:
    """One requested item.  A blank ``inventory_id`` marks a non-catalog line."""

    name: str
    quantity_requested: int
    inventory_id: str = ""
    unit: str = ""

    def to_document(self) -> dict[str, Any]:
        return {
            "inventory_id": self.inventory_id,
            "name": self.name,
            "quantity_requested": self.quantity_requested,
            "unit": self.unit,
        }


@dataclass(frozen=True)
class SupplyChainRequest:
    requester_name: str
    requester_email: str
    department: str
    items: tuple[RequestLine, ...] = field(default_factory=tuple)
    purpose: str = ""
