"""
Supply-Chain Module (``ops_modules.supply_chain``).

Internal stock requests: account-manager approval, store fulfilment or
hand-off to purchase, and issue from stock.
"""

from ops_modules.supply_chain.models import (
    SUPPLY_CHAIN_REQUESTS,
    RequestLine,
    SupplyChainRequest,
    SupplyRequestAction,
    SupplyRequestStatus,
)
from ops_modules.supply_chain.service import SupplyChainService
from ops_modules.supply_chain.workflows import SUPPLY_CHAIN_WORKFLOW

__all__ = [
    "SUPPLY_CHAIN_REQUESTS",
    "SUPPLY_CHAIN_WORKFLOW",
    "RequestLine",
    "SupplyChainRequest",
    "SupplyChainService",
    "SupplyRequestAction",
    "SupplyRequestStatus",
]
