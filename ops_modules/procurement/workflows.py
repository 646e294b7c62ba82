"""
Procurement workflow definition.

Pending Account Manager -> Approved -> Received, with rejection allowed
until goods arrive.  Receipt is the only transition that moves stock.
"""

from ops_kernel.domain.actor import Role
from ops_kernel.domain.workflow import Transition, Workflow, state_values
from ops_kernel.logging_config import get_logger
from ops_modules.procurement.models import PurchaseOrderAction, PurchaseOrderStatus

logger = get_logger("modules.procurement.workflows")

_PENDING = PurchaseOrderStatus.PENDING_ACCOUNT_MANAGER.value
_APPROVED = PurchaseOrderStatus.APPROVED.value
_RECEIVED = PurchaseOrderStatus.RECEIVED.value
_REJECTED = PurchaseOrderStatus.REJECTED.value

PURCHASE_ORDER_WORKFLOW = Workflow(
    name="purchase_order",
    description="Vendor purchase order approval and goods receipt",
    initial_state=_PENDING,
    states=state_values(PurchaseOrderStatus),
    transitions=(
        Transition(
            _PENDING, _APPROVED, PurchaseOrderAction.APPROVE.value,
            allowed_roles=(Role.ACCOUNT_MANAGER,),
        ),
        Transition(
            _PENDING, _REJECTED, PurchaseOrderAction.REJECT.value,
            allowed_roles=(Role.ACCOUNT_MANAGER,),
        ),
        Transition(
            _APPROVED, _RECEIVED, PurchaseOrderAction.RECEIVE.value,
            adjusts_ledger=True,
            allowed_roles=(Role.STORE, Role.PURCHASE),
        ),
        Transition(
            _APPROVED, _REJECTED, PurchaseOrderAction.REJECT.value,
            allowed_roles=(Role.ACCOUNT_MANAGER, Role.PURCHASE),
        ),
    ),
    terminal_states=(_RECEIVED, _REJECTED),
)

logger.info(
    "procurement_workflow_registered",
    extra={"workflow": PURCHASE_ORDER_WORKFLOW.name},
)
