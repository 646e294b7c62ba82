"""
Supply-Chain Workflows.

Account-manager approval routes a request either to the store (fulfil from
stock) or, for the store's own requests, straight to purchase.  Issuing from
the store decrements inventory.
"""

from ops_kernel.domain.actor import Role
from ops_kernel.domain.workflow import Guard, Transition, Workflow, state_values
from ops_kernel.logging_config import get_logger
from ops_modules.supply_chain.models import SupplyRequestAction, SupplyRequestStatus

logger = get_logger("modules.supply_chain.workflows")

_S = SupplyRequestStatus
_A = SupplyRequestAction


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

REQUESTER_IS_STORE = Guard(
    name="requester_is_store",
    description="Requesting department is the store department",
)

REQUESTER_IS_NOT_STORE = Guard(
    name="requester_is_not_store",
    description="Requesting department is not the store department",
)

logger.info(
    "supply_chain_workflow_guards_defined",
    extra={"guards": [REQUESTER_IS_STORE.name, REQUESTER_IS_NOT_STORE.name]},
)


# -----------------------------------------------------------------------------
# Supply-Chain Request Workflow
# -----------------------------------------------------------------------------

SUPPLY_CHAIN_WORKFLOW = Workflow(
    name="supply_chain_request",
    description="Internal stock request: approval, fulfilment and issue",
    initial_state=_S.PENDING_ACCOUNT_MANAGER.value,
    states=state_values(SupplyRequestStatus),
    transitions=(
        # Approval routes by requesting department
        Transition(
            _S.PENDING_ACCOUNT_MANAGER.value, _S.FORWARDED_TO_PURCHASE.value,
            action=_A.APPROVE.value, guard=REQUESTER_IS_STORE,
            allowed_roles=(Role.ACCOUNT_MANAGER,),
        ),
        Transition(
            _S.PENDING_ACCOUNT_MANAGER.value, _S.PENDING_STORE.value,
            action=_A.APPROVE.value, guard=REQUESTER_IS_NOT_STORE,
            allowed_roles=(Role.ACCOUNT_MANAGER,),
        ),
        Transition(
            _S.PENDING_ACCOUNT_MANAGER.value, _S.REJECTED.value,
            action=_A.REJECT.value, allowed_roles=(Role.ACCOUNT_MANAGER,),
        ),
        # Explicit hand-off to purchase
        Transition(
            _S.PENDING_ACCOUNT_MANAGER.value, _S.FORWARDED_TO_PURCHASE.value,
            action=_A.FORWARD_TO_PURCHASE.value,
            allowed_roles=(Role.ACCOUNT_MANAGER, Role.STORE),
        ),
        Transition(
            _S.PENDING_STORE.value, _S.FORWARDED_TO_PURCHASE.value,
            action=_A.FORWARD_TO_PURCHASE.value, allowed_roles=(Role.STORE,),
        ),
        # Store fulfilment
        Transition(
            _S.PENDING_STORE.value, _S.ISSUED.value,
            action=_A.ISSUE.value, adjusts_ledger=True, allowed_roles=(Role.STORE,),
        ),
        Transition(
            _S.PENDING_STORE.value, _S.REJECTED.value,
            action=_A.REJECT.value, allowed_roles=(Role.STORE,),
        ),
        # Goods received against a purchase order
        Transition(
            _S.FORWARDED_TO_PURCHASE.value, _S.PENDING_STORE.value,
            action=_A.RESTOCK.value, allowed_roles=(Role.PURCHASE, Role.STORE),
        ),
        Transition(
            _S.FORWARDED_TO_PURCHASE.value, _S.REJECTED.value,
            action=_A.REJECT.value, allowed_roles=(Role.PURCHASE, Role.ACCOUNT_MANAGER),
        ),
    ),
    terminal_states=(_S.ISSUED.value, _S.REJECTED.value),
)

logger.info(
    "supply_chain_workflow_registered",
    extra={
        "workflow_name": SUPPLY_CHAIN_WORKFLOW.name,
        "state_count": len(SUPPLY_CHAIN_WORKFLOW.states),
        "transition_count": len(SUPPLY_CHAIN_WORKFLOW.transitions),
        "initial_state": SUPPLY_CHAIN_WORKFLOW.initial_state,
    },
)
