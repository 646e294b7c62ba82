"""
HR Workflows.

Leave request approval: department head first, then HR.  Only the final HR
approval debits the employee's leave balance.
"""

from ops_kernel.domain.actor import Role
from ops_kernel.domain.workflow import Transition, Workflow, state_values
from ops_kernel.logging_config import get_logger
from ops_modules.hr.models import LeaveAction, LeaveStatus

logger = get_logger("modules.hr.workflows")

_APPROVE = LeaveAction.APPROVE.value
_REJECT = LeaveAction.REJECT.value


# -----------------------------------------------------------------------------
# Leave Workflow
# -----------------------------------------------------------------------------

LEAVE_WORKFLOW = Workflow(
    name="leave_request",
    description="Leave request approval (HOD, then HR)",
    initial_state=LeaveStatus.PENDING_HOD.value,
    states=state_values(LeaveStatus),
    transitions=(
        Transition(
            LeaveStatus.PENDING_HOD.value, LeaveStatus.PENDING_HR.value,
            action=_APPROVE, allowed_roles=(Role.HOD, Role.HR),
        ),
        Transition(
            LeaveStatus.PENDING_HOD.value, LeaveStatus.REJECTED.value,
            action=_REJECT, allowed_roles=(Role.HOD, Role.HR),
        ),
        Transition(
            LeaveStatus.PENDING_HR.value, LeaveStatus.APPROVED.value,
            action=_APPROVE, adjusts_ledger=True, allowed_roles=(Role.HR,),
        ),
        Transition(
            LeaveStatus.PENDING_HR.value, LeaveStatus.REJECTED.value,
            action=_REJECT, allowed_roles=(Role.HR,),
        ),
    ),
    terminal_states=(LeaveStatus.APPROVED.value, LeaveStatus.REJECTED.value),
)

logger.info(
    "leave_workflow_registered",
    extra={
        "workflow_name": LEAVE_WORKFLOW.name,
        "state_count": len(LEAVE_WORKFLOW.states),
        "transition_count": len(LEAVE_WORKFLOW.transitions),
        "initial_state": LEAVE_WORKFLOW.initial_state,
    },
)
