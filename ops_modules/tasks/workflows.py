"""
Task workflow definition.

Open tasks are accepted into progress, completed into review, and either
approved (closed) or rejected (reopened).  Any active task can be closed
outright.  Transitions carry no role restriction.
"""

from ops_kernel.domain.workflow import Transition, Workflow, state_values
from ops_kernel.logging_config import get_logger
from ops_modules.tasks.models import TaskAction, TaskStatus

logger = get_logger("modules.tasks.workflows")

_NEW = TaskStatus.NEW.value
_ASSIGNED = TaskStatus.ASSIGNED.value
_IN_PROGRESS = TaskStatus.IN_PROGRESS.value
_REVIEW = TaskStatus.PENDING_REVIEW.value
_CLOSED = TaskStatus.CLOSED.value
_REOPENED = TaskStatus.REOPENED.value

_ACTIVE = (_NEW, _ASSIGNED, _IN_PROGRESS, _REVIEW, _REOPENED)

TASK_WORKFLOW = Workflow(
    name="task",
    description="Task assignment, progress, review and closure",
    initial_state=_NEW,
    states=state_values(TaskStatus),
    transitions=(
        Transition(_NEW, _ASSIGNED, TaskAction.ASSIGN.value),
        *(
            Transition(state, _IN_PROGRESS, TaskAction.ACCEPT.value)
            for state in (_NEW, _ASSIGNED, _REOPENED)
        ),
        Transition(_IN_PROGRESS, _REVIEW, TaskAction.COMPLETE.value),
        Transition(_REVIEW, _CLOSED, TaskAction.APPROVE.value),
        Transition(_REVIEW, _REOPENED, TaskAction.REJECT.value),
        *(Transition(state, _CLOSED, TaskAction.CLOSE.value) for state in _ACTIVE),
    ),
    terminal_states=(_CLOSED,),
)

logger.info("task_workflow_registered", extra={"workflow": TASK_WORKFLOW.name})
