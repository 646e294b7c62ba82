"""
Task Module Service (``ops_modules.tasks.service``).

Responsibility
--------------
Creates tasks and moves them along ``TASK_WORKFLOW``, recording every move
in the task's history.

Invariants
----------
- History is append-only: each successful ``act_on_task`` appends exactly
  one entry through an ``Append`` transform on a version-checked update, so
  ``len(history) == 1 + successful actions`` and earlier entries never
  change.  Entry ``seq`` equals its index.
- The status the caller asks for must be the one the action leads to.
"""

from __future__ import annotations

from typing import Any

from ops_kernel.domain.actor import Actor
from ops_kernel.domain.clock import Clock, SystemClock
from ops_kernel.domain.workflow import TransitionResult
from ops_kernel.exceptions import InvalidTransitionError
from ops_kernel.logging_config import LogContext, get_logger
from ops_kernel.store.base import Append, Document, LedgerStore
from ops_modules._workflow_helpers import (
    is_blank,
    load_document,
    parse_date,
    raise_if_errors,
)
from ops_modules.tasks.models import (
    REMARKS_REQUIRED,
    TASKS,
    Task,
    TaskStatus,
)
from ops_modules.tasks.workflows import TASK_WORKFLOW
from ops_services.workflow_executor import WorkflowExecutor

logger = get_logger("modules.tasks.service")


class TaskService:
    """Task lifecycle with audit history."""

    def __init__(
        self,
        store: LedgerStore,
        executor: WorkflowExecutor | None = None,
        clock: Clock | None = None,
    ):
        self._store = store
        self._executor = executor or WorkflowExecutor()
        self._clock = clock or SystemClock()

    def create_task(self, task: Task, actor: Actor) -> str:
        """Create a task; ``Assigned`` when an assignee is given, else ``New``."""
        errors: list[str] = []
        if is_blank(task.title):
            errors.append("'title' is required")
        start = parse_date(task.start_date, "start_date", errors) if task.start_date else None
        due = parse_date(task.due_date, "due_date", errors) if task.due_date else None
        if start and due and due < start:
            errors.append("'due_date' must not be before 'start_date'")
        raise_if_errors("task", errors)

        status = (
            TaskStatus.NEW.value if is_blank(task.assigned_to) else TaskStatus.ASSIGNED.value
        )
        now = self._clock.timestamp()
        task_id = self._store.create(TASKS, {
            "title": task.title.strip(),
            "description": task.description,
            "category": task.category,
            "priority": task.priority,
            "start_date": start.isoformat() if start else None,
            "due_date": due.isoformat() if due else None,
            "assigned_to": task.assigned_to,
            "assigned_to_name": task.assigned_to_name,
            "assigned_to_department": task.assigned_to_department,
            "created_by": actor.actor_id,
            "created_at": now,
            "status": status,
            "history": [{
                "action": "Created",
                "actor": actor.display_name,
                "actor_id": actor.actor_id,
                "timestamp": now,
                "details": f"Task created with status {status}",
                "seq": 0,
            }],
        })
        logger.info(
            "task_created",
            extra={"task_id": task_id, "status": status, "actor_id": actor.actor_id},
        )
        return task_id

    def act_on_task(
        self,
        task_id: str,
        new_status: str,
        action_label: str,
        actor: Actor,
        remarks: str | None = None,
    ) -> TransitionResult:
        """
        Move a task to ``new_status`` via ``action_label``.

        Raises:
            ValidationError: Complete / Reject without remarks.
            InvalidTransitionError: The action is not legal from the current
                status, or does not lead to ``new_status``.
        """
        doc = load_document(self._store, TASKS, task_id)
        action_name = getattr(action_label, "value", action_label)
        target = getattr(new_status, "value", new_status)

        errors: list[str] = []
        if action_name in REMARKS_REQUIRED and is_blank(remarks):
            errors.append(f"remarks are required to {action_name.lower()} a task")
        raise_if_errors("task", errors)

        with LogContext.bind(workflow=TASK_WORKFLOW.name, entity_id=task_id):
            result = self._executor.resolve(
                TASK_WORKFLOW, task_id, doc.get("status"), action_name, actor,
            )
            if result.to_state != target:
                raise InvalidTransitionError(
                    TASK_WORKFLOW.name, task_id, doc.get("status"), action_name,
                )

            now = self._clock.timestamp()
            self._store.update(
                TASKS,
                task_id,
                self._status_update(doc, result, actor, now, remarks),
                expected_version=doc.version,
            )

        logger.info(
            "task_actioned",
            extra={
                "task_id": task_id,
                "action": action_name,
                "from_state": result.from_state,
                "to_state": result.to_state,
                "actor_id": actor.actor_id,
            },
        )
        return result

    @staticmethod
    def _status_update(
        doc: Document,
        result: TransitionResult,
        actor: Actor,
        now: str,
        remarks: str | None,
    ) -> dict[str, Any]:
        details = f"Status changed from {result.from_state} to {result.to_state}"
        if not is_blank(remarks):
            details = f"{details}. Remarks: {remarks.strip()}"
        entry = {
            "action": result.action,
            "actor": actor.display_name,
            "actor_id": actor.actor_id,
            "timestamp": now,
            "details": details,
            "seq": len(doc.get("history") or []),
        }

        update: dict[str, Any] = {
            "status": result.to_state,
            "history": Append(entry),
            "updated_at": now,
        }
        if result.to_state == TaskStatus.PENDING_REVIEW.value:
            update["completion_remarks"] = remarks.strip()
            update["completed_date"] = now
        elif result.to_state == TaskStatus.REOPENED.value:
            update["rejection_remarks"] = remarks.strip()
        elif result.to_state == TaskStatus.CLOSED.value:
            update["completed_date"] = now
        return update

    def tasks_assigned_to(self, assignee: str) -> list[Document]:
        return self._store.get(TASKS, {"assigned_to": assignee})
