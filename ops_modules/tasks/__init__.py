"""
Task Module (``ops_modules.tasks``).

Task assignment and review with an append-only audit history.
"""

from ops_modules.tasks.models import (
    TASKS,
    Task,
    TaskAction,
    TaskPriority,
    TaskStatus,
)
from ops_modules.tasks.service import TaskService
from ops_modules.tasks.workflows import TASK_WORKFLOW

__all__ = [
    "TASKS",
    "TASK_WORKFLOW",
    "Task",
    "TaskAction",
    "TaskPriority",
    "TaskService",
    "TaskStatus",
]
