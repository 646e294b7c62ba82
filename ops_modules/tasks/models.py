"""
Task Domain Models (``ops_modules.tasks.models``).

Assignable work items with an append-only history of every status change.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum

TASKS = "tasks"


class TaskStatus(str, Enum):
    NEW = "New"
    ASSIGNED = "Assigned"
    IN_PROGRESS = "In Progress"
    PENDING_REVIEW = "Completed - Pending Review"
    CLOSED = "Closed"
    REOPENED = "Reopened"


class TaskAction(str, Enum):
    ASSIGN = "Assign"
    ACCEPT = "Accept"
    COMPLETE = "Complete"
    APPROVE = "Approve"
    REJECT = "Reject"
    CLOSE = "Close"


class TaskPriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


# Review outcomes must explain themselves.
REMARKS_REQUIRED = frozenset({TaskAction.COMPLETE.value, TaskAction.REJECT.value})


@dataclass(frozen=True)
class Task:
    """A task as entered by its creator.  Assigned tasks start as ``Assigned``."""

    title: str
    description: str = ""
    category: str = ""
    priority: str = TaskPriority.MEDIUM.value
    start_date: date | str | None = None
    due_date: date | str | None = None
    assigned_to: str = ""
    assigned_to_name: str = ""
    assigned_to_department: str = ""
