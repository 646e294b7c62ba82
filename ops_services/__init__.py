"""
ops_services -- Stateful coordination over engines and the kernel.

Dependency direction:
    ops_modules/  -> ops_services/  (allowed: workflow executor, access)
    ops_services/ -> ops_kernel/, ops_engines/, ops_config/  (allowed)
    ops_kernel/   -> ops_services/  (FORBIDDEN)

``ops_services.bootstrap`` wires the module services and is imported
directly, never from here.
"""

from ops_services.access import accessible_modules
from ops_services.workflow_executor import (
    GuardExecutor,
    WorkflowExecutor,
    default_guard_executor,
)

__all__ = [
    "GuardExecutor",
    "WorkflowExecutor",
    "accessible_modules",
    "default_guard_executor",
]
