"""Pure domain value objects: actors, clocks, workflow definitions."""

from ops_kernel.domain.actor import Actor, Role
from ops_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from ops_kernel.domain.workflow import Guard, Transition, TransitionResult, Workflow

__all__ = [
    "Actor",
    "Clock",
    "DeterministicClock",
    "Guard",
    "Role",
    "SystemClock",
    "Transition",
    "TransitionResult",
    "Workflow",
]
