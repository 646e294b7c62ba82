"""
Canonical workflow types (``ops_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for workflow state machines.  Used by every module
(leave, supply chain, procurement, tasks) so that Guard, Transition, and
Workflow are defined once.  States are closed enumerations per workflow;
the transition table is the only source of legal moves.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``store/``, ``db/``, or outer layers.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* ``terminal_states`` have no outgoing transitions.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ops_kernel.domain.actor import Role


@dataclass(frozen=True)
class Guard:
    """A condition that must be satisfied before a transition fires.

    Contract: frozen, descriptive only.
    Non-goals: does not evaluate the condition -- the workflow executor does.
    """
    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow.

    ``adjusts_ledger=True`` marks transitions whose batch also mutates
    balances or stock.  ``allowed_roles`` lists the roles that may fire the
    transition; an empty tuple means any actor.
    """
    from_state: str
    to_state: str
    action: str
    guard: Guard | None = None
    adjusts_ledger: bool = False
    allowed_roles: tuple[Role, ...] = ()


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for a request lifecycle."""
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.initial_state not in self.states:
            raise ValueError(
                f"Workflow {self.name}: initial state {self.initial_state!r} "
                "is not a declared state"
            )
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(
                    f"Workflow {self.name}: transition {t.action!r} "
                    f"{t.from_state!r} -> {t.to_state!r} uses an undeclared state"
                )
            if t.from_state in self.terminal_states:
                raise ValueError(
                    f"Workflow {self.name}: terminal state {t.from_state!r} "
                    "has an outgoing transition"
                )

    def candidates(self, from_state: str, action: str) -> tuple[Transition, ...]:
        """Transitions leaving ``from_state`` via ``action``, in declaration order."""
        return tuple(
            t for t in self.transitions
            if t.from_state == from_state and t.action == action
        )

    def is_terminal(self, state: str) -> bool:
        return state in self.terminal_states


def state_values(enum_cls: type[Enum]) -> tuple[str, ...]:
    """The ``value`` of every member of a status enumeration."""
    return tuple(member.value for member in enum_cls)


@dataclass(frozen=True)
class TransitionResult:
    """The transition the executor selected for an action."""
    workflow: str
    action: str
    from_state: str
    to_state: str
    adjusts_ledger: bool = False
