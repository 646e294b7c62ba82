"""
ops_services.workflow_executor -- Workflow transition resolution.

Responsibility:
    Decides whether an action may fire from a request's current state and
    which transition it selects.  Thin coordinator: the transition table
    lives on the ``Workflow`` value, guard logic in ``GuardExecutor``, role
    checks on ``Actor``.  Persistence stays with the calling module service,
    which commits the selected transition in its own atomic batch.

Architecture position:
    Services layer.  May import from ops_kernel (domain, exceptions,
    logging).  MUST NOT touch the Ledger Store.

Invariants enforced:
    - A transition that is not in the table never fires
      (``InvalidTransitionError``); terminal states have no exits.
    - With role enforcement on, an actor holding none of a transition's
      ``allowed_roles`` is refused (``UnauthorizedActorError``); ADMIN passes.
    - Among several candidates for one action, the first whose guard passes
      wins (declaration order).
    - Every resolution, successful or not, emits one ``workflow_transition``
      record.
"""

from __future__ import annotations

import time
from datetime import UTC, datetime
from typing import Any, Callable

from ops_kernel.domain.actor import Actor
from ops_kernel.domain.workflow import Guard, Transition, TransitionResult, Workflow
from ops_kernel.exceptions import InvalidTransitionError, UnauthorizedActorError
from ops_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.workflow_executor")

TRACE_TYPE_WORKFLOW_TRANSITION = "WORKFLOW_TRANSITION"
OUTCOME_SUCCESS = "success"
OUTCOME_NO_TRANSITION = "no_transition"
OUTCOME_UNAUTHORIZED = "unauthorized"
OUTCOME_GUARD_FAILED = "guard_failed"

# ---------------------------------------------------------------------------


def _emit_workflow_trace(
    workflow_name: str,
    action: str,
    entity_id: str,
    from_state: str,
    outcome: str,
    reason: str,
    duration_ms: float,
    actor_id: str | None = None,
    to_state: str | None = None,
    adjusts_ledger: bool = False,
    outcome_sink: Callable[[dict], None] | None = None,
) -> None:
    """Emit a structured workflow transition record."""
    record: dict[str, Any] = {
        "trace_type": TRACE_TYPE_WORKFLOW_TRANSITION,
        "ts": datetime.now(UTC).isoformat(),
        "workflow": workflow_name,
        "action": action,
        "entity_id": entity_id,
        "from_state": from_state,
        "outcome": outcome,
        "reason": reason,
        "duration_ms": round(duration_ms, 3),
        "adjusts_ledger": adjusts_ledger,
    }
    if to_state is not None:
        record["to_state"] = to_state
    record.update(LogContext.get_all())
    if actor_id is not None:
        record["actor_id"] = actor_id
    if outcome == OUTCOME_SUCCESS:
        logger.info("workflow_transition", extra=record)
    else:
        logger.warning("workflow_transition", extra=record)
    if outcome_sink is not None:
        outcome_sink({**record, "message": "workflow_transition"})


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------


def _get_attr(context: Any, key: str, default: Any = None) -> Any:
    """Get attribute from context (object or dict)."""
    if context is None:
        return default
    if hasattr(context, "get") and callable(getattr(context, "get")):
        return context.get(key, default)
    return getattr(context, key, default)


def _same_department(left: Any, right: Any) -> bool:
    if left is None or right is None:
        return False
    return str(left).strip().casefold() == str(right).strip().casefold()


def _requester_is_store(context: Any) -> bool:
    """Supply chain: the requesting department is the store itself."""
    return _same_department(
        _get_attr(context, "department"), _get_attr(context, "store_department"),
    )


def _requester_is_not_store(context: Any) -> bool:
    return not _requester_is_store(context)


class GuardExecutor:
    """Evaluates workflow guards against context.

    Guards are declared on transitions (name + description).  This executor
    holds the evaluation logic per guard name.
    """

    def __init__(self) -> None:
        self._evaluators: dict[str, Callable[[Any], bool]] = {}

    def register(self, guard_name: str, evaluator: Callable[[Any], bool]) -> None:
        """Register an evaluator for a guard by name."""
        self._evaluators[guard_name] = evaluator

    def evaluate(self, guard: Guard, context: Any = None) -> bool:
        """Evaluate a guard against context. Returns True if guard passes."""
        fn = self._evaluators.get(guard.name)
        if fn is None:
            logger.warning("guard_no_evaluator", extra={"guard_name": guard.name})
            return False
        return bool(fn(context))


def default_guard_executor() -> GuardExecutor:
    """Return a GuardExecutor with built-in evaluators registered."""
    ex = GuardExecutor()
    ex.register("requester_is_store", _requester_is_store)
    ex.register("requester_is_not_store", _requester_is_not_store)
    return ex


# ---------------------------------------------------------------------------
# Executor
# ---------------------------------------------------------------------------


class WorkflowExecutor:
    """Resolves workflow actions to transitions with role and guard checks."""

    def __init__(
        self,
        enforce_roles: bool = True,
        guard_executor: GuardExecutor | None = None,
    ) -> None:
        self._enforce_roles = enforce_roles
        self._guard_executor = guard_executor or default_guard_executor()

    @property
    def enforce_roles(self) -> bool:
        return self._enforce_roles

    def resolve(
        self,
        workflow: Workflow,
        entity_id: str,
        current_state: str,
        action: str,
        actor: Actor,
        context: dict[str, Any] | None = None,
        outcome_sink: Callable[[dict], None] | None = None,
    ) -> TransitionResult:
        """Select the transition ``action`` fires from ``current_state``.

        Raises:
            InvalidTransitionError: No transition exists, or none of the
                candidates' guards is satisfied.
            UnauthorizedActorError: Roles are enforced and the actor may not
                fire any candidate.
        """
        t0 = time.monotonic()

        def trace(outcome: str, reason: str, transition: Transition | None = None) -> None:
            _emit_workflow_trace(
                workflow_name=workflow.name,
                action=action,
                entity_id=entity_id,
                from_state=current_state,
                outcome=outcome,
                reason=reason,
                duration_ms=(time.monotonic() - t0) * 1000,
                actor_id=actor.actor_id,
                to_state=transition.to_state if transition else None,
                adjusts_ledger=transition.adjusts_ledger if transition else False,
                outcome_sink=outcome_sink,
            )

        # 1. Candidates from the transition table
        candidates = workflow.candidates(current_state, action)
        if not candidates:
            trace(
                OUTCOME_NO_TRANSITION,
                f"No transition from '{current_state}' via action '{action}' "
                f"in workflow '{workflow.name}'",
            )
            raise InvalidTransitionError(workflow.name, entity_id, current_state, action)

        # 2. Role gate
        if self._enforce_roles:
            permitted = tuple(
                t for t in candidates
                if not t.allowed_roles or actor.has_any_role(t.allowed_roles)
            )
            if not permitted:
                required = sorted({role.value for t in candidates for role in t.allowed_roles})
                trace(OUTCOME_UNAUTHORIZED, f"Actor lacks roles {required}")
                raise UnauthorizedActorError(actor.actor_id, action, tuple(required))
            candidates = permitted

        # 3. Guards, first satisfied candidate wins
        ctx = context or {}
        for transition in candidates:
            if transition.guard is None or self._guard_executor.evaluate(transition.guard, ctx):
                trace(OUTCOME_SUCCESS, "Transition allowed", transition)
                return TransitionResult(
                    workflow=workflow.name,
                    action=action,
                    from_state=current_state,
                    to_state=transition.to_state,
                    adjusts_ledger=transition.adjusts_ledger,
                )

        guards = ", ".join(t.guard.name for t in candidates if t.guard is not None)
        trace(OUTCOME_GUARD_FAILED, f"Guard not satisfied: {guards}")
        raise InvalidTransitionError(workflow.name, entity_id, current_state, action)
