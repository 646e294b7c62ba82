"""
Supply-Chain Module Service (``ops_modules.supply_chain.service``).

Responsibility
--------------
Drives internal stock requests through ``SUPPLY_CHAIN_WORKFLOW``.  Issuing a
request is the single point where stock leaves through the internal-request
path: the status change and every inventory decrement commit together.

Invariants
----------
- Status writes carry the version that was read; of two concurrent
  ``issue`` calls on one request, exactly one commits.
- Lines without an inventory reference are skipped with no store write.
- Negative resulting quantities are allowed and logged
  (``inventory_quantity_negative``).

Failure Modes
-------------
- ``NotFoundError`` -- unknown request, or an issued line referencing an
  inventory item that does not exist.  Nothing written.
- ``InvalidTransitionError`` / ``UnauthorizedActorError`` -- from the executor.
"""

from __future__ import annotations

from typing import Any

from ops_config.schema import SupplyChainConfig
from ops_kernel.domain.actor import Actor
from ops_kernel.domain.clock import Clock, SystemClock
from ops_kernel.domain.workflow import TransitionResult
from ops_kernel.exceptions import InvalidTransitionError, NotFoundError
from ops_kernel.logging_config import LogContext, get_logger
from ops_kernel.store.base import Document, Increment, LedgerStore, WriteBatch
from ops_modules._workflow_helpers import (
    inventory_ref,
    is_blank,
    load_document,
    parse_quantity,
    raise_if_errors,
)
from ops_modules.inventory.models import INVENTORY
from ops_modules.supply_chain.models import (
    SUPPLY_CHAIN_REQUESTS,
    SupplyChainRequest,
    SupplyRequestAction,
    SupplyRequestStatus,
)
from ops_modules.supply_chain.workflows import SUPPLY_CHAIN_WORKFLOW
from ops_services.workflow_executor import WorkflowExecutor

logger = get_logger("modules.supply_chain.service")

_DECISIONS = (SupplyRequestAction.APPROVE.value, SupplyRequestAction.REJECT.value)


def stage_stock_movements(
    store: LedgerStore,
    batch: WriteBatch,
    lines: list[dict[str, Any]],
    quantity_field: str,
    sign: int,
    source_id: str,
) -> dict[str, int]:
    """Stage one ``Increment`` per referenced inventory item.

    Quantities of lines sharing an item are summed.  Referenced items are
    read first so a dangling reference fails before anything is written.

    Returns:
        ``{inventory_id: signed quantity}`` of the staged movements.
    """
    movements: dict[str, int] = {}
    for line in lines:
        ref = inventory_ref(line)
        if ref is None:
            continue
        movements[ref] = movements.get(ref, 0) + sign * int(line.get(quantity_field) or 0)

    for ref, delta in movements.items():
        item = store.get_by_id(INVENTORY, ref)
        if item is None:
            raise NotFoundError(INVENTORY, ref)
        on_hand = item.get("quantity", 0) or 0
        if on_hand + delta < 0:
            logger.warning(
                "inventory_quantity_negative",
                extra={
                    "item_id": ref,
                    "quantity_before": on_hand,
                    "quantity_after": on_hand + delta,
                    "source_id": source_id,
                },
            )
        batch.update(INVENTORY, ref, {"quantity": Increment(delta)})
    return movements


class SupplyChainService:
    """
    Internal stock request workflow.

    Contract
    --------
    Every action reads the request, resolves the transition through the
    executor, and commits one batch whose first operation is the
    version-checked status update.
    """

    def __init__(
        self,
        store: LedgerStore,
        executor: WorkflowExecutor | None = None,
        clock: Clock | None = None,
        config: SupplyChainConfig | None = None,
    ):
        self._store = store
        self._executor = executor or WorkflowExecutor()
        self._clock = clock or SystemClock()
        self._config = config or SupplyChainConfig()

    # =========================================================================
    # Creation
    # =========================================================================

    def create_request(self, request: SupplyChainRequest, actor: Actor) -> str:
        """Create a request in ``Pending Account Manager`` and stamp its date."""
        errors: list[str] = []
        if is_blank(request.requester_name):
            errors.append("'requester_name' is required")
        if is_blank(request.department):
            errors.append("'department' is required")
        if not request.items:
            errors.append("at least one item is required")
        for index, line in enumerate(request.items):
            if is_blank(line.name):
                errors.append(f"items[{index}]: 'name' is required")
            parse_quantity(line.quantity_requested, f"items[{index}].quantity_requested", errors)
        raise_if_errors("supply_chain_request", errors)

        request_id = self._store.create(SUPPLY_CHAIN_REQUESTS, {
            "requester_name": request.requester_name,
            "requester_email": request.requester_email,
            "department": request.department,
            "date": self._clock.timestamp(),
            "items": [
                {**line.to_document(), "quantity_requested": int(line.quantity_requested)}
                for line in request.items
            ],
            "purpose": request.purpose,
            "status": SUPPLY_CHAIN_WORKFLOW.initial_state,
            "created_by": actor.actor_id,
        })
        logger.info(
            "supply_chain_request_created",
            extra={
                "request_id": request_id,
                "department": request.department,
                "line_count": len(request.items),
                "actor_id": actor.actor_id,
            },
        )
        return request_id

    # =========================================================================
    # Transitions
    # =========================================================================

    def _resolve(self, doc: Document, action: str, actor: Actor) -> TransitionResult:
        return self._executor.resolve(
            SUPPLY_CHAIN_WORKFLOW,
            doc.id,
            doc.get("status"),
            action,
            actor,
            context={
                "department": doc.get("department"),
                "store_department": self._config.store_department,
            },
        )

    def _commit_status(
        self,
        doc: Document,
        result: TransitionResult,
        fields: dict[str, Any],
    ) -> None:
        batch = self._store.batch()
        batch.update(
            SUPPLY_CHAIN_REQUESTS, doc.id, {"status": result.to_state, **fields},
            expected_version=doc.version,
        )
        batch.commit()
        logger.info(
            "supply_chain_request_actioned",
            extra={
                "request_id": doc.id,
                "action": result.action,
                "from_state": result.from_state,
                "to_state": result.to_state,
            },
        )

    def act_on_request(
        self,
        request_id: str,
        action: str,
        actor: Actor,
        reason: str | None = None,
    ) -> TransitionResult:
        """
        Account-manager (or store) decision on a request.

        Approve routes to ``Forwarded to Purchase`` when the requesting
        department is the store department, otherwise to ``Pending Store``.
        Reject stores ``rejection_reason``.
        """
        doc = load_document(self._store, SUPPLY_CHAIN_REQUESTS, request_id)
        action_name = getattr(action, "value", action)
        if action_name not in _DECISIONS:
            raise InvalidTransitionError(
                SUPPLY_CHAIN_WORKFLOW.name, request_id, doc.get("status"), str(action_name),
            )

        with LogContext.bind(workflow=SUPPLY_CHAIN_WORKFLOW.name, entity_id=request_id):
            result = self._resolve(doc, action_name, actor)
            if result.to_state == SupplyRequestStatus.REJECTED.value:
                fields = {
                    "rejection_reason": (reason or "").strip(),
                    "rejected_by": actor.actor_id,
                    "rejected_date": self._clock.timestamp(),
                }
            else:
                fields = {
                    "approval_date": self._clock.timestamp(),
                    "approved_by": actor.actor_id,
                }
            self._commit_status(doc, result, fields)
        return result

    def forward_to_purchase(self, request_id: str, actor: Actor) -> TransitionResult:
        """Hand a request to purchase when the store cannot fulfil it."""
        doc = load_document(self._store, SUPPLY_CHAIN_REQUESTS, request_id)
        with LogContext.bind(workflow=SUPPLY_CHAIN_WORKFLOW.name, entity_id=request_id):
            result = self._resolve(doc, SupplyRequestAction.FORWARD_TO_PURCHASE.value, actor)
            self._commit_status(doc, result, {
                "forwarded_date": self._clock.timestamp(),
                "forwarded_by": actor.actor_id,
            })
        return result

    def issue(self, request_id: str, actor: Actor) -> TransitionResult:
        """
        Issue a request from store stock.

        Postconditions:
            - Status is ``Issued`` with ``issued_date`` stamped.
            - Every referenced inventory item's quantity dropped by the
              requested quantity, in the same batch.
        """
        doc = load_document(self._store, SUPPLY_CHAIN_REQUESTS, request_id)
        with LogContext.bind(workflow=SUPPLY_CHAIN_WORKFLOW.name, entity_id=request_id):
            result = self._resolve(doc, SupplyRequestAction.ISSUE.value, actor)

            batch = self._store.batch()
            batch.update(
                SUPPLY_CHAIN_REQUESTS,
                request_id,
                {
                    "status": result.to_state,
                    "issued_date": self._clock.timestamp(),
                    "issued_by": actor.actor_id,
                },
                expected_version=doc.version,
            )
            lines = doc.get("items") or []
            movements = stage_stock_movements(
                self._store, batch, lines,
                quantity_field="quantity_requested", sign=-1, source_id=request_id,
            )
            batch.commit()

        logger.info(
            "supply_chain_request_issued",
            extra={
                "request_id": request_id,
                "items_moved": len(movements),
                "lines_skipped": sum(1 for line in lines if inventory_ref(line) is None),
                "actor_id": actor.actor_id,
            },
        )
        return result

    def stage_restock(self, batch: WriteBatch, doc: Document, actor: Actor) -> TransitionResult:
        """Stage ``Forwarded to Purchase -> Pending Store`` into ``batch``.

        Used by goods receipt so the request moves in the receipt's batch.
        """
        with LogContext.bind(workflow=SUPPLY_CHAIN_WORKFLOW.name, entity_id=doc.id):
            result = self._resolve(doc, SupplyRequestAction.RESTOCK.value, actor)
        batch.update(
            SUPPLY_CHAIN_REQUESTS,
            doc.id,
            {"status": result.to_state, "restocked_date": self._clock.timestamp()},
            expected_version=doc.version,
        )
        return result

    def restock(self, request_id: str, actor: Actor) -> TransitionResult:
        """Return a purchased request to the store for issue."""
        doc = load_document(self._store, SUPPLY_CHAIN_REQUESTS, request_id)
        batch = self._store.batch()
        result = self.stage_restock(batch, doc, actor)
        batch.commit()
        logger.info(
            "supply_chain_request_restocked",
            extra={"request_id": request_id, "actor_id": actor.actor_id},
        )
        return result
