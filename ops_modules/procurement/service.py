"""
Procurement Module Service (``ops_modules.procurement.service``).

Responsibility
--------------
Purchase order lifecycle: creation with Decimal totals, account-manager
decision, and goods receipt.  Goods receipt is the inbound side of the
inventory ledger: the order status, every stock increment and the
hand-back of the originating supply-chain request commit as one batch.

Invariants
----------
- Totals are ``sum(quantity * unit_price)`` in Decimal, stored as strings.
- Receipt of a linked order moves the linked request only when it is in
  ``Forwarded to Purchase``; otherwise the request is left alone and the
  receipt still commits (``linked_request_not_restocked``).
- A received order can be neither edited nor deleted.

Failure Modes
-------------
- ``ValidationError`` -- vendor, lines or receipt number malformed.
- ``NotFoundError`` -- unknown order, linked request or inventory item;
  raised before anything is written.
- ``InvalidTransitionError`` / ``UnauthorizedActorError`` -- from the executor.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any
from uuid import uuid4

from ops_kernel.domain.actor import Actor
from ops_kernel.domain.clock import Clock, SystemClock
from ops_kernel.domain.workflow import TransitionResult
from ops_kernel.exceptions import InvalidTransitionError
from ops_kernel.logging_config import LogContext, get_logger
from ops_kernel.store.base import Document, LedgerStore
from ops_modules._workflow_helpers import (
    ActionResult,
    is_blank,
    load_document,
    parse_money,
    parse_quantity,
    raise_if_errors,
)
from ops_modules.procurement.models import (
    PURCHASE_ORDERS,
    OrderLine,
    PurchaseOrder,
    PurchaseOrderAction,
    PurchaseOrderStatus,
    line_document,
)
from ops_modules.procurement.workflows import PURCHASE_ORDER_WORKFLOW
from ops_modules.supply_chain.models import SUPPLY_CHAIN_REQUESTS, SupplyRequestStatus
from ops_modules.supply_chain.service import SupplyChainService, stage_stock_movements
from ops_services.workflow_executor import WorkflowExecutor

logger = get_logger("modules.procurement.service")

_DECISIONS = (PurchaseOrderAction.APPROVE.value, PurchaseOrderAction.REJECT.value)
_EDITABLE_FIELDS = frozenset({"vendor_name", "vendor_id", "items", "original_request_id"})


def _price_lines(
    lines: Iterable[OrderLine], errors: list[str],
) -> tuple[list[dict[str, Any]], Decimal]:
    documents: list[dict[str, Any]] = []
    total = Decimal("0")
    for index, line in enumerate(lines):
        if is_blank(line.item_name):
            errors.append(f"items[{index}]: 'item_name' is required")
        quantity = parse_quantity(line.quantity, f"items[{index}].quantity", errors)
        unit_price = parse_money(line.unit_price, f"items[{index}].unit_price", errors)
        if quantity is None or unit_price is None:
            continue
        documents.append(line_document(line, quantity, unit_price))
        total += quantity * unit_price
    if not documents and not errors:
        errors.append("at least one item is required")
    return documents, total


class ProcurementService:
    """Purchase orders and goods receipt."""

    def __init__(
        self,
        store: LedgerStore,
        executor: WorkflowExecutor | None = None,
        clock: Clock | None = None,
        supply_chain: SupplyChainService | None = None,
    ):
        self._store = store
        self._executor = executor or WorkflowExecutor()
        self._clock = clock or SystemClock()
        self._supply_chain = supply_chain or SupplyChainService(
            store, self._executor, self._clock,
        )

    def create_order(self, order: PurchaseOrder, actor: Actor) -> str:
        """Create an order in ``Pending Account Manager`` and return its id."""
        errors: list[str] = []
        if is_blank(order.vendor_name):
            errors.append("'vendor_name' is required")
        lines, total = _price_lines(order.items, errors)
        raise_if_errors("purchase_order", errors)

        order_id = uuid4().hex
        po_number = order.po_number.strip() or f"PO-{order_id[:8].upper()}"
        self._store.create(
            PURCHASE_ORDERS,
            {
                "po_number": po_number,
                "original_request_id": order.original_request_id,
                "vendor_id": order.vendor_id,
                "vendor_name": order.vendor_name,
                "date": self._clock.timestamp(),
                "items": lines,
                "total_amount": str(total),
                "status": PURCHASE_ORDER_WORKFLOW.initial_state,
                "generated_by": actor.actor_id,
            },
            doc_id=order_id,
        )
        logger.info(
            "purchase_order_created",
            extra={
                "order_id": order_id,
                "po_number": po_number,
                "total_amount": str(total),
                "actor_id": actor.actor_id,
            },
        )
        return order_id

    def update_order(
        self, order_id: str, changes: Mapping[str, Any], actor: Actor,
    ) -> ActionResult:
        """Edit vendor, lines or link of an order still awaiting approval."""
        doc = load_document(self._store, PURCHASE_ORDERS, order_id)
        if doc.get("status") != PurchaseOrderStatus.PENDING_ACCOUNT_MANAGER.value:
            return ActionResult(
                False, f"Order is {doc.get('status')} and can no longer be edited.", order_id,
            )

        errors: list[str] = []
        unknown = sorted(set(changes) - _EDITABLE_FIELDS)
        if unknown:
            errors.append(f"fields cannot be changed here: {unknown}")
        if "vendor_name" in changes and is_blank(changes["vendor_name"]):
            errors.append("'vendor_name' is required")
        update = {k: v for k, v in changes.items() if k in _EDITABLE_FIELDS}
        if "items" in changes:
            lines, total = _price_lines(changes["items"], errors)
            update["items"] = lines
            update["total_amount"] = str(total)
        raise_if_errors("purchase_order", errors)

        update["updated_by"] = actor.actor_id
        self._store.update(PURCHASE_ORDERS, order_id, update, expected_version=doc.version)
        logger.info(
            "purchase_order_updated",
            extra={"order_id": order_id, "fields": sorted(changes), "actor_id": actor.actor_id},
        )
        return ActionResult(True, "Purchase order updated.", order_id)

    def delete_order(self, order_id: str, actor: Actor) -> ActionResult:
        doc = load_document(self._store, PURCHASE_ORDERS, order_id)
        if doc.get("status") == PurchaseOrderStatus.RECEIVED.value:
            return ActionResult(False, "Received orders cannot be deleted.", order_id)
        self._store.delete(PURCHASE_ORDERS, order_id, expected_version=doc.version)
        logger.info("purchase_order_deleted", extra={"order_id": order_id, "actor_id": actor.actor_id})
        return ActionResult(True, "Purchase order deleted.", order_id)

    def act_on_order(
        self,
        order_id: str,
        action: str,
        actor: Actor,
        reason: str | None = None,
    ) -> TransitionResult:
        """Approve or reject an order.  No inventory side effects."""
        doc = load_document(self._store, PURCHASE_ORDERS, order_id)
        action_name = getattr(action, "value", action)
        if action_name not in _DECISIONS:
            raise InvalidTransitionError(
                PURCHASE_ORDER_WORKFLOW.name, order_id, doc.get("status"), str(action_name),
            )

        with LogContext.bind(workflow=PURCHASE_ORDER_WORKFLOW.name, entity_id=order_id):
            result = self._executor.resolve(
                PURCHASE_ORDER_WORKFLOW, order_id, doc.get("status"), action_name, actor,
            )
            update: dict[str, Any] = {"status": result.to_state}
            if result.to_state == PurchaseOrderStatus.APPROVED.value:
                update["approved_date"] = self._clock.timestamp()
                update["approved_by"] = actor.actor_id
            else:
                update["rejection_reason"] = (reason or "").strip()
                update["rejected_by"] = actor.actor_id
            self._store.update(PURCHASE_ORDERS, order_id, update, expected_version=doc.version)

        logger.info(
            "purchase_order_actioned",
            extra={
                "order_id": order_id,
                "from_state": result.from_state,
                "to_state": result.to_state,
                "actor_id": actor.actor_id,
            },
        )
        return result

    def receive_goods(
        self,
        order_id: str,
        receipt_number: str,
        remarks: str,
        actor: Actor,
    ) -> TransitionResult:
        """
        Record a goods receipt note against an approved order.

        Postconditions:
            - Order is ``Received`` with ``grn_number``, ``grn_remarks`` and
              ``grn_date``.
            - Each referenced inventory item grew by the ordered quantity.
            - A linked request in ``Forwarded to Purchase`` is ``Pending
              Store``.
            All three in one batch.

        The hand-back follows the supply-chain transition table: a linked
        request in any other state is never moved, even though the receipt
        itself commits.  A warning (``linked_request_not_restocked``) records
        the skipped hand-back.
        """
        doc = load_document(self._store, PURCHASE_ORDERS, order_id)
        errors: list[str] = []
        if is_blank(receipt_number):
            errors.append("'receipt_number' is required")
        raise_if_errors("goods_receipt", errors)

        with LogContext.bind(workflow=PURCHASE_ORDER_WORKFLOW.name, entity_id=order_id):
            result = self._executor.resolve(
                PURCHASE_ORDER_WORKFLOW,
                order_id,
                doc.get("status"),
                PurchaseOrderAction.RECEIVE.value,
                actor,
            )

            linked: Document | None = None
            linked_id = doc.get("original_request_id")
            if not is_blank(linked_id):
                linked = load_document(self._store, SUPPLY_CHAIN_REQUESTS, linked_id)

            batch = self._store.batch()
            batch.update(
                PURCHASE_ORDERS,
                order_id,
                {
                    "status": result.to_state,
                    "grn_number": receipt_number.strip(),
                    "grn_remarks": remarks or "",
                    "grn_date": self._clock.timestamp(),
                    "received_by": actor.actor_id,
                },
                expected_version=doc.version,
            )
            movements = stage_stock_movements(
                self._store, batch, doc.get("items") or [],
                quantity_field="quantity", sign=1, source_id=order_id,
            )

            restocked = False
            if linked is not None:
                if linked.get("status") == SupplyRequestStatus.FORWARDED_TO_PURCHASE.value:
                    self._supply_chain.stage_restock(batch, linked, actor)
                    restocked = True
                else:
                    logger.warning(
                        "linked_request_not_restocked",
                        extra={
                            "order_id": order_id,
                            "request_id": linked.id,
                            "request_status": linked.get("status"),
                        },
                    )
            batch.commit()

        logger.info(
            "goods_received",
            extra={
                "order_id": order_id,
                "grn_number": receipt_number.strip(),
                "items_moved": len(movements),
                "linked_request_restocked": restocked,
                "actor_id": actor.actor_id,
            },
        )
        return result

    def orders_in(self, status: PurchaseOrderStatus) -> list[Document]:
        return self._store.get(PURCHASE_ORDERS, {"status": status.value})
