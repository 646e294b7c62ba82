"""
Race safety of ledger-adjusting transitions.

Several threads fire the same ledger-adjusting action on one request at
once.  Exactly one may win; every loser must fail with either
``OptimisticLockError`` (it read the same version as the winner) or
``InvalidTransitionError`` (it read the winner's result).  The ledger
effect is applied exactly once.
"""

from concurrent.futures import ThreadPoolExecutor
from threading import Barrier

import pytest

from ops_kernel.exceptions import InvalidTransitionError, OptimisticLockError
from ops_kernel.store.base import Increment
from ops_modules.hr.models import EMPLOYEES, LEAVE_REQUESTS
from ops_modules.inventory.models import INVENTORY
from ops_modules.supply_chain.models import SUPPLY_CHAIN_REQUESTS

pytestmark = pytest.mark.concurrency

THREADS = 8


def _race(fn, threads: int = THREADS) -> list:
    """Run ``fn`` on ``threads`` threads released together; return outcomes."""
    barrier = Barrier(threads)

    def attempt():
        barrier.wait()
        try:
            return fn()
        except (OptimisticLockError, InvalidTransitionError) as exc:
            return exc

    with ThreadPoolExecutor(max_workers=threads) as pool:
        futures = [pool.submit(attempt) for _ in range(threads)]
        return [f.result() for f in futures]


def _split(outcomes: list) -> tuple[list, list]:
    failures = [o for o in outcomes if isinstance(o, Exception)]
    successes = [o for o in outcomes if not isinstance(o, Exception)]
    return successes, failures


class TestLeaveApprovalRace:
    def test_final_approval_debits_once(self, leave_service, employee_id, hr_officer, store):
        request_id = store.create(LEAVE_REQUESTS, {
            "employee_id": employee_id,
            "leave_type": "Casual Leave",
            "from_date": "2024-07-22",
            "to_date": "2024-07-23",
            "status": "Pending HR",
        })

        outcomes = _race(lambda: leave_service.act_on_leave(request_id, "Approve", hr_officer))

        successes, failures = _split(outcomes)
        assert len(successes) == 1
        assert len(failures) == THREADS - 1
        assert store.get_by_id(EMPLOYEES, employee_id).get("leave_balance.casual.used") == 2
        assert store.get_by_id(LEAVE_REQUESTS, request_id).get("status") == "Approved"


class TestStockIssueRace:
    def test_issue_decrements_once(self, supply_chain_service, seeded_inventory, store_keeper, store):
        request_id = store.create(SUPPLY_CHAIN_REQUESTS, {
            "requester_name": "Sara Malik",
            "department": "Finance",
            "items": [{"inventory_id": "inv-1", "name": "Printer Paper", "quantity_requested": 3}],
            "status": "Pending Store",
        })

        outcomes = _race(lambda: supply_chain_service.issue(request_id, store_keeper))

        successes, _ = _split(outcomes)
        assert len(successes) == 1
        assert store.get_by_id(INVENTORY, "inv-1").get("quantity") == 7


class TestIncrementRace:
    def test_unversioned_increments_all_apply(self, store):
        store.create("counters", {"hits": 0}, doc_id="c-1")

        outcomes = _race(lambda: store.update("counters", "c-1", {"hits": Increment(1)}))

        assert all(o is None for o in outcomes)
        doc = store.get_by_id("counters", "c-1")
        assert doc.get("hits") == THREADS
        assert doc.version == THREADS + 1
