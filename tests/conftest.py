"""
Pytest fixtures for the operations console test suite.

Provides:
- Ledger Stores: in-memory and SQL (SQLite in-memory through SQLAlchemy).
  The ``store`` fixture is parametrized so store-backed tests run on both.
- A deterministic clock, role-bearing actors and wired module services.
- Seeded employees and inventory items.
- ``captured_logs`` for asserting on structured log records.
"""

import json
import logging
from datetime import UTC, datetime
from io import StringIO

import pytest

from ops_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from ops_kernel.domain.actor import Actor, Role
from ops_kernel.domain.clock import DeterministicClock
from ops_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from ops_kernel.store.memory import MemoryLedgerStore
from ops_kernel.store.sql import SqlLedgerStore
from ops_modules.hr.service import EmployeeService, LeaveService, PayrollService
from ops_modules.inventory.models import INVENTORY
from ops_modules.inventory.service import InventoryService
from ops_modules.procurement.service import ProcurementService
from ops_modules.supply_chain.service import SupplyChainService
from ops_modules.tasks.service import TaskService
from ops_services.workflow_executor import WorkflowExecutor

SQLITE_MEMORY_URL = "sqlite:///:memory:"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture ops_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, leave_service):
            leave_service.act_on_leave(...)
            logs = captured_logs()
            assert any(r["message"] == "workflow_transition" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("ops_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Stores
# =============================================================================


@pytest.fixture
def memory_store():
    return MemoryLedgerStore()


@pytest.fixture
def sql_store():
    """SQL store over a fresh SQLite in-memory database."""
    init_engine_from_url(SQLITE_MEMORY_URL)
    create_tables()
    yield SqlLedgerStore(get_session_factory())
    drop_tables()
    reset_engine()


@pytest.fixture(params=["memory", "sql"])
def store(request):
    """Every store-backed test runs against both backends."""
    return request.getfixturevalue(f"{request.param}_store")


# =============================================================================
# Time and actors
# =============================================================================


@pytest.fixture
def clock():
    return DeterministicClock(datetime(2024, 7, 15, 9, 0, 0, tzinfo=UTC))


@pytest.fixture
def admin():
    return Actor("admin@example.org", "Console Admin", frozenset({Role.ADMIN}))


@pytest.fixture
def hr_officer():
    return Actor("hr@example.org", "Hina Rauf", frozenset({Role.HR}))


@pytest.fixture
def department_head():
    return Actor("hod@example.org", "Omar Siddiqui", frozenset({Role.HOD}))


@pytest.fixture
def employee_actor():
    return Actor("staff@example.org", "Sara Malik", frozenset({Role.EMPLOYEE}))


@pytest.fixture
def account_manager():
    return Actor("accounts@example.org", "Bilal Ahmed", frozenset({Role.ACCOUNT_MANAGER}))


@pytest.fixture
def store_keeper():
    return Actor("store@example.org", "Kamran Ali", frozenset({Role.STORE}))


@pytest.fixture
def purchaser():
    return Actor("purchase@example.org", "Nadia Khan", frozenset({Role.PURCHASE}))


# =============================================================================
# Services
# =============================================================================


@pytest.fixture
def executor():
    return WorkflowExecutor()


@pytest.fixture
def employee_service(store, clock):
    return EmployeeService(store, clock)


@pytest.fixture
def leave_service(store, executor, clock):
    return LeaveService(store, executor, clock)


@pytest.fixture
def payroll_service(store, clock):
    return PayrollService(store, clock)


@pytest.fixture
def inventory_service(store, clock):
    return InventoryService(store, clock)


@pytest.fixture
def supply_chain_service(store, executor, clock):
    return SupplyChainService(store, executor, clock)


@pytest.fixture
def procurement_service(store, executor, clock, supply_chain_service):
    return ProcurementService(store, executor, clock, supply_chain=supply_chain_service)


@pytest.fixture
def task_service(store, executor, clock):
    return TaskService(store, executor, clock)


# =============================================================================
# Seed data
# =============================================================================


def employee_data(**overrides) -> dict:
    data = {
        "first_name": "Ayesha",
        "last_name": "Khan",
        "email": "ayesha.khan@example.org",
        "department": "Engineering",
        "designation": "Developer",
        "joining_date": "2023-03-01",
        "salary": "60000",
        "employment_type": "Permanent",
        "employee_code": "E-001",
    }
    data.update(overrides)
    return data


@pytest.fixture
def make_employee(employee_service, hr_officer):
    """Factory: add an employee with overridden fields and return its id."""

    def _make(**overrides) -> str:
        return employee_service.add_employee(employee_data(**overrides), hr_officer).entity_id

    return _make


@pytest.fixture
def employee_id(make_employee):
    """A permanent employee who joined before the current year (full quotas)."""
    return make_employee()


@pytest.fixture
def seeded_inventory(store):
    """Two catalogue items with known ids and stock."""
    store.create(INVENTORY, {
        "type": "Stationery", "model": "A4", "item_name": "Printer Paper",
        "quantity": 10, "unit": "ream", "status": "In Stock",
    }, doc_id="inv-1")
    store.create(INVENTORY, {
        "type": "Stationery", "model": "TN-2410", "item_name": "Toner",
        "quantity": 4, "unit": "piece", "status": "In Stock",
    }, doc_id="inv-2")
    return ("inv-1", "inv-2")
