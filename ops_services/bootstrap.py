"""
ops_services.bootstrap -- Console wiring.

Responsibility:
    Builds the Ledger Store selected by configuration and constructs every
    module service exactly once over it, sharing one store, one clock and
    one workflow executor.

Architecture position:
    Top of the services layer; the only services module that imports
    ``ops_modules``.  Not re-exported from ``ops_services`` so module
    services can import the executor without a cycle.

Usage:
    from ops_config import get_active_config
    from ops_services.bootstrap import build_console

    console = build_console(get_active_config())
    console.leave.submit_leave(...)
"""

from __future__ import annotations

from ops_config.schema import ConsoleConfig
from ops_kernel.db.engine import create_tables, get_session_factory, init_engine_from_url
from ops_kernel.domain.actor import Actor
from ops_kernel.domain.clock import Clock, SystemClock
from ops_kernel.logging_config import configure_logging, get_logger
from ops_kernel.store.base import LedgerStore
from ops_kernel.store.memory import MemoryLedgerStore
from ops_kernel.store.sql import SqlLedgerStore
from ops_modules.hr.service import EmployeeService, LeaveService, PayrollService
from ops_modules.inventory.service import InventoryService
from ops_modules.procurement.service import ProcurementService
from ops_modules.supply_chain.service import SupplyChainService
from ops_modules.tasks.service import TaskService
from ops_services.access import PermissionMap, accessible_modules
from ops_services.workflow_executor import WorkflowExecutor

logger = get_logger("services.bootstrap")


class ConsoleServices:
    """Every console service, wired over one store.

    Contract:
        All services share ``store``, ``clock`` and ``executor``.  Goods
        receipt reuses ``supply_chain`` to move linked requests.

    Non-goals:
        Does not own the store's lifecycle; SQL engines are disposed by
        ``ops_kernel.db.engine``.
    """

    def __init__(self, config: ConsoleConfig, store: LedgerStore, clock: Clock) -> None:
        self.config = config
        self.store = store
        self.clock = clock
        self.executor = WorkflowExecutor(enforce_roles=config.workflow.enforce_roles)

        self.employees = EmployeeService(store, clock, leave_config=config.leave)
        self.leave = LeaveService(store, self.executor, clock)
        self.payroll = PayrollService(store, clock, payroll_config=config.payroll)
        self.inventory = InventoryService(store, clock)
        self.supply_chain = SupplyChainService(
            store, self.executor, clock, config=config.supply_chain,
        )
        self.procurement = ProcurementService(
            store, self.executor, clock, supply_chain=self.supply_chain,
        )
        self.tasks = TaskService(store, self.executor, clock)

    def accessible_modules(self, actor: Actor, permissions: PermissionMap | None) -> list[str]:
        return accessible_modules(actor, permissions, self.config.modules.all_modules)


def _build_store(config: ConsoleConfig) -> LedgerStore:
    if config.store.backend == "sql":
        init_engine_from_url(config.store.url, echo=config.store.echo)
        create_tables()
        return SqlLedgerStore(get_session_factory())
    return MemoryLedgerStore()


def build_console(
    config: ConsoleConfig,
    clock: Clock | None = None,
    store: LedgerStore | None = None,
) -> ConsoleServices:
    """Configure logging, open the store and wire every service."""
    configure_logging(level=config.logging.level)
    store = store or _build_store(config)
    services = ConsoleServices(config, store, clock or SystemClock())
    logger.info(
        "console_built",
        extra={
            "store_backend": type(store).__name__,
            "enforce_roles": config.workflow.enforce_roles,
        },
    )
    return services
