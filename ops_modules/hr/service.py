"""
HR Module Service (``ops_modules.hr.service``).

Responsibility
--------------
Orchestrates the HR operations of the console: the leave approval workflow,
employee lifecycle (add / update / resign), attendance upload and payroll
runs.  Entitlement and pay arithmetic are delegated to ``ops_engines``;
transition selection to ``WorkflowExecutor``; persistence to the Ledger
Store.

Architecture
------------
Layer: **Modules** -- thin orchestration wrapper over engines and store.

Invariants
----------
- Every mutating operation commits exactly one atomic batch.
- Final leave approval writes the status change and the balance debit in
  the same batch; the status update carries the version that was read, so a
  concurrent second approval fails instead of debiting twice.
- Validation runs before any store write.

Failure Modes
-------------
- ``ValidationError`` -- malformed input; nothing written.
- ``NotFoundError`` -- unknown request or employee; nothing written.
- ``InvalidTransitionError`` / ``UnauthorizedActorError`` -- from the executor.
- ``StoreError`` / ``OptimisticLockError`` -- propagated from the store.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date
from decimal import Decimal
from typing import Any

from ops_config.schema import LeaveConfig, PayrollConfig
from ops_engines.leave import (
    LeaveAllowance,
    LeaveBalance,
    compute_pro_rata_leave,
    leave_day_count,
)
from ops_engines.payroll import (
    AttendanceMark,
    LeavePeriod,
    attendance_exists,
    compute_net_pay,
    compute_paid_days,
    month_label,
)
from ops_kernel.domain.actor import Actor
from ops_kernel.domain.clock import Clock, SystemClock
from ops_kernel.domain.workflow import TransitionResult
from ops_kernel.exceptions import NotFoundError, ValidationError
from ops_kernel.logging_config import LogContext, get_logger
from ops_kernel.store.base import Document, Increment, LedgerStore
from ops_modules._workflow_helpers import (
    ActionResult,
    is_blank,
    load_document,
    parse_date,
    parse_money,
    raise_if_errors,
    require_fields,
    stored_date,
)
from ops_modules.hr.models import (
    ATTENDANCE_RECORDS,
    EMPLOYEES,
    LEAVE_REQUESTS,
    PAYROLL_HISTORY,
    AttendanceRecord,
    EmployeePayrollRecord,
    EmployeeStatus,
    EmploymentCategory,
    LeaveRequest,
    LeaveStatus,
    LeaveType,
    PayrollRecord,
    PayrollRunResult,
    employee_display_name,
)
from ops_modules.hr.workflows import LEAVE_WORKFLOW
from ops_services.workflow_executor import WorkflowExecutor

logger = get_logger("modules.hr.service")

_EMPLOYEE_REQUIRED = (
    "first_name", "last_name", "email", "department", "designation",
    "joining_date", "salary",
)
# Managed by dedicated operations, never by a generic update.
_PROTECTED_EMPLOYEE_FIELDS = frozenset({"leave_balance", "status"})


class LeaveService:
    """
    Leave request workflow.

    Contract
    --------
    ``submit_leave`` creates a request in ``Pending HOD``; ``act_on_leave``
    moves it along ``LEAVE_WORKFLOW``.  Only the ``Pending HR -> Approved``
    transition touches the employee's balance.
    """

    def __init__(
        self,
        store: LedgerStore,
        executor: WorkflowExecutor | None = None,
        clock: Clock | None = None,
    ):
        self._store = store
        self._executor = executor or WorkflowExecutor()
        self._clock = clock or SystemClock()

    def submit_leave(self, request: LeaveRequest, actor: Actor) -> str:
        """
        Create a leave request in ``Pending HOD``.

        Raises:
            ValidationError: Bad dates (or ``to_date`` before ``from_date``)
                or an unknown leave type.
            NotFoundError: The employee does not exist.
        """
        errors: list[str] = []
        if is_blank(request.employee_id):
            errors.append("'employee_id' is required")
        leave_type = LeaveType.parse(request.leave_type)
        if leave_type is None:
            errors.append(f"unknown leave type {request.leave_type!r}")
        from_date = parse_date(request.from_date, "from_date", errors)
        to_date = parse_date(request.to_date, "to_date", errors)
        if from_date and to_date and to_date < from_date:
            errors.append("'to_date' must not be before 'from_date'")
        raise_if_errors("leave_request", errors)

        employee = load_document(self._store, EMPLOYEES, request.employee_id)

        request_id = self._store.create(LEAVE_REQUESTS, {
            "employee_id": employee.id,
            "employee_name": employee_display_name(employee.data),
            "department": employee.get("department", ""),
            "leave_type": leave_type.value,
            "from_date": from_date.isoformat(),
            "to_date": to_date.isoformat(),
            "days": leave_day_count(from_date, to_date),
            "reason": request.reason,
            "status": LEAVE_WORKFLOW.initial_state,
            "applied_date": self._clock.today().isoformat(),
            "submitted_by": actor.actor_id,
        })
        logger.info(
            "leave_request_submitted",
            extra={
                "request_id": request_id,
                "employee_id": employee.id,
                "leave_type": leave_type.value,
                "actor_id": actor.actor_id,
            },
        )
        return request_id

    def act_on_leave(self, request_id: str, action: str, actor: Actor) -> TransitionResult:
        """
        Approve or reject a leave request.

        Postconditions:
            - The request status is the transition's target state.
            - On final approval, ``leave_balance.<type>.used`` on the
              employee grew by the inclusive day count, in the same batch.

        Raises:
            NotFoundError: Unknown request (or, on final approval, unknown
                employee).  Nothing is written.
            InvalidTransitionError: Action not allowed from the current
                state, including any action on a decided request.
        """
        doc = load_document(self._store, LEAVE_REQUESTS, request_id)
        action_name = getattr(action, "value", action)

        with LogContext.bind(workflow=LEAVE_WORKFLOW.name, entity_id=request_id):
            result = self._executor.resolve(
                LEAVE_WORKFLOW, request_id, doc.get("status"), action_name, actor,
            )

            now = self._clock.timestamp()
            update: dict[str, Any] = {
                "status": result.to_state,
                "last_action_by": actor.actor_id,
                "last_action_at": now,
            }
            if result.to_state == LeaveStatus.REJECTED.value:
                update["rejected_by"] = actor.actor_id
            elif result.to_state == LeaveStatus.PENDING_HR.value:
                update["hod_approved_by"] = actor.actor_id
            elif result.to_state == LeaveStatus.APPROVED.value:
                update["hr_approved_by"] = actor.actor_id
                update["approval_date"] = now

            batch = self._store.batch()
            batch.update(LEAVE_REQUESTS, request_id, update, expected_version=doc.version)
            if result.adjusts_ledger:
                self._stage_balance_debit(batch, doc.data, request_id)
            batch.commit()

        logger.info(
            "leave_request_actioned",
            extra={
                "request_id": request_id,
                "from_state": result.from_state,
                "to_state": result.to_state,
                "actor_id": actor.actor_id,
            },
        )
        return result

    def _stage_balance_debit(self, batch, request: Mapping[str, Any], request_id: str) -> None:
        leave_type = LeaveType.parse(request.get("leave_type"))
        if leave_type is None:
            logger.warning(
                "leave_balance_debit_skipped",
                extra={
                    "request_id": request_id,
                    "leave_type": request.get("leave_type"),
                    "reason": "unknown leave type",
                },
            )
            return

        employee_id = request.get("employee_id")
        employee = load_document(self._store, EMPLOYEES, employee_id)
        days = leave_day_count(
            stored_date(request.get("from_date")),
            stored_date(request.get("to_date")),
        )
        key = leave_type.balance_key
        batch.update(EMPLOYEES, employee_id, {f"leave_balance.{key}.used": Increment(days)})

        total = employee.get(f"leave_balance.{key}.total", 0) or 0
        used_after = (employee.get(f"leave_balance.{key}.used", 0) or 0) + days
        if used_after > total:
            logger.warning(
                "leave_balance_overdrawn",
                extra={
                    "employee_id": employee_id,
                    "leave_type": key,
                    "total": total,
                    "used": used_after,
                },
            )

    def pending_for(self, status: LeaveStatus) -> list[Document]:
        """Requests currently waiting in ``status``."""
        return self._store.get(LEAVE_REQUESTS, {"status": status.value})


class EmployeeService:
    """Employee lifecycle and leave-balance views."""

    def __init__(
        self,
        store: LedgerStore,
        clock: Clock | None = None,
        leave_config: LeaveConfig | None = None,
    ):
        self._store = store
        self._clock = clock or SystemClock()
        self._leave_config = leave_config or LeaveConfig()

    def _initial_balance(self, category: EmploymentCategory, join_date: date) -> LeaveBalance:
        if category is EmploymentCategory.PERMANENT:
            return compute_pro_rata_leave(
                join_date,
                self._clock.today().year,
                quotas=self._leave_config.quotas,
                prorated=self._leave_config.prorated,
            )
        return LeaveBalance.zero(self._leave_config.quotas)

    @staticmethod
    def _parse_category(value: Any, errors: list[str]) -> EmploymentCategory | None:
        try:
            return EmploymentCategory(value)
        except ValueError:
            errors.append(f"unknown employment type {value!r}")
            return None

    def add_employee(self, data: Mapping[str, Any], actor: Actor) -> ActionResult:
        """
        Create an employee.

        Permanent employees start with a pro-rata balance from their joining
        date; every other category starts at zero.
        """
        errors: list[str] = []
        require_fields(data, _EMPLOYEE_REQUIRED, errors)
        join_date = parse_date(data.get("joining_date"), "joining_date", errors)
        salary = parse_money(data.get("salary"), "salary", errors)
        category = self._parse_category(
            data.get("employment_type") or EmploymentCategory.PERMANENT.value, errors,
        )
        raise_if_errors("employee", errors)

        document = {k: v for k, v in data.items() if k not in _PROTECTED_EMPLOYEE_FIELDS}
        document.update({
            "joining_date": join_date.isoformat(),
            "salary": str(salary),
            "employment_type": category.value,
            "status": EmployeeStatus.ACTIVE.value,
            "leave_balance": self._initial_balance(category, join_date).to_dict(),
            "created_by": actor.actor_id,
        })
        employee_id = self._store.create(EMPLOYEES, document)
        logger.info(
            "employee_added",
            extra={
                "employee_id": employee_id,
                "employment_type": category.value,
                "actor_id": actor.actor_id,
            },
        )
        return ActionResult(True, "Employee added successfully", employee_id)

    def update_employee(
        self, employee_id: str, changes: Mapping[str, Any], actor: Actor,
    ) -> ActionResult:
        """
        Apply field changes to an employee.

        Switching to Permanent from another category recomputes the leave
        balance pro-rata from today.
        """
        doc = load_document(self._store, EMPLOYEES, employee_id)

        errors: list[str] = []
        protected = sorted(_PROTECTED_EMPLOYEE_FIELDS & set(changes))
        if protected:
            errors.append(f"fields cannot be changed here: {protected}")
        update = dict(changes)
        if "joining_date" in changes:
            joined = parse_date(changes["joining_date"], "joining_date", errors)
            if joined:
                update["joining_date"] = joined.isoformat()
        if "salary" in changes:
            salary = parse_money(changes["salary"], "salary", errors)
            if salary is not None:
                update["salary"] = str(salary)
        category = None
        if "employment_type" in changes:
            category = self._parse_category(changes["employment_type"], errors)
        raise_if_errors("employee", errors)

        became_permanent = (
            category is EmploymentCategory.PERMANENT
            and doc.get("employment_type") != EmploymentCategory.PERMANENT.value
        )
        if category is not None:
            update["employment_type"] = category.value
        if became_permanent:
            today = self._clock.today()
            update["leave_balance"] = self._initial_balance(category, today).to_dict()
        update["updated_by"] = actor.actor_id

        self._store.update(EMPLOYEES, employee_id, update, expected_version=doc.version)
        logger.info(
            "employee_updated",
            extra={
                "employee_id": employee_id,
                "fields": sorted(changes),
                "balance_recomputed": became_permanent,
                "actor_id": actor.actor_id,
            },
        )
        return ActionResult(True, "Employee updated successfully", employee_id)

    def resign_employee(self, employee_id: str, actor: Actor) -> ActionResult:
        doc = load_document(self._store, EMPLOYEES, employee_id)
        if doc.get("status") == EmployeeStatus.RESIGNED.value:
            return ActionResult(False, "Employee has already resigned.", employee_id)
        self._store.update(
            EMPLOYEES,
            employee_id,
            {
                "status": EmployeeStatus.RESIGNED.value,
                "resigned_date": self._clock.today().isoformat(),
                "updated_by": actor.actor_id,
            },
            expected_version=doc.version,
        )
        logger.info("employee_resigned", extra={"employee_id": employee_id, "actor_id": actor.actor_id})
        return ActionResult(True, "Employee marked as resigned.", employee_id)

    def leave_balance_summary(self, employee_id: str) -> LeaveBalance:
        """
        Total / used / remaining per configured leave type.

        Types missing from the stored balance report zero; ``remaining`` is
        negative for an over-drawn type.
        """
        doc = load_document(self._store, EMPLOYEES, employee_id)
        stored = LeaveBalance.from_dict(doc.get("leave_balance"))
        return LeaveBalance(tuple(
            (name, stored[name] if name in stored else LeaveAllowance(0))
            for name in self._leave_config.quotas
        ))


class PayrollService:
    """Attendance upload and monthly payroll runs."""

    def __init__(
        self,
        store: LedgerStore,
        clock: Clock | None = None,
        payroll_config: PayrollConfig | None = None,
    ):
        self._store = store
        self._clock = clock or SystemClock()
        self._config = payroll_config or PayrollConfig()

    def upload_attendance(
        self, records: Iterable[AttendanceRecord], actor: Actor,
    ) -> ActionResult:
        """
        Store attendance records in one batch.

        Each record is keyed ``<employee_id>_<date>`` so a re-upload of the
        same day replaces the earlier record instead of duplicating it.
        """
        records = list(records)
        errors: list[str] = []
        if not records:
            errors.append("no attendance records supplied")
        for index, record in enumerate(records):
            if is_blank(record.employee_id):
                errors.append(f"record {index}: 'employee_id' is required")
            parse_date(record.date, f"records[{index}].date", errors)
        raise_if_errors("attendance", errors)

        batch = self._store.batch()
        for record in records:
            batch.set(ATTENDANCE_RECORDS, record.doc_id, record.to_document())
        batch.commit()

        logger.info(
            "attendance_uploaded",
            extra={"record_count": len(records), "actor_id": actor.actor_id},
        )
        return ActionResult(True, f"{len(records)} attendance records uploaded.")

    def _attendance_marks(self) -> list[AttendanceMark]:
        marks = []
        for doc in self._store.get(ATTENDANCE_RECORDS):
            try:
                day = stored_date(doc.get("date"))
            except ValueError:
                logger.warning("attendance_record_unreadable", extra={"record_id": doc.id})
                continue
            marks.append(AttendanceMark(str(doc.get("employee_id")), day))
        return marks

    def _approved_leaves(self) -> list[LeavePeriod]:
        periods = []
        for doc in self._store.get(LEAVE_REQUESTS, {"status": LeaveStatus.APPROVED.value}):
            try:
                from_date = stored_date(doc.get("from_date"))
                to_date = stored_date(doc.get("to_date"))
            except ValueError:
                logger.warning("leave_request_unreadable", extra={"request_id": doc.id})
                continue
            periods.append(LeavePeriod(str(doc.get("employee_id")), from_date, to_date))
        return periods

    def run_payroll(self, year: int, month: int, actor: Actor) -> PayrollRunResult:
        """
        Compute and record the payroll of every active employee for a month.

        The resulting ``PayrollRecord`` is created once in
        ``payroll_history`` and never modified afterwards.
        """
        if not 1 <= month <= 12:
            raise ValidationError("payroll_run", [f"month must be 1-12, got {month}"])

        marks = self._attendance_marks()
        leaves = self._approved_leaves()
        has_attendance = attendance_exists(marks, year, month)

        lines: list[EmployeePayrollRecord] = []
        employees = sorted(self._store.get(EMPLOYEES), key=lambda d: employee_display_name(d.data))
        for emp in employees:
            if emp.get("status", EmployeeStatus.ACTIVE.value) != EmployeeStatus.ACTIVE.value:
                continue
            errors: list[str] = []
            salary = parse_money(emp.get("salary", "0"), "salary", errors)
            if salary is None:
                logger.warning(
                    "payroll_employee_skipped",
                    extra={"employee_id": emp.id, "errors": errors},
                )
                continue
            aliases = (emp.get("employee_code"),) if emp.get("employee_code") else ()
            paid = compute_paid_days(emp.id, year, month, marks, leaves, aliases=aliases)
            pay = compute_net_pay(salary, paid.total, has_attendance, day_basis=self._config.day_basis)
            lines.append(EmployeePayrollRecord(
                employee_id=emp.id,
                employee_name=employee_display_name(emp.data),
                department=str(emp.get("department", "")),
                base_salary=salary.quantize(Decimal("0.01")),
                present_days=paid.present,
                paid_leave_days=paid.paid_leave,
                deductions=pay.deduction,
                net_pay=pay.net_pay,
            ))

        record = PayrollRecord(
            run_date=self._clock.timestamp(),
            month_label=month_label(year, month),
            year=year,
            month=month,
            currency=self._config.currency,
            employee_records=tuple(lines),
        )
        document = record.to_document()
        document["run_by"] = actor.actor_id
        record_id = self._store.create(PAYROLL_HISTORY, document)

        logger.info(
            "payroll_run_completed",
            extra={
                "record_id": record_id,
                "month_year": record.month_label,
                "employee_count": len(lines),
                "total_net_pay": record.total_net_pay,
                "attendance_data": has_attendance,
                "actor_id": actor.actor_id,
            },
        )
        return PayrollRunResult(record_id, record)
