"""
HR Module (``ops_modules.hr``).

Responsibility
--------------
Employees, leave requests and their two-stage approval workflow, attendance
records and payroll runs.  Entitlement and pay arithmetic come from
``ops_engines``; transition selection from ``ops_services``.

Invariants
----------
- Final leave approval and the balance debit share one atomic batch.
- Over-drawn balances are tolerated and logged, never rejected.
- Payroll records are write-once.
"""

from ops_modules.hr.models import (
    AttendanceRecord,
    AttendanceStatus,
    EmployeeStatus,
    EmploymentCategory,
    LeaveAction,
    LeaveRequest,
    LeaveStatus,
    LeaveType,
    PayrollRecord,
    PayrollRunResult,
)
from ops_modules.hr.service import EmployeeService, LeaveService, PayrollService
from ops_modules.hr.workflows import LEAVE_WORKFLOW

__all__ = [
    "AttendanceRecord",
    "AttendanceStatus",
    "EmployeeService",
    "EmployeeStatus",
    "EmploymentCategory",
    "LEAVE_WORKFLOW",
    "LeaveAction",
    "LeaveRequest",
    "LeaveService",
    "LeaveStatus",
    "LeaveType",
    "PayrollRecord",
    "PayrollRunResult",
    "PayrollService",
]
