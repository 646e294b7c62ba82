"""
HR Domain Models (``ops_modules.hr.models``).

Responsibility
--------------
Enumerations and frozen value objects for employees, leave requests,
attendance and payroll runs, plus their document forms in the Ledger Store.

Architecture
------------
Layer: **Modules** -- pure domain data structures.  No I/O.  Dates are stored
as ISO strings and money as decimal strings so documents stay JSON-portable.

Invariants
----------
- ``LeaveType`` display names map one-to-one onto leave-balance keys.
- ``PayrollRecord`` is a frozen computation result; it is created once in
  ``payroll_history`` and never updated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from ops_kernel.logging_config import get_logger

logger = get_logger("modules.hr.models")

EMPLOYEES = "employees"
LEAVE_REQUESTS = "leave_requests"
ATTENDANCE_RECORDS = "attendance_records"
PAYROLL_HISTORY = "payroll_history"


class LeaveStatus(str, Enum):
    PENDING_HOD = "Pending HOD"
    PENDING_HR = "Pending HR"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class LeaveAction(str, Enum):
    APPROVE = "Approve"
    REJECT = "Reject"


class LeaveType(str, Enum):
    """Leave types as submitted; ``balance_key`` names the balance entry."""

    SICK = "Sick Leave"
    CASUAL = "Casual Leave"
    ANNUAL = "Annual Leave"
    MATERNITY = "Maternity Leave"
    PATERNITY = "Paternity Leave"
    ALTERNATE_DAY_OFF = "Alternate Day Off"
    OTHERS = "Others"

    @property
    def balance_key(self) -> str:
        return _BALANCE_KEYS[self]

    @classmethod
    def parse(cls, value: Any) -> LeaveType | None:
        """Accept a display name (``Sick Leave``) or a balance key (``sick``)."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        text = value.strip()
        for member in cls:
            if text == member.value or text == member.balance_key:
                return member
        return None


_BALANCE_KEYS: dict[LeaveType, str] = {
    LeaveType.SICK: "sick",
    LeaveType.CASUAL: "casual",
    LeaveType.ANNUAL: "annual",
    LeaveType.MATERNITY: "maternity",
    LeaveType.PATERNITY: "paternity",
    LeaveType.ALTERNATE_DAY_OFF: "alternate_day_off",
    LeaveType.OTHERS: "others",
}


class EmploymentCategory(str, Enum):
    PERMANENT = "Permanent"
    PROBATION = "Probation"
    CONTRACT = "Contract"
    INTERN = "Intern"


class EmployeeStatus(str, Enum):
    ACTIVE = "Active"
    RESIGNED = "Resigned"
    TERMINATED = "Terminated"


class AttendanceStatus(str, Enum):
    PRESENT = "Present"
    ABSENT = "Absent"
    LATE = "Late"
    HALF_DAY = "Half Day"


@dataclass(frozen=True)
class LeaveRequest:
    """A leave application as submitted by (or for) an employee."""

    employee_id: str
    leave_type: LeaveType | str
    from_date: date | str
    to_date: date | str
    reason: str = ""


@dataclass(frozen=True)
class AttendanceRecord:
    employee_id: str
    date: date | str
    time_in: str = ""
    time_out: str = ""
    status: AttendanceStatus | str = AttendanceStatus.PRESENT

    @property
    def doc_id(self) -> str:
        # One record per employee per day; re-uploads overwrite.
        return f"{self.employee_id}_{_iso(self.date)}"

    def to_document(self) -> dict[str, Any]:
        return {
            "employee_id": self.employee_id,
            "date": _iso(self.date),
            "time_in": self.time_in,
            "time_out": self.time_out,
            "status": getattr(self.status, "value", self.status),
        }


@dataclass(frozen=True)
class EmployeePayrollRecord:
    """One employee's line in a payroll run."""

    employee_id: str
    employee_name: str
    department: str
    base_salary: Decimal
    present_days: int
    paid_leave_days: int
    deductions: Decimal
    net_pay: Decimal

    def to_document(self) -> dict[str, Any]:
        return {
            "employee_id": self.employee_id,
            "employee_name": self.employee_name,
            "department": self.department,
            "base_salary": str(self.base_salary),
            "present_days": self.present_days,
            "paid_leave_days": self.paid_leave_days,
            "deductions": str(self.deductions),
            "net_pay": str(self.net_pay),
        }


@dataclass(frozen=True)
class PayrollRecord:
    """Frozen result of one payroll run."""

    run_date: str
    month_label: str
    year: int
    month: int
    currency: str
    employee_records: tuple[EmployeePayrollRecord, ...] = field(default_factory=tuple)

    @property
    def total_payroll(self) -> Decimal:
        return sum((r.base_salary for r in self.employee_records), Decimal("0.00"))

    @property
    def total_deductions(self) -> Decimal:
        return sum((r.deductions for r in self.employee_records), Decimal("0.00"))

    @property
    def total_net_pay(self) -> Decimal:
        return sum((r.net_pay for r in self.employee_records), Decimal("0.00"))

    def to_document(self) -> dict[str, Any]:
        return {
            "date": self.run_date,
            "month_year": self.month_label,
            "year": self.year,
            "month": self.month,
            "currency": self.currency,
            "total_payroll": str(self.total_payroll),
            "total_deductions": str(self.total_deductions),
            "total_net_pay": str(self.total_net_pay),
            "employee_records": [r.to_document() for r in self.employee_records],
        }


def _iso(value: date | str) -> str:
    return value.isoformat() if isinstance(value, date) else str(value)


def employee_display_name(data: dict[str, Any]) -> str:
    name = f"{data.get('first_name', '')} {data.get('last_name', '')}".strip()
    return name or str(data.get("name", ""))


@dataclass(frozen=True)
class PayrollRunResult:
    record_id: str
    record: PayrollRecord
