"""
Module: ops_engines
Responsibility:
    Package entrypoint re-exporting the Balance Calculator: pure leave
    entitlement and payroll functions.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import ops_kernel logging (for traces) and sibling engines.
    MUST NOT import ops_services or ops_modules.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      The current year / month is passed in by the caller.
    - Decimal arithmetic for money and for rounding of pro-rated quotas.
"""

from ops_engines.leave import (
    FULL_LEAVE_QUOTAS,
    PRORATED_LEAVE_TYPES,
    LeaveAllowance,
    LeaveBalance,
    compute_pro_rata_leave,
    leave_day_count,
)
from ops_engines.payroll import (
    DEFAULT_DAY_BASIS,
    AttendanceMark,
    LeavePeriod,
    NetPay,
    PaidDays,
    attendance_exists,
    compute_net_pay,
    compute_paid_days,
    month_label,
)

__all__ = [
    "DEFAULT_DAY_BASIS",
    "FULL_LEAVE_QUOTAS",
    "PRORATED_LEAVE_TYPES",
    "AttendanceMark",
    "LeaveAllowance",
    "LeaveBalance",
    "LeavePeriod",
    "NetPay",
    "PaidDays",
    "attendance_exists",
    "compute_net_pay",
    "compute_paid_days",
    "compute_pro_rata_leave",
    "leave_day_count",
    "month_label",
]
