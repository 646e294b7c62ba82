"""
Payroll Engine (``ops_engines.payroll``).

Responsibility
--------------
Pure payroll arithmetic on a fixed day basis:

* paid days = attendance days + approved-leave days not already present
* net pay and deduction from base salary and paid days

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O, ZERO clock reads.
Callers convert stored attendance and leave documents into the input
value objects below.

Invariants enforced
-------------------
* A leave day that also carries an attendance record is counted once.
* Overlapping approved leaves never count the same calendar day twice.
* Money is ``Decimal`` quantized to 0.01 with ROUND_HALF_UP.
* Net pay never exceeds base salary; deduction is never negative.
* A month with no attendance data at all pays the full base salary.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

from ops_engines.tracer import traced_engine

DEFAULT_DAY_BASIS = 30

_CENT = Decimal("0.01")


@dataclass(frozen=True)
class AttendanceMark:
    """One attendance record: the employee was on record for ``day``."""

    employee_id: str
    day: date


@dataclass(frozen=True)
class LeavePeriod:
    """A leave request's inclusive date range."""

    employee_id: str
    from_date: date
    to_date: date
    approved: bool = True


@dataclass(frozen=True)
class PaidDays:
    present: int
    paid_leave: int

    @property
    def total(self) -> int:
        return self.present + self.paid_leave


@dataclass(frozen=True)
class NetPay:
    net_pay: Decimal
    deduction: Decimal


def _money(value: Decimal) -> Decimal:
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def _in_month(day: date, year: int, month: int) -> bool:
    return day.year == year and day.month == month


def month_label(year: int, month: int) -> str:
    """``month_label(2024, 7) -> "July 2024"``."""
    return f"{calendar.month_name[month]} {year}"


def attendance_exists(attendance: Iterable[AttendanceMark], year: int, month: int) -> bool:
    """True if anyone has an attendance record in the month."""
    return any(_in_month(mark.day, year, month) for mark in attendance)


def compute_paid_days(
    employee_id: str,
    year: int,
    month: int,
    attendance: Iterable[AttendanceMark],
    approved_leaves: Iterable[LeavePeriod],
    aliases: Iterable[str] = (),
) -> PaidDays:
    """Paid days for one employee in one month.

    Attendance may be recorded under the employee's document id or any of
    ``aliases`` (e.g. the HR employee code).
    """
    identities = {employee_id, *aliases}

    marks = [
        mark for mark in attendance
        if mark.employee_id in identities and _in_month(mark.day, year, month)
    ]
    present_days = {mark.day for mark in marks}

    leave_days: set[date] = set()
    for period in approved_leaves:
        if not period.approved or period.employee_id not in identities:
            continue
        start, end = sorted((period.from_date, period.to_date))
        day = start
        while day <= end:
            if _in_month(day, year, month) and day not in present_days:
                leave_days.add(day)
            day += timedelta(days=1)

    return PaidDays(present=len(present_days), paid_leave=len(leave_days))


@traced_engine("net_pay", "1.0", fingerprint_fields=("base_salary", "total_paid_days"))
def compute_net_pay(
    base_salary: Decimal | int | str,
    total_paid_days: int,
    attendance_exists: bool,
    day_basis: int = DEFAULT_DAY_BASIS,
) -> NetPay:
    """Net pay on a ``day_basis``-day month.

    Raises:
        ValueError: ``day_basis`` is not positive or the salary is negative.
    """
    if day_basis <= 0:
        raise ValueError(f"day_basis must be positive, got {day_basis}")
    base = Decimal(str(base_salary))
    if base < 0:
        raise ValueError(f"base_salary must not be negative, got {base}")

    if not attendance_exists:
        return NetPay(net_pay=_money(base), deduction=_money(Decimal(0)))

    effective = min(day_basis, max(0, total_paid_days))
    net = _money(base / Decimal(day_basis) * Decimal(effective))
    deduction = max(Decimal(0), _money(base - net))
    return NetPay(net_pay=net, deduction=_money(deduction))
