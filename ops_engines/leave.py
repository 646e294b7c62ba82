"""
Leave Entitlement Engine (``ops_engines.leave``).

Responsibility
--------------
Pure functions for leave balances:

* pro-rata entitlement from an employee's join date
* inclusive day count of a leave date range

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O, ZERO clock reads.
The caller passes the current year explicitly.

Invariants enforced
-------------------
* Pro-rated totals use ``Decimal`` with ROUND_HALF_UP, never float rounding.
* Every computed allowance starts with ``used = 0``.
* Join dates outside the current year (past or future) get full quotas.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from types import MappingProxyType
from typing import Any

from ops_engines.tracer import traced_engine

FULL_LEAVE_QUOTAS: Mapping[str, int] = MappingProxyType({
    "annual": 14,
    "sick": 7,
    "casual": 6,
    "maternity": 90,
    "paternity": 7,
    "alternate_day_off": 50,
    "others": 0,
})

# Types whose quota shrinks with the months left after joining.
PRORATED_LEAVE_TYPES: frozenset[str] = frozenset(
    {"annual", "sick", "casual", "alternate_day_off"}
)


@dataclass(frozen=True)
class LeaveAllowance:
    """Entitlement for one leave type."""

    total: int
    used: int = 0

    @property
    def remaining(self) -> int:
        # Negative when over-drawn.
        return self.total - self.used

    def to_dict(self) -> dict[str, int]:
        return {"total": self.total, "used": self.used}


@dataclass(frozen=True)
class LeaveBalance:
    """Per-type allowances, keyed by leave-type key (``annual``, ``sick`` ...)."""

    allowances: tuple[tuple[str, LeaveAllowance], ...] = field(default_factory=tuple)

    def __getitem__(self, key: str) -> LeaveAllowance:
        for name, allowance in self.allowances:
            if name == key:
                return allowance
        raise KeyError(key)

    def __iter__(self) -> Iterator[str]:
        return (name for name, _ in self.allowances)

    def __contains__(self, key: object) -> bool:
        return any(name == key for name, _ in self.allowances)

    def to_dict(self) -> dict[str, dict[str, int]]:
        """Document form stored under ``employees/<id>.leave_balance``."""
        return {name: allowance.to_dict() for name, allowance in self.allowances}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> LeaveBalance:
        """Read a stored balance; missing numbers count as 0."""
        if not data:
            return cls()
        return cls(tuple(
            (name, LeaveAllowance(
                total=int((entry or {}).get("total", 0) or 0),
                used=int((entry or {}).get("used", 0) or 0),
            ))
            for name, entry in data.items()
        ))

    @classmethod
    def zero(cls, quotas: Mapping[str, int] = FULL_LEAVE_QUOTAS) -> LeaveBalance:
        """Every configured type with ``total = used = 0``."""
        return cls(tuple((name, LeaveAllowance(0)) for name in quotas))


def _prorate(quota: int, join_month: int) -> int:
    scaled = Decimal(quota) * Decimal(12 - join_month) / Decimal(12)
    return int(scaled.quantize(Decimal(1), rounding=ROUND_HALF_UP))


@traced_engine("leave_entitlement", "1.0", fingerprint_fields=("join_date", "current_year"))
def compute_pro_rata_leave(
    join_date: date,
    current_year: int,
    quotas: Mapping[str, int] = FULL_LEAVE_QUOTAS,
    prorated: frozenset[str] = PRORATED_LEAVE_TYPES,
) -> LeaveBalance:
    """Entitlement for an employee who joined on ``join_date``.

    Joining in ``current_year`` scales the prorated types by
    ``(12 - month) / 12`` (month is 1-based), rounded half-up; the remaining
    types keep their full quota.  Any other join year yields full quotas.

    >>> compute_pro_rata_leave(date(2024, 7, 1), 2024)["annual"].total
    6
    """
    joined_this_year = join_date.year == current_year
    allowances = []
    for name, quota in quotas.items():
        total = _prorate(quota, join_date.month) if joined_this_year and name in prorated else quota
        allowances.append((name, LeaveAllowance(total=total)))
    return LeaveBalance(tuple(allowances))


def leave_day_count(from_date: date, to_date: date) -> int:
    """Inclusive number of calendar days between two dates (order-insensitive)."""
    return abs((to_date - from_date).days) + 1
