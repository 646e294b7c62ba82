"""
Actor and role value types (``ops_kernel.domain.actor``).

The identity layer is external; it hands the core an ``Actor`` carrying the
caller's id and the roles it holds.  Capabilities are explicit values passed
into every workflow call, never inferred from a magic identity string.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Role(str, Enum):
    """Organisational roles that gate workflow transitions."""

    ADMIN = "admin"
    HR = "hr"
    HOD = "hod"
    EMPLOYEE = "employee"
    ACCOUNT_MANAGER = "account_manager"
    STORE = "store"
    PURCHASE = "purchase"


@dataclass(frozen=True)
class Actor:
    """The caller of a workflow operation.

    ``actor_id`` is whatever identifier the identity layer uses (usually the
    login email); ``name`` is what history entries and assignments display.
    """

    actor_id: str
    name: str = ""
    roles: frozenset[Role] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if not self.actor_id or not self.actor_id.strip():
            raise ValueError("actor_id must be non-empty")
        if not isinstance(self.roles, frozenset):
            object.__setattr__(self, "roles", frozenset(self.roles))

    @property
    def display_name(self) -> str:
        return self.name or self.actor_id

    @property
    def is_admin(self) -> bool:
        return Role.ADMIN in self.roles

    def has_any_role(self, roles: tuple[Role, ...]) -> bool:
        """True if the actor holds one of ``roles`` (or is an admin)."""
        if self.is_admin:
            return True
        return any(role in self.roles for role in roles)
