"""
ops_services.access -- Module visibility for the console landing page.

Responsibility:
    Turns an actor and its page permissions into the list of console
    modules it may open.  Administrative access is a role on the actor,
    never a special identity string.

Invariants enforced:
    - ``Role.ADMIN`` sees every configured module.
    - Any other actor sees a module only when at least one of its pages
      grants ``view``.
    - Output order follows the configured module order; modules that are
      not configured are never returned.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from ops_config.schema import ALL_MODULES
from ops_kernel.domain.actor import Actor
from ops_kernel.logging_config import get_logger

logger = get_logger("services.access")

# {module: {page: {"view": bool, ...}}}
PermissionMap = Mapping[str, Mapping[str, Mapping[str, Any]]]


def _can_view_any_page(pages: Any) -> bool:
    if not isinstance(pages, Mapping):
        return False
    return any(
        isinstance(flags, Mapping) and flags.get("view") is True
        for flags in pages.values()
    )


def accessible_modules(
    actor: Actor,
    permissions: PermissionMap | None,
    all_modules: Iterable[str] = ALL_MODULES,
) -> list[str]:
    """Modules ``actor`` may open, in configured order."""
    modules = list(all_modules)
    if actor.is_admin:
        return modules

    permissions = permissions or {}
    visible = [m for m in modules if _can_view_any_page(permissions.get(m))]
    ignored = sorted(set(permissions) - set(modules))
    if ignored:
        logger.debug(
            "permissions_for_unknown_modules",
            extra={"actor_id": actor.actor_id, "modules": ignored},
        )
    return visible
