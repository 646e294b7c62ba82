"""
Console configuration schema.

Frozen dataclasses for every configurable section.  Field defaults are the
values the console ships with; ``ConsoleConfig.from_dict`` overlays a parsed
YAML document on top of them and rejects malformed values with
``ConfigError``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Self

from ops_engines.leave import FULL_LEAVE_QUOTAS, PRORATED_LEAVE_TYPES
from ops_engines.payroll import DEFAULT_DAY_BASIS
from ops_kernel.exceptions import ConfigError
from ops_kernel.logging_config import get_logger

logger = get_logger("config.schema")

ALL_MODULES: tuple[str, ...] = (
    "hr",
    "inventory_management",
    "supply_chain",
    "finance",
    "student",
    "website",
)

STORE_BACKENDS = ("memory", "sql")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _require_mapping(value: Any, section: str, source: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(source, f"section '{section}' must be a mapping")
    return value


def _reject_unknown(cls: type, data: dict[str, Any], section: str, source: str) -> None:
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(source, f"unknown keys in '{section}': {unknown}")


def _non_negative_int(value: Any, name: str, source: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigError(source, f"'{name}' must be a non-negative integer, got {value!r}")
    return value


def _bool(value: Any, name: str, source: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(source, f"'{name}' must be true or false, got {value!r}")
    return value


@dataclass(frozen=True)
class LeaveConfig:
    """Leave quotas and which types are pro-rated in the joining year."""

    quotas: dict[str, int] = field(default_factory=lambda: dict(FULL_LEAVE_QUOTAS))
    prorated: frozenset[str] = PRORATED_LEAVE_TYPES

    @classmethod
    def from_dict(cls, data: dict[str, Any], source: str) -> Self:
        _reject_unknown(cls, data, "leave", source)
        defaults = cls()
        quotas = dict(defaults.quotas)
        if "quotas" in data:
            raw = _require_mapping(data["quotas"], "leave.quotas", source)
            quotas = {
                str(name): _non_negative_int(total, f"leave.quotas.{name}", source)
                for name, total in raw.items()
            }
        prorated = defaults.prorated
        if "prorated" in data:
            if not isinstance(data["prorated"], list):
                raise ConfigError(source, "'leave.prorated' must be a list")
            prorated = frozenset(str(name) for name in data["prorated"])
        missing = sorted(prorated - set(quotas))
        if missing:
            raise ConfigError(source, f"pro-rated leave types without a quota: {missing}")
        return cls(quotas=quotas, prorated=prorated)


@dataclass(frozen=True)
class PayrollConfig:
    day_basis: int = DEFAULT_DAY_BASIS
    currency: str = "PKR"

    @classmethod
    def from_dict(cls, data: dict[str, Any], source: str) -> Self:
        _reject_unknown(cls, data, "payroll", source)
        day_basis = _non_negative_int(data.get("day_basis", DEFAULT_DAY_BASIS), "payroll.day_basis", source)
        if day_basis == 0:
            raise ConfigError(source, "'payroll.day_basis' must be positive")
        return cls(day_basis=day_basis, currency=str(data.get("currency", cls.currency)))


@dataclass(frozen=True)
class SupplyChainConfig:
    # Requests from this department skip store fulfilment and go to purchase.
    store_department: str = "Store"

    @classmethod
    def from_dict(cls, data: dict[str, Any], source: str) -> Self:
        _reject_unknown(cls, data, "supply_chain", source)
        department = data.get("store_department", cls.store_department)
        if not isinstance(department, str) or not department.strip():
            raise ConfigError(source, "'supply_chain.store_department' must be a non-empty string")
        return cls(store_department=department)


@dataclass(frozen=True)
class WorkflowConfig:
    enforce_roles: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any], source: str) -> Self:
        _reject_unknown(cls, data, "workflow", source)
        return cls(enforce_roles=_bool(data.get("enforce_roles", True), "workflow.enforce_roles", source))


@dataclass(frozen=True)
class ModulesConfig:
    all_modules: tuple[str, ...] = ALL_MODULES

    @classmethod
    def from_dict(cls, data: dict[str, Any], source: str) -> Self:
        _reject_unknown(cls, data, "modules", source)
        modules = data.get("all_modules", list(ALL_MODULES))
        if not isinstance(modules, list) or not all(isinstance(m, str) for m in modules):
            raise ConfigError(source, "'modules.all_modules' must be a list of strings")
        return cls(all_modules=tuple(modules))


@dataclass(frozen=True)
class StoreConfig:
    backend: str = "memory"
    url: str = "sqlite:///:memory:"
    echo: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any], source: str) -> Self:
        _reject_unknown(cls, data, "store", source)
        backend = data.get("backend", cls.backend)
        if backend not in STORE_BACKENDS:
            raise ConfigError(source, f"'store.backend' must be one of {STORE_BACKENDS}, got {backend!r}")
        url = data.get("url", cls.url)
        if not isinstance(url, str) or not url:
            raise ConfigError(source, "'store.url' must be a non-empty string")
        return cls(backend=backend, url=url, echo=_bool(data.get("echo", False), "store.echo", source))


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"

    @classmethod
    def from_dict(cls, data: dict[str, Any], source: str) -> Self:
        _reject_unknown(cls, data, "logging", source)
        level = str(data.get("level", cls.level)).upper()
        if level not in LOG_LEVELS:
            raise ConfigError(source, f"'logging.level' must be one of {LOG_LEVELS}, got {level!r}")
        return cls(level=level)


_SECTIONS: dict[str, type] = {
    "leave": LeaveConfig,
    "payroll": PayrollConfig,
    "supply_chain": SupplyChainConfig,
    "workflow": WorkflowConfig,
    "modules": ModulesConfig,
    "store": StoreConfig,
    "logging": LoggingConfig,
}


@dataclass(frozen=True)
class ConsoleConfig:
    """
    Complete console configuration.

        config = ConsoleConfig.from_dict(load_yaml_file(path), source=str(path))
    """

    leave: LeaveConfig = field(default_factory=LeaveConfig)
    payroll: PayrollConfig = field(default_factory=PayrollConfig)
    supply_chain: SupplyChainConfig = field(default_factory=SupplyChainConfig)
    workflow: WorkflowConfig = field(default_factory=WorkflowConfig)
    modules: ModulesConfig = field(default_factory=ModulesConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with the shipped defaults."""
        logger.info("console_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any], source: str = "<dict>") -> Self:
        """Create config from a parsed document; absent sections keep defaults."""
        if not isinstance(data, dict):
            raise ConfigError(source, "top level must be a mapping")
        unknown = sorted(set(data) - set(_SECTIONS))
        if unknown:
            raise ConfigError(source, f"unknown sections: {unknown}")
        logger.info(
            "console_config_loading_from_dict",
            extra={"source": source, "sections": sorted(data)},
        )
        sections = {
            name: section_cls.from_dict(_require_mapping(data[name], name, source), source)
            for name, section_cls in _SECTIONS.items()
            if name in data
        }
        return cls(**sections)
