"""
ops_config -- single public entrypoint for console configuration.

Responsibility:
    ``get_active_config()`` is the only way services obtain configuration.
    It resolves the file to read (explicit path, then the
    ``OPS_CONSOLE_CONFIG`` environment variable, then the bundled
    ``sets/default.yaml``) and returns a frozen ``ConsoleConfig``.

Architecture position:
    Configuration -- sits above ``ops_kernel`` and ``ops_engines`` and below
    ``ops_services`` / ``ops_modules``.  The kernel MUST NEVER import from
    ``ops_config``.

Failure modes:
    - ``ConfigError`` -- missing file, invalid YAML, or malformed values.
"""

from __future__ import annotations

import os
from pathlib import Path

from ops_config.loader import load_config, load_yaml_file
from ops_config.schema import (
    ALL_MODULES,
    ConsoleConfig,
    LeaveConfig,
    LoggingConfig,
    ModulesConfig,
    PayrollConfig,
    StoreConfig,
    SupplyChainConfig,
    WorkflowConfig,
)
from ops_kernel.logging_config import get_logger

_logger = get_logger("config")

CONFIG_ENV_VAR = "OPS_CONSOLE_CONFIG"
_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(path: str | Path | None = None) -> ConsoleConfig:
    """Load the active configuration.

    Args:
        path: Explicit configuration file.  Falls back to the
            ``OPS_CONSOLE_CONFIG`` environment variable, then the bundled
            default set.

    Raises:
        ConfigError: If the file cannot be read or fails validation.
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR) or _DEFAULT_CONFIG_PATH
    resolved = Path(path)

    config = load_config(resolved)

    _logger.info(
        "CONFIG_TRACE",
        extra={
            "trace_type": "CONFIG_TRACE",
            "source": str(resolved),
            "store_backend": config.store.backend,
            "enforce_roles": config.workflow.enforce_roles,
            "module_count": len(config.modules.all_modules),
        },
    )
    return config


__all__ = [
    "ALL_MODULES",
    "CONFIG_ENV_VAR",
    "ConsoleConfig",
    "LeaveConfig",
    "LoggingConfig",
    "ModulesConfig",
    "PayrollConfig",
    "StoreConfig",
    "SupplyChainConfig",
    "WorkflowConfig",
    "get_active_config",
    "load_config",
    "load_yaml_file",
]
