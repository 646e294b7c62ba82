"""
Configuration Loader (``ops_config.loader``).

Responsibility
--------------
Reads a YAML configuration file and parses it into a ``ConsoleConfig``.
Callers at runtime go through ``ops_config.get_active_config()``.

Failure modes
-------------
* Missing file   -> ``ConfigError``.
* Malformed YAML -> ``ConfigError`` wrapping ``yaml.YAMLError``.
* Bad values     -> ``ConfigError`` from the schema.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from ops_config.schema import ConsoleConfig
from ops_kernel.exceptions import ConfigError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Postconditions:
        - Returns a ``dict`` (empty if the YAML document is empty).
    Raises:
        ConfigError: if the file is missing, unreadable or invalid YAML.
    """
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as exc:
        raise ConfigError(str(path), "file not found") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(str(path), f"invalid YAML: {exc}") from exc
    return data or {}


def load_config(path: Path) -> ConsoleConfig:
    """Parse the file at ``path`` into a ``ConsoleConfig``."""
    return ConsoleConfig.from_dict(load_yaml_file(path), source=str(path))
