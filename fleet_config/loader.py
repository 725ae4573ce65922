"""
Settings Loader (``fleet_config.loader``).

Responsibility
--------------
Reads the optional YAML settings file and the environment overrides and
produces a ``FulfillmentSettings`` instance.

Resolution order (later wins):

1. Dataclass defaults.
2. YAML file named by the ``path`` argument, else by ``FLEET_ERP_CONFIG``.
3. ``DATABASE_URL`` and ``FLEET_ERP_LOG_LEVEL`` environment variables.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  No dependency on kernel
services or modules.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Top-level YAML value that is not a mapping  -> ``ValueError``.
* Unknown keys or invalid values  -> ``ValueError``.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from fleet_config.schema import FulfillmentSettings

CONFIG_PATH_ENV = "FLEET_ERP_CONFIG"
DATABASE_URL_ENV = "DATABASE_URL"
LOG_LEVEL_ENV = "FLEET_ERP_LOG_LEVEL"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must contain a mapping")
    return data


def load_settings(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> FulfillmentSettings:
    """
    Resolve settings from file and environment.

    Args:
        path: Explicit YAML path.  Overrides ``FLEET_ERP_CONFIG``.
        environ: Environment mapping; defaults to ``os.environ``.
    """
    env = os.environ if environ is None else environ

    data: dict[str, Any] = {}
    config_path = path if path is not None else env.get(CONFIG_PATH_ENV)
    if config_path:
        data.update(load_yaml_file(Path(config_path)))

    if env.get(DATABASE_URL_ENV):
        data["database_url"] = env[DATABASE_URL_ENV]
    if env.get(LOG_LEVEL_ENV):
        data["log_level"] = env[LOG_LEVEL_ENV].upper()

    return FulfillmentSettings.from_dict(data)
