"""
Settings for NexusApp.

Values come from built-in defaults, overlaid by an optional YAML file
(``nexus.yaml`` or the path in ``NEXUS_CONFIG``) and finally by environment
variables. The module-level constants are computed once at import.
"""
import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULTS: Dict[str, Any] = {
    "remote": {
        "base_url": "http://localhost:54321",
        "api_key": "",
        "access_token": "",
        "timeout": 10.0,
        "probe_timeout": 2.5,
    },
    "local": {
        "db_path": "nexus_local.db",
    },
    "logging": {
        "level": "INFO",
        "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    },
}

ENV_OVERRIDES = {
    "NEXUS_BASE_URL": ("remote", "base_url"),
    "NEXUS_API_KEY": ("remote", "api_key"),
    "NEXUS_ACCESS_TOKEN": ("remote", "access_token"),
    "NEXUS_DB_PATH": ("local", "db_path"),
    "NEXUS_LOG_LEVEL": ("logging", "level"),
}


def _merge(base: Dict[str, Any], extra: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in extra.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


def load_config(path: Optional[str] = None, environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """Build the settings dict. A missing or broken file falls back to defaults."""
    environ = os.environ if environ is None else environ
    config = copy.deepcopy(DEFAULTS)

    config_path = Path(path or environ.get("NEXUS_CONFIG", "nexus.yaml"))
    if config_path.exists():
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise ValueError("top level must be a mapping")
            _merge(config, data)
            logger.info("Configuration loaded from %s", config_path)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.warning("Ignoring configuration file %s: %s", config_path, e)

    for var, (section, key) in ENV_OVERRIDES.items():
        if environ.get(var):
            config[section][key] = environ[var]
    return config


def get_setting(config: Dict[str, Any], key_path: str, default: Any = None) -> Any:
    """Dot-notation lookup, e.g. ``get_setting(cfg, "remote.base_url")``."""
    value: Any = config
    for key in key_path.split("."):
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default
    return value


_config = load_config()

BASE_URL: str = get_setting(_config, "remote.base_url")
API_KEY: str = get_setting(_config, "remote.api_key")
ACCESS_TOKEN: str = get_setting(_config, "remote.access_token")
REQUEST_TIMEOUT: float = float(get_setting(_config, "remote.timeout"))
PROBE_TIMEOUT: float = float(get_setting(_config, "remote.probe_timeout"))
LOCAL_DB_PATH: str = get_setting(_config, "local.db_path")
LOG_LEVEL: str = get_setting(_config, "logging.level")
LOG_FORMAT: str = get_setting(_config, "logging.format")
