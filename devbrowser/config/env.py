"""
Environment variable support for devbrowser configuration.
"""

import os
from typing import Any

from .defaults import ENV_PREFIX

# Supported variables: dotted config path -> (variable, type)
ENV_MAPPINGS = {
    "session.port": (f"{ENV_PREFIX}PORT", int),
    "session.scheme": (f"{ENV_PREFIX}SCHEME", str),
    "session.host": (f"{ENV_PREFIX}HOST", str),
    "session.headless": (f"{ENV_PREFIX}HEADLESS", bool),
    "session.cache_enabled": (f"{ENV_PREFIX}CACHE", bool),
    "session.executable_path": (f"{ENV_PREFIX}EXECUTABLE", str),
    "session.auto_open_devtools": (f"{ENV_PREFIX}DEVTOOLS", bool),
    "geometry.settle_delay": (f"{ENV_PREFIX}SETTLE_DELAY", float),
    "geometry.poll_interval": (f"{ENV_PREFIX}POLL_INTERVAL", float),
    "store_path": (f"{ENV_PREFIX}STORE", str),
}


def parse_bool(value: str) -> bool:
    """Parse string to boolean."""
    return value.strip().lower() in ("true", "1", "yes", "on", "enabled", "t")


def parse_value(value: str, target_type: type) -> Any:
    """Parse string value to target type."""
    if target_type is bool:
        return parse_bool(value)
    if target_type is int:
        return int(value)
    if target_type is float:
        return float(value)
    return value


def load_env_config() -> dict[str, Any]:
    """Load configuration from the predefined environment variables.

    Returns:
        Nested dictionary of configuration values

    Raises:
        ValueError: If a numeric variable does not parse.
    """
    result: dict[str, Any] = {}

    for config_key, (env_var, value_type) in ENV_MAPPINGS.items():
        value = os.environ.get(env_var)
        if value is None:
            continue

        parsed = parse_value(value, value_type)
        target = result
        *parents, leaf = config_key.split(".")
        for part in parents:
            target = target.setdefault(part, {})
        target[leaf] = parsed

    return result
