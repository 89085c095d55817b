"""
Configuration module for devbrowser.

- Strongly-typed option classes (SessionOptions, GeometryOptions, CaptureOptions)
- Configuration file loading (YAML, JSON, TOML)
- Environment variable support
- Persisted browser state (position, size, auto-start, viewport mode)

Example usage:
    from devbrowser.config import load_config, open_store

    config = load_config("devbrowser.yaml")
    store = open_store(config.store_path)

Environment variables:
    DEVBROWSER_PORT=8080
    DEVBROWSER_SCHEME=https
    DEVBROWSER_HEADLESS=true
    DEVBROWSER_STORE=~/.config/devbrowser/state.json
"""

from .defaults import (
    DEFAULT_CONFIG_FILENAME,
    DEFAULT_PORT,
    DEFAULT_SCHEME,
    DEFAULT_WINDOW_HEIGHT,
    DEFAULT_WINDOW_POSITION,
    DEFAULT_WINDOW_WIDTH,
    ENV_PREFIX,
)
from .env import ENV_MAPPINGS, load_env_config
from .geometry import format_position_and_size, parse_position_and_size
from .loader import (
    ConfigLoader,
    ConfigurationError,
    find_config_file,
    load_config,
    load_file,
    merge_configs,
)
from .options import (
    CaptureOptions,
    DevBrowserConfig,
    GeometryOptions,
    SessionOptions,
)
from .store import (
    STORE_KEY_AUTOSTART,
    STORE_KEY_POSITION,
    STORE_KEY_SIZE,
    STORE_KEY_VIEWPORT,
    JSONFileStore,
    KeyValueStore,
    MemoryStore,
    PersistedBrowserConfig,
    open_store,
)

__all__ = [
    # Defaults
    "DEFAULT_CONFIG_FILENAME",
    "DEFAULT_PORT",
    "DEFAULT_SCHEME",
    "DEFAULT_WINDOW_HEIGHT",
    "DEFAULT_WINDOW_POSITION",
    "DEFAULT_WINDOW_WIDTH",
    "ENV_PREFIX",
    # Environment
    "ENV_MAPPINGS",
    "load_env_config",
    # Geometry string
    "format_position_and_size",
    "parse_position_and_size",
    # Loader
    "ConfigLoader",
    "ConfigurationError",
    "find_config_file",
    "load_config",
    "load_file",
    "merge_configs",
    # Options
    "CaptureOptions",
    "DevBrowserConfig",
    "GeometryOptions",
    "SessionOptions",
    # Store
    "STORE_KEY_AUTOSTART",
    "STORE_KEY_POSITION",
    "STORE_KEY_SIZE",
    "STORE_KEY_VIEWPORT",
    "JSONFileStore",
    "KeyValueStore",
    "MemoryStore",
    "PersistedBrowserConfig",
    "open_store",
]
