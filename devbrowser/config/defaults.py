"""
Default configuration values for devbrowser.

This module contains all default values used throughout the configuration system.
"""

# Session defaults
DEFAULT_HOST = "localhost"
DEFAULT_PORT = 8080
DEFAULT_SCHEME = "http"
DEFAULT_PATH = "/"
DEFAULT_HEADLESS = False
DEFAULT_CACHE_ENABLED = True
DEFAULT_AUTO_OPEN_DEVTOOLS = True
DEFAULT_LAUNCH_TIMEOUT = 30.0
DEFAULT_NAVIGATION_TIMEOUT = 30.0

# Geometry defaults
DEFAULT_WINDOW_WIDTH = 1024
DEFAULT_WINDOW_HEIGHT = 768
DEFAULT_WINDOW_POSITION = "0,0"
DEFAULT_SETTLE_DELAY = 3.0
DEFAULT_POLL_INTERVAL = 2.0

# Capture defaults
DEFAULT_MAX_CONSOLE_ENTRIES = 2000
DEFAULT_MAX_NETWORK_ENTRIES = 1000
DEFAULT_MAX_ERROR_ENTRIES = 500

# Environment variable prefix
ENV_PREFIX = "DEVBROWSER_"

# Config file settings
DEFAULT_CONFIG_FILENAME = "devbrowser"
DEFAULT_CONFIG_EXTENSIONS = [".yaml", ".yml", ".json", ".toml"]
DEFAULT_CONFIG_SEARCH_PATHS = [
    ".",
    "~/.config/devbrowser",
]
