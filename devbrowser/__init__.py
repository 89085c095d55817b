"""
devbrowser: a controlled development browser for local web apps.

Opens a Chromium-family browser at the app under development, remembers
where its window was, fits it to the monitor, and captures console,
network and JavaScript error telemetry for tooling and agents.

Basic usage:
    from devbrowser import DevBrowser, load_config

    browser = DevBrowser(load_config())
    await browser.open(port=8080)
    print("\\n".join(browser.get_console_logs()))
    await browser.close()

Agent usage (MCP over stdio):
    python -m devbrowser.mcp
"""

__version__ = "0.1.0"
__license__ = "MIT"

from devbrowser.errors import (
    ConfigValidationError,
    ContextNotInitializedError,
    DevBrowserError,
    LaunchError,
    SessionClosedError,
    SessionStateError,
    UnknownModeError,
)

from devbrowser.models import (
    ConsoleLogEntry,
    DisplayBounds,
    JSErrorEntry,
    NetworkLogEntry,
    SessionState,
    ViewportMode,
    WindowBounds,
    WindowGeometry,
)

from devbrowser.interfaces import (
    ControlChannel,
    NullUserInterface,
    UserInterface,
)

from devbrowser.events import (
    EventEmitter,
    Subscription,
    SubscriptionGroup,
)

from devbrowser.config import (
    DevBrowserConfig,
    JSONFileStore,
    KeyValueStore,
    MemoryStore,
    load_config,
    open_store,
)

from devbrowser.cdp import (
    CDPControlChannel,
    CDPError,
    LaunchOptions,
)

from devbrowser.geometry import (
    DisplayDetector,
    GeometryEngine,
    GeometryMonitor,
    PillowDisplayDetector,
    StaticDisplayDetector,
    constrain_size,
)

from devbrowser.telemetry import TelemetryCapture

from devbrowser.session import DevBrowser

__all__ = [
    # Version
    "__version__",
    # Session
    "DevBrowser",
    # Errors
    "DevBrowserError",
    "ContextNotInitializedError",
    "SessionClosedError",
    "SessionStateError",
    "LaunchError",
    "ConfigValidationError",
    "UnknownModeError",
    # Models
    "SessionState",
    "ViewportMode",
    "DisplayBounds",
    "WindowBounds",
    "WindowGeometry",
    "ConsoleLogEntry",
    "NetworkLogEntry",
    "JSErrorEntry",
    # Interfaces
    "ControlChannel",
    "UserInterface",
    "NullUserInterface",
    # Events
    "EventEmitter",
    "Subscription",
    "SubscriptionGroup",
    # Config
    "DevBrowserConfig",
    "KeyValueStore",
    "MemoryStore",
    "JSONFileStore",
    "load_config",
    "open_store",
    # CDP
    "CDPControlChannel",
    "CDPError",
    "LaunchOptions",
    # Geometry
    "DisplayDetector",
    "PillowDisplayDetector",
    "StaticDisplayDetector",
    "GeometryEngine",
    "GeometryMonitor",
    "constrain_size",
    # Telemetry
    "TelemetryCapture",
]
