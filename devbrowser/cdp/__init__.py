"""
Chrome DevTools Protocol (CDP) module for devbrowser.

- CDPConnection: WebSocket connection to Chrome/Chromium
- BrowserProcess: Manages browser process lifecycle
- CDPControlChannel: ControlChannel bound to the first page of a launched browser

Example usage:
    ```python
    from devbrowser.cdp import CDPControlChannel, LaunchOptions

    channel = CDPControlChannel()
    await channel.start(LaunchOptions(headless=True))
    await channel.navigate("http://localhost:8080/")
    print(await channel.title())
    await channel.cancel()
    ```
"""

from devbrowser.cdp.channel import CDPControlChannel
from devbrowser.cdp.connection import (
    CDPConnection,
    CDPError,
)
from devbrowser.cdp.launcher import (
    BrowserProcess,
    LaunchOptions,
    build_args,
    find_browser_executable,
)

__all__ = [
    # Connection
    "CDPConnection",
    "CDPError",
    # Launcher
    "BrowserProcess",
    "LaunchOptions",
    "build_args",
    "find_browser_executable",
    # Channel
    "CDPControlChannel",
]
