"""
MCP (Model Context Protocol) server for devbrowser.

Usage:
    # Run as standalone server
    python -m devbrowser.mcp

    # Or embed it
    from devbrowser.mcp import DevBrowserMCPServer
    server = DevBrowserMCPServer()
    await server.start()

Tools Available:
    - Management: browser_open, browser_close, browser_reload
    - Navigation: browser_navigate
    - Viewport: browser_set_viewport, browser_emulate_device
    - Telemetry: browser_get_console, browser_get_network_logs, browser_get_errors
    - Interaction: browser_evaluate_js, browser_click_element,
      browser_fill_element, browser_swipe_element
    - Inspection: browser_get_content, browser_inspect_element,
      browser_get_performance, browser_screenshot

Example MCP Configuration:
    ```json
    {
        "mcpServers": {
            "devbrowser": {
                "command": "python",
                "args": ["-m", "devbrowser.mcp"],
                "env": {"DEVBROWSER_PORT": "8080"}
            }
        }
    }
    ```
"""

from devbrowser.mcp.server import NOT_OPEN_MESSAGE, DevBrowserMCPServer
from devbrowser.mcp.tools import (
    ALL_TOOL_GROUPS,
    ALL_TOOLS,
    TOOL_DEFINITIONS,
    InspectionTools,
    InteractionTools,
    ManagementTools,
    NavigationTools,
    TelemetryTools,
    ToolInfo,
    ToolParameter,
    ViewportTools,
    get_tool,
)

__all__ = [
    "DevBrowserMCPServer",
    "NOT_OPEN_MESSAGE",
    "ToolInfo",
    "ToolParameter",
    "TOOL_DEFINITIONS",
    "ManagementTools",
    "NavigationTools",
    "ViewportTools",
    "TelemetryTools",
    "InteractionTools",
    "InspectionTools",
    "ALL_TOOLS",
    "ALL_TOOL_GROUPS",
    "get_tool",
]
