"""
MCP tool definitions for devbrowser.

Tool metadata is declared once here; the server turns each ToolInfo into an
MCP Tool and dispatches calls to a ``_tool_<name>`` handler.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from devbrowser.actions.interaction import SWIPE_DIRECTIONS
from devbrowser.geometry.engine import PRESET_SIZES
from devbrowser.models import ViewportMode
from devbrowser.telemetry.console import CONSOLE_LEVELS
from devbrowser.telemetry.network import NETWORK_FILTERS


@dataclass
class ToolParameter:
    """One argument of a tool."""

    name: str
    description: str
    type: str = "string"
    required: bool = False
    default: Any = None
    enum: Optional[list[str]] = None

    def to_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {"type": self.type, "description": self.description}
        if self.enum:
            schema["enum"] = list(self.enum)
        if self.default is not None:
            schema["default"] = self.default
        return schema


@dataclass
class ToolInfo:
    """Tool metadata."""

    name: str
    description: str
    parameters: list[ToolParameter] = field(default_factory=list)

    def to_input_schema(self) -> dict[str, Any]:
        """JSON schema for the tool's arguments."""
        schema: dict[str, Any] = {
            "type": "object",
            "properties": {p.name: p.to_schema() for p in self.parameters},
        }
        required = [p.name for p in self.parameters if p.required]
        if required:
            schema["required"] = required
        return schema


_VIEWPORT_MODES = [mode.value for mode in ViewportMode]
_SELECTOR_TIMEOUT = ToolParameter(
    "timeout",
    "Maximum milliseconds to wait for the element to be visible",
    type="number",
    default=5000,
)


class ManagementTools:
    """Browser lifecycle tools.

    Tools:
        - browser_open: Launch the browser at the app URL
        - browser_close: Close the browser
        - browser_reload: Reload the current page
    """

    TOOLS = ["browser_open", "browser_close", "browser_reload"]


class NavigationTools:
    """Navigation tools.

    Tools:
        - browser_navigate: Go to URL
    """

    TOOLS = ["browser_navigate"]


class ViewportTools:
    """Window size and device emulation tools.

    Tools:
        - browser_set_viewport: Resize the window to a device preset
        - browser_emulate_device: Switch device emulation, optionally capturing
    """

    TOOLS = ["browser_set_viewport", "browser_emulate_device"]


class TelemetryTools:
    """Console, network and error log tools.

    Tools:
        - browser_get_console: Recent console lines
        - browser_get_network_logs: Completed and failed requests
        - browser_get_errors: Uncaught exceptions with stack traces
    """

    TOOLS = ["browser_get_console", "browser_get_network_logs", "browser_get_errors"]


class InteractionTools:
    """Script and element interaction tools.

    Tools:
        - browser_evaluate_js: Run JavaScript in the page
        - browser_click_element: Click element
        - browser_fill_element: Type into a field
        - browser_swipe_element: Drag across an element
    """

    TOOLS = [
        "browser_evaluate_js",
        "browser_click_element",
        "browser_fill_element",
        "browser_swipe_element",
    ]


class InspectionTools:
    """Page content and diagnostics tools.

    Tools:
        - browser_get_content: Text outline of the visible DOM
        - browser_inspect_element: Computed box model and styles
        - browser_get_performance: Memory, timing and resource report
        - browser_screenshot: Capture page or element
    """

    TOOLS = [
        "browser_get_content",
        "browser_inspect_element",
        "browser_get_performance",
        "browser_screenshot",
    ]


# All tool groups
ALL_TOOL_GROUPS = [
    ManagementTools,
    NavigationTools,
    ViewportTools,
    TelemetryTools,
    InteractionTools,
    InspectionTools,
]

# Flat list of all tools
ALL_TOOLS: list[str] = []
for group in ALL_TOOL_GROUPS:
    ALL_TOOLS.extend(group.TOOLS)


TOOL_DEFINITIONS: list[ToolInfo] = [
    # Lifecycle
    ToolInfo(
        name="browser_open",
        description=(
            "Open the development browser pointing at the local app server to test "
            "the full stack (backend + frontend)."
        ),
        parameters=[
            ToolParameter("port", "Port of the local app server", type="number"),
            ToolParameter("scheme", "URL scheme", enum=["http", "https"]),
        ],
    ),
    ToolInfo(
        name="browser_close",
        description="Close the development browser and clean up resources when done testing or to restart fresh.",
    ),
    ToolInfo(
        name="browser_reload",
        description="Reload the page to see the latest asset changes without a full browser restart.",
    ),
    # Navigation
    ToolInfo(
        name="browser_navigate",
        description="Navigate the browser to a specific URL",
        parameters=[
            ToolParameter(
                "url",
                "Complete URL (including http:// or https://)",
                required=True,
            ),
        ],
    ),
    # Viewport
    ToolInfo(
        name="browser_set_viewport",
        description=(
            "Resize the browser window to a device preset, fitted to the current display. "
            "The size is saved for the next launch."
        ),
        parameters=[
            ToolParameter(
                "mode",
                "Device preset",
                required=True,
                enum=sorted(PRESET_SIZES),
            ),
        ],
    ),
    ToolInfo(
        name="browser_emulate_device",
        description=(
            "Emulate a device (screen metrics, touch) in the page, or turn emulation off. "
            "Optionally capture a screenshot of the result."
        ),
        parameters=[
            ToolParameter("mode", "Emulation mode", required=True, enum=_VIEWPORT_MODES),
            ToolParameter(
                "capture",
                "Capture a screenshot after switching",
                type="boolean",
                default=False,
            ),
            ToolParameter("selector", "Capture only this element (implies capture)"),
        ],
    ),
    # Telemetry
    ToolInfo(
        name="browser_get_console",
        description=(
            "Get browser JavaScript console logs to debug runtime errors, console.log "
            "output, or frontend issues."
        ),
        parameters=[
            ToolParameter("lines", "Number of recent entries to retrieve", type="number", default=50),
            ToolParameter(
                "level",
                "Only entries of this level",
                enum=["all", *CONSOLE_LEVELS],
                default="all",
            ),
        ],
    ),
    ToolInfo(
        name="browser_get_network_logs",
        description=(
            "Get network requests and responses to debug API calls, asset loading "
            "failures, CORS errors, or slow requests. Shows URL, status, method and timing."
        ),
        parameters=[
            ToolParameter(
                "filter",
                "Filter by request type",
                enum=list(NETWORK_FILTERS),
                default="all",
            ),
            ToolParameter("limit", "Maximum number of recent requests to return", type="number", default=50),
        ],
    ),
    ToolInfo(
        name="browser_get_errors",
        description=(
            "Get JavaScript runtime errors and uncaught exceptions with stack traces "
            "to quickly identify crashes or bugs."
        ),
        parameters=[
            ToolParameter("limit", "Maximum number of recent errors to return", type="number", default=20),
        ],
    ),
    # Interaction
    ToolInfo(
        name="browser_evaluate_js",
        description=(
            "Execute JavaScript in the page to inspect the DOM, call exported functions, "
            "or debug application state. Returns the result or the error."
        ),
        parameters=[
            ToolParameter("script", "JavaScript code to execute in browser context", required=True),
            ToolParameter(
                "await_promise",
                "Wait for Promise resolution if script returns Promise",
                type="boolean",
                default=False,
            ),
        ],
    ),
    ToolInfo(
        name="browser_click_element",
        description="Click a DOM element by CSS selector to test buttons, links and interactive components.",
        parameters=[
            ToolParameter(
                "selector",
                "CSS selector for element to click (e.g., '#submit-btn', '.nav-item')",
                required=True,
            ),
            ToolParameter(
                "wait_after",
                "Milliseconds to wait after click for effects to complete",
                type="number",
                default=100,
            ),
            _SELECTOR_TIMEOUT,
        ],
    ),
    ToolInfo(
        name="browser_fill_element",
        description="Fill a form field (input, textarea) with text. Simulates typing.",
        parameters=[
            ToolParameter("selector", "CSS selector for the input element (e.g., '#username')", required=True),
            ToolParameter("value", "Text value to enter", required=True),
            ToolParameter("wait_after", "Milliseconds to wait after typing", type="number", default=100),
            _SELECTOR_TIMEOUT,
        ],
    ),
    ToolInfo(
        name="browser_swipe_element",
        description="Simulate a swipe gesture on an element (up, down, left, right).",
        parameters=[
            ToolParameter("selector", "CSS selector for the element to swipe on", required=True),
            ToolParameter("direction", "Direction of swipe", required=True, enum=list(SWIPE_DIRECTIONS)),
            ToolParameter("distance", "Distance in pixels to swipe", type="number", required=True),
        ],
    ),
    # Inspection
    ToolInfo(
        name="browser_get_content",
        description=(
            "Get a text outline of the visible page, optimized for reading by a model. "
            "Far fewer tokens than a screenshot."
        ),
    ),
    ToolInfo(
        name="browser_inspect_element",
        description=(
            "Inspect an element like DevTools: box model, position, layout, "
            "typography and accessibility info."
        ),
        parameters=[
            ToolParameter(
                "selector",
                "CSS selector of the element to inspect (e.g., '#my-id', 'div.container')",
                required=True,
            ),
        ],
    ),
    ToolInfo(
        name="browser_get_performance",
        description=(
            "Get page performance metrics (memory, timing, DOM stats, WASM resources) "
            "as a compact text report."
        ),
    ),
    ToolInfo(
        name="browser_screenshot",
        description=(
            "Capture a PNG screenshot of the viewport, the full page, or one element "
            "to verify rendering and layout."
        ),
        parameters=[
            ToolParameter(
                "fullpage",
                "Capture full page height instead of viewport only",
                type="boolean",
                default=False,
            ),
            ToolParameter("selector", "Capture only this element"),
            ToolParameter(
                "copy_to_clipboard",
                "Also copy the image to the system clipboard",
                type="boolean",
                default=False,
            ),
        ],
    ),
]


def get_tool(name: str) -> Optional[ToolInfo]:
    for tool in TOOL_DEFINITIONS:
        if tool.name == name:
            return tool
    return None
