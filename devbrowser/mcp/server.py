"""
MCP server implementation for devbrowser.

Exposes one DevBrowser session through the Model Context Protocol so an
agent can open the browser, read its console, network and error logs, and
drive the page. Every tool answers with a short status line; only
unexpected failures are reported as errors.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Union

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import CallToolResult, ImageContent, TextContent, Tool

from devbrowser.actions.interaction import click_element, fill_element, swipe_element
from devbrowser.errors import DevBrowserError
from devbrowser.mcp.tools import TOOL_DEFINITIONS
from devbrowser.media.clipboard import ClipboardError, write_to_clipboard
from devbrowser.media.screenshot import (
    ScreenshotResult,
    capture_element_screenshot,
    capture_screenshot,
)
from devbrowser.page.evaluate import evaluate_script
from devbrowser.page.performance import get_performance_report
from devbrowser.page.structure import get_page_structure, inspect_element
from devbrowser.session import DevBrowser
from devbrowser.telemetry.errors import format_js_error
from devbrowser.telemetry.network import format_network_entry

logger = logging.getLogger(__name__)

NOT_OPEN_MESSAGE = "Browser is not open. Please open it first with browser_open"

Content = Union[TextContent, ImageContent]
ToolResult = Union[str, list[Content]]


def _text(text: str) -> TextContent:
    return TextContent(type="text", text=text)


def _image(result: ScreenshotResult) -> ImageContent:
    return ImageContent(type="image", data=result.to_base64(), mimeType="image/png")


def _string_arg(args: dict[str, Any], name: str) -> Optional[str]:
    value = args.get(name)
    return value if isinstance(value, str) else None


def _number_arg(args: dict[str, Any], name: str, default: Optional[float] = None) -> Optional[float]:
    value = args.get(name)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return value


def _required(name: str) -> str:
    return f"{name.capitalize()} parameter is required"


class DevBrowserMCPServer:
    """MCP server for a devbrowser session.

    Example:
        >>> server = DevBrowserMCPServer(DevBrowser(load_config()))
        >>> await server.start()
    """

    def __init__(self, browser: Optional[DevBrowser] = None, name: str = "devbrowser"):
        """Initialize the MCP server.

        Args:
            browser: Session to control. A default session is created if omitted.
            name: Server name for identification.
        """
        self.name = name
        self.browser = browser or DevBrowser()
        self.server = Server(name)
        self._setup_tools()

    def _setup_tools(self) -> None:
        """Register the tool handlers with the server."""
        self.server.list_tools()(self._list_tools)
        self.server.call_tool()(self._call_tool)

    async def _list_tools(self) -> list[Tool]:
        """List all available tools."""
        return [
            Tool(name=info.name, description=info.description, inputSchema=info.to_input_schema())
            for info in TOOL_DEFINITIONS
        ]

    async def _call_tool(self, name: str, arguments: Optional[dict[str, Any]]) -> CallToolResult:
        """Handle tool calls."""
        args = arguments or {}
        try:
            handler = getattr(self, f"_tool_{name}", None)
            if not handler:
                return CallToolResult(content=[_text(f"Unknown tool: {name}")], isError=True)

            result = await handler(args)
            if isinstance(result, str):
                return CallToolResult(content=[_text(result)])
            return CallToolResult(content=list(result))

        except Exception as e:
            logger.exception(f"Tool {name} failed")
            return CallToolResult(content=[_text(f"Error: {str(e)}")], isError=True)

    def _not_open(self) -> Optional[str]:
        return None if self.browser.is_open else NOT_OPEN_MESSAGE

    # Lifecycle
    async def _tool_browser_open(self, args: dict) -> str:
        if self.browser.is_open:
            return "Browser is already open"

        port = _number_arg(args, "port")
        scheme = _string_arg(args, "scheme")
        opened = await self.browser.open(port=int(port) if port is not None else None, scheme=scheme)
        if not opened:
            if self.browser.last_error is not None:
                return f"Failed to open browser: {self.browser.last_error}"
            return f"Browser could not be opened ({self.browser.state.value})"
        return "Browser opened successfully"

    async def _tool_browser_close(self, args: dict) -> str:
        if not self.browser.is_open:
            return "Browser is already closed"
        try:
            await self.browser.close()
        except DevBrowserError as e:
            return f"Failed to close browser: {e}"
        return "Browser closed successfully"

    async def _tool_browser_reload(self, args: dict) -> str:
        if message := self._not_open():
            return message
        try:
            await self.browser.reload()
        except Exception as e:
            return f"Failed to reload browser: {e}"
        return "Browser reloaded successfully"

    # Navigation
    async def _tool_browser_navigate(self, args: dict) -> str:
        if message := self._not_open():
            return message
        url = _string_arg(args, "url")
        if not url:
            return "URL parameter is required"
        try:
            await self.browser.navigate(url)
        except Exception as e:
            return f"Error navigating to {url}: {e}"
        return f"Navigated to {url}"

    # Viewport
    async def _tool_browser_set_viewport(self, args: dict) -> str:
        if message := self._not_open():
            return message
        mode = _string_arg(args, "mode")
        if not mode:
            return _required("mode")
        try:
            width, height = await self.browser.set_viewport_preset(mode)
        except DevBrowserError as e:
            return f"Failed to set viewport: {e}"
        return f"Viewport set to {mode} ({width}x{height})"

    async def _tool_browser_emulate_device(self, args: dict) -> ToolResult:
        if message := self._not_open():
            return message
        mode = _string_arg(args, "mode")
        if not mode:
            return _required("mode")
        try:
            viewport = await self.browser.set_viewport_mode(mode)
        except DevBrowserError as e:
            return f"Failed to emulate device: {e}"

        status = f"Device emulation: {viewport.value}"
        selector = _string_arg(args, "selector")
        if not (args.get("capture") or selector):
            return status

        channel = self.browser.require_channel()
        try:
            if selector:
                shot = await capture_element_screenshot(channel, selector)
            else:
                shot = await capture_screenshot(channel)
        except Exception as e:
            return f"{status}\nFailed to capture screenshot: {e}"
        return [_text(status), _image(shot)]

    # Telemetry
    async def _tool_browser_get_console(self, args: dict) -> str:
        if message := self._not_open():
            return message
        lines = int(_number_arg(args, "lines", 50))
        logs = self.browser.get_console_logs(_string_arg(args, "level"))
        if not logs:
            return "No console logs available"
        if lines > 0:
            logs = logs[-lines:]
        return "\n".join(logs)

    async def _tool_browser_get_network_logs(self, args: dict) -> str:
        if message := self._not_open():
            return message
        resource_filter = (_string_arg(args, "filter") or "all").lower()
        limit = int(_number_arg(args, "limit", 50))
        entries = self.browser.filter_network_logs(resource_filter, limit)
        if not entries:
            if resource_filter == "all":
                return "No network requests captured"
            return f"No {resource_filter} requests found"
        return "\n".join(format_network_entry(entry) for entry in entries)

    async def _tool_browser_get_errors(self, args: dict) -> str:
        if message := self._not_open():
            return message
        limit = int(_number_arg(args, "limit", 20))
        errors = self.browser.get_js_errors()
        if not errors:
            return "No JavaScript errors captured"
        if 0 <= limit < len(errors):
            errors = errors[len(errors) - limit:]
        return "\n".join(format_js_error(error) for error in errors)

    # Interaction
    async def _tool_browser_evaluate_js(self, args: dict) -> str:
        if message := self._not_open():
            return message
        script = _string_arg(args, "script")
        if not script:
            return _required("script")
        try:
            return await evaluate_script(
                self.browser.require_channel(),
                script,
                await_promise=bool(args.get("await_promise", False)),
            )
        except Exception as e:
            return f"Error: {e}"

    async def _tool_browser_click_element(self, args: dict) -> str:
        if message := self._not_open():
            return message
        selector = _string_arg(args, "selector")
        if not selector:
            return _required("selector")
        wait_after = _number_arg(args, "wait_after", 100) / 1000
        timeout = _number_arg(args, "timeout", 5000) / 1000

        try:
            used_fallback = await click_element(
                self.browser.require_channel(), selector, wait_after=wait_after, timeout=timeout
            )
        except asyncio.TimeoutError:
            return f"Timeout exceeded waiting for element presence: {selector}"
        except Exception as e:
            return f"JS click fallback failed for {selector}: {e}"

        if used_fallback:
            return f"Clicked element (JS fallback): {selector}"
        return f"Clicked element: {selector}"

    async def _tool_browser_fill_element(self, args: dict) -> str:
        if message := self._not_open():
            return message
        selector = _string_arg(args, "selector")
        if not selector:
            return _required("selector")
        value = _string_arg(args, "value")
        if value is None:
            return _required("value")
        wait_after = _number_arg(args, "wait_after", 100) / 1000
        timeout = _number_arg(args, "timeout", 5000) / 1000

        try:
            await fill_element(
                self.browser.require_channel(), selector, value, wait_after=wait_after, timeout=timeout
            )
        except asyncio.TimeoutError:
            return f"Timeout exceeded waiting for element: {selector}"
        except Exception as e:
            return f"Error filling element {selector}: {e}"
        return f"Filled element {selector} with '{value}'"

    async def _tool_browser_swipe_element(self, args: dict) -> str:
        if message := self._not_open():
            return message
        selector = _string_arg(args, "selector")
        if not selector:
            return _required("selector")
        direction = _string_arg(args, "direction")
        if not direction:
            return _required("direction")
        distance = _number_arg(args, "distance")
        if distance is None:
            return _required("distance")

        try:
            await swipe_element(self.browser.require_channel(), selector, direction, int(distance))
        except Exception as e:
            return f"Error swiping element {selector}: {e}"
        return f"Swiped {direction} on {selector} by {int(distance)}px"

    # Inspection
    async def _tool_browser_get_content(self, args: dict) -> str:
        if message := self._not_open():
            return message
        try:
            return await get_page_structure(self.browser.require_channel())
        except Exception as e:
            return f"Failed to get page structure: {e}"

    async def _tool_browser_inspect_element(self, args: dict) -> str:
        if message := self._not_open():
            return message
        selector = _string_arg(args, "selector")
        if not selector:
            return _required("selector")
        try:
            return await inspect_element(self.browser.require_channel(), selector)
        except Exception as e:
            return f"Failed to inspect element: {e}"

    async def _tool_browser_get_performance(self, args: dict) -> str:
        if message := self._not_open():
            return message
        try:
            return await get_performance_report(self.browser.require_channel())
        except Exception as e:
            return f"Failed to get performance metrics: {e}"

    async def _tool_browser_screenshot(self, args: dict) -> ToolResult:
        if message := self._not_open():
            return message
        channel = self.browser.require_channel()
        selector = _string_arg(args, "selector")
        try:
            if selector:
                shot = await capture_element_screenshot(channel, selector)
            else:
                shot = await capture_screenshot(channel, full_page=bool(args.get("fullpage", False)))
        except Exception as e:
            return f"Failed to capture screenshot: {e}"

        status = f"Screenshot: {shot.page_url or 'unknown page'} ({shot.image_width}x{shot.image_height})"
        if args.get("copy_to_clipboard"):
            try:
                tool = await asyncio.to_thread(write_to_clipboard, shot.image_data)
                status += f"\nCopied to clipboard with {tool}"
            except ClipboardError as e:
                status += f"\nClipboard copy failed: {e}"
        return [_text(status), _image(shot)]

    async def start(self) -> None:
        """Start the MCP server on stdio. Closes the browser on exit."""
        try:
            async with stdio_server() as (read_stream, write_stream):
                await self.server.run(
                    read_stream,
                    write_stream,
                    self.server.create_initialization_options(),
                )
        finally:
            if self.browser.is_open:
                await self.browser.close()
