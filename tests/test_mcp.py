"""
Tests for the devbrowser MCP server.
"""

import base64

import pytest
import pytest_asyncio

from devbrowser import session as session_module
from devbrowser.config import DevBrowserConfig, GeometryOptions, MemoryStore
from devbrowser.geometry import StaticDisplayDetector
from devbrowser.mcp import ALL_TOOLS, NOT_OPEN_MESSAGE, DevBrowserMCPServer, get_tool
from devbrowser.session import DevBrowser

from fakes import FakeChannelFactory, png_bytes


@pytest.fixture(autouse=True)
def no_ready_delay(monkeypatch):
    monkeypatch.setattr(session_module, "READY_SETTLE_DELAY", 0)


@pytest.fixture
def factory() -> FakeChannelFactory:
    return FakeChannelFactory()


@pytest_asyncio.fixture
async def server(factory):
    browser = DevBrowser(
        config=DevBrowserConfig(geometry=GeometryOptions(settle_delay=60, poll_interval=60)),
        store=MemoryStore(),
        detector=StaticDisplayDetector(1920, 1080),
        channel_factory=factory,
    )
    server = DevBrowserMCPServer(browser)
    yield server
    if browser.is_open:
        await browser.close()


@pytest_asyncio.fixture
async def opened(server):
    result = await server._call_tool("browser_open", {})
    assert result.content[0].text == "Browser opened successfully"
    return server


async def call(server, name, arguments=None) -> str:
    result = await server._call_tool(name, arguments)
    assert not result.isError
    return result.content[0].text


class TestToolListing:
    """Tests for tool metadata."""

    @pytest.mark.asyncio
    async def test_list_tools(self, server):
        tools = await server._list_tools()

        assert len(tools) == 17
        assert {tool.name for tool in tools} == set(ALL_TOOLS)

    @pytest.mark.asyncio
    async def test_required_fields(self, server):
        schemas = {tool.name: tool.inputSchema for tool in await server._list_tools()}

        assert schemas["browser_navigate"]["required"] == ["url"]
        assert schemas["browser_click_element"]["required"] == ["selector"]
        assert set(schemas["browser_swipe_element"]["required"]) == {"selector", "direction", "distance"}
        assert "required" not in schemas["browser_open"]

    def test_get_tool(self):
        assert get_tool("browser_screenshot").name == "browser_screenshot"
        assert get_tool("browser_teleport") is None


class TestNotOpen:
    """Tools that need an open browser refuse politely."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "name",
        [tool for tool in ALL_TOOLS if tool not in ("browser_open", "browser_close")],
    )
    async def test_not_open_message(self, server, name):
        assert await call(server, name, {"selector": "#a", "url": "http://x/"}) == NOT_OPEN_MESSAGE

    @pytest.mark.asyncio
    async def test_close_when_closed(self, server):
        assert await call(server, "browser_close") == "Browser is already closed"

    @pytest.mark.asyncio
    async def test_unknown_tool(self, server):
        result = await server._call_tool("browser_teleport", {})

        assert result.isError
        assert result.content[0].text == "Unknown tool: browser_teleport"


class TestLifecycle:
    """Tests for open, close and reload."""

    @pytest.mark.asyncio
    async def test_open_twice(self, opened):
        assert await call(opened, "browser_open") == "Browser is already open"

    @pytest.mark.asyncio
    async def test_open_with_port(self, server, factory):
        await call(server, "browser_open", {"port": 5173, "scheme": "https"})

        assert factory.last.params_for("Page.navigate") == [{"url": "https://localhost:5173/"}]

    @pytest.mark.asyncio
    async def test_open_failure(self):
        browser = DevBrowser(
            store=MemoryStore(),
            detector=StaticDisplayDetector(),
            channel_factory=FakeChannelFactory(start_error=RuntimeError("no chrome")),
        )
        server = DevBrowserMCPServer(browser)

        assert await call(server, "browser_open") == "Failed to open browser: no chrome"

    @pytest.mark.asyncio
    async def test_close(self, opened):
        assert await call(opened, "browser_close") == "Browser closed successfully"
        assert not opened.browser.is_open

    @pytest.mark.asyncio
    async def test_navigate(self, opened, factory):
        assert await call(opened, "browser_navigate", {"url": "http://localhost:8080/about"}) == (
            "Navigated to http://localhost:8080/about"
        )
        assert factory.last.params_for("Page.navigate")[-1] == {"url": "http://localhost:8080/about"}

    @pytest.mark.asyncio
    async def test_navigate_needs_url(self, opened):
        assert await call(opened, "browser_navigate") == "URL parameter is required"


class TestTelemetryTools:
    """Tests for console, network and error tools."""

    @pytest.mark.asyncio
    async def test_empty_logs(self, opened):
        assert await call(opened, "browser_get_console") == "No console logs available"
        assert await call(opened, "browser_get_network_logs") == "No network requests captured"
        assert await call(opened, "browser_get_network_logs", {"filter": "xhr"}) == "No xhr requests found"
        assert await call(opened, "browser_get_errors") == "No JavaScript errors captured"

    @pytest.mark.asyncio
    async def test_console_lines(self, opened, factory):
        for text in ("one", "two", "three"):
            factory.last.emit(
                "Runtime.consoleAPICalled",
                {"type": "log", "args": [{"type": "string", "value": text}]},
            )

        assert await call(opened, "browser_get_console", {"lines": 2}) == "two\nthree"

    @pytest.mark.asyncio
    async def test_network_logs(self, opened, factory):
        channel = factory.last
        channel.emit(
            "Network.requestWillBeSent",
            {"requestId": "9", "type": "Fetch", "request": {"url": "http://localhost:8080/data", "method": "GET"}},
        )
        channel.emit("Network.responseReceived", {"requestId": "9", "type": "Fetch", "response": {"status": 200}})

        text = await call(opened, "browser_get_network_logs", {"filter": "fetch"})

        assert text.startswith("200 GET http://localhost:8080/data")

    @pytest.mark.asyncio
    async def test_errors(self, opened, factory):
        factory.last.emit("Runtime.exceptionThrown", {"exceptionDetails": {"text": "Uncaught boom"}})

        assert (await call(opened, "browser_get_errors")).startswith("Error: Uncaught boom")


class TestPageTools:
    """Tests for viewport, interaction and inspection tools."""

    @pytest.mark.asyncio
    async def test_set_viewport(self, opened):
        assert await call(opened, "browser_set_viewport", {"mode": "mobile"}) == "Viewport set to mobile (375x812)"

    @pytest.mark.asyncio
    async def test_set_viewport_unknown_mode(self, opened):
        assert (await call(opened, "browser_set_viewport", {"mode": "watch"})).startswith("Failed to set viewport")

    @pytest.mark.asyncio
    async def test_emulate_device(self, opened, factory):
        assert await call(opened, "browser_emulate_device", {"mode": "tablet"}) == "Device emulation: tablet"
        assert factory.last.params_for("Emulation.setDeviceMetricsOverride")[-1]["width"] == 768

    @pytest.mark.asyncio
    async def test_evaluate(self, opened):
        assert await call(opened, "browser_evaluate_js", {"script": "document.readyState === 'complete'"}) == "true"

    @pytest.mark.asyncio
    async def test_selector_required(self, opened):
        for name in ("browser_click_element", "browser_fill_element", "browser_inspect_element"):
            assert await call(opened, name) == "Selector parameter is required"

    @pytest.mark.asyncio
    async def test_swipe_needs_distance(self, opened):
        text = await call(opened, "browser_swipe_element", {"selector": "#a", "direction": "up"})

        assert text == "Distance parameter is required"

    @pytest.mark.asyncio
    async def test_screenshot(self, opened, factory):
        data = png_bytes(6, 4)
        factory.last.results["Page.captureScreenshot"] = {"data": base64.b64encode(data).decode()}

        result = await opened._call_tool("browser_screenshot", {})

        text, image = result.content
        assert text.text.endswith("(6x4)")
        assert image.mimeType == "image/png"
        assert base64.b64decode(image.data) == data

    @pytest.mark.asyncio
    async def test_tool_exception_is_error(self, opened, monkeypatch):
        def broken(resource_filter="all", limit=50):
            raise KeyError("buffer gone")

        monkeypatch.setattr(opened.browser, "filter_network_logs", broken)

        result = await opened._call_tool("browser_get_network_logs", {})

        assert result.isError
        assert result.content[0].text.startswith("Error:")
