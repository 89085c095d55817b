"""
Tests for page helpers, screenshots and the clipboard.
"""

import base64
import subprocess

import pytest

from devbrowser.media import (
    ClipboardError,
    capture_element_screenshot,
    capture_screenshot,
    clipboard_commands,
    image_size,
    write_to_clipboard,
)
from devbrowser.models import ViewportMode
from devbrowser.page import (
    apply_viewport_emulation,
    evaluate_script,
    format_evaluation_result,
    format_performance_report,
    get_page_structure,
    inspect_element,
)

from fakes import FakeControlChannel, png_bytes


class TestEvaluationResult:
    """Tests for format_evaluation_result()."""

    def test_undefined(self):
        assert format_evaluation_result(None) == "undefined"

    def test_string_as_is(self):
        assert format_evaluation_result('say "hi"') == 'say "hi"'

    def test_scalars(self):
        assert format_evaluation_result(True) == "true"
        assert format_evaluation_result(False) == "false"
        assert format_evaluation_result(3.0) == "3"
        assert format_evaluation_result(2.5) == "2.5"
        assert format_evaluation_result(7) == "7"

    def test_json(self):
        assert format_evaluation_result({"ok": True, "items": [1, "é"]}) == '{"ok":true,"items":[1,"é"]}'

    @pytest.mark.asyncio
    async def test_evaluate_script_error(self):
        channel = FakeControlChannel(
            results={
                "Runtime.evaluate": {
                    "result": {},
                    "exceptionDetails": {"text": "Uncaught", "exception": {"description": "ReferenceError: y"}},
                }
            }
        )

        with pytest.raises(RuntimeError, match="ReferenceError: y"):
            await evaluate_script(channel, "y")

    @pytest.mark.asyncio
    async def test_evaluate_script_await_promise(self):
        channel = FakeControlChannel(evaluate=lambda expression: 42)

        assert await evaluate_script(channel, "Promise.resolve(42)", await_promise=True) == "42"
        assert channel.params_for("Runtime.evaluate")[0]["awaitPromise"] is True


class TestPerformanceReport:
    """Tests for format_performance_report()."""

    def test_full_report(self):
        metrics = {
            "heapUsed": 10485760,
            "heapTotal": 20971520,
            "heapLimit": 4294705152,
            "domInteractive": 120,
            "domLoaded": 150,
            "fullLoad": 300,
            "fp": 80,
            "fcp": 90,
            "domNodes": 245,
            "domDepth": 12,
            "resourceCount": 8,
            "totalTransferKB": 512,
            "wasmFiles": [{"name": "main.wasm", "size": 1024, "duration": 45}],
        }

        assert format_performance_report("http://localhost:8080/", metrics) == (
            "Performance: http://localhost:8080/\n"
            "Memory:    JS Heap 10.0/20.0 MB (limit 4095 MB)\n"
            "Timing:    Interactive 120ms | DOM Loaded 150ms | Full Load 300ms\n"
            "Paint:     FP 80ms | FCP 90ms\n"
            "DOM:       245 nodes | max depth 12\n"
            "WASM:      main.wasm 1024 KB (loaded in 45ms)\n"
            "Resources: 8 total | 512 KB transferred\n"
        )

    def test_partial_metrics(self):
        report = format_performance_report("http://x/", {"domLoaded": 50, "fcp": 70})

        assert report == "Performance: http://x/\nTiming:    DOM Loaded 50ms\nPaint:     FCP 70ms\n"


class TestStructure:
    """Tests for page structure and element inspection."""

    @pytest.mark.asyncio
    async def test_page_structure_header(self):
        def evaluate(expression):
            if "innerWidth" in expression and "location.href" in expression:
                return {"url": "http://localhost:8080/", "title": "App", "width": 1024, "height": 700}
            return '<div id="app">\n'

        channel = FakeControlChannel(evaluate=evaluate)

        assert await get_page_structure(channel) == (
            "URL: http://localhost:8080/\nTitle: App\nViewport: 1024x700\n\n<div id=\"app\">\n"
        )

    @pytest.mark.asyncio
    async def test_inspect_element(self):
        channel = FakeControlChannel(evaluate=lambda expression: '{"identity": {"tagName": "button"}}')

        report = await inspect_element(channel, "#save")

        assert report == 'Inspect Element: #save\n{"identity": {"tagName": "button"}}'
        assert channel.params_for("Runtime.evaluate")[0]["expression"].endswith('("#save")')


class TestEmulation:
    """Tests for apply_viewport_emulation()."""

    @pytest.mark.asyncio
    async def test_tablet(self):
        channel = FakeControlChannel()

        await apply_viewport_emulation(channel, ViewportMode.TABLET)

        assert channel.params_for("Emulation.setDeviceMetricsOverride") == [
            {"width": 768, "height": 1024, "deviceScaleFactor": 2, "mobile": True}
        ]
        assert channel.params_for("Emulation.setTouchEmulationEnabled") == [
            {"enabled": True, "maxTouchPoints": 5}
        ]

    @pytest.mark.asyncio
    async def test_desktop_has_no_touch(self):
        channel = FakeControlChannel()

        await apply_viewport_emulation(channel, ViewportMode.DESKTOP)

        assert channel.params_for("Emulation.setTouchEmulationEnabled") == [{"enabled": False}]

    @pytest.mark.asyncio
    async def test_off_clears_override(self):
        channel = FakeControlChannel()

        await apply_viewport_emulation(channel, ViewportMode.OFF)

        assert channel.methods() == [
            "Emulation.clearDeviceMetricsOverride",
            "Emulation.setTouchEmulationEnabled",
        ]


class TestScreenshot:
    """Tests for screenshot capture."""

    def screenshot_channel(self, data: bytes, **kwargs) -> FakeControlChannel:
        def evaluate(expression):
            if "location.href" in expression:
                return {"url": "http://localhost:8080/", "title": "App", "width": 1024, "height": 700}
            if "scrollIntoView" in expression:
                return {"x": 5, "y": 600, "width": 40, "height": 20}
            return "<body>\n"

        return FakeControlChannel(
            evaluate=evaluate,
            results={
                "Page.captureScreenshot": {"data": base64.b64encode(data).decode()},
                "Page.getLayoutMetrics": {"cssContentSize": {"width": 1024, "height": 3000}},
            },
            **kwargs,
        )

    def test_image_size(self):
        assert image_size(png_bytes(4, 3)) == (4, 3)
        assert image_size(b"not an image") == (0, 0)

    @pytest.mark.asyncio
    async def test_viewport_capture(self):
        data = png_bytes(8, 6)
        channel = self.screenshot_channel(data)

        result = await capture_screenshot(channel)

        assert result.image_data == data
        assert (result.image_width, result.image_height) == (8, 6)
        assert result.page_title == "App"
        assert (result.width, result.height) == (1024, 700)
        assert result.data_url.startswith("data:image/png;base64,")
        assert channel.params_for("Page.captureScreenshot") == [{"format": "png"}]

    @pytest.mark.asyncio
    async def test_full_page_clip(self):
        channel = self.screenshot_channel(png_bytes())

        await capture_screenshot(channel, full_page=True)

        params = channel.params_for("Page.captureScreenshot")[0]
        assert params["captureBeyondViewport"] is True
        assert (params["clip"]["width"], params["clip"]["height"]) == (1024, 3000)

    @pytest.mark.asyncio
    async def test_element_clip(self):
        channel = self.screenshot_channel(png_bytes())

        await capture_element_screenshot(channel, "#card")

        clip = channel.params_for("Page.captureScreenshot")[0]["clip"]
        assert (clip["x"], clip["y"], clip["width"], clip["height"]) == (5, 600, 40, 20)

    @pytest.mark.asyncio
    async def test_missing_element(self):
        channel = FakeControlChannel(evaluate=lambda expression: None)

        with pytest.raises(LookupError):
            await capture_element_screenshot(channel, "#gone")

    @pytest.mark.asyncio
    async def test_empty_buffer(self):
        channel = FakeControlChannel(results={"Page.captureScreenshot": {"data": ""}})

        with pytest.raises(RuntimeError, match="empty buffer"):
            await capture_screenshot(channel)


class TestClipboard:
    """Tests for the clipboard tool chain."""

    def test_commands_per_platform(self):
        assert clipboard_commands("image/png", "linux") == [
            ["wl-copy", "--type", "image/png"],
            ["xclip", "-selection", "clipboard", "-t", "image/png"],
        ]
        assert clipboard_commands("image/png", "darwin") == [["pbcopy"]]
        assert clipboard_commands("image/png", "win32") == []

    def test_unsupported_platform(self):
        with pytest.raises(ClipboardError, match="unsupported operating system"):
            write_to_clipboard(b"x", platform="win32")

    def test_falls_through_to_next_tool(self, monkeypatch):
        tried = []

        def run(command, **kwargs):
            tried.append(command[0])
            if command[0] == "wl-copy":
                raise FileNotFoundError(command[0])
            return subprocess.CompletedProcess(command, 0)

        monkeypatch.setattr(subprocess, "run", run)

        assert write_to_clipboard(b"png", platform="linux") == "xclip"
        assert tried == ["wl-copy", "xclip"]

    def test_no_tool_available(self, monkeypatch):
        def run(command, **kwargs):
            raise FileNotFoundError(command[0])

        monkeypatch.setattr(subprocess, "run", run)

        with pytest.raises(ClipboardError, match="clipboard tool not found"):
            write_to_clipboard(b"png", platform="linux")
