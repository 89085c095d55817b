"""
Tests for console, network and JavaScript error capture.
"""

import pytest
import pytest_asyncio

from devbrowser.models import JSErrorEntry, NetworkLogEntry
from devbrowser.telemetry import (
    ConsoleCapture,
    ErrorCapture,
    LogBuffer,
    NetworkCapture,
    TelemetryCapture,
    format_js_error,
    format_network_entry,
    format_remote_object,
)
from devbrowser.telemetry.console import format_console_call, normalize_level

from fakes import MAIN_FRAME_ID, FakeControlChannel


def console_call(*args, level="log"):
    return {"type": level, "args": list(args)}


@pytest.fixture
def channel() -> FakeControlChannel:
    return FakeControlChannel()


@pytest_asyncio.fixture
async def capture(channel) -> TelemetryCapture:
    telemetry = TelemetryCapture()
    await telemetry.arm(channel)
    return telemetry


class TestLogBuffer:
    """Tests for LogBuffer."""

    def test_bounded(self):
        buffer = LogBuffer(3)
        buffer.extend(range(5))
        assert buffer.get_all() == [2, 3, 4]
        assert len(buffer) == 3

    def test_tail(self):
        buffer = LogBuffer()
        buffer.extend(["a", "b", "c"])
        assert buffer.tail(2) == ["b", "c"]

    def test_get_all_is_a_copy(self):
        buffer = LogBuffer()
        buffer.append(1)
        buffer.get_all().append(2)
        assert buffer.get_all() == [1]


class TestConsoleFormatting:
    """Tests for console argument rendering."""

    def test_string_without_quotes(self):
        assert format_remote_object({"type": "string", "value": "hello"}) == "hello"

    def test_json_values(self):
        assert format_remote_object({"type": "number", "value": 42}) == "42"
        assert format_remote_object({"type": "boolean", "value": True}) == "true"
        assert format_remote_object({"type": "object", "value": {"a": [1, 2]}}) == '{"a":[1,2]}'

    def test_description_fallback(self):
        assert format_remote_object({"type": "object", "description": "HTMLDivElement"}) == "HTMLDivElement"

    def test_undefined(self):
        assert format_remote_object({"type": "undefined"}) == "undefined"

    def test_arguments_joined_in_order(self):
        params = console_call(
            {"type": "string", "value": "count"},
            {"type": "number", "value": 3},
            {"type": "string", "value": "done"},
        )
        assert format_console_call(params) == "count 3 done"

    def test_levels(self):
        assert normalize_level("warn") == "warning"
        assert normalize_level("assert") == "error"
        assert normalize_level("verbose") == "debug"
        assert normalize_level(None) == "log"


class TestConsoleCapture:
    """Tests for ConsoleCapture."""

    @pytest.mark.asyncio
    async def test_console_calls(self, channel, capture):
        channel.emit("Runtime.consoleAPICalled", console_call({"type": "string", "value": "first"}))
        channel.emit(
            "Runtime.consoleAPICalled",
            console_call({"type": "string", "value": "second"}, level="error"),
        )

        assert capture.console.lines() == ["first", "second"]
        assert capture.console.lines("error") == ["second"]
        assert capture.console.lines("all") == ["first", "second"]

    @pytest.mark.asyncio
    async def test_exception_line(self, channel, capture):
        channel.emit(
            "Runtime.exceptionThrown",
            {
                "exceptionDetails": {
                    "text": "Uncaught",
                    "exception": {"description": "TypeError: x is undefined"},
                }
            },
        )

        assert capture.console.lines() == ["[Exception] Uncaught: TypeError: x is undefined"]

    @pytest.mark.asyncio
    async def test_log_entry_line(self, channel, capture):
        channel.emit(
            "Log.entryAdded",
            {"entry": {"level": "warning", "source": "network", "text": "Slow", "url": "http://x/a.js"}},
        )
        channel.emit("Log.entryAdded", {"entry": {"level": "info", "source": "other", "text": "Hi"}})

        assert capture.console.lines() == ["[warning] network: Slow (http://x/a.js)", "[info] other: Hi"]

    def test_detached_capture_ignores_events(self, channel):
        console = ConsoleCapture()
        for subscription in console.attach(channel):
            subscription.detach()

        channel.emit("Runtime.consoleAPICalled", console_call({"type": "string", "value": "late"}))

        assert console.lines() == []


class TestNetworkCapture:
    """Tests for NetworkCapture."""

    @pytest.fixture
    def network(self, channel) -> NetworkCapture:
        network = NetworkCapture()
        network.attach(channel)
        return network

    def request(self, channel, request_id, url, resource_type="XHR", method="GET", frame_id=MAIN_FRAME_ID):
        channel.emit(
            "Network.requestWillBeSent",
            {
                "requestId": request_id,
                "frameId": frame_id,
                "type": resource_type,
                "request": {"url": url, "method": method},
            },
        )

    def test_response_paired_with_request(self, channel, network):
        self.request(channel, "1", "http://localhost:8080/api", method="POST")
        channel.emit(
            "Network.responseReceived",
            {"requestId": "1", "type": "XHR", "response": {"url": "http://localhost:8080/api", "status": 201}},
        )

        [entry] = network.buffer.get_all()
        assert (entry.method, entry.status, entry.resource_type) == ("POST", 201, "XHR")
        assert entry.failed is False
        assert entry.duration_ms >= 0
        assert network.pending_count == 0

    def test_failure_keeps_request_url(self, channel, network):
        self.request(channel, "2", "http://localhost:8080/app.wasm", resource_type="Fetch")
        channel.emit(
            "Network.loadingFailed",
            {"requestId": "2", "type": "Fetch", "errorText": "net::ERR_FAILED"},
        )

        [entry] = network.buffer.get_all()
        assert entry.failed is True
        assert entry.url == "http://localhost:8080/app.wasm"
        assert entry.error_text == "net::ERR_FAILED"

    def test_unknown_response_ignored(self, channel, network):
        channel.emit("Network.responseReceived", {"requestId": "404", "response": {"status": 200}})

        assert len(network.buffer) == 0

    def test_document_request_starts_fresh_log(self, channel, network):
        self.request(channel, "1", "http://localhost:8080/api")
        channel.emit("Network.responseReceived", {"requestId": "1", "type": "XHR", "response": {"status": 200}})

        self.request(channel, "2", "http://localhost:8080/", resource_type="Document")

        assert network.buffer.get_all() == []
        assert network.pending_count == 1

    def test_iframe_document_keeps_log(self, channel, network):
        self.request(channel, "1", "http://localhost:8080/api")
        channel.emit("Network.responseReceived", {"requestId": "1", "type": "XHR", "response": {"status": 200}})

        self.request(channel, "2", "http://localhost:8080/embed", resource_type="Document", frame_id="child-frame")

        assert [e.url for e in network.buffer.get_all()] == ["http://localhost:8080/api"]
        assert network.pending_count == 1

    def test_navigation_drops_unanswered_requests(self, channel, network):
        self.request(channel, "1", "http://localhost:8080/slow")
        self.request(channel, "2", "http://localhost:8080/stream", resource_type="EventSource")
        assert network.pending_count == 2

        self.request(channel, "3", "http://localhost:8080/", resource_type="Document")

        assert network.pending_count == 1
        channel.emit("Network.responseReceived", {"requestId": "1", "type": "XHR", "response": {"status": 200}})
        assert len(network.buffer) == 0

    def test_main_frame_unknown(self):
        network = NetworkCapture()

        network.on_request_will_be_sent({"requestId": "1", "frameId": "any", "type": "Document", "request": {}})

        assert network.pending_count == 1
        assert network.is_top_level_document({"type": "Document", "frameId": "other"})
        assert not network.is_top_level_document({"type": "XHR"})

    def test_filter_and_limit(self, channel, network):
        for i, resource_type in enumerate(["XHR", "Script", "XHR", "XHR"]):
            self.request(channel, str(i), f"http://localhost:8080/{i}", resource_type=resource_type)
            channel.emit(
                "Network.responseReceived",
                {"requestId": str(i), "type": resource_type, "response": {"status": 200}},
            )

        assert [e.url for e in network.entries("xhr", limit=2)] == [
            "http://localhost:8080/2",
            "http://localhost:8080/3",
        ]
        assert len(network.entries("script")) == 1
        assert len(network.entries()) == 4

    def test_format(self):
        ok = NetworkLogEntry(url="http://x/api", method="GET", status=200, resource_type="XHR", duration_ms=12)
        failed = NetworkLogEntry(
            url="http://x/a.js",
            method="GET",
            resource_type="Script",
            duration_ms=3,
            failed=True,
            error_text="net::ERR_ABORTED",
        )

        assert format_network_entry(ok) == "200 GET http://x/api (12ms) [XHR] "
        assert format_network_entry(failed) == "Failed GET http://x/a.js (3ms) [Script] net::ERR_ABORTED"


class TestErrorCapture:
    """Tests for ErrorCapture."""

    def test_exception_recorded(self, channel):
        errors = ErrorCapture()
        errors.attach(channel)

        channel.emit(
            "Runtime.exceptionThrown",
            {
                "exceptionDetails": {
                    "text": "Uncaught ReferenceError",
                    "url": "http://localhost:8080/main.js",
                    "lineNumber": 10,
                    "columnNumber": 4,
                    "exception": {"description": "ReferenceError: foo is not defined\n    at main.js:10:4"},
                }
            },
        )

        [error] = errors.recent()
        assert error.message == "Uncaught ReferenceError"
        assert (error.line_number, error.column_number) == (10, 4)
        assert error.stack_trace.startswith("ReferenceError")

    def test_recent_limit(self, channel):
        errors = ErrorCapture()
        errors.attach(channel)
        for i in range(5):
            channel.emit("Runtime.exceptionThrown", {"exceptionDetails": {"text": f"e{i}"}})

        assert [e.message for e in errors.recent(2)] == ["e3", "e4"]

    def test_format(self):
        error = JSErrorEntry(
            message="Uncaught",
            source="app.js",
            line_number=1,
            column_number=2,
            stack_trace="trace",
        )
        assert format_js_error(error) == "Error: Uncaught\n  at app.js:1:2\ntrace\n---"


class TestTelemetryCapture:
    """Tests for arming and navigation behaviour."""

    @pytest.mark.asyncio
    async def test_arm_enables_domains(self, channel, capture):
        assert capture.armed
        for method in ("Runtime.enable", "Log.enable", "Network.enable"):
            assert method in channel.methods()
        assert "Network.setCacheDisabled" not in channel.methods()

    @pytest.mark.asyncio
    async def test_failed_domain_is_skipped(self):
        channel = FakeControlChannel(results={"Log.enable": RuntimeError("Log domain unavailable")})
        capture = TelemetryCapture()

        await capture.arm(channel)

        assert capture.armed
        assert "Network.enable" in channel.methods()

    @pytest.mark.asyncio
    async def test_navigation_clears_all_buffers(self, channel, capture):
        channel.emit("Runtime.consoleAPICalled", console_call({"type": "string", "value": "before"}))
        channel.emit("Runtime.exceptionThrown", {"exceptionDetails": {"text": "boom"}})
        channel.emit(
            "Network.requestWillBeSent",
            {"requestId": "1", "type": "XHR", "request": {"url": "http://x/api", "method": "GET"}},
        )
        channel.emit("Network.responseReceived", {"requestId": "1", "type": "XHR", "response": {"status": 200}})

        channel.emit("Runtime.executionContextsCleared", {})

        assert capture.console.lines() == []
        assert capture.errors.recent() == []
        assert capture.network.entries() == []

    @pytest.mark.asyncio
    async def test_disarm_detaches(self, channel, capture):
        capture.disarm()

        channel.emit("Runtime.consoleAPICalled", console_call({"type": "string", "value": "after"}))

        assert not capture.armed
        assert capture.console.lines() == []
        assert channel.events.listener_count() == 0
