"""
Telemetry capture for devbrowser.

- ConsoleCapture: console calls, uncaught exceptions and browser log entries
- NetworkCapture: request/response pairs with status, type and duration
- ErrorCapture: uncaught JavaScript errors with location and stack
- TelemetryCapture: arms all three on a control channel
"""

from devbrowser.telemetry.buffer import LogBuffer
from devbrowser.telemetry.capture import TelemetryCapture
from devbrowser.telemetry.console import CONSOLE_LEVELS, ConsoleCapture, format_remote_object
from devbrowser.telemetry.errors import ErrorCapture, format_js_error
from devbrowser.telemetry.network import NETWORK_FILTERS, NetworkCapture, format_network_entry

__all__ = [
    "CONSOLE_LEVELS",
    "ConsoleCapture",
    "ErrorCapture",
    "LogBuffer",
    "NETWORK_FILTERS",
    "NetworkCapture",
    "TelemetryCapture",
    "format_js_error",
    "format_network_entry",
    "format_remote_object",
]
