"""
Console capture.

Turns Runtime.consoleAPICalled, Runtime.exceptionThrown and Log.entryAdded
events into one text line each.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from devbrowser.events import Subscription
from devbrowser.interfaces import ControlChannel
from devbrowser.models import ConsoleLogEntry
from devbrowser.telemetry.buffer import LogBuffer

logger = logging.getLogger(__name__)

CONSOLE_LEVELS = ("log", "debug", "info", "warning", "error")


def format_remote_object(arg: dict[str, Any]) -> str:
    """Render one console argument.

    Strings lose their quotes, other values use their JSON form and
    objects without a value fall back to their description.
    """
    if "value" in arg:
        value = arg["value"]
        if isinstance(value, str):
            return value
        return json.dumps(value, separators=(",", ":"))
    if arg.get("unserializableValue"):
        return str(arg["unserializableValue"])
    if arg.get("description"):
        return str(arg["description"])
    if arg.get("type") == "undefined":
        return "undefined"
    return ""


def format_console_call(params: dict[str, Any]) -> str:
    """Join every argument of a console call with single spaces."""
    return " ".join(format_remote_object(arg) for arg in params.get("args", []))


def format_exception(params: dict[str, Any]) -> str:
    details = params.get("exceptionDetails") or {}
    message = f"[Exception] {details.get('text', '')}"
    description = (details.get("exception") or {}).get("description")
    if description:
        message += f": {description}"
    return message


def format_log_entry(params: dict[str, Any]) -> str:
    entry = params.get("entry") or {}
    message = f"[{entry.get('level', '')}] {entry.get('source', '')}: {entry.get('text', '')}"
    if entry.get("url"):
        message += f" ({entry['url']})"
    return message


def normalize_level(level: Optional[str]) -> str:
    """Map console API and Log domain levels onto CONSOLE_LEVELS."""
    level = (level or "log").lower()
    if level in ("warn", "warning"):
        return "warning"
    if level in ("error", "assert"):
        return "error"
    if level in ("debug", "verbose", "trace"):
        return "debug"
    if level == "info":
        return "info"
    return "log"


class ConsoleCapture:
    """Console listener. Cleared whenever the execution contexts are torn down."""

    def __init__(self, max_entries: Optional[int] = None) -> None:
        self.buffer: LogBuffer[ConsoleLogEntry] = LogBuffer(max_entries)

    def attach(self, channel: ControlChannel) -> list[Subscription]:
        return [
            channel.on("Runtime.consoleAPICalled", self.on_console_api_called),
            channel.on("Runtime.exceptionThrown", self.on_exception_thrown),
            channel.on("Log.entryAdded", self.on_log_entry_added),
            channel.on("Runtime.executionContextsCleared", self.on_contexts_cleared),
        ]

    def on_console_api_called(self, params: dict[str, Any]) -> None:
        self.buffer.append(
            ConsoleLogEntry(level=normalize_level(params.get("type")), text=format_console_call(params))
        )

    def on_exception_thrown(self, params: dict[str, Any]) -> None:
        self.buffer.append(ConsoleLogEntry(level="error", text=format_exception(params)))

    def on_log_entry_added(self, params: dict[str, Any]) -> None:
        level = (params.get("entry") or {}).get("level")
        self.buffer.append(ConsoleLogEntry(level=normalize_level(level), text=format_log_entry(params)))

    def on_contexts_cleared(self, params: dict[str, Any]) -> None:
        self.buffer.clear()

    def lines(self, level: Optional[str] = None) -> list[str]:
        """Captured lines, optionally only one normalized level."""
        entries = self.buffer.get_all()
        if level and level != "all":
            wanted = normalize_level(level)
            entries = [e for e in entries if e.level == wanted]
        return [e.text for e in entries]
