"""
Uncaught JavaScript error capture.
"""

from __future__ import annotations

from typing import Any, Optional

from devbrowser.events import Subscription
from devbrowser.interfaces import ControlChannel
from devbrowser.models import JSErrorEntry
from devbrowser.telemetry.buffer import LogBuffer


def format_js_error(error: JSErrorEntry) -> str:
    return (
        f"Error: {error.message}\n"
        f"  at {error.source}:{error.line_number}:{error.column_number}\n"
        f"{error.stack_trace}\n---"
    )


class ErrorCapture:
    """Records Runtime.exceptionThrown events as JSErrorEntry."""

    def __init__(self, max_entries: Optional[int] = None) -> None:
        self.buffer: LogBuffer[JSErrorEntry] = LogBuffer(max_entries)

    def attach(self, channel: ControlChannel) -> list[Subscription]:
        return [
            channel.on("Runtime.exceptionThrown", self.on_exception_thrown),
            channel.on("Runtime.executionContextsCleared", self.on_contexts_cleared),
        ]

    def on_exception_thrown(self, params: dict[str, Any]) -> None:
        details = params.get("exceptionDetails") or {}
        exception = details.get("exception") or {}
        self.buffer.append(
            JSErrorEntry(
                message=details.get("text", ""),
                source=details.get("url", ""),
                line_number=int(details.get("lineNumber", 0)),
                column_number=int(details.get("columnNumber", 0)),
                stack_trace=exception.get("description") or "",
            )
        )

    def on_contexts_cleared(self, params: dict[str, Any]) -> None:
        self.buffer.clear()

    def recent(self, limit: int = 20) -> list[JSErrorEntry]:
        return self.buffer.tail(limit) if limit >= 0 else self.buffer.get_all()
