"""
Network capture.

Pairs Network.requestWillBeSent with Network.responseReceived or
Network.loadingFailed to produce one NetworkLogEntry per request.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Optional

from devbrowser.events import Subscription
from devbrowser.interfaces import ControlChannel
from devbrowser.models import NetworkLogEntry
from devbrowser.telemetry.buffer import LogBuffer

logger = logging.getLogger(__name__)

NETWORK_FILTERS = ("all", "xhr", "fetch", "document", "script", "image")


@dataclass
class _PendingRequest:
    method: str
    url: str
    started: float


def format_network_entry(entry: NetworkLogEntry) -> str:
    """Render as "<status|Failed> METHOD URL (Nms) [type] error"."""
    status = "Failed" if entry.failed else str(entry.status)
    return (
        f"{status} {entry.method} {entry.url} ({entry.duration_ms}ms) "
        f"[{entry.resource_type}] {entry.error_text}"
    )


class NetworkCapture:
    """Network listener.

    A new top-level document request starts a fresh log, as does an
    execution context teardown.
    """

    def __init__(self, max_entries: Optional[int] = None) -> None:
        self.buffer: LogBuffer[NetworkLogEntry] = LogBuffer(max_entries)
        self._pending: dict[str, _PendingRequest] = {}
        self._pending_lock = threading.Lock()
        self._main_frame: Optional[str] = None

    def attach(self, channel: ControlChannel) -> list[Subscription]:
        self._main_frame = channel.main_frame_id
        return [
            channel.on("Network.requestWillBeSent", self.on_request_will_be_sent),
            channel.on("Network.responseReceived", self.on_response_received),
            channel.on("Network.loadingFailed", self.on_loading_failed),
            channel.on("Runtime.executionContextsCleared", self.on_contexts_cleared),
        ]

    @property
    def pending_count(self) -> int:
        with self._pending_lock:
            return len(self._pending)

    def is_top_level_document(self, params: dict[str, Any]) -> bool:
        """Document request of the main frame; iframes do not count."""
        if params.get("type") != "Document":
            return False
        return self._main_frame is None or params.get("frameId") == self._main_frame

    def on_request_will_be_sent(self, params: dict[str, Any]) -> None:
        request = params.get("request") or {}
        request_id = params.get("requestId", "")
        top_level = self.is_top_level_document(params)
        if top_level:
            self.buffer.clear()
        with self._pending_lock:
            if top_level:
                # The previous page's requests end with it
                self._pending.clear()
            self._pending[request_id] = _PendingRequest(
                method=request.get("method", "GET"),
                url=request.get("url", ""),
                started=time.monotonic(),
            )

    def _finish(self, request_id: str) -> Optional[tuple[_PendingRequest, int]]:
        with self._pending_lock:
            pending = self._pending.pop(request_id, None)
        if pending is None:
            return None
        return pending, int((time.monotonic() - pending.started) * 1000)

    def on_response_received(self, params: dict[str, Any]) -> None:
        finished = self._finish(params.get("requestId", ""))
        if finished is None:
            return
        pending, duration = finished
        response = params.get("response") or {}
        self.buffer.append(
            NetworkLogEntry(
                url=response.get("url") or pending.url,
                method=pending.method,
                status=int(response.get("status", 0)),
                resource_type=params.get("type", "Other"),
                duration_ms=duration,
            )
        )

    def on_loading_failed(self, params: dict[str, Any]) -> None:
        finished = self._finish(params.get("requestId", ""))
        if finished is None:
            return
        pending, duration = finished
        self.buffer.append(
            NetworkLogEntry(
                url=pending.url,
                method=pending.method,
                resource_type=params.get("type", "Other"),
                duration_ms=duration,
                failed=True,
                error_text=params.get("errorText", ""),
            )
        )

    def on_contexts_cleared(self, params: dict[str, Any]) -> None:
        # In-flight requests of the new page stay tracked
        self.buffer.clear()

    def reset(self) -> None:
        self.buffer.clear()
        with self._pending_lock:
            self._pending.clear()

    def entries(self, resource_filter: str = "all", limit: Optional[int] = None) -> list[NetworkLogEntry]:
        """Entries whose type matches the filter, newest limit kept."""
        entries = self.buffer.get_all()
        resource_filter = (resource_filter or "all").lower()
        if resource_filter != "all":
            entries = [e for e in entries if e.resource_type.lower() == resource_filter]
        if limit is not None and limit >= 0 and len(entries) > limit:
            entries = entries[len(entries) - limit:]
        return entries
