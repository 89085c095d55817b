"""
In-memory stand-ins for the browser side of a session.
"""

import asyncio
import io
from typing import Any, Callable, Optional

from PIL import Image

from devbrowser.events import EventEmitter, Subscription
from devbrowser.interfaces import ControlChannel, UserInterface
from devbrowser.models import WindowBounds

MAIN_FRAME_ID = "frame-1"


class FakeControlChannel(ControlChannel):
    """ControlChannel that records traffic instead of driving a browser.

    Args:
        results: Per-method replies. A value may be a dict, a callable taking
            the params, or an exception instance to raise.
        evaluate: Called with each Runtime.evaluate expression; its return
            value is the script result. Defaults to always True, which also
            makes wait_ready() succeed immediately.
        start_error: Raised from start() when set.
        bounds: Window bounds reported by Browser.getWindowForTarget.
        journal: Shared list receiving ("send", method) and ("on", event).
    """

    def __init__(
        self,
        results: Optional[dict[str, Any]] = None,
        evaluate: Optional[Callable[[str], Any]] = None,
        start_error: Optional[BaseException] = None,
        bounds: Optional[WindowBounds] = None,
        journal: Optional[list] = None,
    ):
        self.results = dict(results or {})
        self.evaluate_handler = evaluate or (lambda expression: True)
        self.start_error = start_error
        self.bounds = bounds or WindowBounds(0, 0, 1024, 768)
        self.journal = journal if journal is not None else []
        self.sent: list[tuple[str, dict[str, Any]]] = []
        self.started_with = None
        self.cancel_count = 0
        self.events = EventEmitter()
        self._done = asyncio.Event()

    async def start(self, options) -> None:
        self.started_with = options
        self.journal.append(("start", None))
        if self.start_error is not None:
            raise self.start_error

    async def send(self, method, params=None, *, timeout=None):
        params = params or {}
        self.sent.append((method, params))
        self.journal.append(("send", method))

        if method in self.results:
            reply = self.results[method]
            if isinstance(reply, BaseException):
                raise reply
            if callable(reply):
                return reply(params)
            return reply

        if method == "Runtime.evaluate":
            return {"result": {"value": self.evaluate_handler(params.get("expression", ""))}}
        if method == "Page.navigate":
            return {"frameId": MAIN_FRAME_ID}
        if method == "Browser.getWindowForTarget":
            return {"windowId": 1, "bounds": self.bounds.to_dict()}
        return {}

    def on(self, event, handler) -> Subscription:
        self.journal.append(("on", event))
        return self.events.on(event, handler)

    async def cancel(self) -> None:
        self.cancel_count += 1
        self._done.set()

    @property
    def done(self) -> asyncio.Event:
        return self._done

    @property
    def main_frame_id(self) -> str:
        return MAIN_FRAME_ID

    # Test helpers

    def emit(self, event: str, params: Optional[dict[str, Any]] = None) -> None:
        """Deliver a protocol event to registered handlers."""
        self.events.emit(event, params or {})

    def close_externally(self) -> None:
        """Simulate the user closing the browser window."""
        self._done.set()

    def methods(self) -> list[str]:
        return [method for method, _ in self.sent]

    def params_for(self, method: str) -> list[dict[str, Any]]:
        return [params for sent, params in self.sent if sent == method]


class FakeChannelFactory:
    """Creates a FakeControlChannel per open() and keeps them all."""

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.channels: list[FakeControlChannel] = []

    def __call__(self) -> FakeControlChannel:
        channel = FakeControlChannel(**self.kwargs)
        self.channels.append(channel)
        return channel

    @property
    def last(self) -> FakeControlChannel:
        return self.channels[-1]


class RecordingUI(UserInterface):
    """Counts UI notifications."""

    def __init__(self):
        self.refreshes = 0
        self.focus_returns = 0

    def refresh_ui(self) -> None:
        self.refreshes += 1

    def return_focus(self) -> None:
        self.focus_returns += 1


def png_bytes(width: int = 4, height: int = 3) -> bytes:
    """A small blank PNG."""
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), "white").save(buffer, format="PNG")
    return buffer.getvalue()
