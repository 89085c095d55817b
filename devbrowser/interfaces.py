"""
Abstract base interfaces for devbrowser.

The session talks to the browser, the persistence layer and the host UI only
through these classes, so each can be swapped for a fake in tests.
"""

from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional

from devbrowser.models import WindowBounds

if TYPE_CHECKING:
    from devbrowser.cdp.launcher import LaunchOptions
    from devbrowser.events import EventHandler, Subscription

logger = logging.getLogger(__name__)


class ControlChannel(ABC):
    """An active, cancellable connection to one browser page.

    Implementations provide the protocol primitives (start, send, on,
    cancel); navigation and evaluation helpers are built on send().
    """

    @abstractmethod
    async def start(self, options: "LaunchOptions") -> None:
        """Launch the browser and attach to its first page."""
        ...

    @abstractmethod
    async def send(
        self,
        method: str,
        params: Optional[dict[str, Any]] = None,
        *,
        timeout: Optional[float] = None,
    ) -> dict[str, Any]:
        """Send a protocol command to the page and return its result."""
        ...

    @abstractmethod
    def on(self, event: str, handler: "EventHandler") -> "Subscription":
        """Register a protocol event handler."""
        ...

    @abstractmethod
    async def cancel(self) -> None:
        """Tear down the connection and the browser process."""
        ...

    @property
    @abstractmethod
    def done(self) -> asyncio.Event:
        """Set once the channel is closed, by cancel() or by the browser going away."""
        ...

    @property
    def is_done(self) -> bool:
        return self.done.is_set()

    @property
    def main_frame_id(self) -> Optional[str]:
        """Frame id of the top-level document, None when unknown."""
        return None

    async def wait_closed(self) -> None:
        await self.done.wait()

    async def evaluate(
        self,
        expression: str,
        *,
        await_promise: bool = False,
        timeout: Optional[float] = None,
    ) -> Any:
        """Evaluate JavaScript and return its JSON value.

        Raises:
            RuntimeError: If the script throws.
        """
        result = await self.send(
            "Runtime.evaluate",
            {
                "expression": expression,
                "returnByValue": True,
                "awaitPromise": await_promise,
            },
            timeout=timeout,
        )
        details = result.get("exceptionDetails")
        if details:
            exception = details.get("exception") or {}
            message = exception.get("description") or details.get("text") or "evaluation failed"
            raise RuntimeError(message)
        return (result.get("result") or {}).get("value")

    async def navigate(
        self,
        url: str,
        *,
        wait_ready: bool = True,
        timeout: float = 30.0,
    ) -> None:
        """Navigate the page and optionally wait until a body is ready.

        Raises:
            RuntimeError: If the browser reports a navigation error.
            asyncio.TimeoutError: If the page never becomes ready.
        """
        result = await self.send("Page.navigate", {"url": url}, timeout=timeout)
        error_text = result.get("errorText")
        if error_text:
            raise RuntimeError(error_text)
        if wait_ready:
            await self.wait_ready(timeout=timeout)

    async def wait_ready(self, selector: str = "body", *, timeout: float = 30.0) -> None:
        """Poll until the document is loaded and `selector` exists."""
        check = (
            "document.readyState !== 'loading' && "
            f"document.querySelector({json.dumps(selector)}) !== null"
        )
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while True:
            try:
                if await self.evaluate(check, timeout=timeout):
                    return
            except RuntimeError:
                pass
            if loop.time() >= deadline:
                raise asyncio.TimeoutError(f"Timeout waiting for {selector}")
            await asyncio.sleep(0.05)

    async def reload(self) -> None:
        await self.send("Page.reload", {"ignoreCache": False})

    async def current_url(self) -> str:
        return str(await self.evaluate("window.location.href") or "")

    async def title(self) -> str:
        return str(await self.evaluate("document.title") or "")

    async def get_window_bounds(self) -> WindowBounds:
        """Read the live bounds of the window hosting the page."""
        result = await self.send("Browser.getWindowForTarget")
        return WindowBounds.from_dict(result.get("bounds", {}))

    async def set_window_bounds(self, *, width: int, height: int) -> None:
        """Resize the window hosting the page."""
        result = await self.send("Browser.getWindowForTarget")
        await self.send(
            "Browser.setWindowBounds",
            {
                "windowId": result["windowId"],
                "bounds": {"width": width, "height": height, "windowState": "normal"},
            },
        )


class UserInterface(ABC):
    """Host UI callbacks notified on session state changes."""

    @abstractmethod
    def refresh_ui(self) -> None:
        ...

    def return_focus(self) -> None:
        """Give focus back to the host after the browser window opened."""


class NullUserInterface(UserInterface):
    """UI that ignores every notification."""

    def refresh_ui(self) -> None:
        pass


__all__ = [
    "ControlChannel",
    "NullUserInterface",
    "UserInterface",
]
