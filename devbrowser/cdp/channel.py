"""
CDP-backed control channel.

Launches the dev browser, attaches to its first page with a flattened
session and exposes that session as a ControlChannel.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from devbrowser.cdp.connection import CDPConnection
from devbrowser.cdp.launcher import BrowserProcess, LaunchOptions
from devbrowser.errors import LaunchError
from devbrowser.events import EventHandler, Subscription
from devbrowser.interfaces import ControlChannel

logger = logging.getLogger(__name__)


class CDPControlChannel(ControlChannel):
    """Control channel over a launched Chromium and one page session.

    Example:
        channel = CDPControlChannel()
        await channel.start(LaunchOptions(window_width=1280, window_height=800))
        await channel.navigate("http://localhost:8080/")
        await channel.cancel()
    """

    def __init__(self, *, command_timeout: float = 30.0) -> None:
        self._command_timeout = command_timeout
        self._process: Optional[BrowserProcess] = None
        self._connection: Optional[CDPConnection] = None
        self._target_id: Optional[str] = None
        self._session_id: Optional[str] = None
        self._done = asyncio.Event()
        self._watch_task: Optional[asyncio.Task[None]] = None

    @property
    def done(self) -> asyncio.Event:
        return self._done

    @property
    def target_id(self) -> Optional[str]:
        return self._target_id

    @property
    def session_id(self) -> Optional[str]:
        return self._session_id

    @property
    def main_frame_id(self) -> Optional[str]:
        # A page target's main frame shares the target id
        return self._target_id

    async def start(self, options: LaunchOptions) -> None:
        """Launch the browser and attach to its first page target.

        Raises:
            LaunchError: If the browser cannot be started or has no page.
        """
        if self._process is not None:
            raise LaunchError("Channel already started")

        self._process = BrowserProcess(options)
        try:
            ws_url = await self._process.launch()
            self._connection = CDPConnection(ws_url, timeout=self._command_timeout)
            await self._connection.connect()

            result = await self._connection.send("Target.getTargets")
            pages = [t for t in result.get("targetInfos", []) if t.get("type") == "page"]
            if pages:
                self._target_id = pages[0]["targetId"]
            else:
                created = await self._connection.send("Target.createTarget", {"url": "about:blank"})
                self._target_id = created["targetId"]

            attached = await self._connection.send(
                "Target.attachToTarget",
                {"targetId": self._target_id, "flatten": True},
            )
            self._session_id = attached["sessionId"]
            await self.send("Page.enable")
        except LaunchError:
            await self.cancel()
            raise
        except Exception as e:
            await self.cancel()
            raise LaunchError(f"Failed to attach to browser: {e}") from e

        self._watch_task = asyncio.create_task(self._watch())
        logger.debug(f"Attached to target {self._target_id} (session {self._session_id})")

    async def _watch(self) -> None:
        """Set done when either the socket or the process goes away."""
        waiters = []
        if self._connection:
            waiters.append(asyncio.create_task(self._connection.closed.wait()))
        if self._process:
            waiters.append(asyncio.create_task(self._process.wait()))
        try:
            await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for waiter in waiters:
                waiter.cancel()
        if not self._done.is_set():
            reason = self._connection.close_reason if self._connection else None
            logger.debug(f"Browser connection ended: {reason or 'process exited'}")
            self._done.set()

    async def send(
        self,
        method: str,
        params: Optional[dict[str, Any]] = None,
        *,
        timeout: Optional[float] = None,
    ) -> dict[str, Any]:
        if self._connection is None or self._session_id is None:
            raise RuntimeError("Channel not started")
        return await self._connection.send(
            method,
            params,
            session_id=self._session_id,
            timeout=timeout,
        )

    def on(self, event: str, handler: EventHandler) -> Subscription:
        if self._connection is None or self._session_id is None:
            raise RuntimeError("Channel not started")
        return self._connection.on(event, handler, session_id=self._session_id)

    async def cancel(self) -> None:
        """Disconnect and terminate the browser. Safe to call repeatedly."""
        self._done.set()

        if self._watch_task and not self._watch_task.done() and self._watch_task is not asyncio.current_task():
            self._watch_task.cancel()
            try:
                await self._watch_task
            except asyncio.CancelledError:
                pass
        self._watch_task = None

        if self._connection:
            if self._session_id:
                self._connection.remove_session_handlers(self._session_id)
            await self._connection.disconnect()
            self._connection = None

        if self._process:
            await self._process.close()
            self._process = None

        self._session_id = None
