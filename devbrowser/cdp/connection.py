"""
DevTools websocket client.

One CDPConnection talks to the browser endpoint of a launched dev browser.
Replies are matched to commands by id; events are delivered to the
browser-wide emitter and, when they carry a sessionId, to that page
session's emitter as well.
"""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
from typing import Any, Optional

import websockets
from websockets.exceptions import ConnectionClosed

from devbrowser.events import EventEmitter, EventHandler, Subscription

logger = logging.getLogger(__name__)

# Full page screenshots arrive as a single base64 frame
MAX_FRAME_SIZE = 256 * 1024 * 1024


class CDPError(Exception):
    """Error reply from the browser for one command.

    Attributes:
        code: JSON-RPC error code.
        message: Error text from the browser.
        data: Optional extra detail.
        method: The command that failed, when known.
    """

    def __init__(
        self,
        code: int,
        message: str,
        data: Optional[Any] = None,
        method: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.data = data
        self.method = method
        prefix = f"{method} failed" if method else "CDP error"
        super().__init__(f"{prefix} ({code}): {message}")


class CDPConnection:
    """JSON-RPC over the browser's DevTools websocket.

    Example:
        connection = CDPConnection(ws_url)
        await connection.connect()
        targets = await connection.send("Target.getTargets")
        await connection.disconnect()
    """

    def __init__(self, ws_url: str, *, timeout: float = 30.0) -> None:
        """
        Args:
            ws_url: Browser websocket URL from /json/version.
            timeout: Default seconds to wait for a reply.
        """
        self.ws_url = ws_url
        self.timeout = timeout
        self.close_reason: Optional[str] = None
        self._ws: Optional[Any] = None
        self._ids = itertools.count(1)
        self._pending: dict[int, tuple[str, asyncio.Future[Any]]] = {}
        self._browser_events = EventEmitter()
        self._page_events: dict[str, EventEmitter] = {}
        self._reader: Optional[asyncio.Task[None]] = None
        self._closed = asyncio.Event()

    @property
    def connected(self) -> bool:
        return self._ws is not None and not self._closed.is_set()

    @property
    def closed(self) -> asyncio.Event:
        """Set once the socket is gone, whoever closed it."""
        return self._closed

    async def connect(self) -> None:
        if self._ws is not None:
            return
        if self._closed.is_set():
            raise RuntimeError("CDP connection cannot be reopened")

        logger.debug(f"Connecting to {self.ws_url}")
        self._ws = await websockets.connect(
            self.ws_url,
            max_size=MAX_FRAME_SIZE,
            ping_interval=30,
            ping_timeout=10,
        )
        self._reader = asyncio.create_task(self._read())

    async def disconnect(self) -> None:
        """Close the socket and fail every command still waiting."""
        if self._closed.is_set() and self._ws is None:
            return

        reader, self._reader = self._reader, None
        if reader is not None and not reader.done():
            reader.cancel()
            try:
                await reader
            except asyncio.CancelledError:
                pass

        ws, self._ws = self._ws, None
        if ws is not None:
            await ws.close()
        self._shutdown("disconnected")

    async def send(
        self,
        method: str,
        params: Optional[dict[str, Any]] = None,
        *,
        session_id: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> dict[str, Any]:
        """Send one command and wait for its reply.

        Args:
            method: Protocol method, e.g. "Page.navigate".
            params: Method parameters.
            session_id: Page session the command is for; None for the browser.
            timeout: Seconds to wait instead of the connection default.

        Returns:
            The "result" object of the reply.

        Raises:
            CDPError: The browser answered with an error.
            asyncio.TimeoutError: No reply in time.
            RuntimeError: The connection is not open or closed meanwhile.
        """
        if not self.connected:
            raise RuntimeError(f"Cannot send {method}: CDP connection is not open")

        message_id = next(self._ids)
        message: dict[str, Any] = {"id": message_id, "method": method, "params": params or {}}
        if session_id:
            message["sessionId"] = session_id

        reply: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[message_id] = (method, reply)
        try:
            await self._ws.send(json.dumps(message))
            logger.debug(f"-> {method} #{message_id}")
            return await asyncio.wait_for(reply, timeout=timeout or self.timeout)
        finally:
            self._pending.pop(message_id, None)

    def on(
        self,
        event: str,
        handler: EventHandler,
        *,
        session_id: Optional[str] = None,
    ) -> Subscription:
        """Listen for an event, optionally only from one page session."""
        if session_id is None:
            return self._browser_events.on(event, handler)
        emitter = self._page_events.setdefault(session_id, EventEmitter())
        return emitter.on(event, handler)

    def remove_session_handlers(self, session_id: str) -> None:
        emitter = self._page_events.pop(session_id, None)
        if emitter is not None:
            emitter.remove_all_listeners()

    async def _read(self) -> None:
        reason = "browser closed the connection"
        try:
            async for raw in self._ws:
                try:
                    message = json.loads(raw)
                except json.JSONDecodeError:
                    logger.warning(f"Dropping malformed CDP frame: {raw[:100]!r}")
                    continue
                self._handle_message(message)
        except ConnectionClosed as e:
            reason = f"connection lost: {e}"
        except asyncio.CancelledError:
            reason = "disconnected"
            raise
        except Exception as e:
            reason = f"reader failed: {e}"
            logger.exception("CDP reader stopped")
        finally:
            self._shutdown(reason)

    def _shutdown(self, reason: str) -> None:
        if self._closed.is_set():
            return
        self.close_reason = reason
        for method, reply in self._pending.values():
            if not reply.done():
                reply.set_exception(RuntimeError(f"{method} aborted: {reason}"))
        self._pending.clear()
        self._closed.set()
        logger.debug(f"CDP connection closed: {reason}")

    def _handle_message(self, message: dict[str, Any]) -> None:
        if "id" in message:
            self._settle(message)
        elif "method" in message:
            self._route(message)

    def _settle(self, message: dict[str, Any]) -> None:
        method, reply = self._pending.pop(message["id"], (None, None))
        if reply is None or reply.done():
            return
        error = message.get("error")
        if error:
            reply.set_exception(
                CDPError(error.get("code", -1), error.get("message", "unknown error"), error.get("data"), method)
            )
        else:
            reply.set_result(message.get("result", {}))

    def _route(self, message: dict[str, Any]) -> None:
        event, params = message["method"], message.get("params", {})
        session_id = message.get("sessionId")
        if session_id in self._page_events:
            self._page_events[session_id].emit(event, params)
        self._browser_events.emit(event, params)
