"""
Background polling of the live browser window.

Whatever the user does to the window (drag it to another monitor, resize
it) is persisted, so the next launch comes back in the same place.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Optional

from devbrowser.config.store import STORE_KEY_POSITION, STORE_KEY_SIZE, KeyValueStore
from devbrowser.interfaces import ControlChannel
from devbrowser.models import WindowGeometry

logger = logging.getLogger(__name__)


class GeometryMonitor:
    """Polls window bounds every poll_interval after an initial settle delay.

    Position and size are compared and saved independently. A size change
    seen here marks the size configured.
    """

    def __init__(
        self,
        channel: ControlChannel,
        geometry: WindowGeometry,
        lock: threading.Lock,
        store: KeyValueStore,
        *,
        settle_delay: float = 3.0,
        poll_interval: float = 2.0,
    ) -> None:
        self._channel = channel
        self._geometry = geometry
        self._lock = lock
        self._store = store
        self._settle_delay = settle_delay
        self._poll_interval = poll_interval
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _wait_done(self, timeout: float) -> bool:
        """Sleep up to timeout; True if the channel closed meanwhile."""
        try:
            await asyncio.wait_for(self._channel.done.wait(), timeout=timeout)
            return True
        except asyncio.TimeoutError:
            return False

    async def _run(self) -> None:
        # Early bounds reflect the window manager's initial placement
        if await self._wait_done(self._settle_delay):
            return

        while True:
            if await self._wait_done(self._poll_interval):
                logger.debug("Geometry monitor stopped: channel closed")
                return
            await self.check_and_save()

    async def check_and_save(self) -> None:
        """Read bounds once and persist what changed. Errors are swallowed."""
        try:
            bounds = await self._channel.get_window_bounds()
        except Exception as e:
            logger.debug(f"Geometry poll failed: {e}")
            return

        position: Optional[str] = None
        size: Optional[str] = None

        with self._lock:
            geometry = self._geometry
            if (bounds.left, bounds.top) != (geometry.x, geometry.y):
                geometry.x, geometry.y = bounds.left, bounds.top
                position = geometry.position

            width_changed = bounds.width > 0 and bounds.width != geometry.width
            height_changed = bounds.height > 0 and bounds.height != geometry.height
            if width_changed or height_changed:
                if bounds.width > 0:
                    geometry.width = bounds.width
                if bounds.height > 0:
                    geometry.height = bounds.height
                geometry.size_configured = True
                size = geometry.size

        try:
            if position is not None:
                self._store.set(STORE_KEY_POSITION, position)
            if size is not None:
                self._store.set(STORE_KEY_SIZE, size)
        except Exception as e:
            logger.debug(f"Failed to persist window geometry: {e}")
