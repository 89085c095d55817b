"""
DevBrowser session lifecycle.

One DevBrowser owns at most one controlled browser. Its state moves through
closed -> opening -> open -> closing -> closed under a single lock that also
guards the window geometry, so a configuration read never races a geometry
monitor write.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import AsyncIterator, Callable, Optional

from devbrowser.cdp.channel import CDPControlChannel
from devbrowser.cdp.launcher import LaunchOptions
from devbrowser.config.geometry import parse_position_and_size
from devbrowser.config.options import DevBrowserConfig
from devbrowser.config.store import (
    STORE_KEY_AUTOSTART,
    STORE_KEY_POSITION,
    STORE_KEY_SIZE,
    STORE_KEY_VIEWPORT,
    KeyValueStore,
    PersistedBrowserConfig,
    open_store,
)
from devbrowser.errors import (
    ContextNotInitializedError,
    DevBrowserError,
    SessionClosedError,
    SessionStateError,
)
from devbrowser.geometry.detector import DisplayDetector
from devbrowser.geometry.engine import GeometryEngine
from devbrowser.geometry.monitor import GeometryMonitor
from devbrowser.interfaces import ControlChannel, NullUserInterface, UserInterface
from devbrowser.models import (
    ConsoleLogEntry,
    JSErrorEntry,
    NetworkLogEntry,
    SessionState,
    ViewportMode,
    WindowGeometry,
    parse_int_pair,
)
from devbrowser.page.emulation import apply_viewport_emulation
from devbrowser.telemetry.capture import TelemetryCapture

logger = logging.getLogger(__name__)

ChannelFactory = Callable[[], ControlChannel]

# Pause after the page is ready so late scripts settle before callers poke it
READY_SETTLE_DELAY = 0.1

EXIT_WATCHER_NAME = "devbrowser-exit-signal"


class DevBrowser:
    """A controlled development browser pointed at a local app.

    Example:
        browser = DevBrowser(load_config())
        await browser.open(port=8080)
        print(browser.get_console_logs())
        await browser.close()

    Args:
        config: Session, geometry and capture options.
        store: Where position, size, auto-start and viewport mode persist.
            Defaults to the configured store file or an in-memory store.
        ui: Host UI notified on every state change.
        detector: Display detection strategy.
        channel_factory: Creates a fresh ControlChannel for each open().
        exit_signal: Process-wide event; setting it closes an open session.
    """

    def __init__(
        self,
        config: Optional[DevBrowserConfig] = None,
        store: Optional[KeyValueStore] = None,
        ui: Optional[UserInterface] = None,
        detector: Optional[DisplayDetector] = None,
        channel_factory: Optional[ChannelFactory] = None,
        exit_signal: Optional[asyncio.Event] = None,
    ) -> None:
        self.config = config or DevBrowserConfig()
        self._store = store if store is not None else open_store(self.config.store_path)
        self._ui = ui or NullUserInterface()
        self._channel_factory: ChannelFactory = channel_factory or CDPControlChannel
        self._exit_signal = exit_signal

        self._lock = threading.Lock()
        self._state = SessionState.CLOSED
        self._channel: Optional[ControlChannel] = None

        defaults = self.config.geometry
        x, y = parse_int_pair(defaults.default_position, "default_position")
        self._geometry = WindowGeometry(
            x=x, y=y, width=defaults.default_width, height=defaults.default_height
        )
        self._engine = GeometryEngine(self._geometry, self._lock, detector)
        self._capture = TelemetryCapture(self.config.capture)
        self._monitor: Optional[GeometryMonitor] = None
        self._watchers: list[asyncio.Task[None]] = []

        self._headless = self.config.session.headless
        self._auto_start = True
        self._viewport_mode = ViewportMode.OFF
        self._first_open = True
        self._last_port: Optional[int] = None
        self._last_scheme: Optional[str] = None
        self.last_error: Optional[BaseException] = None

        self.load_config()

    # -- state -------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    @property
    def is_open(self) -> bool:
        return self.state is SessionState.OPEN

    @property
    def geometry(self) -> WindowGeometry:
        """A copy of the current window geometry."""
        with self._lock:
            g = self._geometry
            return WindowGeometry(g.x, g.y, g.width, g.height, g.size_configured)

    @property
    def engine(self) -> GeometryEngine:
        return self._engine

    @property
    def store(self) -> KeyValueStore:
        return self._store

    @property
    def auto_start(self) -> bool:
        with self._lock:
            return self._auto_start

    @property
    def viewport_mode(self) -> ViewportMode:
        with self._lock:
            return self._viewport_mode

    @property
    def headless(self) -> bool:
        with self._lock:
            return self._headless

    @property
    def last_port(self) -> Optional[int]:
        return self._last_port

    @property
    def last_scheme(self) -> Optional[str]:
        return self._last_scheme

    @property
    def url(self) -> str:
        """URL opened on launch, honoring the last port/scheme used."""
        return self.config.session.url(port=self._last_port, scheme=self._last_scheme)

    @property
    def name(self) -> str:
        return "BROWSER"

    @property
    def label(self) -> str:
        """Action label for a host UI toggle button."""
        return "Close Browser" if self.is_open else "Open Browser"

    def status_message(self) -> str:
        with self._lock:
            state = self._state
            g = self._geometry
            geometry = f"{g.width}x{g.height} at {g.position}"
        if state is SessionState.OPEN:
            return f"Browser opened at {self.url} ({geometry})"
        if state is SessionState.CLOSED:
            return "Browser closed"
        return f"Browser {state.value}"

    # -- persisted configuration --------------------------------------------

    def load_config(self) -> None:
        """Read persisted settings. Malformed values are ignored."""
        try:
            persisted = PersistedBrowserConfig.load(self._store)
        except Exception as e:
            logger.warning(f"Failed to load browser config: {e}")
            return

        with self._lock:
            self._auto_start = persisted.auto_start
            self._viewport_mode = persisted.viewport_mode
            persisted.apply_to(self._geometry)

    def save_config(self) -> None:
        """Write every persisted key from the current state."""
        with self._lock:
            persisted = PersistedBrowserConfig.from_state(
                self._geometry, self._auto_start, self._viewport_mode
            )
        persisted.save(self._store)

    def set_auto_start(self, enabled: bool) -> None:
        with self._lock:
            self._auto_start = enabled
        self._store.set(STORE_KEY_AUTOSTART, "t" if enabled else "f")

    def set_headless(self, headless: bool) -> None:
        """Takes effect on the next open()."""
        with self._lock:
            self._headless = headless

    # -- lifecycle -----------------------------------------------------------

    async def open(
        self,
        port: Optional[int] = None,
        scheme: Optional[str] = None,
        *,
        automatic: bool = False,
    ) -> bool:
        """Launch the browser and wait until the app page is ready.

        A silent no-op when the session is not closed. The first automatic
        call is skipped when auto-start is disabled. Launch failures are
        logged, stored in last_error and leave the session closed.

        Args:
            port: Port of the app under test; defaults to the last one used.
            scheme: "http" or "https"; defaults to the last one used.
            automatic: True when triggered by startup rather than the user.

        Returns:
            True if this call opened the browser.
        """
        with self._lock:
            if self._state is not SessionState.CLOSED:
                return False

            first_call, self._first_open = self._first_open, False
            if first_call and automatic and not self._auto_start:
                logger.info("Browser auto-start disabled, skipping open")
                return False

            self._state = SessionState.OPENING

        if port is not None:
            self._last_port = port
        if scheme is not None:
            self._last_scheme = scheme
        self.last_error = None

        # From here on every exit path must end in OPEN or CLOSED
        channel: Optional[ControlChannel] = None
        worker: Optional[asyncio.Task[None]] = None
        error: Optional[BaseException] = None
        try:
            try:
                await asyncio.to_thread(self._engine.startup_size)
            except Exception as e:
                logger.debug(f"Startup sizing skipped: {e}")

            channel = self._channel_factory()
            with self._lock:
                self._channel = channel
                options = self._launch_options()
            url = self.url

            loop = asyncio.get_running_loop()
            ready: asyncio.Future[bool] = loop.create_future()
            failed: asyncio.Future[BaseException] = loop.create_future()
            worker = asyncio.create_task(self._launch(channel, options, url, ready, failed))

            await asyncio.wait({ready, failed}, return_when=asyncio.FIRST_COMPLETED)
            if failed.done():
                error = failed.result()
        except Exception as e:
            error = e
        except BaseException:
            if worker is not None:
                worker.cancel()
            await self._teardown(channel)
            raise

        if error is not None:
            if worker is not None and not worker.done():
                worker.cancel()
            self.last_error = error
            logger.error(f"Error opening DevBrowser: {error}")
            await self._teardown(channel)
            return False

        with self._lock:
            self._state = SessionState.OPEN

        self._start_background(channel)
        logger.info(self.status_message())
        self._ui.return_focus()
        self._ui.refresh_ui()
        return True

    def _launch_options(self) -> LaunchOptions:
        """Snapshot of the launch flags. Caller holds the lock."""
        session = self.config.session
        return LaunchOptions(
            headless=self._headless,
            window_x=self._geometry.x,
            window_y=self._geometry.y,
            window_width=self._geometry.width,
            window_height=self._geometry.height,
            auto_open_devtools=session.auto_open_devtools,
            executable_path=session.executable_path,
            args=list(session.extra_args),
            timeout=session.launch_timeout,
        )

    async def _launch(
        self,
        channel: ControlChannel,
        options: LaunchOptions,
        url: str,
        ready: asyncio.Future[bool],
        failed: asyncio.Future[BaseException],
    ) -> None:
        """Launch worker: start, arm capture, navigate, then signal."""
        try:
            await channel.start(options)
            # Listeners must be in place before the page starts logging
            await self._capture.arm(channel, cache_enabled=self.config.session.cache_enabled)
            await channel.navigate(url, timeout=self.config.session.navigation_timeout)
            await asyncio.sleep(READY_SETTLE_DELAY)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if not failed.done():
                failed.set_result(e)
            return
        if not ready.done():
            ready.set_result(True)

    def _start_background(self, channel: ControlChannel) -> None:
        geometry = self.config.geometry
        self._monitor = GeometryMonitor(
            channel,
            self._geometry,
            self._lock,
            self._store,
            settle_delay=geometry.settle_delay,
            poll_interval=geometry.poll_interval,
        )
        self._monitor.start()

        self._watchers = [asyncio.create_task(self._watch_browser_exit(channel))]
        if self._exit_signal is not None:
            self._watchers.append(
                asyncio.create_task(self._watch_exit_signal(self._exit_signal), name=EXIT_WATCHER_NAME)
            )

    async def _watch_exit_signal(self, signal: asyncio.Event) -> None:
        await signal.wait()
        try:
            await self.close()
        except DevBrowserError as e:
            logger.debug(f"Exit signal ignored: {e}")

    async def _watch_browser_exit(self, channel: ControlChannel) -> None:
        await channel.wait_closed()
        with self._lock:
            if self._state is not SessionState.OPEN or self._channel is not channel:
                return
            self._state = SessionState.CLOSING
        logger.info("Browser closed by user")
        await self._teardown(channel)

    async def close(self) -> None:
        """Close the browser.

        Raises:
            SessionClosedError: If the session is already closed.
            SessionStateError: While the session is opening or closing.
        """
        with self._lock:
            if self._state is SessionState.CLOSED:
                raise SessionClosedError()
            if self._state is not SessionState.OPEN:
                raise SessionStateError(f"Cannot close while browser is {self._state.value}")
            self._state = SessionState.CLOSING
            channel = self._channel

        await self._teardown(channel)

    async def _teardown(self, channel: Optional[ControlChannel]) -> None:
        """Release everything owned by the open session and mark it closed."""
        self._capture.disarm()

        if self._monitor is not None:
            monitor, self._monitor = self._monitor, None
            await monitor.stop()

        current = asyncio.current_task()
        watchers, self._watchers = self._watchers, []
        for task in watchers:
            if task is not current and not task.done():
                task.cancel()
        for task in watchers:
            if task is not current:
                try:
                    await task
                except asyncio.CancelledError:
                    pass

        if channel is not None:
            try:
                await channel.cancel()
            except Exception as e:
                logger.warning(f"Error shutting down browser: {e}")

        with self._lock:
            if self._channel is channel:
                self._channel = None
            self._state = SessionState.CLOSED

        logger.info(self.status_message())
        self._ui.refresh_ui()

    async def restart(self) -> bool:
        """Close, then open again with the last port and scheme."""
        await self.close()
        return await self.open(self._last_port, self._last_scheme)

    async def toggle(self) -> AsyncIterator[str]:
        """Open if closed, close if open, yielding progress lines."""
        if self.is_open:
            yield "Closing..."
            try:
                await self.close()
            except DevBrowserError as e:
                yield f"Close error:{e}"
            else:
                yield "Closed."
        else:
            yield "Opening..."
            await self.open()

    # -- control handle ------------------------------------------------------

    def require_channel(self) -> ControlChannel:
        """The open control channel.

        Raises:
            ContextNotInitializedError: If no browser is attached.
        """
        with self._lock:
            channel = self._channel
        if channel is None:
            raise ContextNotInitializedError()
        return channel

    async def navigate(self, url: str) -> None:
        channel = self.require_channel()
        await channel.navigate(url, timeout=self.config.session.navigation_timeout)

    async def reload(self) -> None:
        """Reload the page. Does nothing unless the session is open."""
        with self._lock:
            channel = self._channel if self._state is SessionState.OPEN else None
        if channel is None:
            return
        logger.info("Reload")
        await channel.reload()

    # -- telemetry -----------------------------------------------------------

    def get_console_logs(self, level: Optional[str] = None) -> list[str]:
        self.require_channel()
        return self._capture.console.lines(level)

    def get_console_entries(self) -> list[ConsoleLogEntry]:
        self.require_channel()
        return self._capture.console.buffer.get_all()

    def clear_console_logs(self) -> None:
        self.require_channel()
        self._capture.console.buffer.clear()

    def get_network_logs(self) -> list[NetworkLogEntry]:
        self.require_channel()
        return self._capture.network.buffer.get_all()

    def filter_network_logs(self, resource_filter: str = "all", limit: int = 50) -> list[NetworkLogEntry]:
        self.require_channel()
        return self._capture.network.entries(resource_filter, limit)

    def clear_network_logs(self) -> None:
        self.require_channel()
        self._capture.network.buffer.clear()

    def get_js_errors(self) -> list[JSErrorEntry]:
        self.require_channel()
        return self._capture.errors.buffer.get_all()

    def clear_js_errors(self) -> None:
        self.require_channel()
        self._capture.errors.buffer.clear()

    # -- geometry ------------------------------------------------------------

    def apply_startup_size(self) -> bool:
        return self._engine.startup_size()

    def preset_size(self, mode: str) -> tuple[int, int]:
        return self._engine.preset_size(mode)

    async def set_position_and_size(self, config: str) -> None:
        """Apply an "x,y:w,h" placement, persist it and restart if open.

        Raises:
            ConfigValidationError: If config is malformed. Nothing changes.
        """
        x, y, width, height = parse_position_and_size(config)
        with self._lock:
            self._geometry.x, self._geometry.y = x, y
            self._geometry.width, self._geometry.height = width, height
            self._geometry.size_configured = True
            position, size = self._geometry.position, self._geometry.size
            is_open = self._state is SessionState.OPEN

        self._store.set(STORE_KEY_POSITION, position)
        self._store.set(STORE_KEY_SIZE, size)

        if is_open:
            await self.restart()

    async def set_viewport_preset(self, mode: str) -> tuple[int, int]:
        """Resize the window to a device preset fitted to the display.

        Persisted always; applied to the live window when open.

        Raises:
            UnknownModeError: For an unknown preset name.
        """
        width, height = await asyncio.to_thread(self._engine.preset_size, mode)
        self._engine.apply_explicit_size(width, height)
        self._store.set(STORE_KEY_SIZE, f"{width},{height}")

        with self._lock:
            channel = self._channel if self._state is SessionState.OPEN else None
        if channel is not None:
            await channel.set_window_bounds(width=width, height=height)
        return width, height

    async def set_viewport_mode(self, mode: str) -> ViewportMode:
        """Switch device emulation.

        The mode is persisted. It is applied immediately only when the
        session is open; a closed session just records it.

        Raises:
            UnknownModeError: For an unknown mode name.
        """
        viewport = ViewportMode.parse(mode)
        with self._lock:
            self._viewport_mode = viewport
            channel = self._channel if self._state is SessionState.OPEN else None
        self._store.set(STORE_KEY_VIEWPORT, viewport.value)

        if channel is not None:
            await apply_viewport_emulation(channel, viewport)
        return viewport
