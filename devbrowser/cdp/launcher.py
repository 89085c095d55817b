"""
Browser launcher for the dev browser.

Starts Chrome/Chromium with remote debugging enabled, placed and sized
according to the session geometry.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import socket
import sys
import tempfile
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from devbrowser.errors import LaunchError

logger = logging.getLogger(__name__)


@dataclass
class LaunchOptions:
    """Options for launching the dev browser."""

    headless: bool = False
    """Run browser in headless mode."""

    window_x: int = 0
    """Initial window X position."""

    window_y: int = 0
    """Initial window Y position."""

    window_width: int = 1024
    """Initial window width."""

    window_height: int = 768
    """Initial window height."""

    auto_open_devtools: bool = True
    """Open DevTools for each tab."""

    executable_path: Optional[str] = None
    """Path to browser executable. Auto-detected if not provided."""

    user_data_dir: Optional[str] = None
    """User data directory. Temp directory used if not provided."""

    remote_debugging_port: int = 0
    """CDP port. 0 means auto-select an available port."""

    args: list[str] = field(default_factory=list)
    """Additional browser arguments."""

    timeout: float = 30.0
    """Timeout for browser launch in seconds."""


# Flags every dev browser gets, regardless of geometry
DEFAULT_ARGS = [
    "--no-first-run",
    "--no-default-browser-check",
    "--disable-background-networking",
    "--disable-sync",
    "--disable-blink-features=WebFontsInterventionV2",
    "--use-fake-ui-for-media-stream",
    "--no-focus-on-load",
]

HEADLESS_ARGS = [
    "--headless=new",
]


EXECUTABLE_NAMES = (
    "google-chrome",
    "google-chrome-stable",
    "chromium",
    "chromium-browser",
    "chrome",
)

# Install locations that are usually not on PATH
INSTALL_PATHS = {
    "darwin": (
        "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
        "/Applications/Chromium.app/Contents/MacOS/Chromium",
    ),
    "linux": (
        "/usr/bin/google-chrome",
        "/usr/bin/chromium",
        "/usr/bin/chromium-browser",
        "/snap/bin/chromium",
    ),
    "win32": (
        r"%PROGRAMFILES%\Google\Chrome\Application\chrome.exe",
        r"%PROGRAMFILES(X86)%\Google\Chrome\Application\chrome.exe",
        r"%LOCALAPPDATA%\Google\Chrome\Application\chrome.exe",
    ),
}


def find_browser_executable(platform: Optional[str] = None) -> Optional[str]:
    """Locate a Chrome or Chromium binary, PATH first.

    Returns:
        The executable path, or None if no browser is installed.
    """
    for name in EXECUTABLE_NAMES:
        path = shutil.which(name)
        if path:
            return path

    platform = platform or sys.platform
    key = "linux" if platform.startswith("linux") else platform
    for candidate in INSTALL_PATHS.get(key, ()):
        path = os.path.expandvars(candidate)
        if os.path.isfile(path) and os.access(path, os.X_OK):
            return path
    return None


def build_args(options: LaunchOptions, executable: str) -> list[str]:
    """Build the browser command line.

    Args:
        options: Launch options.
        executable: Path to browser executable.

    Returns:
        List of command line arguments, executable first.
    """
    args = [executable, *DEFAULT_ARGS]

    if options.headless:
        args.extend(HEADLESS_ARGS)

    if options.auto_open_devtools:
        args.append("--auto-open-devtools-for-tabs")

    args.append(f"--window-position={options.window_x},{options.window_y}")
    args.append(f"--window-size={options.window_width},{options.window_height}")
    args.extend(options.args)
    return args


class BrowserProcess:
    """One Chromium process with remote debugging on a local port.

    Stderr is drained continuously; its last lines are kept for launch
    error messages.
    """

    STDERR_TAIL = 20

    def __init__(self, options: Optional[LaunchOptions] = None) -> None:
        self.options = options or LaunchOptions()
        self.port = 0
        self.ws_endpoint: Optional[str] = None
        self._process: Optional[asyncio.subprocess.Process] = None
        self._profile_dir: Optional[str] = None
        self._stderr: deque[str] = deque(maxlen=self.STDERR_TAIL)
        self._drain: Optional[asyncio.Task[None]] = None

    @property
    def running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    async def launch(self) -> str:
        """Start the browser and wait for its DevTools endpoint.

        Returns:
            The browser websocket URL.

        Raises:
            LaunchError: No executable, the process died, or the endpoint
                never appeared within options.timeout.
        """
        executable = self.options.executable_path or find_browser_executable()
        if not executable:
            raise LaunchError(
                "Browser executable not found. Please install Chrome/Chromium "
                "or set DEVBROWSER_EXECUTABLE."
            )

        profile_dir = self.options.user_data_dir
        if not profile_dir:
            profile_dir = self._profile_dir = tempfile.mkdtemp(prefix="devbrowser-")
        self.port = self.options.remote_debugging_port or _free_port()

        args = build_args(self.options, executable)
        args += [f"--user-data-dir={profile_dir}", f"--remote-debugging-port={self.port}", "about:blank"]
        logger.debug(f"Launching browser: {' '.join(args)}")

        try:
            self._process = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            self._remove_profile()
            raise LaunchError(f"Failed to start browser: {e}") from e
        self._drain = asyncio.create_task(self._drain_stderr())

        self.ws_endpoint = await self._poll_endpoint()
        logger.debug(f"Browser listening on {self.ws_endpoint}")
        return self.ws_endpoint

    async def _drain_stderr(self) -> None:
        stream = self._process.stderr if self._process else None
        if stream is None:
            return
        async for line in stream:
            self._stderr.append(line.decode(errors="replace").rstrip())

    def stderr_tail(self) -> str:
        return "\n".join(self._stderr)

    async def _poll_endpoint(self) -> str:
        """Ask /json/version for the websocket URL until it answers."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.options.timeout

        async with httpx.AsyncClient(base_url=f"http://127.0.0.1:{self.port}", timeout=2.0) as client:
            while loop.time() < deadline:
                try:
                    response = await client.get("/json/version")
                    if response.status_code == 200:
                        endpoint = response.json().get("webSocketDebuggerUrl")
                        if endpoint:
                            return endpoint
                except (httpx.HTTPError, ValueError):
                    pass

                if not self.running:
                    if self._drain is not None:
                        await asyncio.wait({self._drain}, timeout=1.0)
                    raise LaunchError(f"Browser exited during startup:\n{self.stderr_tail()}")
                await asyncio.sleep(0.1)

        raise LaunchError(f"Browser did not open its DevTools port {self.port} in {self.options.timeout:g}s")

    async def wait(self) -> Optional[int]:
        """Exit code once the process ends by itself."""
        if self._process is None:
            return None
        return await self._process.wait()

    async def close(self, grace: float = 5.0) -> None:
        """Terminate the browser, killing it after `grace` seconds."""
        process, self._process = self._process, None
        if process is not None and process.returncode is None:
            try:
                process.terminate()
                try:
                    await asyncio.wait_for(process.wait(), timeout=grace)
                except asyncio.TimeoutError:
                    logger.warning("Browser ignored terminate, killing it")
                    process.kill()
                    await process.wait()
            except ProcessLookupError:
                pass

        if self._drain is not None:
            self._drain.cancel()
            self._drain = None
        self._remove_profile()
        self.ws_endpoint = None

    def _remove_profile(self) -> None:
        if self._profile_dir:
            shutil.rmtree(self._profile_dir, ignore_errors=True)
            self._profile_dir = None

    async def __aenter__(self) -> "BrowserProcess":
        await self.launch()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]
