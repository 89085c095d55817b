"""
System clipboard writes through the platform's command line tools.
"""

from __future__ import annotations

import logging
import subprocess
import sys
from typing import Optional

from devbrowser.errors import DevBrowserError

logger = logging.getLogger(__name__)


class ClipboardError(DevBrowserError):
    """No clipboard tool accepted the data."""


def clipboard_commands(mime_type: str = "image/png", platform: Optional[str] = None) -> list[list[str]]:
    """Commands to try in order for the platform."""
    platform = platform or sys.platform
    if platform.startswith("linux"):
        return [
            ["wl-copy", "--type", mime_type],
            ["xclip", "-selection", "clipboard", "-t", mime_type],
        ]
    if platform == "darwin":
        return [["pbcopy"]]
    return []


def write_to_clipboard(
    data: bytes,
    mime_type: str = "image/png",
    *,
    platform: Optional[str] = None,
    timeout: float = 5.0,
) -> str:
    """Pipe data into the first clipboard tool that succeeds.

    Returns:
        Name of the tool used.

    Raises:
        ClipboardError: If every tool is missing or fails.
    """
    commands = clipboard_commands(mime_type, platform)
    if not commands:
        raise ClipboardError(f"unsupported operating system for clipboard: {platform or sys.platform}")

    failures = []
    for command in commands:
        try:
            subprocess.run(command, input=data, check=True, timeout=timeout, capture_output=True)
            return command[0]
        except (OSError, subprocess.CalledProcessError, subprocess.TimeoutExpired) as e:
            logger.debug(f"Clipboard tool {command[0]} failed: {e}")
            failures.append(command[0])

    raise ClipboardError(f"clipboard tool not found (install {' or '.join(failures)})")
