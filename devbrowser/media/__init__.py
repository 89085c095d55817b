"""
Screenshots and clipboard for devbrowser.
"""

from devbrowser.media.clipboard import ClipboardError, clipboard_commands, write_to_clipboard
from devbrowser.media.screenshot import (
    ScreenshotResult,
    capture_element_screenshot,
    capture_screenshot,
    image_size,
)

__all__ = [
    "ClipboardError",
    "ScreenshotResult",
    "capture_element_screenshot",
    "capture_screenshot",
    "clipboard_commands",
    "image_size",
    "write_to_clipboard",
]
