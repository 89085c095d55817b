"""
Primary display detection.

The detector is a strategy object handed to the session, so tests can pass
a StaticDisplayDetector instead of touching the real screen.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from PIL import ImageGrab

from devbrowser.models import DisplayBounds

logger = logging.getLogger(__name__)


class DisplayDetector(ABC):
    """Reports the pixel bounds of the primary display."""

    @abstractmethod
    def detect(self) -> DisplayBounds:
        """Return the display bounds, or DisplayBounds() when unknown.

        Implementations must not raise.
        """
        ...


class PillowDisplayDetector(DisplayDetector):
    """Reads the primary display size by grabbing the screen with Pillow.

    Headless hosts, Wayland sessions without grab support and missing
    X displays all come back as unknown.
    """

    def detect(self) -> DisplayBounds:
        try:
            image = ImageGrab.grab()
        except Exception as e:
            logger.debug(f"Display grab failed: {e}")
            return DisplayBounds()

        try:
            width, height = image.size
        finally:
            image.close()
        return DisplayBounds(width=width, height=height)


class StaticDisplayDetector(DisplayDetector):
    """Returns fixed bounds and counts how often it was asked."""

    def __init__(self, width: int = 0, height: int = 0) -> None:
        self.bounds = DisplayBounds(width=width, height=height)
        self.calls = 0

    def detect(self) -> DisplayBounds:
        self.calls += 1
        return DisplayBounds(width=self.bounds.width, height=self.bounds.height)
