"""
Window size negotiation.

Reconciles the requested window size with the detected display. Stored or
user-chosen sizes always win over automatic adjustment at startup; explicit
preset requests may override either.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from devbrowser.errors import UnknownModeError
from devbrowser.geometry.detector import DisplayDetector, PillowDisplayDetector
from devbrowser.models import DisplayBounds, WindowGeometry

logger = logging.getLogger(__name__)

PRESET_SIZES: dict[str, tuple[int, int]] = {
    "desktop": (1440, 900),
    "mobile": (375, 812),
    "tablet": (768, 1024),
}


def constrain_size(
    requested_width: int,
    requested_height: int,
    display_width: int,
    display_height: int,
) -> tuple[int, int]:
    """Clamp each axis to the display independently.

    An unknown display (either dimension <= 0) leaves the request unchanged.

    Example:
        >>> constrain_size(2000, 800, 1920, 1080)
        (1920, 800)
    """
    if display_width <= 0 or display_height <= 0:
        return requested_width, requested_height
    return min(requested_width, display_width), min(requested_height, display_height)


class GeometryEngine:
    """Startup sizing and preset resolution for one session.

    Args:
        geometry: The session's window geometry.
        lock: The session lock guarding geometry.
        detector: Display detection strategy.
    """

    def __init__(
        self,
        geometry: WindowGeometry,
        lock: threading.Lock,
        detector: Optional[DisplayDetector] = None,
    ) -> None:
        self._geometry = geometry
        self._lock = lock
        self._detector = detector or PillowDisplayDetector()
        self._display = DisplayBounds()

    @property
    def display(self) -> DisplayBounds:
        """Cached display bounds; zero until a detection succeeded."""
        with self._lock:
            return DisplayBounds(self._display.width, self._display.height)

    def detect_display(self) -> DisplayBounds:
        """Ask the detector once and cache a successful result.

        The detector runs outside the session lock.
        """
        bounds = self._detector.detect()
        if not bounds.known:
            logger.info("No active displays found or extraction failed")
            return self.display

        with self._lock:
            self._display = DisplayBounds(bounds.width, bounds.height)
        logger.info(f"Detected monitor size: {bounds.width}x{bounds.height}")
        return bounds

    def startup_size(self) -> bool:
        """Fit the default window size to the display before launch.

        Does nothing, and does not even detect, when the size is configured.

        Returns:
            True if the geometry was adjusted.
        """
        with self._lock:
            if self._geometry.size_configured:
                return False
            display = DisplayBounds(self._display.width, self._display.height)

        if not display.known:
            display = self.detect_display()
            if not display.known:
                return False

        with self._lock:
            # A monitor tick or user action may have configured it meanwhile
            if self._geometry.size_configured:
                return False
            width, height = constrain_size(
                self._geometry.width, self._geometry.height, display.width, display.height
            )
            self._geometry.width, self._geometry.height = width, height

        logger.info(f"Browser size auto-adjusted to monitor: {width}x{height}")
        return True

    def preset_size(self, mode: str) -> tuple[int, int]:
        """Resolve a device preset against the display.

        Detects the display lazily when it is still unknown. If detection
        fails the raw preset is returned.

        Raises:
            UnknownModeError: For anything but desktop, mobile or tablet.
        """
        name = (mode or "").strip().lower()
        if name not in PRESET_SIZES:
            raise UnknownModeError(mode)
        base_width, base_height = PRESET_SIZES[name]

        display = self.display
        if not display.known:
            display = self.detect_display()
        if not display.known:
            return base_width, base_height

        return constrain_size(base_width, base_height, display.width, display.height)

    def apply_explicit_size(self, width: int, height: int) -> None:
        """Record a size chosen by the user. Marks the size configured."""
        with self._lock:
            self._geometry.width = width
            self._geometry.height = height
            self._geometry.size_configured = True
