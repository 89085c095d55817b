"""
Core data models for devbrowser.

Window geometry, display bounds, viewport modes and the three telemetry
record types captured from the browser.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from devbrowser.errors import ConfigValidationError, UnknownModeError


class SessionState(str, Enum):
    """Lifecycle states of a browser session."""

    CLOSED = "closed"
    OPENING = "opening"
    OPEN = "open"
    CLOSING = "closing"


class ViewportMode(str, Enum):
    """Device emulation profiles.

    - DESKTOP: 1440x900, no touch
    - MOBILE: 375x812, mobile + touch
    - TABLET: 768x1024, mobile + touch
    - OFF: emulation disabled
    """

    DESKTOP = "desktop"
    MOBILE = "mobile"
    TABLET = "tablet"
    OFF = "off"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ViewportMode":
        """Parse a mode name. Empty, "off" and "none" all mean OFF."""
        name = (value or "").strip().lower()
        if name in ("", "off", "none"):
            return cls.OFF
        try:
            return cls(name)
        except ValueError:
            raise UnknownModeError(name) from None

    @property
    def is_mobile(self) -> bool:
        return self in (ViewportMode.MOBILE, ViewportMode.TABLET)


@dataclass
class DisplayBounds:
    """Pixel size of the primary display. Zero means not detected."""

    width: int = 0
    height: int = 0

    @property
    def known(self) -> bool:
        return self.width > 0 and self.height > 0


@dataclass
class WindowBounds:
    """Live window position and size as reported by the browser."""

    left: int = 0
    top: int = 0
    width: int = 0
    height: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "WindowBounds":
        """Create from a Browser.getWindowForTarget bounds dict."""
        return cls(
            left=int(data.get("left", 0)),
            top=int(data.get("top", 0)),
            width=int(data.get("width", 0)),
            height=int(data.get("height", 0)),
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "left": self.left,
            "top": self.top,
            "width": self.width,
            "height": self.height,
        }


@dataclass
class WindowGeometry:
    """Window placement owned by a session.

    Mutated only under the session lock.
    """

    x: int = 0
    """X position of the window."""

    y: int = 0
    """Y position of the window."""

    width: int = 1024
    """Window width."""

    height: int = 768
    """Window height."""

    size_configured: bool = False
    """True once the size came from storage or a user action, not a default."""

    @property
    def position(self) -> str:
        """Position in "x,y" form."""
        return f"{self.x},{self.y}"

    @property
    def size(self) -> str:
        """Size in "w,h" form."""
        return f"{self.width},{self.height}"

    def set_position(self, value: str) -> None:
        """Set position from an "x,y" string.

        Raises:
            ConfigValidationError: If the value is not an integer pair.
        """
        self.x, self.y = parse_int_pair(value, "position")

    def set_size(self, value: str) -> None:
        """Set size from a "w,h" string.

        Raises:
            ConfigValidationError: If the value is not an integer pair.
        """
        self.width, self.height = parse_int_pair(value, "size")


def parse_int_pair(value: str, name: str = "value") -> tuple[int, int]:
    """Parse a comma-separated integer pair such as "1930,0".

    Raises:
        ConfigValidationError: On wrong field count or non-integer parts.
    """
    parts = (value or "").split(",")
    if len(parts) != 2:
        raise ConfigValidationError(f"{name} must be two comma-separated integers, got {value!r}")
    try:
        return int(parts[0].strip()), int(parts[1].strip())
    except ValueError:
        raise ConfigValidationError(f"{name} must be two comma-separated integers, got {value!r}") from None


class ConsoleLogEntry(BaseModel):
    """One formatted console line."""

    level: str = "log"
    text: str
    timestamp: float = Field(default_factory=time.time)


class NetworkLogEntry(BaseModel):
    """A completed or failed network request."""

    url: str
    method: str = "GET"
    status: int = 0
    resource_type: str = "Other"
    duration_ms: int = 0
    failed: bool = False
    error_text: str = ""


class JSErrorEntry(BaseModel):
    """An uncaught JavaScript exception."""

    message: str
    source: str = ""
    line_number: int = 0
    column_number: int = 0
    stack_trace: str = ""
    timestamp: float = Field(default_factory=time.time)


__all__ = [
    "ConsoleLogEntry",
    "DisplayBounds",
    "JSErrorEntry",
    "NetworkLogEntry",
    "SessionState",
    "ViewportMode",
    "WindowBounds",
    "WindowGeometry",
    "parse_int_pair",
]
