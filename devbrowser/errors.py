"""
Exception types for devbrowser.

Precondition, launch and validation failures each get their own class so
callers can tell "the browser isn't open" apart from "the browser crashed".
"""

from __future__ import annotations


class DevBrowserError(Exception):
    """Base class for all devbrowser errors."""


class ContextNotInitializedError(DevBrowserError):
    """Raised when an operation needs a control handle and none is open."""

    def __init__(self, message: str = "context not initialized") -> None:
        super().__init__(message)


class SessionClosedError(DevBrowserError):
    """Raised by close() when the session is already closed."""

    def __init__(self, message: str = "DevBrowser is already closed") -> None:
        super().__init__(message)


class SessionStateError(DevBrowserError):
    """Raised for a transition the lifecycle does not allow."""


class LaunchError(DevBrowserError):
    """Browser process start or initial navigation failed."""


class ConfigValidationError(DevBrowserError, ValueError):
    """A configuration value could not be parsed or is out of range."""


class UnknownModeError(ConfigValidationError):
    """Unknown viewport/preset mode name."""

    def __init__(self, mode: str) -> None:
        self.mode = mode
        super().__init__(f"unknown mode: {mode}")


__all__ = [
    "ConfigValidationError",
    "ContextNotInitializedError",
    "DevBrowserError",
    "LaunchError",
    "SessionClosedError",
    "SessionStateError",
    "UnknownModeError",
]
