"""
Configuration options classes for devbrowser.

Strongly-typed option classes for the browser session, window geometry
and telemetry capture, with validation via Pydantic.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from devbrowser.models import parse_int_pair

from .defaults import (
    DEFAULT_AUTO_OPEN_DEVTOOLS,
    DEFAULT_CACHE_ENABLED,
    DEFAULT_HEADLESS,
    DEFAULT_HOST,
    DEFAULT_LAUNCH_TIMEOUT,
    DEFAULT_MAX_CONSOLE_ENTRIES,
    DEFAULT_MAX_ERROR_ENTRIES,
    DEFAULT_MAX_NETWORK_ENTRIES,
    DEFAULT_NAVIGATION_TIMEOUT,
    DEFAULT_PATH,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_PORT,
    DEFAULT_SCHEME,
    DEFAULT_SETTLE_DELAY,
    DEFAULT_WINDOW_HEIGHT,
    DEFAULT_WINDOW_POSITION,
    DEFAULT_WINDOW_WIDTH,
)


class SessionOptions(BaseModel):
    """Where the app under test lives and how the browser is launched."""

    host: str = Field(DEFAULT_HOST, description="Host of the local server under test")
    port: int = Field(DEFAULT_PORT, ge=0, le=65535, description="Port of the local server")
    scheme: str = Field(DEFAULT_SCHEME, description="http or https")
    path: str = Field(DEFAULT_PATH, description="Path opened on launch")
    headless: bool = Field(DEFAULT_HEADLESS, description="Run browser without a window")
    cache_enabled: bool = Field(DEFAULT_CACHE_ENABLED, description="Allow the HTTP cache")
    auto_open_devtools: bool = Field(
        DEFAULT_AUTO_OPEN_DEVTOOLS, description="Open DevTools for each tab"
    )
    executable_path: Optional[str] = Field(None, description="Browser executable path")
    launch_timeout: float = Field(DEFAULT_LAUNCH_TIMEOUT, gt=0, description="Launch timeout (s)")
    navigation_timeout: float = Field(
        DEFAULT_NAVIGATION_TIMEOUT, gt=0, description="Initial navigation timeout (s)"
    )
    extra_args: list[str] = Field(default_factory=list, description="Extra browser flags")

    @field_validator("scheme", mode="before")
    @classmethod
    def validate_scheme(cls, v: Any) -> str:
        """Only http and https are served by the dev server."""
        scheme = str(v or DEFAULT_SCHEME).strip().lower()
        if scheme not in ("http", "https"):
            raise ValueError(f"scheme must be http or https, got {v!r}")
        return scheme

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        return v if v.startswith("/") else f"/{v}"

    def url(self, port: Optional[int] = None, scheme: Optional[str] = None) -> str:
        """Build the start URL, optionally overriding port and scheme."""
        return f"{scheme or self.scheme}://{self.host}:{port or self.port}{self.path}"


class GeometryOptions(BaseModel):
    """Window geometry defaults and monitor timing."""

    default_width: int = Field(DEFAULT_WINDOW_WIDTH, gt=0)
    default_height: int = Field(DEFAULT_WINDOW_HEIGHT, gt=0)
    default_position: str = Field(DEFAULT_WINDOW_POSITION, description='"x,y"')
    settle_delay: float = Field(
        DEFAULT_SETTLE_DELAY, ge=0, description="Wait before trusting window bounds (s)"
    )
    poll_interval: float = Field(DEFAULT_POLL_INTERVAL, gt=0, description="Bounds poll interval (s)")

    @field_validator("default_position")
    @classmethod
    def validate_position(cls, v: str) -> str:
        parse_int_pair(v, "default_position")
        return v.strip()


class CaptureOptions(BaseModel):
    """Bounds for the telemetry buffers. Oldest entries are dropped first."""

    max_console_entries: int = Field(DEFAULT_MAX_CONSOLE_ENTRIES, gt=0)
    max_network_entries: int = Field(DEFAULT_MAX_NETWORK_ENTRIES, gt=0)
    max_error_entries: int = Field(DEFAULT_MAX_ERROR_ENTRIES, gt=0)


class DevBrowserConfig(BaseModel):
    """Root configuration for devbrowser."""

    session: SessionOptions = Field(default_factory=SessionOptions)
    geometry: GeometryOptions = Field(default_factory=GeometryOptions)
    capture: CaptureOptions = Field(default_factory=CaptureOptions)
    store_path: Optional[str] = Field(
        None, description="JSON file for persisted state; in-memory when unset"
    )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DevBrowserConfig":
        """Create configuration from dictionary."""
        return cls(**data)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary."""
        return self.model_dump(exclude_none=True)
