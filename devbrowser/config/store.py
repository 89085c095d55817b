"""
Persisted browser state.

A small key-value store holds the auto-start flag, window position and size,
and the viewport mode between runs. Every value is a string; anything that
fails to parse is ignored and the default kept.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from devbrowser.errors import ConfigValidationError
from devbrowser.models import ViewportMode, WindowGeometry, parse_int_pair

logger = logging.getLogger(__name__)

STORE_KEY_AUTOSTART = "browser_autostart"
STORE_KEY_POSITION = "browser_position"
STORE_KEY_SIZE = "browser_size"
STORE_KEY_VIEWPORT = "browser_viewport"

# Older releases stored width and height under separate keys
LEGACY_KEY_WIDTH = "browser_width"
LEGACY_KEY_HEIGHT = "browser_height"


class KeyValueStore(ABC):
    """String key-value persistence."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None when the key is absent."""
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...


class MemoryStore(KeyValueStore):
    """Process-local store. Used when no store file is configured."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def snapshot(self) -> dict[str, str]:
        with self._lock:
            return dict(self._data)


class JSONFileStore(KeyValueStore):
    """Store backed by a flat JSON object on disk.

    Writes go to a temp file in the same directory and are moved into place,
    so a crash never leaves a half-written file behind.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self._path = Path(path).expanduser()
        self._lock = threading.Lock()
        self._data = self._read()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable store {self._path}: {e}")
            return {}
        if not isinstance(raw, dict):
            logger.warning(f"Ignoring store {self._path}: root is not an object")
            return {}
        return {str(k): str(v) for k, v in raw.items()}

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value
            self._write()

    def _write(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self._path.parent, prefix=".devbrowser-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=2, sort_keys=True)
            os.replace(tmp_path, self._path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise


def _parse_auto_start(store: KeyValueStore, value: Optional[str]) -> bool:
    if not value:
        return True
    if value in ("true", "t"):
        if value == "true":
            store.set(STORE_KEY_AUTOSTART, "t")
        return True
    if value in ("false", "f"):
        if value == "false":
            store.set(STORE_KEY_AUTOSTART, "f")
        return False
    return True


@dataclass
class PersistedBrowserConfig:
    """Snapshot of the browser settings kept in a KeyValueStore.

    None for position or size means nothing valid was stored.
    """

    auto_start: bool = True
    position: Optional[tuple[int, int]] = None
    size: Optional[tuple[int, int]] = None
    viewport_mode: ViewportMode = ViewportMode.OFF

    @classmethod
    def load(cls, store: KeyValueStore) -> "PersistedBrowserConfig":
        """Read every key, migrating legacy auto-start values in place."""
        config = cls(auto_start=_parse_auto_start(store, store.get(STORE_KEY_AUTOSTART)))

        position = store.get(STORE_KEY_POSITION)
        if position:
            try:
                config.position = parse_int_pair(position, "position")
            except ConfigValidationError:
                logger.debug(f"Ignoring stored position {position!r}")

        size = store.get(STORE_KEY_SIZE)
        if size:
            try:
                config.size = parse_int_pair(size, "size")
            except ConfigValidationError:
                logger.debug(f"Ignoring stored size {size!r}")
        else:
            config.size = _load_legacy_size(store)

        mode = store.get(STORE_KEY_VIEWPORT)
        if mode:
            try:
                config.viewport_mode = ViewportMode.parse(mode)
            except ConfigValidationError:
                logger.debug(f"Ignoring stored viewport mode {mode!r}")

        return config

    def apply_to(self, geometry: WindowGeometry) -> None:
        """Copy stored position and size onto geometry. A stored size marks it configured."""
        if self.position is not None:
            geometry.x, geometry.y = self.position
        if self.size is not None:
            geometry.width, geometry.height = self.size
            geometry.size_configured = True

    @classmethod
    def from_state(
        cls,
        geometry: WindowGeometry,
        auto_start: bool,
        viewport_mode: ViewportMode,
    ) -> "PersistedBrowserConfig":
        return cls(
            auto_start=auto_start,
            position=(geometry.x, geometry.y),
            size=(geometry.width, geometry.height),
            viewport_mode=viewport_mode,
        )

    def save(self, store: KeyValueStore) -> None:
        """Write every key."""
        store.set(STORE_KEY_AUTOSTART, "t" if self.auto_start else "f")
        if self.position is not None:
            store.set(STORE_KEY_POSITION, f"{self.position[0]},{self.position[1]}")
        if self.size is not None:
            store.set(STORE_KEY_SIZE, f"{self.size[0]},{self.size[1]}")
        store.set(STORE_KEY_VIEWPORT, self.viewport_mode.value)


def _load_legacy_size(store: KeyValueStore) -> Optional[tuple[int, int]]:
    width, height = store.get(LEGACY_KEY_WIDTH), store.get(LEGACY_KEY_HEIGHT)
    if not width or not height:
        return None
    try:
        return int(width), int(height)
    except ValueError:
        return None


def open_store(path: Optional[Union[str, Path]]) -> KeyValueStore:
    """JSONFileStore for a path, MemoryStore otherwise."""
    if path:
        return JSONFileStore(path)
    return MemoryStore()
