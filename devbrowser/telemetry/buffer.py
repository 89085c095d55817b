"""
Bounded, thread-safe log buffer shared by the capture listeners.
"""

from __future__ import annotations

import threading
from collections import deque
from typing import Generic, Iterable, Optional, TypeVar

T = TypeVar("T")


class LogBuffer(Generic[T]):
    """Insertion-ordered buffer guarded by its own lock.

    Readers always get a copy. When max_entries is set the oldest entries
    are dropped first.
    """

    def __init__(self, max_entries: Optional[int] = None) -> None:
        self._entries: deque[T] = deque(maxlen=max_entries)
        self._lock = threading.Lock()

    @property
    def max_entries(self) -> Optional[int]:
        return self._entries.maxlen

    def append(self, entry: T) -> None:
        with self._lock:
            self._entries.append(entry)

    def extend(self, entries: Iterable[T]) -> None:
        with self._lock:
            self._entries.extend(entries)

    def get_all(self) -> list[T]:
        with self._lock:
            return list(self._entries)

    def tail(self, n: int) -> list[T]:
        """The last n entries, oldest first."""
        with self._lock:
            if n <= 0:
                return []
            return list(self._entries)[-n:]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
