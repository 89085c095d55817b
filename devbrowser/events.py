"""
Event emitter for devbrowser.

Protocol events are dispatched by name to registered handlers. Registration
returns a Subscription so listeners can be detached explicitly instead of
accumulating across browser restarts.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

EventHandler = Callable[[dict[str, Any]], Any]


class Subscription:
    """Handle returned by EventEmitter.on(). Detaching twice is a no-op."""

    def __init__(self, emitter: "EventEmitter", event: str, handler: EventHandler) -> None:
        self._emitter = emitter
        self.event = event
        self.handler = handler
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def detach(self) -> None:
        """Remove the handler from its emitter."""
        if not self._active:
            return
        self._active = False
        self._emitter.off(self.event, self.handler)

    def __repr__(self) -> str:
        return f"Subscription(event={self.event!r}, active={self._active})"


class SubscriptionGroup:
    """Collects subscriptions made together so they can be detached together."""

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []

    def add(self, subscription: Subscription) -> Subscription:
        self._subscriptions.append(subscription)
        return subscription

    def detach_all(self) -> None:
        for subscription in self._subscriptions:
            subscription.detach()
        self._subscriptions.clear()

    def __len__(self) -> int:
        return len(self._subscriptions)


class EventEmitter:
    """Dispatches named events to sync or async handlers.

    Example:
        emitter = EventEmitter()
        sub = emitter.on("Runtime.consoleAPICalled", handle_console)
        emitter.emit("Runtime.consoleAPICalled", {"type": "log", "args": []})
        sub.detach()
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = {}
        self._error_handler: Optional[Callable[[Exception, str], None]] = None
        self._tasks: set[asyncio.Task[Any]] = set()

    def on(self, event: str, handler: EventHandler) -> Subscription:
        """Register a handler.

        Args:
            event: Event name (e.g., "Network.responseReceived").
            handler: Called with the event params dict.

        Returns:
            Subscription that removes the handler when detached.
        """
        self._handlers.setdefault(event, []).append(handler)
        return Subscription(self, event, handler)

    def off(self, event: str, handler: Optional[EventHandler] = None) -> None:
        """Remove one handler, or every handler for the event."""
        if handler is None:
            self._handlers.pop(event, None)
            return
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)
        if not handlers:
            self._handlers.pop(event, None)

    def set_error_handler(self, handler: Callable[[Exception, str], None]) -> None:
        """Set a callback receiving handler exceptions and the event name."""
        self._error_handler = handler

    def emit(self, event: str, params: Optional[dict[str, Any]] = None) -> bool:
        """Dispatch an event to its handlers.

        Coroutine results are scheduled on the running loop and their
        failures reported like sync ones. A failing handler never stops
        the others.

        Returns:
            True if at least one handler ran.
        """
        handlers = list(self._handlers.get(event, []))
        handled = False
        for handler in handlers:
            try:
                result = handler(params or {})
                if asyncio.iscoroutine(result):
                    task = asyncio.ensure_future(result)
                    self._tasks.add(task)
                    task.add_done_callback(lambda t, name=event: self._task_done(t, name))
                handled = True
            except Exception as e:
                self._report(e, event)
        return handled

    def _task_done(self, task: asyncio.Task[Any], event: str) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if isinstance(error, Exception):
            self._report(error, event)

    def _report(self, error: Exception, event: str) -> None:
        if self._error_handler:
            self._error_handler(error, event)
        else:
            logger.error(f"Error in event handler for {event}: {error}", exc_info=error)

    @property
    def pending_tasks(self) -> int:
        """Async handler runs that have not finished yet."""
        return len(self._tasks)

    def listener_count(self, event: Optional[str] = None) -> int:
        """Number of handlers for an event, or across all events."""
        if event is not None:
            return len(self._handlers.get(event, []))
        return sum(len(h) for h in self._handlers.values())

    def event_names(self) -> list[str]:
        return list(self._handlers.keys())

    def remove_all_listeners(self) -> None:
        self._handlers.clear()


__all__ = [
    "EventEmitter",
    "EventHandler",
    "Subscription",
    "SubscriptionGroup",
]
