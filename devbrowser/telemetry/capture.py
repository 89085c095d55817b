"""
Telemetry capture subsystem.

Owns the console, network and error listeners for one session. Listeners are
registered and the protocol domains enabled by arm(), which the session calls
before the first navigation so page-load activity is not lost.
"""

from __future__ import annotations

import logging
from typing import Optional

from devbrowser.config.options import CaptureOptions
from devbrowser.events import SubscriptionGroup
from devbrowser.interfaces import ControlChannel
from devbrowser.telemetry.console import ConsoleCapture
from devbrowser.telemetry.errors import ErrorCapture
from devbrowser.telemetry.network import NetworkCapture

logger = logging.getLogger(__name__)

CAPTURE_DOMAINS = ("Runtime.enable", "Log.enable", "Network.enable")


class TelemetryCapture:
    """Console, network and JS error capture bound to one control channel.

    Example:
        capture = TelemetryCapture()
        await capture.arm(channel)
        await channel.navigate(url)
        print(capture.console.lines())
        capture.disarm()
    """

    def __init__(self, options: Optional[CaptureOptions] = None) -> None:
        options = options or CaptureOptions()
        self.console = ConsoleCapture(options.max_console_entries)
        self.network = NetworkCapture(options.max_network_entries)
        self.errors = ErrorCapture(options.max_error_entries)
        self._subscriptions = SubscriptionGroup()

    @property
    def armed(self) -> bool:
        return len(self._subscriptions) > 0

    def reset(self) -> None:
        self.console.buffer.clear()
        self.network.reset()
        self.errors.buffer.clear()

    async def arm(self, channel: ControlChannel, *, cache_enabled: bool = True) -> None:
        """Register listeners on channel, then enable the event domains.

        Buffers start empty. A domain that fails to enable is logged and
        skipped.
        """
        self.disarm()
        self.reset()

        for listener in (self.console, self.network, self.errors):
            for subscription in listener.attach(channel):
                self._subscriptions.add(subscription)

        for method in CAPTURE_DOMAINS:
            try:
                await channel.send(method)
            except Exception as e:
                logger.warning(f"Failed to enable {method.split('.')[0]} capture: {e}")

        if not cache_enabled:
            try:
                await channel.send("Network.setCacheDisabled", {"cacheDisabled": True})
            except Exception as e:
                logger.warning(f"Failed to disable network cache: {e}")

    def disarm(self) -> None:
        """Detach every listener. Buffers keep their contents."""
        self._subscriptions.detach_all()
