"""
Device emulation.
"""

from __future__ import annotations

import logging

from devbrowser.geometry.engine import PRESET_SIZES
from devbrowser.interfaces import ControlChannel
from devbrowser.models import ViewportMode

logger = logging.getLogger(__name__)

DEVICE_SCALE_FACTORS = {
    ViewportMode.DESKTOP: 1,
    ViewportMode.MOBILE: 3,
    ViewportMode.TABLET: 2,
}

MAX_TOUCH_POINTS = 5


async def apply_viewport_emulation(channel: ControlChannel, mode: ViewportMode) -> None:
    """Emulate a device profile, or drop emulation for ViewportMode.OFF."""
    if mode is ViewportMode.OFF:
        await channel.send("Emulation.clearDeviceMetricsOverride")
        await channel.send("Emulation.setTouchEmulationEnabled", {"enabled": False})
        logger.info("Device emulation disabled")
        return

    width, height = PRESET_SIZES[mode.value]
    await channel.send(
        "Emulation.setDeviceMetricsOverride",
        {
            "width": width,
            "height": height,
            "deviceScaleFactor": DEVICE_SCALE_FACTORS[mode],
            "mobile": mode.is_mobile,
        },
    )
    touch = {"enabled": mode.is_mobile}
    if mode.is_mobile:
        touch["maxTouchPoints"] = MAX_TOUCH_POINTS
    await channel.send("Emulation.setTouchEmulationEnabled", touch)
    logger.info(f"Emulating {mode.value} ({width}x{height})")
