"""
Screenshot capture for devbrowser.

Viewport, full page and single element screenshots as PNG, returned with
the page context a reader needs to interpret them.
"""

from __future__ import annotations

import base64
import io
import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

from PIL import Image

from devbrowser.interfaces import ControlChannel
from devbrowser.page.structure import STRUCTURE_JS

logger = logging.getLogger(__name__)


@dataclass
class ScreenshotResult:
    """A PNG screenshot plus the page it was taken from."""

    image_data: bytes
    page_title: str = ""
    page_url: str = ""
    width: int = 0
    """Viewport width in CSS pixels."""
    height: int = 0
    """Viewport height in CSS pixels."""
    html_structure: str = ""
    image_width: int = 0
    """Width of the PNG itself."""
    image_height: int = 0
    """Height of the PNG itself."""

    def to_base64(self) -> str:
        return base64.b64encode(self.image_data).decode("ascii")

    @property
    def data_url(self) -> str:
        return f"data:image/png;base64,{self.to_base64()}"


def image_size(data: bytes) -> tuple[int, int]:
    """Pixel size of encoded image data; (0, 0) if Pillow cannot read it."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            return img.size
    except (OSError, ValueError) as e:
        logger.debug(f"Could not read screenshot size: {e}")
        return 0, 0


async def _capture(channel: ControlChannel, params: dict[str, Any]) -> bytes:
    result = await channel.send("Page.captureScreenshot", {"format": "png", **params})
    data = base64.b64decode(result.get("data", ""))
    if not data:
        raise RuntimeError("Screenshot capture returned empty buffer")
    return data


async def _page_context(channel: ControlChannel, result: ScreenshotResult, *, structure: bool) -> None:
    """Fill title, URL and viewport. Failures here are not fatal."""
    try:
        info = await channel.evaluate(
            "({url: location.href, title: document.title, width: window.innerWidth, height: window.innerHeight})"
        ) or {}
        result.page_url = info.get("url", "")
        result.page_title = info.get("title", "")
        result.width = int(info.get("width", 0))
        result.height = int(info.get("height", 0))
        if structure:
            result.html_structure = await channel.evaluate(STRUCTURE_JS) or ""
    except Exception as e:
        logger.warning(f"Failed to capture context metadata: {e}")


def _result(data: bytes) -> ScreenshotResult:
    width, height = image_size(data)
    return ScreenshotResult(image_data=data, image_width=width, image_height=height)


async def capture_screenshot(channel: ControlChannel, *, full_page: bool = False) -> ScreenshotResult:
    """Capture the viewport, or the whole scrollable page.

    Raises:
        RuntimeError: If the browser returns no image.
    """
    if full_page:
        metrics = await channel.send("Page.getLayoutMetrics")
        content = metrics.get("cssContentSize") or metrics.get("contentSize") or {}
        data = await _capture(
            channel,
            {
                "captureBeyondViewport": True,
                "clip": {
                    "x": 0,
                    "y": 0,
                    "width": content.get("width", 0),
                    "height": content.get("height", 0),
                    "scale": 1,
                },
            },
        )
    else:
        data = await _capture(channel, {})

    result = _result(data)
    await _page_context(channel, result, structure=True)
    return result


async def capture_element_screenshot(channel: ControlChannel, selector: str) -> ScreenshotResult:
    """Capture one element.

    Raises:
        LookupError: If the element is missing or has no box.
    """
    box: Optional[dict[str, float]] = await channel.evaluate(
        f"""
(() => {{
    const el = document.querySelector({json.dumps(selector)});
    if (!el) return null;
    el.scrollIntoView({{block: 'center', inline: 'center'}});
    const rect = el.getBoundingClientRect();
    if (rect.width === 0 || rect.height === 0) return null;
    return {{x: rect.left + window.scrollX, y: rect.top + window.scrollY, width: rect.width, height: rect.height}};
}})()
"""
    )
    if not box:
        raise LookupError(f"Element not found or not visible: {selector}")

    data = await _capture(
        channel,
        {"captureBeyondViewport": True, "clip": {**box, "scale": 1}},
    )
    result = _result(data)
    await _page_context(channel, result, structure=False)
    return result
