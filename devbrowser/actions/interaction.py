"""
Element interaction: click, fill and swipe by CSS selector.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from devbrowser.interfaces import ControlChannel

logger = logging.getLogger(__name__)

SWIPE_DIRECTIONS = ("up", "down", "left", "right")

# Native click gets this long before the scripted fallback runs
NATIVE_CLICK_TIMEOUT = 0.5

_POLL_INTERVAL = 0.05


def _query(selector: str) -> str:
    return f"document.querySelector({json.dumps(selector)})"


def _center_js(selector: str) -> str:
    return f"""
(() => {{
    const el = {_query(selector)};
    if (!el) return null;
    if (el.scrollIntoViewIfNeeded) el.scrollIntoViewIfNeeded(); else el.scrollIntoView({{block: 'center'}});
    const rect = el.getBoundingClientRect();
    if (rect.width === 0 || rect.height === 0) return null;
    return {{x: rect.left + rect.width / 2, y: rect.top + rect.height / 2}};
}})()
"""


def _visible_js(selector: str) -> str:
    return f"""
(() => {{
    const el = {_query(selector)};
    if (!el) return false;
    const style = window.getComputedStyle(el);
    if (style.display === 'none' || style.visibility === 'hidden') return false;
    const rect = el.getBoundingClientRect();
    return rect.width > 0 && rect.height > 0;
}})()
"""


async def wait_for_selector(
    channel: ControlChannel,
    selector: str,
    *,
    visible: bool = False,
    timeout: float = 5.0,
) -> None:
    """Poll until selector matches (and is visible when asked).

    Raises:
        asyncio.TimeoutError: If the element does not show up in time.
    """
    check = _visible_js(selector) if visible else f"{_query(selector)} !== null"
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while True:
        if await channel.evaluate(check):
            return
        if loop.time() >= deadline:
            raise asyncio.TimeoutError(f"Timeout waiting for element: {selector}")
        await asyncio.sleep(_POLL_INTERVAL)


async def element_center(channel: ControlChannel, selector: str) -> tuple[float, float]:
    """Viewport coordinates of the element's center, scrolled into view.

    Raises:
        LookupError: If the element is missing or has no box.
    """
    point = await channel.evaluate(_center_js(selector))
    if not point:
        raise LookupError(f"Element has no clickable box: {selector}")
    return float(point["x"]), float(point["y"])


async def dispatch_mouse_event(
    channel: ControlChannel,
    event_type: str,
    x: float,
    y: float,
    button: str = "none",
    click_count: int = 0,
) -> None:
    params: dict[str, Any] = {"type": event_type, "x": x, "y": y}
    if button != "none":
        params["button"] = button
    if click_count > 0:
        params["clickCount"] = click_count
    await channel.send("Input.dispatchMouseEvent", params)


async def _native_click(channel: ControlChannel, selector: str) -> None:
    x, y = await element_center(channel, selector)
    await dispatch_mouse_event(channel, "mouseMoved", x, y)
    await dispatch_mouse_event(channel, "mousePressed", x, y, "left", 1)
    await dispatch_mouse_event(channel, "mouseReleased", x, y, "left", 1)


async def click_element(
    channel: ControlChannel,
    selector: str,
    *,
    wait_after: float = 0.1,
    timeout: float = 5.0,
) -> bool:
    """Click an element, falling back to a scripted click.

    The element must be present within timeout. A native click is tried
    first; if it fails or takes longer than NATIVE_CLICK_TIMEOUT the
    element's click() is called instead.

    Returns:
        True if the scripted fallback was used.

    Raises:
        asyncio.TimeoutError: If the element never appears.
        RuntimeError: If the scripted click throws too.
    """
    await wait_for_selector(channel, selector, timeout=timeout)

    try:
        await asyncio.wait_for(_native_click(channel, selector), timeout=NATIVE_CLICK_TIMEOUT)
        used_fallback = False
    except Exception as e:
        logger.info(f"Standard click failed ({str(e) or type(e).__name__}), attempting JS fallback for: {selector}")
        await channel.evaluate(f"{_query(selector)}.click()")
        used_fallback = True

    if wait_after > 0:
        await asyncio.sleep(wait_after)
    return used_fallback


async def fill_element(
    channel: ControlChannel,
    selector: str,
    value: str,
    *,
    wait_after: float = 0.1,
    timeout: float = 5.0,
) -> None:
    """Focus a visible field and type value into it.

    Raises:
        asyncio.TimeoutError: If the element is not visible in time.
    """
    await wait_for_selector(channel, selector, visible=True, timeout=timeout)
    await channel.evaluate(f"{_query(selector)}.focus()")
    await channel.send("Input.insertText", {"text": value})
    if wait_after > 0:
        await asyncio.sleep(wait_after)


async def swipe_element(
    channel: ControlChannel,
    selector: str,
    direction: str,
    distance: int,
    *,
    timeout: float = 5.0,
) -> None:
    """Drag from the element's center distance pixels in direction.

    Raises:
        ValueError: For a direction other than up, down, left or right.
        asyncio.TimeoutError: If the element is not visible in time.
    """
    if direction not in SWIPE_DIRECTIONS:
        raise ValueError(f"direction must be one of {', '.join(SWIPE_DIRECTIONS)}, got {direction!r}")

    await wait_for_selector(channel, selector, visible=True, timeout=timeout)
    start_x, start_y = await element_center(channel, selector)
    end_x, end_y = start_x, start_y
    if direction == "up":
        end_y -= distance
    elif direction == "down":
        end_y += distance
    elif direction == "left":
        end_x -= distance
    else:
        end_x += distance

    await dispatch_mouse_event(channel, "mouseMoved", start_x, start_y)
    await dispatch_mouse_event(channel, "mousePressed", start_x, start_y, "left", 1)
    await dispatch_mouse_event(channel, "mouseMoved", end_x, end_y, "left")
    await dispatch_mouse_event(channel, "mouseReleased", end_x, end_y, "left", 1)
