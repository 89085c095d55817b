"""
Element interactions for devbrowser.
"""

from devbrowser.actions.interaction import (
    NATIVE_CLICK_TIMEOUT,
    SWIPE_DIRECTIONS,
    click_element,
    element_center,
    fill_element,
    swipe_element,
    wait_for_selector,
)

__all__ = [
    "NATIVE_CLICK_TIMEOUT",
    "SWIPE_DIRECTIONS",
    "click_element",
    "element_center",
    "fill_element",
    "swipe_element",
    "wait_for_selector",
]
