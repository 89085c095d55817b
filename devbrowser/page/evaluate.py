"""
Script evaluation in the page.
"""

from __future__ import annotations

import json
from typing import Any

from devbrowser.interfaces import ControlChannel


def format_evaluation_result(value: Any) -> str:
    """Render an evaluation result as text.

    None becomes "undefined", strings are returned as-is, numbers and
    booleans use their JavaScript spelling, everything else is JSON.
    """
    if value is None:
        return "undefined"
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


async def evaluate_script(channel: ControlChannel, script: str, *, await_promise: bool = False) -> str:
    """Run script and return its formatted result.

    Raises:
        RuntimeError: If the script throws.
    """
    value = await channel.evaluate(script, await_promise=await_promise)
    return format_evaluation_result(value)
