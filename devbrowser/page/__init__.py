"""
Page-level helpers: script evaluation, structure and inspection reports,
performance metrics and device emulation.
"""

from devbrowser.page.emulation import apply_viewport_emulation
from devbrowser.page.evaluate import evaluate_script, format_evaluation_result
from devbrowser.page.performance import (
    PERFORMANCE_JS,
    format_performance_report,
    get_performance_report,
)
from devbrowser.page.structure import (
    INSPECT_ELEMENT_JS,
    STRUCTURE_JS,
    get_page_structure,
    inspect_element,
)

__all__ = [
    "INSPECT_ELEMENT_JS",
    "PERFORMANCE_JS",
    "STRUCTURE_JS",
    "apply_viewport_emulation",
    "evaluate_script",
    "format_evaluation_result",
    "format_performance_report",
    "get_page_structure",
    "get_performance_report",
    "inspect_element",
]
