"""
Window geometry for devbrowser.

- DisplayDetector: primary display bounds (PillowDisplayDetector, StaticDisplayDetector)
- GeometryEngine: startup sizing and device presets against the display
- GeometryMonitor: persists window moves and resizes while the browser is open
"""

from devbrowser.geometry.detector import (
    DisplayDetector,
    PillowDisplayDetector,
    StaticDisplayDetector,
)
from devbrowser.geometry.engine import PRESET_SIZES, GeometryEngine, constrain_size
from devbrowser.geometry.monitor import GeometryMonitor

__all__ = [
    "DisplayDetector",
    "GeometryEngine",
    "GeometryMonitor",
    "PRESET_SIZES",
    "PillowDisplayDetector",
    "StaticDisplayDetector",
    "constrain_size",
]
