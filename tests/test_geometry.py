"""
Tests for window geometry: size constraints, startup sizing, presets and
the background bounds monitor.
"""

import asyncio
import threading

import pytest

from devbrowser.config import MemoryStore
from devbrowser.errors import UnknownModeError
from devbrowser.geometry import GeometryEngine, GeometryMonitor, StaticDisplayDetector, constrain_size
from devbrowser.models import DisplayBounds, WindowBounds, WindowGeometry

from fakes import FakeControlChannel


def make_engine(geometry: WindowGeometry, detector: StaticDisplayDetector) -> GeometryEngine:
    return GeometryEngine(geometry, threading.Lock(), detector)


class TestConstrainSize:
    """Tests for constrain_size()."""

    def test_unknown_display_leaves_request(self):
        assert constrain_size(2000, 800, 0, 0) == (2000, 800)
        assert constrain_size(2000, 800, 1920, 0) == (2000, 800)

    def test_width_clamped(self):
        assert constrain_size(2000, 800, 1920, 1080) == (1920, 800)

    def test_height_clamped(self):
        assert constrain_size(800, 1200, 1920, 1080) == (800, 1080)

    def test_both_clamped(self):
        assert constrain_size(2560, 1440, 1920, 1080) == (1920, 1080)

    def test_fits(self):
        assert constrain_size(1024, 768, 1920, 1080) == (1024, 768)


class TestStartupSize:
    """Tests for GeometryEngine.startup_size()."""

    def test_configured_size_never_adjusted(self):
        geometry = WindowGeometry(width=800, height=600, size_configured=True)
        detector = StaticDisplayDetector(4000, 2000)
        engine = make_engine(geometry, detector)

        assert engine.startup_size() is False

        assert (geometry.width, geometry.height) == (800, 600)
        assert detector.calls == 0

    def test_configured_size_kept_on_small_display(self):
        geometry = WindowGeometry(width=1600, height=1000, size_configured=True)
        engine = make_engine(geometry, StaticDisplayDetector(800, 600))

        engine.startup_size()

        assert (geometry.width, geometry.height) == (1600, 1000)

    def test_default_size_fitted_to_display(self):
        geometry = WindowGeometry(width=1024, height=768)
        engine = make_engine(geometry, StaticDisplayDetector(800, 600))

        assert engine.startup_size() is True

        assert (geometry.width, geometry.height) == (800, 600)
        assert geometry.size_configured is False

    def test_unknown_display_leaves_default(self):
        geometry = WindowGeometry(width=1024, height=768)
        engine = make_engine(geometry, StaticDisplayDetector(0, 0))

        assert engine.startup_size() is False
        assert (geometry.width, geometry.height) == (1024, 768)


class TestPresetSize:
    """Tests for GeometryEngine.preset_size()."""

    def test_detects_display_once(self):
        detector = StaticDisplayDetector(1280, 800)
        engine = make_engine(WindowGeometry(), detector)

        assert engine.preset_size("desktop") == (1280, 800)
        assert engine.preset_size("tablet") == (768, 800)

        assert detector.calls == 1
        assert engine.display == DisplayBounds(1280, 800)

    def test_raw_preset_without_display(self):
        engine = make_engine(WindowGeometry(), StaticDisplayDetector(0, 0))

        assert engine.preset_size("mobile") == (375, 812)

    def test_mode_name_is_case_insensitive(self):
        engine = make_engine(WindowGeometry(), StaticDisplayDetector(1920, 1080))

        assert engine.preset_size(" Desktop ") == (1440, 900)

    def test_unknown_mode(self):
        detector = StaticDisplayDetector(1920, 1080)
        engine = make_engine(WindowGeometry(), detector)

        with pytest.raises(UnknownModeError):
            engine.preset_size("phablet")
        assert detector.calls == 0

    def test_explicit_size_marks_configured(self):
        geometry = WindowGeometry()
        engine = make_engine(geometry, StaticDisplayDetector())

        engine.apply_explicit_size(375, 812)

        assert (geometry.width, geometry.height) == (375, 812)
        assert geometry.size_configured is True


class TestGeometryMonitor:
    """Tests for GeometryMonitor.check_and_save()."""

    def make_monitor(self, geometry, store, bounds=None, **channel_kwargs):
        channel = FakeControlChannel(bounds=bounds, **channel_kwargs)
        return GeometryMonitor(channel, geometry, threading.Lock(), store), channel

    @pytest.mark.asyncio
    async def test_moved_window_saves_position_only(self):
        geometry = WindowGeometry(x=0, y=0, width=1024, height=768)
        store = MemoryStore()
        monitor, _ = self.make_monitor(geometry, store, WindowBounds(1930, 0, 1024, 768))

        await monitor.check_and_save()

        assert store.snapshot() == {"browser_position": "1930,0"}
        assert geometry.size_configured is False

    @pytest.mark.asyncio
    async def test_resized_window_saves_size(self):
        geometry = WindowGeometry(x=0, y=0, width=1024, height=768)
        store = MemoryStore()
        monitor, _ = self.make_monitor(geometry, store, WindowBounds(0, 0, 1280, 720))

        await monitor.check_and_save()

        assert store.snapshot() == {"browser_size": "1280,720"}
        assert geometry.size_configured is True

    @pytest.mark.asyncio
    async def test_zero_size_ignored(self):
        geometry = WindowGeometry(x=0, y=0, width=1024, height=768)
        store = MemoryStore()
        monitor, _ = self.make_monitor(geometry, store, WindowBounds(0, 0, 0, 0))

        await monitor.check_and_save()

        assert store.snapshot() == {}
        assert (geometry.width, geometry.height) == (1024, 768)

    @pytest.mark.asyncio
    async def test_poll_error_swallowed(self):
        geometry = WindowGeometry()
        store = MemoryStore()
        monitor, _ = self.make_monitor(
            geometry, store, results={"Browser.getWindowForTarget": RuntimeError("target closed")}
        )

        await monitor.check_and_save()

        assert store.snapshot() == {}

    @pytest.mark.asyncio
    async def test_stops_when_channel_closes(self):
        channel = FakeControlChannel()
        monitor = GeometryMonitor(
            channel, WindowGeometry(), threading.Lock(), MemoryStore(), settle_delay=0, poll_interval=0.01
        )

        monitor.start()
        assert monitor.running
        await channel.cancel()
        await asyncio.wait_for(monitor._task, timeout=1.0)

        assert not monitor.running
