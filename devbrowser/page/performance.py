"""
Page performance report.
"""

from __future__ import annotations

from typing import Any

from devbrowser.interfaces import ControlChannel

PERFORMANCE_JS = r"""
(() => {
    const m = {};

    if (performance.memory) {
        m.heapUsed = performance.memory.usedJSHeapSize;
        m.heapTotal = performance.memory.totalJSHeapSize;
        m.heapLimit = performance.memory.jsHeapSizeLimit;
    }

    const nav = performance.getEntriesByType('navigation')[0];
    if (nav) {
        m.domInteractive = Math.round(nav.domInteractive - nav.startTime);
        m.domLoaded = Math.round(nav.domContentLoadedEventEnd - nav.startTime);
        m.fullLoad = Math.round(nav.loadEventEnd - nav.startTime);
    }

    for (const paint of performance.getEntriesByType('paint')) {
        if (paint.name === 'first-paint') m.fp = Math.round(paint.startTime);
        if (paint.name === 'first-contentful-paint') m.fcp = Math.round(paint.startTime);
    }

    m.domNodes = document.querySelectorAll('*').length;
    let maxDepth = 0;
    const walk = (el, d) => {
        if (d > maxDepth) maxDepth = d;
        for (const child of el.children) walk(child, d + 1);
    };
    if (document.body) walk(document.body, 0);
    m.domDepth = maxDepth;

    const resources = performance.getEntriesByType('resource');
    m.resourceCount = resources.length;
    let totalTransfer = 0;
    const wasmFiles = [];
    for (const r of resources) {
        totalTransfer += r.transferSize || 0;
        if (r.name.endsWith('.wasm')) {
            wasmFiles.push({
                name: r.name.split('/').pop(),
                size: Math.round(r.transferSize / 1024),
                duration: Math.round(r.duration)
            });
        }
    }
    m.totalTransferKB = Math.round(totalTransfer / 1024);
    m.wasmFiles = wasmFiles;

    return m;
})()
"""

MB = 1048576


def _is_number(metrics: dict[str, Any], key: str) -> bool:
    value = metrics.get(key)
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def format_performance_report(page_url: str, metrics: dict[str, Any]) -> str:
    """Compact text report of the raw metrics gathered by PERFORMANCE_JS."""
    lines = [f"Performance: {page_url}"]

    if _is_number(metrics, "heapUsed"):
        used = metrics["heapUsed"] / MB
        total = metrics.get("heapTotal", 0) / MB
        limit = int(metrics.get("heapLimit", 0) / MB)
        lines.append(f"Memory:    JS Heap {used:.1f}/{total:.1f} MB (limit {limit} MB)")

    timing = []
    if _is_number(metrics, "domInteractive"):
        timing.append(f"Interactive {int(metrics['domInteractive'])}ms")
    if _is_number(metrics, "domLoaded"):
        timing.append(f"DOM Loaded {int(metrics['domLoaded'])}ms")
    if _is_number(metrics, "fullLoad"):
        timing.append(f"Full Load {int(metrics['fullLoad'])}ms")
    if timing:
        lines.append("Timing:    " + " | ".join(timing))

    paint = []
    if _is_number(metrics, "fp"):
        paint.append(f"FP {int(metrics['fp'])}ms")
    if _is_number(metrics, "fcp"):
        paint.append(f"FCP {int(metrics['fcp'])}ms")
    if paint:
        lines.append("Paint:     " + " | ".join(paint))

    if _is_number(metrics, "domNodes"):
        depth = int(metrics.get("domDepth", 0))
        lines.append(f"DOM:       {int(metrics['domNodes'])} nodes | max depth {depth}")

    for wasm in metrics.get("wasmFiles") or []:
        if isinstance(wasm, dict):
            lines.append(
                f"WASM:      {wasm.get('name', '')} {int(wasm.get('size', 0))} KB "
                f"(loaded in {int(wasm.get('duration', 0))}ms)"
            )

    if _is_number(metrics, "resourceCount"):
        total_kb = int(metrics.get("totalTransferKB", 0))
        lines.append(f"Resources: {int(metrics['resourceCount'])} total | {total_kb} KB transferred")

    return "\n".join(lines) + "\n"


async def get_performance_report(channel: ControlChannel) -> str:
    page_url = await channel.current_url()
    metrics = await channel.evaluate(PERFORMANCE_JS) or {}
    return format_performance_report(page_url, metrics)
