"""
Frame-rate and per-stage latency tracking for the sculpting loop.

Stages are the loop phases timed by ``SculptApp``: capture, detection,
pipeline, render. A frame slower than the camera's frame interval counts
as over budget; the mode stabilizer counts frames, not seconds, so a run
of slow frames stretches the commit delay in wall time.
"""

import time
import logging
from collections import deque
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class PerformanceMonitor:
    """Rolling FPS and per-stage latency."""

    def __init__(self, window_size=100, target_fps=30.0):
        self._window = window_size
        self._budget_s = 1.0 / target_fps if target_fps > 0 else None
        self._intervals = deque(maxlen=window_size)
        self._stages = {}
        self._last_tick = None
        self._frames = 0
        self._over_budget = 0
        self._started = time.time()

    @contextmanager
    def measure(self, stage_name: str):
        start = time.perf_counter()
        try:
            yield
        finally:
            samples = self._stages.setdefault(stage_name, deque(maxlen=self._window))
            samples.append((time.perf_counter() - start) * 1000)

    def tick(self):
        """Mark the end of a frame."""
        now = time.perf_counter()
        if self._last_tick is not None:
            interval = now - self._last_tick
            self._intervals.append(interval)
            if self._budget_s is not None and interval > self._budget_s:
                self._over_budget += 1
        self._last_tick = now
        self._frames += 1

    @property
    def fps(self) -> float:
        if len(self._intervals) < 2:
            return 0.0
        mean = sum(self._intervals) / len(self._intervals)
        return 1.0 / mean if mean > 0 else 0.0

    def get_stage_latency(self, stage_name: str) -> float:
        """Mean latency of a stage in ms, 0.0 if it was never measured."""
        samples = self._stages.get(stage_name)
        return sum(samples) / len(samples) if samples else 0.0

    @property
    def slowest_stage(self):
        if not self._stages:
            return None
        return max(self._stages, key=self.get_stage_latency)

    def get_report(self) -> dict:
        return {
            "fps": round(self.fps, 1),
            "total_frames": self._frames,
            "over_budget_frames": self._over_budget,
            "uptime_seconds": round(time.time() - self._started, 1),
            "latencies_ms": {
                name: round(self.get_stage_latency(name), 2) for name in self._stages
            },
        }

    def print_report(self):
        report = self.get_report()
        logger.info("-" * 48)
        logger.info("Loop: %.1f FPS over %d frames (%d over budget), up %.1fs",
                    report["fps"], report["total_frames"],
                    report["over_budget_frames"], report["uptime_seconds"])
        for stage, latency in report["latencies_ms"].items():
            marker = " <" if stage == self.slowest_stage else ""
            logger.info("  %-10s %7.2f ms%s", stage, latency, marker)
        logger.info("-" * 48)
