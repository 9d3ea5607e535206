"""Runtime performance budgeting and adaptive tick pacing."""

from __future__ import annotations

from dataclasses import dataclass

import psutil


@dataclass(frozen=True)
class PerformanceTargets:
    cpu_percent_max: float = 25.0
    rss_mb_max: float = 200.0
    fps_min: float = 8.0


@dataclass(frozen=True)
class BudgetStatus:
    cpu_percent: float
    rss_mb: float
    fps: float
    overloaded: bool
    warning: str | None
    recommended_tick_ms: float


class PerformanceController:
    def __init__(self, targets: PerformanceTargets | None = None) -> None:
        self.targets = targets or PerformanceTargets()
        self.samples = 0
        self.peak_cpu_percent = 0.0
        self.peak_rss_mb = 0.0
        self._process = psutil.Process()
        # Prime non-blocking CPU measurement.
        self._process.cpu_percent(interval=None)

    def sample(self, fps: float, tick_ms: float, base_tick_ms: float) -> BudgetStatus:
        """Recommend a tick interval between ``base_tick_ms`` and four times it.

        Overload backs the interval off; a healthy process drifts back
        towards the configured base.
        """
        cpu = float(self._process.cpu_percent(interval=None))
        rss_mb = float(self._process.memory_info().rss) / (1024 * 1024)
        self.samples += 1
        self.peak_cpu_percent = max(self.peak_cpu_percent, cpu)
        self.peak_rss_mb = max(self.peak_rss_mb, rss_mb)
        overloaded = cpu > self.targets.cpu_percent_max or rss_mb > self.targets.rss_mb_max

        warning = None
        ceiling = base_tick_ms * 4
        rec = tick_ms

        if overloaded:
            warning = "resource_overload"
            rec = min(ceiling, tick_ms * 1.25 + 5)
        elif fps < self.targets.fps_min:
            warning = "below_fps_target"
            rec = max(base_tick_ms, tick_ms - 10)
        elif tick_ms > base_tick_ms:
            rec = max(base_tick_ms, tick_ms - 5)

        return BudgetStatus(
            cpu_percent=cpu,
            rss_mb=rss_mb,
            fps=float(fps),
            overloaded=overloaded,
            warning=warning,
            recommended_tick_ms=float(max(base_tick_ms, rec)),
        )

    def within_budget(self, fps_needed: float, fps: float) -> bool:
        """Headless check: the rate keeps up and memory stays under target. CPU is reported only."""
        return fps >= fps_needed and self.peak_rss_mb <= self.targets.rss_mb_max
