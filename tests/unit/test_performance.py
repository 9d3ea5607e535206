import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "core"))
sys.path.insert(0, str(ROOT / "packages" / "renderer"))
sys.path.insert(0, str(ROOT / "packages" / "terminal"))

from matrixrain_core.performance import PerformanceController, PerformanceTargets


class PerformanceTests(unittest.TestCase):
    def test_budget_sample_shape(self):
        ctl = PerformanceController(PerformanceTargets(cpu_percent_max=1000.0, rss_mb_max=1e6, fps_min=5.0))
        status = ctl.sample(fps=12.0, tick_ms=75.0, base_tick_ms=75.0)
        self.assertFalse(status.overloaded)
        self.assertIsNone(status.warning)
        self.assertEqual(status.recommended_tick_ms, 75.0)
        self.assertGreater(status.rss_mb, 0.0)

    def test_overload_backs_off_within_ceiling(self):
        ctl = PerformanceController(PerformanceTargets(cpu_percent_max=1000.0, rss_mb_max=0.001, fps_min=5.0))
        status = ctl.sample(fps=12.0, tick_ms=75.0, base_tick_ms=75.0)
        self.assertTrue(status.overloaded)
        self.assertEqual(status.warning, "resource_overload")
        self.assertGreater(status.recommended_tick_ms, 75.0)
        capped = ctl.sample(fps=12.0, tick_ms=300.0, base_tick_ms=75.0)
        self.assertLessEqual(capped.recommended_tick_ms, 300.0)

    def test_recovers_towards_base(self):
        ctl = PerformanceController(PerformanceTargets(cpu_percent_max=1000.0, rss_mb_max=1e6, fps_min=5.0))
        status = ctl.sample(fps=12.0, tick_ms=100.0, base_tick_ms=75.0)
        self.assertEqual(status.recommended_tick_ms, 95.0)
        slow = ctl.sample(fps=1.0, tick_ms=80.0, base_tick_ms=75.0)
        self.assertEqual(slow.warning, "below_fps_target")
        self.assertEqual(slow.recommended_tick_ms, 75.0)

    def test_tracks_peaks_for_headless_budget(self):
        ctl = PerformanceController(PerformanceTargets(cpu_percent_max=1000.0, rss_mb_max=1e6, fps_min=5.0))
        first = ctl.sample(fps=40.0, tick_ms=75.0, base_tick_ms=75.0)
        ctl.sample(fps=40.0, tick_ms=75.0, base_tick_ms=75.0)
        self.assertEqual(ctl.samples, 2)
        self.assertGreaterEqual(ctl.peak_rss_mb, first.rss_mb)
        self.assertTrue(ctl.within_budget(13.3, 40.0))
        self.assertFalse(ctl.within_budget(13.3, 10.0))


if __name__ == "__main__":
    unittest.main()
