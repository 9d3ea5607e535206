import random
import sys
import unittest
from pathlib import Path

import numpy as np

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "renderer"))

from matrixrain_renderer.models import RainSettings, Stream
from matrixrain_renderer.schemes import get_scheme
from matrixrain_renderer.waterfall import Waterfall


def make_waterfall(seed=7, **overrides):
    params = {"scheme": get_scheme("green"), "density": 0.2, "seed": seed}
    params.update(overrides)
    settings = RainSettings(**params)
    return Waterfall(settings, random.Random(seed))


class WaterfallTests(unittest.TestCase):
    def test_initialize_matches_dimensions(self):
        for width, height in [(1, 1), (80, 24), (13, 57), (0, 10), (10, 0)]:
            wf = make_waterfall().initialize(width, height)
            self.assertEqual(wf.chars.shape, (height, width))
            self.assertEqual(wf.brightness.shape, (height, width))
            self.assertEqual(wf.colors.shape, (height, width, 3))
            self.assertEqual(len(list(wf.cells())), height)

    def test_brightness_only_rises_at_heads(self):
        for seed in (1, 2, 3):
            wf = make_waterfall(seed=seed, glitch=0.3).initialize(30, 12)
            previous = wf.brightness.copy()
            for _ in range(200):
                wf.advance_tick()
                current = wf.brightness
                heads = set(wf.heads())
                for row, column in np.argwhere(current > previous + 1e-7):
                    self.assertIn((int(row), int(column)), heads)
                previous = current.copy()

    def test_brightness_stays_in_range(self):
        wf = make_waterfall(seed=5).initialize(20, 10)
        for _ in range(150):
            wf.advance_tick()
            self.assertGreaterEqual(float(wf.brightness.min()), 0.0)
            self.assertLessEqual(float(wf.brightness.max()), 1.0)
            blank = wf.brightness == 0
            self.assertTrue((wf.chars[blank] == " ").all())

    def test_heads_never_leave_grid(self):
        wf = make_waterfall(seed=11, density=0.5).initialize(25, 8)
        for _ in range(300):
            wf.advance_tick()
            for stream in wf.streams.values():
                self.assertLessEqual(stream.row, wf.height - 1)

    def test_stream_removed_once_tail_exits(self):
        wf = make_waterfall(density=0.0).initialize(1, 4)
        wf.streams[0] = Stream(column=0, length=2, speed=1, color=(0, 255, 43))

        for _ in range(4):
            wf.advance_tick()
        self.assertEqual(wf.streams[0].row, 3)
        self.assertEqual(wf.heads(), [(3, 0)])

        wf.advance_tick()
        self.assertIn(0, wf.streams)
        self.assertEqual(wf.streams[0].drained, 1)
        self.assertEqual(wf.heads(), [])

        wf.advance_tick()
        self.assertNotIn(0, wf.streams)
        self.assertEqual(float(wf.brightness.max()), 0.0)
        self.assertTrue((wf.chars == " ").all())

    def test_slow_stream_waits_between_rows(self):
        wf = make_waterfall(density=0.0).initialize(1, 5)
        wf.streams[0] = Stream(column=0, length=3, speed=3, color=(0, 255, 43), delay=1)
        rows = []
        for _ in range(7):
            wf.advance_tick()
            rows.append(wf.streams[0].row)
        self.assertEqual(rows, [-1, -1, -1, 0, 0, 0, 1])

    def test_fixed_seed_is_deterministic(self):
        a = make_waterfall(seed=42, glitch=0.1).initialize(40, 15)
        b = make_waterfall(seed=42, glitch=0.1).initialize(40, 15)
        for _ in range(120):
            a.advance_tick()
            b.advance_tick()
            for left, right in zip(a.state(), b.state()):
                self.assertTrue(np.array_equal(left, right))

    def test_zero_density_never_spawns(self):
        wf = make_waterfall(density=0.0).initialize(20, 10)
        self.assertEqual(wf.streams, {})
        for _ in range(50):
            wf.advance_tick()
        self.assertEqual(wf.streams, {})
        self.assertEqual(float(wf.brightness.max()), 0.0)

    def test_resize_grow_shrink_and_zero(self):
        wf = make_waterfall(seed=3, density=0.4).initialize(30, 12)
        for _ in range(40):
            wf.advance_tick()
        before = wf.state()

        wf.handle_resize(40, 20)
        self.assertEqual(wf.chars.shape, (20, 40))
        self.assertTrue(np.array_equal(wf.chars[:12, :30], before[0]))

        wf.handle_resize(10, 5)
        self.assertEqual(wf.chars.shape, (5, 10))
        self.assertTrue(all(column < 10 for column in wf.streams))
        self.assertTrue(all(stream.row <= 4 for stream in wf.streams.values()))

        wf.handle_resize(0, 0)
        for _ in range(60):
            wf.advance_tick()
        self.assertEqual(wf.render_frame(), "")

        wf.handle_resize(15, 6)
        for _ in range(60):
            wf.advance_tick()
            self.assertEqual(wf.brightness.shape, (6, 15))

    def test_draining_stream_keeps_draining_after_grow(self):
        wf = make_waterfall(density=0.0, glitch=0.0).initialize(1, 4)
        stream = Stream(column=0, length=3, speed=1, color=(0, 255, 43))
        wf.streams[0] = stream
        for _ in range(5):
            wf.advance_tick()
        self.assertEqual((stream.row, stream.drained), (3, 1))

        wf.handle_resize(1, 10)
        previous = wf.brightness.copy()
        while 0 in wf.streams:
            wf.advance_tick()
            rises = np.argwhere(wf.brightness > previous + 1e-7)
            self.assertEqual(rises.size, 0)
            previous = wf.brightness.copy()
        self.assertEqual(stream.row, 3)
        self.assertEqual(float(wf.brightness.max()), 0.0)

    def test_brightness_invariant_holds_across_resizes(self):
        wf = make_waterfall(seed=4, density=0.3).initialize(12, 6)
        sizes = [(12, 9), (8, 4), (14, 12), (14, 3), (10, 10)]
        for step in range(150):
            if step % 30 == 29:
                wf.handle_resize(*sizes[(step // 30) % len(sizes)])
            previous = wf.brightness.copy()
            wf.advance_tick()
            heads = set(wf.heads())
            for row, column in np.argwhere(wf.brightness > previous + 1e-7):
                self.assertIn((int(row), int(column)), heads)
            lit_columns = set(np.argwhere(wf.brightness > 0)[:, 1].tolist())
            self.assertTrue(lit_columns <= set(wf.streams))

    def test_rainbow_streams_get_their_own_colors(self):
        wf = make_waterfall(seed=9, scheme=get_scheme("rainbow"), density=0.5).initialize(30, 5)
        colors = {stream.color for stream in wf.streams.values()}
        self.assertGreater(len(colors), 1)


if __name__ == "__main__":
    unittest.main()
