import colorsys
import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "renderer"))

from matrixrain_renderer.colors import (
    SHADE_LEVELS,
    background_sgr,
    foreground_sgr,
    parse_color,
    rgb_to_16,
    rgb_to_256,
    shade,
)
from matrixrain_renderer.models import ColorMode
from matrixrain_renderer.schemes import get_scheme, list_schemes, resolve_scheme


class ColorTests(unittest.TestCase):
    def test_parse_color_forms(self):
        self.assertEqual(parse_color("#00ff2b"), (0, 255, 43))
        self.assertEqual(parse_color("red"), (255, 0, 0))
        self.assertEqual(parse_color("rgb(1, 2, 3)"), (1, 2, 3))
        with self.assertRaises(ValueError):
            parse_color("definitely-not-a-color")

    def test_shade_full_level_is_identity(self):
        self.assertEqual(shade((0, 255, 43), SHADE_LEVELS), (0, 255, 43))

    def test_shade_darkens_monotonically(self):
        base = (0, 255, 43)
        lightness = [
            colorsys.rgb_to_hls(*(c / 255 for c in shade(base, level)))[1] for level in range(1, SHADE_LEVELS + 1)
        ]
        self.assertEqual(lightness, sorted(lightness))
        self.assertGreater(lightness[0], 0.0)

    def test_palette_downsampling(self):
        self.assertEqual(rgb_to_256((255, 0, 0)), 196)
        self.assertEqual(rgb_to_256((255, 255, 255)), 231)
        self.assertEqual(rgb_to_256((128, 128, 128)), 244)
        self.assertEqual(rgb_to_16((0, 0, 0)), 0)
        self.assertEqual(rgb_to_16((255, 0, 0)), 9)

    def test_sgr_per_mode(self):
        self.assertEqual(foreground_sgr((1, 2, 3), ColorMode.TRUECOLOR), "38;2;1;2;3")
        self.assertEqual(foreground_sgr((255, 0, 0), ColorMode.ANSI256), "38;5;196")
        self.assertEqual(foreground_sgr((255, 0, 0), ColorMode.ANSI16), "91")
        self.assertEqual(foreground_sgr((0, 205, 0), ColorMode.ANSI16), "32")
        self.assertEqual(foreground_sgr((9, 9, 9), ColorMode.MONO, head=True), "1")
        self.assertEqual(foreground_sgr((9, 9, 9), ColorMode.MONO, level=2), "2")
        self.assertEqual(background_sgr((0, 0, 0), ColorMode.TRUECOLOR), "48;2;0;0;0")
        self.assertEqual(background_sgr((0, 0, 0), ColorMode.MONO), "49")


class SchemeTests(unittest.TestCase):
    def test_builtin_schemes(self):
        self.assertIn("green", list_schemes())
        self.assertEqual(get_scheme("green").body, "#00FF2B")
        self.assertEqual(get_scheme(None).name, "green")
        self.assertEqual(get_scheme("nope").name, "green")

    def test_resolve_name_case_insensitive(self):
        self.assertEqual(resolve_scheme("AMBER").name, "amber")

    def test_resolve_free_color(self):
        scheme = resolve_scheme("#ff8800")
        self.assertEqual(scheme.body, "#FF8800")
        self.assertEqual(scheme.head, get_scheme("green").head)

    def test_resolve_unknown_falls_back(self):
        self.assertEqual(resolve_scheme("zzz-unknown").name, "green")


if __name__ == "__main__":
    unittest.main()
