import json
import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest import mock

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "core"))
sys.path.insert(0, str(ROOT / "packages" / "renderer"))
sys.path.insert(0, str(ROOT / "packages" / "terminal"))

from matrixrain_core.config import AppConfig
from matrixrain_core.diagnostics import build_doctor_payload


class DiagnosticsTests(unittest.TestCase):
    def test_doctor_payload_reports_terminal_and_config(self):
        with tempfile.TemporaryDirectory() as tmp:
            env = {"MATRIXRAIN_HOME": tmp, "TERM": "xterm-256color", "COLORTERM": ""}
            with mock.patch.dict(os.environ, env, clear=False):
                os.environ.pop("NO_COLOR", None)
                cfg = AppConfig()
                cfg.rain.scheme = "amber"
                payload = build_doctor_payload(cfg)

            self.assertEqual(payload["terminal"]["detected_color_mode"], "256")
            self.assertEqual(payload["terminal"]["effective_color_mode"], "256")
            self.assertEqual(payload["scheme"], "amber")
            self.assertIn("rainbow", payload["schemes"])
            self.assertTrue(payload["config_path"].startswith(tmp))
            self.assertTrue(Path(payload["log_dir"]).is_dir())
            self.assertGreater(payload["terminal"]["columns"], 0)
            json.dumps(payload)

    def test_forced_color_mode_wins_over_detection(self):
        with tempfile.TemporaryDirectory() as tmp:
            with mock.patch.dict(os.environ, {"MATRIXRAIN_HOME": tmp, "NO_COLOR": "1"}, clear=False):
                cfg = AppConfig()
                cfg.terminal.color_mode = "truecolor"
                payload = build_doctor_payload(cfg)

            self.assertTrue(payload["terminal"]["no_color"])
            self.assertEqual(payload["terminal"]["detected_color_mode"], "mono")
            self.assertEqual(payload["terminal"]["effective_color_mode"], "truecolor")


if __name__ == "__main__":
    unittest.main()
