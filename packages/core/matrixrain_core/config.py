"""Persistent settings schema, load/save helpers and the runtime settings snapshot."""

from __future__ import annotations

import json
import logging
import os
import platform
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from matrixrain_renderer.glyphs import CHARSETS
from matrixrain_renderer.models import ColorMode, RainSettings
from matrixrain_renderer.schemes import DEFAULT_SCHEME_NAME, resolve_scheme


CONFIG_VERSION = 2

SPEED_MIN = 0.1
SPEED_MAX = 10.0
TICK_MS_MIN = 5
TICK_MS_MAX = 1000


@dataclass
class RainConfig:
    scheme: str = DEFAULT_SCHEME_NAME
    speed: float = 1.0
    density: float = 0.1
    charset: str = "katakana"
    glitch: float = 0.02
    min_length: int = 4
    max_length: int = 24
    max_ticks_per_row: int = 3
    tick_ms: int = 75
    seed: int | None = None


@dataclass
class TerminalConfig:
    color_mode: str = "auto"
    alternate_screen: bool = True


@dataclass
class DiagnosticsConfig:
    keep_log_files: int = 7
    log_level: str = "INFO"


@dataclass
class PerformanceConfig:
    adaptive: bool = True
    cpu_percent_max: float = 25.0
    rss_mb_max: float = 200.0
    fps_min: float = 8.0
    sample_every_ticks: int = 40


@dataclass
class AppConfig:
    config_version: int = CONFIG_VERSION
    rain: RainConfig = field(default_factory=RainConfig)
    terminal: TerminalConfig = field(default_factory=TerminalConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)
    performance: PerformanceConfig = field(default_factory=PerformanceConfig)


def config_root() -> Path:
    override = os.environ.get("MATRIXRAIN_HOME")
    if override:
        return Path(override).expanduser()
    system = platform.system()
    if system == "Windows":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return base / "MatrixRain"
    if system == "Darwin":
        return Path.home() / "Library" / "Application Support" / "MatrixRain"
    return Path.home() / ".config" / "matrixrain"


def config_path() -> Path:
    return config_root() / "config.json"


def _merge(dataclass_type, raw: dict[str, Any]):
    defaults = dataclass_type()  # type: ignore[misc]
    if not isinstance(raw, dict):
        return defaults
    for k, v in raw.items():
        if hasattr(defaults, k):
            setattr(defaults, k, v)
    return defaults


def _as_float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _normalize_speed(value: Any) -> float:
    speed = _as_float(value, 1.0)
    if speed != speed or speed <= 0:
        # NaN, zero and negative speeds fall back rather than clamp to the floor.
        return 1.0
    return _clamp(speed, SPEED_MIN, SPEED_MAX)


def _normalize_rain(cfg: AppConfig) -> None:
    rain = cfg.rain
    rain.scheme = str(rain.scheme or DEFAULT_SCHEME_NAME).strip()
    rain.speed = _normalize_speed(rain.speed)
    rain.density = _clamp(_as_float(rain.density, 0.1), 0.0, 1.0)
    rain.glitch = _clamp(_as_float(rain.glitch, 0.02), 0.0, 1.0)
    if rain.charset not in CHARSETS:
        rain.charset = "katakana"
    rain.min_length = max(1, _as_int(rain.min_length, 4))
    rain.max_length = max(rain.min_length, _as_int(rain.max_length, 24))
    rain.max_ticks_per_row = max(1, _as_int(rain.max_ticks_per_row, 3))
    rain.tick_ms = int(_clamp(_as_int(rain.tick_ms, 75), TICK_MS_MIN, TICK_MS_MAX))
    if rain.seed is not None:
        rain.seed = _as_int(rain.seed, None)  # type: ignore[arg-type]


def _normalize_terminal(cfg: AppConfig) -> None:
    valid = {mode.value for mode in ColorMode} | {"auto"}
    if str(cfg.terminal.color_mode) not in valid:
        cfg.terminal.color_mode = "auto"
    cfg.terminal.color_mode = str(cfg.terminal.color_mode)
    cfg.terminal.alternate_screen = bool(cfg.terminal.alternate_screen)


def _normalize_diagnostics(cfg: AppConfig) -> None:
    cfg.diagnostics.keep_log_files = max(2, _as_int(cfg.diagnostics.keep_log_files, 7))
    level = str(cfg.diagnostics.log_level).upper()
    if level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
        level = "INFO"
    cfg.diagnostics.log_level = level


def _normalize_performance(cfg: AppConfig) -> None:
    perf = cfg.performance
    perf.adaptive = bool(perf.adaptive)
    perf.cpu_percent_max = float(max(1.0, _as_float(perf.cpu_percent_max, 25.0)))
    perf.rss_mb_max = float(max(32.0, _as_float(perf.rss_mb_max, 200.0)))
    perf.fps_min = float(max(1.0, _as_float(perf.fps_min, 8.0)))
    perf.sample_every_ticks = max(5, _as_int(perf.sample_every_ticks, 40))


def normalize_config(cfg: AppConfig) -> AppConfig:
    _normalize_rain(cfg)
    _normalize_terminal(cfg)
    _normalize_diagnostics(cfg)
    _normalize_performance(cfg)
    return cfg


def _migrate(raw: dict[str, Any]) -> dict[str, Any]:
    version = _as_int(raw.get("config_version", 1), 1)
    data = dict(raw)

    if version < 2:
        # v1 kept color and speed as flat top-level keys.
        rain = dict(data.get("rain", {}) or {})
        if "color" in data:
            rain.setdefault("scheme", data.pop("color"))
        if "speed" in data:
            rain.setdefault("speed", data.pop("speed"))
        data["rain"] = rain
        data.setdefault("terminal", {})
        data.setdefault("diagnostics", {})
        data.setdefault("performance", {})
        data["config_version"] = 2

    return data


def load_config(path: Path | None = None) -> AppConfig:
    path = path or config_path()
    if not path.exists():
        return AppConfig()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        logging.getLogger("matrixrain").warning("unreadable config at %s, using defaults", path)
        return AppConfig()
    if not isinstance(raw, dict):
        return AppConfig()

    data = _migrate(raw)
    cfg = AppConfig(
        config_version=CONFIG_VERSION,
        rain=_merge(RainConfig, data.get("rain", {})),
        terminal=_merge(TerminalConfig, data.get("terminal", {})),
        diagnostics=_merge(DiagnosticsConfig, data.get("diagnostics", {})),
        performance=_merge(PerformanceConfig, data.get("performance", {})),
    )
    return normalize_config(cfg)


def save_config(cfg: AppConfig, path: Path | None = None) -> Path:
    cfg.config_version = CONFIG_VERSION
    path = path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(cfg), indent=2, sort_keys=True), encoding="utf-8")
    return path


def build_settings(cfg: AppConfig, color_mode: ColorMode | None = None) -> RainSettings:
    """Freeze the normalized config into the snapshot the renderer consumes.

    ``color_mode`` is the detected terminal capability; it is only used when
    the config leaves the mode on ``auto``.
    """
    normalize_config(cfg)
    rain = cfg.rain
    scheme = resolve_scheme(rain.scheme)
    if cfg.terminal.color_mode != "auto":
        mode = ColorMode(cfg.terminal.color_mode)
    else:
        mode = color_mode or ColorMode.TRUECOLOR
    return RainSettings(
        scheme=scheme,
        speed=rain.speed,
        density=rain.density,
        charset=rain.charset,
        glitch=rain.glitch,
        min_length=rain.min_length,
        max_length=rain.max_length,
        max_ticks_per_row=rain.max_ticks_per_row,
        tick_ms=rain.tick_ms,
        color_mode=mode,
        seed=rain.seed,
    )
