"""Core services for settings, logging, performance budgeting, and diagnostics."""

from .config import AppConfig, build_settings, load_config, normalize_config, save_config
from .diagnostics import build_doctor_payload
from .performance import BudgetStatus, PerformanceController, PerformanceTargets

__all__ = [
    "AppConfig",
    "BudgetStatus",
    "PerformanceController",
    "PerformanceTargets",
    "build_doctor_payload",
    "build_settings",
    "load_config",
    "normalize_config",
    "save_config",
]
