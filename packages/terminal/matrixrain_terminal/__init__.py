"""Terminal ownership, capability detection and frame output."""

from .capabilities import detect_color_mode, terminal_size
from .errors import TerminalError, TerminalUnavailableError, TerminalWriteError
from .session import TerminalSession

__all__ = [
    "TerminalError",
    "TerminalSession",
    "TerminalUnavailableError",
    "TerminalWriteError",
    "detect_color_mode",
    "terminal_size",
]
