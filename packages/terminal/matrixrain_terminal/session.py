"""Exclusive ownership of the terminal device for the lifetime of the animation."""

from __future__ import annotations

import logging
import os
import re
import select
import sys

try:
    import termios
    import tty
except ImportError:  # pragma: no cover - Windows has no termios
    termios = None
    tty = None

from .capabilities import terminal_size
from .errors import TerminalUnavailableError, TerminalWriteError

ENTER_ALT_SCREEN = "\x1b[?1049h"
LEAVE_ALT_SCREEN = "\x1b[?1049l"
HIDE_CURSOR = "\x1b[?25l"
SHOW_CURSOR = "\x1b[?25h"
RESET_SGR = "\x1b[0m"
CLEAR_SCREEN = "\x1b[2J"
HOME = "\x1b[H"

QUIT_KEYS = ("q", "Q", "\x1b")
# CSI and SS3 sequences sent by arrow, function and focus keys.
_KEY_SEQUENCE = re.compile(r"\x1b(?:\[[0-9;?]*[ -/]*[@-~]|O.)")

logger = logging.getLogger("matrixrain.terminal")


class TerminalSession:
    """Raw-ish terminal mode with guaranteed restoration.

    Entering hides the cursor, switches to the alternate screen and puts the
    input side in cbreak mode without echo. Leaving undoes all of it, also
    when the body raised.
    """

    def __init__(
        self,
        out_fd: int | None = None,
        in_fd: int | None = None,
        background_sgr: str = "",
        alternate_screen: bool = True,
    ) -> None:
        self.out_fd = out_fd
        self.in_fd = in_fd
        self.background_sgr = background_sgr
        self.alternate_screen = alternate_screen
        self._saved_attrs: list | None = None
        self._open = False
        self.bytes_written = 0

    @property
    def is_open(self) -> bool:
        return self._open

    def __enter__(self) -> "TerminalSession":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _input_is_tty(self) -> bool:
        try:
            return termios is not None and os.isatty(self.in_fd)
        except (OSError, TypeError):
            return False

    def _resolve_fds(self) -> None:
        if self.out_fd is None:
            try:
                self.out_fd = sys.stdout.fileno()
            except (AttributeError, OSError, ValueError) as exc:
                raise TerminalUnavailableError(f"standard output has no file descriptor: {exc}") from exc
        if self.in_fd is None:
            try:
                self.in_fd = sys.stdin.fileno()
            except (AttributeError, OSError, ValueError):
                # No keyboard input; quitting still works through signals.
                self.in_fd = None

    def open(self) -> None:
        if self._open:
            return
        self._resolve_fds()
        if not os.isatty(self.out_fd):
            raise TerminalUnavailableError("standard output is not a terminal; matrixrain needs an interactive TTY")

        if self._input_is_tty():
            self._saved_attrs = termios.tcgetattr(self.in_fd)
            tty.setcbreak(self.in_fd, termios.TCSANOW)
            attrs = termios.tcgetattr(self.in_fd)
            attrs[3] &= ~termios.ECHO
            termios.tcsetattr(self.in_fd, termios.TCSANOW, attrs)

        self._open = True
        prefix = ENTER_ALT_SCREEN if self.alternate_screen else ""
        bg = f"\x1b[0;{self.background_sgr}m" if self.background_sgr else RESET_SGR
        try:
            self.write(prefix + HIDE_CURSOR + bg + CLEAR_SCREEN + HOME)
        except TerminalWriteError:
            self.close()
            raise
        logger.debug("terminal session opened", extra={"event": "terminal_open"})

    def close(self) -> None:
        if not self._open:
            return
        self._open = False
        suffix = LEAVE_ALT_SCREEN if self.alternate_screen else CLEAR_SCREEN + HOME
        try:
            self._write_all((RESET_SGR + SHOW_CURSOR + suffix).encode("utf-8"))
        except OSError as exc:
            logger.warning("could not write terminal restore sequence: %s", exc, extra={"event": "restore_write_failed"})

        if self._saved_attrs is not None:
            try:
                termios.tcsetattr(self.in_fd, termios.TCSADRAIN, self._saved_attrs)
                termios.tcflush(self.in_fd, termios.TCIFLUSH)
            except (OSError, termios.error) as exc:
                logger.warning("could not restore terminal mode: %s", exc, extra={"event": "restore_mode_failed"})
            self._saved_attrs = None
        logger.debug("terminal session closed", extra={"event": "terminal_close"})

    def _write_all(self, payload: bytes) -> None:
        view = memoryview(payload)
        while view:
            written = os.write(self.out_fd, view)
            self.bytes_written += written
            view = view[written:]

    def write(self, data: str) -> None:
        if not self._open:
            raise TerminalWriteError("terminal session is not open")
        if not data:
            return
        try:
            self._write_all(data.encode("utf-8"))
        except OSError as exc:
            raise TerminalWriteError(f"terminal write failed: {exc}") from exc

    def read_key(self) -> str:
        """Return whatever keys are pending without blocking, or ``""``."""
        if self._saved_attrs is None:
            return ""
        ready, _, _ = select.select([self.in_fd], [], [], 0)
        if not ready:
            return ""
        return os.read(self.in_fd, 64).decode("utf-8", errors="ignore")

    def quit_requested(self) -> bool:
        keys = _KEY_SEQUENCE.sub("", self.read_key())
        return any(k in keys for k in QUIT_KEYS)

    def size(self) -> tuple[int, int]:
        return terminal_size(self.out_fd)
