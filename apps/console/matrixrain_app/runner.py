"""Single-threaded animation loop with signal-driven resize and shutdown."""

from __future__ import annotations

import signal
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from matrixrain_core.logging_setup import get_logger
from matrixrain_core.performance import PerformanceController
from matrixrain_renderer import Waterfall
from matrixrain_terminal import TerminalSession, TerminalWriteError


class LoopState(str, Enum):
    UNINITIALIZED = "Uninitialized"
    RUNNING = "Running"
    TERMINATING = "Terminating"
    EXITED = "Exited"


@dataclass
class LoopStatus:
    state: LoopState = LoopState.UNINITIALIZED
    ticks: int = 0
    fps: float = 0.0
    tick_ms: float = 0.0
    resizes: int = 0
    exit_reason: str | None = None
    last_error: str | None = None


class AnimationLoop:
    def __init__(
        self,
        waterfall: Waterfall,
        session: TerminalSession,
        tick_ms: float,
        max_ticks: int = 0,
        performance: PerformanceController | None = None,
        sample_every: int = 40,
        clock: Callable[[], float] = time.perf_counter,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.waterfall = waterfall
        self.session = session
        self.base_tick_ms = float(tick_ms)
        self.max_ticks = max(0, int(max_ticks))
        self.performance = performance
        self.sample_every = max(1, int(sample_every))
        self._clock = clock
        self._sleep = sleep

        self._status = LoopStatus(tick_ms=self.base_tick_ms)
        self._stop = False
        self._resized = False
        self._previous_handlers: dict[int, object] = {}
        self._log = get_logger("loop")

    @property
    def status(self) -> LoopStatus:
        return self._status

    def request_stop(self, reason: str = "stop_requested") -> None:
        self._stop = True
        self._status.exit_reason = reason

    def request_resize(self) -> None:
        self._resized = True

    def _on_sigwinch(self, _signum, _frame) -> None:
        self.request_resize()

    def _on_sigterm(self, _signum, _frame) -> None:
        self.request_stop("sigterm")

    def _install_signals(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            return
        if hasattr(signal, "SIGWINCH"):
            self._previous_handlers[signal.SIGWINCH] = signal.signal(signal.SIGWINCH, self._on_sigwinch)
        self._previous_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, self._on_sigterm)

    def _restore_signals(self) -> None:
        for signum, handler in self._previous_handlers.items():
            signal.signal(signum, handler)
        self._previous_handlers.clear()

    def _apply_budget(self, window_ticks: int, window_s: float) -> None:
        fps = window_ticks / max(window_s, 1e-9)
        self._status.fps = fps
        if self.performance is None:
            return
        budget = self.performance.sample(fps, self._status.tick_ms, self.base_tick_ms)
        if budget.warning:
            self._log.info(
                "performance budget %s, tick %.1fms -> %.1fms",
                budget.warning,
                self._status.tick_ms,
                budget.recommended_tick_ms,
                extra={"event": "budget"},
            )
        self._status.tick_ms = budget.recommended_tick_ms

    def _tick(self) -> None:
        if self._resized:
            self._resized = False
            width, height = self.session.size()
            self.waterfall.handle_resize(width, height)
            self._status.resizes += 1
            self._log.debug("resized to %sx%s", width, height, extra={"event": "resize", "width": width, "height": height})
        self.waterfall.advance_tick()
        self.session.write(self.waterfall.render_frame())
        self._status.ticks += 1

    def _run_frames(self) -> None:
        width, height = self.session.size()
        self.waterfall.initialize(width, height)
        self._log.info("animation started %sx%s", width, height, extra={"event": "loop_start", "width": width, "height": height})

        window_start = self._clock()
        window_ticks = 0
        while not self._stop:
            started = self._clock()
            if self.session.quit_requested():
                self.request_stop("quit_key")
                break
            self._tick()
            window_ticks += 1

            if self.max_ticks and self._status.ticks >= self.max_ticks:
                self.request_stop("max_ticks")
                break

            if window_ticks >= self.sample_every:
                now = self._clock()
                self._apply_budget(window_ticks, now - window_start)
                window_start, window_ticks = now, 0

            remaining = self._status.tick_ms / 1000.0 - (self._clock() - started)
            if remaining > 0:
                self._sleep(remaining)

    def run(self) -> int:
        """Drive the animation until stopped. Returns the process exit code.

        Interrupts end the run with 0; a failed terminal write ends it with 1.
        Both leave the terminal restored by the session context manager.
        """
        rc = 0
        self._install_signals()
        self._status.state = LoopState.RUNNING
        try:
            with self.session:
                self._run_frames()
                self._status.state = LoopState.TERMINATING
        except KeyboardInterrupt:
            self._status.state = LoopState.TERMINATING
            self._status.exit_reason = "interrupt"
        except TerminalWriteError as exc:
            self._status.state = LoopState.TERMINATING
            self._status.exit_reason = "write_error"
            self._status.last_error = str(exc)
            self._log.error("terminal write failed: %s", exc, extra={"event": "write_error"})
            rc = 1
        finally:
            self._restore_signals()
            self._status.state = LoopState.EXITED
            self._log.info(
                "animation exited after %s ticks (%s)",
                self._status.ticks,
                self._status.exit_reason,
                extra={"event": "loop_exit", "ticks": self._status.ticks, "exit_reason": self._status.exit_reason},
            )
        return rc
