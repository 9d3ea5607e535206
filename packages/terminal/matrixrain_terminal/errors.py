"""Terminal failure types."""

from __future__ import annotations


class TerminalError(RuntimeError):
    pass


class TerminalUnavailableError(TerminalError):
    """The output is not a usable terminal; raised before the loop starts."""


class TerminalWriteError(TerminalError):
    """Writing a frame failed, e.g. the reader of a pipe went away."""
