"""Waiting indicator shown until the first token arrives."""
from __future__ import annotations

from yaspin import yaspin

from .ansi import console


class Spinner:
    """A yaspin spinner that can be stopped early and stopped again safely.

    Usable as a context manager; leaving the block always stops it.
    """

    def __init__(self, text: str = ""):
        self._spinner = yaspin(text=text, side="right")
        self._started = False

    def start(self) -> None:
        if self._started:
            return
        self._spinner.start()
        self._started = True

    def stop(self) -> None:
        if not self._started:
            return
        self._spinner.stop()
        console.file.flush()
        self._started = False

    def __enter__(self) -> "Spinner":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()
