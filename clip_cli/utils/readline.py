"""Readline integration: slash-command completion and per-conversation recall."""

from __future__ import annotations

from typing import Callable, Iterable, List, Optional

try:
    import readline as _readline
except ImportError:  # pragma: no cover - e.g. Windows without pyreadline
    _readline = None


def make_command_completer(commands: Iterable[str]) -> Callable[[str, int], Optional[str]]:
    """Return a readline completer for ``/command`` words.

    Plain text never completes; only a leading ``/`` prefix does.
    """
    names = sorted(commands)

    def complete(text: str, state: int) -> Optional[str]:
        if not text.startswith("/"):
            return None
        partial = text[1:].lower()
        matches: List[str] = [f"/{name}" for name in names if name.startswith(partial)]
        return matches[state] if state < len(matches) else None

    return complete


def install_completer(commands: Iterable[str]) -> None:
    if _readline is None:
        return
    _readline.set_completer(make_command_completer(commands))
    # Keep "/" part of the word being completed.
    _readline.set_completer_delims(" \t\n")
    _readline.parse_and_bind("tab: complete")


def load_history(entries: Iterable[str]) -> None:
    """Replace readline's recall buffer with *entries* (oldest first)."""
    if _readline is None:
        return
    _readline.clear_history()
    for entry in entries:
        _readline.add_history(entry)
