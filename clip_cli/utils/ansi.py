"""Colour and styling helpers built on :mod:`rich`."""

import os
from rich.console import Console
from rich.markup import escape


console = Console(highlight=False)


class Ansi:
    """Style names used throughout the app."""

    BOLD = "bold"
    DIM = "dim"

    FG_GREEN = "green"
    FG_YELLOW = "yellow"
    FG_RED = "red"

    @staticmethod
    def style(text: str, *codes: str) -> str:
        """Return *text* wrapped in rich markup unless ``NO_COLOR`` is set.

        Square brackets in *text* are escaped so prompts and replies are never
        read as markup.
        """
        text = escape(text)
        if os.getenv("NO_COLOR") is not None:
            return text
        style = " ".join(codes)
        return f"[{style}]{text}[/]"


def mode_label(web_search: bool) -> str:
    if web_search:
        return Ansi.style("Web Search", Ansi.FG_GREEN)
    return Ansi.style("Standard", Ansi.FG_YELLOW)


ASSISTANT_LABEL = Ansi.style("AI", Ansi.BOLD)
ERROR_LABEL = Ansi.style("error", Ansi.FG_RED, Ansi.BOLD)
WARNING_LABEL = Ansi.style("warning", Ansi.FG_YELLOW, Ansi.BOLD)
