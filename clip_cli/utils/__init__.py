from .ansi import (
    Ansi,
    ASSISTANT_LABEL,
    ERROR_LABEL,
    WARNING_LABEL,
    console,
    mode_label,
)
from .log import configure_logging, debug_level
from .readline import install_completer, load_history
from .spinner import Spinner

__all__ = [
    "Ansi",
    "ASSISTANT_LABEL",
    "ERROR_LABEL",
    "WARNING_LABEL",
    "console",
    "mode_label",
    "configure_logging",
    "debug_level",
    "install_completer",
    "load_history",
    "Spinner",
]
