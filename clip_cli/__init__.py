"""CLIP: a terminal chat client for OpenAI models with resumable conversations.

Features
--------
1. Conversation persistence: every exchange is stored under ``~/.clipai`` (or
   ``$CLIP_HOME``) and survives restarts.
2. Pause and resume: after each answer the conversation is paused. ``/continue``
   resumes it, ``/continue n`` picks up from response *n* of the current
   conversation, and with nothing paused the most recent exchange is used.
3. Web search: ``/tool websearch on|off`` lets the model search the web.

Run `python -m clip_cli` or the `clip` console script.
"""
# Re-export useful symbols for convenience
from .core import (
    HistoryIndex,
    RecordStore,
    ResumePath,
    SessionEngine,
    SessionState,
)
from .core.client import OpenAIClientWrapper
from .cli import ChatCLI, run_cli

__all__ = [
    "HistoryIndex",
    "RecordStore",
    "ResumePath",
    "SessionEngine",
    "SessionState",
    "OpenAIClientWrapper",
    "ChatCLI",
    "run_cli",
]
