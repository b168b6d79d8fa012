"""Session state transitions.

A session moves ``empty -> active -> paused``. Every completed exchange pauses
it: the context is snapshotted and the live context is emptied, so a
follow-up only reuses the conversation after an explicit resume.
"""

from __future__ import annotations

import logging
from typing import Container, List, Optional

from .records import ASSISTANT, USER, Message, SessionState, now_ms

logger = logging.getLogger(__name__)

CONVERSATION_PREFIX = "conv_"

# Per-conversation prompt history kept for readline recall.
MAX_COMMAND_HISTORY = 50


def new_conversation_id(taken: Container[str] = ()) -> str:
    """Return ``conv_<epoch ms>``, stepping forward past ids already in use."""
    stamp = now_ms()
    while f"{CONVERSATION_PREFIX}{stamp}" in taken:
        stamp += 1
    return f"{CONVERSATION_PREFIX}{stamp}"


def begin(state: SessionState, conversation_id: Optional[str] = None, taken: Container[str] = ()) -> str:
    """Make *conversation_id* (or a freshly minted one) the current conversation."""
    if conversation_id is None:
        conversation_id = new_conversation_id(taken)
    state.current_conversation_id = conversation_id
    state.active_context = []
    state.last_response_id = None
    logger.info("Started conversation %s", conversation_id)
    return conversation_id


def abandon_paused(state: SessionState) -> None:
    """Drop the paused snapshot; its records stay reachable through history."""
    if state.paused:
        logger.info("Leaving paused conversation %s", state.paused_conversation_id)
    state.clear_pause()


def append_exchange(
    state: SessionState, prompt: str, response_text: str, response_id: Optional[str]
) -> bool:
    """Add one completed turn to the live context, then pause.

    The user message is skipped only when the context already ends with the
    same prompt as an unanswered user turn, i.e. this very exchange was
    appended before. A context ending with an assistant reply never
    suppresses the prompt, so a deliberately repeated question is kept.

    Returns False when the service supplied no response id; the conversation
    then continues with client-side context alone.
    """
    context = list(state.active_context)
    last = context[-1] if context else None
    if not (last is not None and last.role == USER and last.content == prompt):
        context.append(Message(USER, prompt))
    context.append(Message(ASSISTANT, response_text))

    state.paused_context = context
    state.paused_conversation_id = state.current_conversation_id
    state.paused = True
    state.active_context = []
    state.last_response_id = response_id or None

    if not response_id:
        logger.warning(
            "No response id for conversation %s; continuing with local context only",
            state.current_conversation_id,
        )
        return False
    return True


def remember_command(history: List[str], command: str) -> List[str]:
    """Return *history* with *command* appended, skipping repeats and capping length."""
    command = command.strip()
    if not command or command.startswith("/"):
        return history
    if history and history[-1] == command:
        return history
    return (history + [command])[-MAX_COMMAND_HISTORY:]


def last_assistant_message(context: List[Message]) -> Optional[Message]:
    for message in reversed(context):
        if message.role == ASSISTANT:
            return message
    return None
