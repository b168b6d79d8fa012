"""Continuation resolver: decide which earlier exchange a session resumes from.

The paths are tried in order and the first that applies wins:

1. ``PAUSED``   - no index given and a conversation is paused: restore the
   snapshot exactly as it was.
2. ``INDEX``    - index *n* (1-based) into the current conversation's history:
   narrow the context to that single exchange.
3. ``LATEST``   - the current conversation has history: as ``INDEX`` with its
   most recent exchange.
4. ``BRANCH``   - any conversation has history: start a *new* conversation
   seeded with the globally most recent exchange.
5. ``NOTHING``  - nothing to resume; the session is left untouched.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Collection, Optional

from .history import HistoryIndex
from .records import ASSISTANT, USER, Message, ResponseRecord, SessionState
from .session import last_assistant_message, new_conversation_id
from .store import RecordStore

logger = logging.getLogger(__name__)


class ResumePath(enum.Enum):
    PAUSED = "paused"
    INDEX = "index"
    LATEST = "latest"
    BRANCH = "branch"
    NOTHING = "nothing"


@dataclass(frozen=True)
class Resolution:
    path: ResumePath
    record: Optional[ResponseRecord] = None

    @property
    def resumed(self) -> bool:
        return self.path is not ResumePath.NOTHING


def _context_for(record: ResponseRecord):
    return [Message(USER, record.prompt), Message(ASSISTANT, record.response)]


class ContinuationResolver:
    def __init__(self, history: HistoryIndex, store: Optional[RecordStore] = None):
        self.history = history
        self.store = store

    def choose(self, state: SessionState, index: Optional[int] = None) -> Resolution:
        """Pick the path for *index* without changing anything."""
        if index is None and state.paused:
            return Resolution(ResumePath.PAUSED)

        current = self.history.list(state.current_conversation_id)
        if index is not None and 1 <= index <= len(current):
            return Resolution(ResumePath.INDEX, current[index - 1])
        if current:
            return Resolution(ResumePath.LATEST, current[0])

        everything = self.history.list_all()
        if everything:
            return Resolution(ResumePath.BRANCH, everything[0])
        return Resolution(ResumePath.NOTHING)

    def resolve(
        self,
        state: SessionState,
        index: Optional[int] = None,
        taken: Collection[str] = (),
    ) -> Resolution:
        """Move *state* onto the chosen exchange and persist it.

        *taken* lists conversation ids already in use, so a branch never
        reuses one.
        """
        resolution = self.choose(state, index)
        path = resolution.path

        if path is ResumePath.NOTHING:
            logger.info("Nothing to continue from (index=%s)", index)
            return resolution

        if path is ResumePath.PAUSED:
            self._restore_paused(state)
        else:
            record = resolution.record
            if path is ResumePath.BRANCH:
                taken = set(taken) | set(self.history.conversation_ids())
                state.current_conversation_id = new_conversation_id(taken)
                logger.info(
                    "Branching %s from response %s of %s",
                    state.current_conversation_id,
                    record.id,
                    record.conversation_id,
                )
            elif state.current_conversation_id is None:
                state.current_conversation_id = new_conversation_id(taken)
            state.last_response_id = record.id
            state.active_context = _context_for(record)
            state.clear_pause()

        logger.info("Resumed via %s path into %s", path.value, state.current_conversation_id)
        if self.store is not None:
            self.store.save_state(state)
        return resolution

    def _restore_paused(self, state: SessionState) -> None:
        state.active_context = list(state.paused_context)
        state.current_conversation_id = state.paused_conversation_id

        # The saved id may be stale or lost across a restart; look it up
        # again from the reply the snapshot ends with.
        reply = last_assistant_message(state.active_context)
        if reply is not None:
            for record in self.history.list(state.current_conversation_id):
                if record.response == reply.content:
                    state.last_response_id = record.id
                    break
            else:
                logger.debug("No stored response matches the paused reply; keeping %s", state.last_response_id)

        state.clear_pause()
