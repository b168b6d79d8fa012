"""Commit a finished exchange to history, session state and disk."""

from __future__ import annotations

import logging
from typing import Dict, Optional

from .history import HistoryIndex
from .records import Conversation, ResponseRecord, SessionState, now_ms
from .session import append_exchange, new_conversation_id, remember_command
from .store import RecordStore

logger = logging.getLogger(__name__)


class ExchangeRecorder:
    def __init__(self, history: HistoryIndex, store: RecordStore, conversations: Dict[str, Conversation]):
        self.history = history
        self.store = store
        self.conversations = conversations

    def commit(
        self,
        state: SessionState,
        prompt: str,
        response_text: str,
        response_id: Optional[str],
    ) -> Optional[ResponseRecord]:
        """Record one fully received response.

        An empty response changes nothing. Without a response id the exchange
        still lands in the session context but not in the response history,
        since it could never be continued server-side.

        Files are written responses first and state last, so the state file
        never points at a conversation that was not flushed.
        """
        if not response_text:
            logger.warning("Empty response for prompt %r; nothing recorded", prompt[:60])
            return None

        if state.current_conversation_id is None:
            taken = set(self.conversations) | set(self.history.conversation_ids())
            state.current_conversation_id = new_conversation_id(taken)
        conv_id = state.current_conversation_id

        append_exchange(state, prompt, response_text, response_id)

        record = None
        if response_id:
            record = ResponseRecord(
                id=response_id,
                prompt=prompt,
                response=response_text,
                timestamp=now_ms(),
                conversation_id=conv_id,
            )
            self.history.record(conv_id, record)
            self.store.save_responses(conv_id, self.history.list(conv_id))

        conversation = self.conversations.setdefault(conv_id, Conversation(conv_id))
        conversation.context = list(state.paused_context)
        conversation.command_history = remember_command(conversation.command_history, prompt)
        self.store.save_conversation(conversation)
        self.store.save_state(state)

        logger.info(
            "Recorded exchange in %s (response id %s, %d messages)",
            conv_id,
            response_id,
            len(state.paused_context),
        )
        return record
