"""Session engine: the one object the CLI talks to.

It owns the session state, the conversations, the history index and the
store, and guards them with a busy flag so nothing changes the session while
a request is in flight.
"""

from __future__ import annotations

import copy
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

from .errors import SessionBusyError
from .history import HistoryIndex
from .records import Conversation, Message, ResponseRecord, SessionState, USER
from .recorder import ExchangeRecorder
from .resolver import ContinuationResolver, Resolution
from .session import abandon_paused, begin
from .store import RecordStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreparedRequest:
    """What to send the service for one prompt."""

    prompt: str
    messages: List[Message]
    previous_response_id: Optional[str] = None
    conversation_id: Optional[str] = None

    def input_payload(self) -> List[Dict[str, str]]:
        return [m.to_dict() for m in self.messages]


class SessionEngine:
    def __init__(self, store: RecordStore) -> None:
        self.store = store
        self.state = SessionState()
        self.conversations: Dict[str, Conversation] = {}
        self.history = HistoryIndex()
        self._busy = False
        self._pending: Optional[SessionState] = None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, resume_session: bool = False) -> None:
        """Read everything from disk.

        Unless *resume_session* is set the stored session is discarded and a
        clean one is saved; stored conversations and history are kept.
        """
        state, self.conversations, responses = self.store.load()
        self.history = HistoryIndex.from_records(responses)
        if resume_session:
            self.state = state
        else:
            self.state = SessionState()
            self.store.save_state(self.state)

    @property
    def resolver(self) -> ContinuationResolver:
        return ContinuationResolver(self.history, self.store)

    @property
    def recorder(self) -> ExchangeRecorder:
        return ExchangeRecorder(self.history, self.store, self.conversations)

    def _taken_ids(self) -> set:
        return set(self.conversations) | set(self.history.conversation_ids())

    # ------------------------------------------------------------------
    # In-flight guard
    # ------------------------------------------------------------------

    @property
    def busy(self) -> bool:
        return self._busy

    def _ensure_idle(self) -> None:
        if self._busy:
            raise SessionBusyError("A response is still being received; try again when it completes.")

    @contextmanager
    def request(self) -> Iterator[None]:
        """Mark a request as in flight for the duration of the block."""
        self._ensure_idle()
        self._busy = True
        try:
            yield
        finally:
            self._busy = False

    # ------------------------------------------------------------------
    # Turn handling
    # ------------------------------------------------------------------

    def prepare(self, prompt: str) -> PreparedRequest:
        """Work out the request to send for *prompt*.

        Nothing is saved here. The session changes are made on a working copy
        that :meth:`record` commits once the answer has arrived, and that
        :meth:`discard` drops when it does not. Sending a prompt while paused,
        without resuming first, leaves the paused conversation behind and
        starts a new one.
        """
        self._ensure_idle()
        state = copy.deepcopy(self.state)
        if state.paused and not state.active_context:
            abandon_paused(state)
            begin(state, taken=self._taken_ids())
        if state.current_conversation_id is None:
            begin(state, taken=self._taken_ids())
        self._pending = state

        conv_id = state.current_conversation_id
        if state.last_response_id:
            # The service already holds the thread; only the new turn is sent.
            return PreparedRequest(prompt, [Message(USER, prompt)], state.last_response_id, conv_id)
        return PreparedRequest(prompt, list(state.active_context) + [Message(USER, prompt)], None, conv_id)

    def record(self, prompt: str, response_text: str, response_id: Optional[str]) -> Optional[ResponseRecord]:
        state = self._pending if self._pending is not None else self.state
        self._pending = None
        if response_text:
            self.state = state
        return self.recorder.commit(self.state, prompt, response_text, response_id)

    def discard(self) -> None:
        """Forget a prepared request that produced no answer."""
        if self._pending is not None:
            logger.info("Discarding prepared request for %s", self._pending.current_conversation_id)
        self._pending = None

    def resume(self, index: Optional[int] = None) -> Resolution:
        self._ensure_idle()
        self._pending = None
        return self.resolver.resolve(self.state, index, taken=self._taken_ids())

    def new_conversation(self) -> str:
        self._ensure_idle()
        self._pending = None
        abandon_paused(self.state)
        conv_id = begin(self.state, taken=self._taken_ids())
        self.conversations[conv_id] = Conversation(conv_id)
        self.store.save_conversation(self.conversations[conv_id])
        self.store.save_state(self.state)
        return conv_id

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def command_history(self) -> List[str]:
        conv_id = self.state.current_conversation_id
        if conv_id is None or conv_id not in self.conversations:
            return []
        return list(self.conversations[conv_id].command_history)

    def describe(self) -> Dict[str, Any]:
        state = self.state
        return {
            "current_conversation_id": state.current_conversation_id,
            "last_response_id": state.last_response_id,
            "context_messages": len(state.active_context),
            "paused": state.paused,
            "paused_conversation_id": state.paused_conversation_id,
            "paused_context_messages": len(state.paused_context),
            "busy": self._busy,
        }
