"""Record shapes persisted by the store.

Every ``from_dict`` is lenient: unknown keys are ignored and missing keys fall
back to defaults, so a partially written or older file still loads.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

USER = "user"
ASSISTANT = "assistant"

# Length of the response excerpt stored next to the full text for listings.
PREVIEW_LENGTH = 100


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class Message:
    role: str
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}

    @classmethod
    def from_dict(cls, data: Any) -> Optional["Message"]:
        if not isinstance(data, dict):
            return None
        role = data.get("role")
        content = data.get("content")
        if role not in (USER, ASSISTANT) or not isinstance(content, str):
            return None
        return cls(role=role, content=content)


def context_to_list(context: List[Message]) -> List[Dict[str, str]]:
    return [m.to_dict() for m in context]


def context_from_list(data: Any) -> List[Message]:
    """Parse a stored context, dropping entries that are not valid messages."""
    if not isinstance(data, list):
        return []
    messages = (Message.from_dict(item) for item in data)
    return [m for m in messages if m is not None]


def _preview(text: str) -> str:
    if len(text) <= PREVIEW_LENGTH:
        return text
    return text[:PREVIEW_LENGTH] + "..."


@dataclass(frozen=True)
class ResponseRecord:
    """One completed exchange, keyed by the service's response id."""

    id: str
    prompt: str
    response: str
    timestamp: int
    conversation_id: str

    @property
    def preview(self) -> str:
        return _preview(self.response)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "prompt": self.prompt,
            "response": self.preview,
            "fullResponse": self.response,
            "timestamp": self.timestamp,
            "conversationId": self.conversation_id,
        }

    @classmethod
    def from_dict(cls, data: Any, conversation_id: str) -> Optional["ResponseRecord"]:
        """Build a record, or return None when it lacks an id.

        The file a record came from decides its conversation, not the
        ``conversationId`` field inside it.
        """
        if not isinstance(data, dict) or not isinstance(data.get("id"), str):
            return None
        response = data.get("fullResponse")
        if not isinstance(response, str):
            response = data.get("response") if isinstance(data.get("response"), str) else ""
        timestamp = data.get("timestamp")
        if not isinstance(timestamp, (int, float)) or isinstance(timestamp, bool):
            timestamp = 0
        prompt = data.get("prompt")
        return cls(
            id=data["id"],
            prompt=prompt if isinstance(prompt, str) else "",
            response=response,
            timestamp=int(timestamp),
            conversation_id=conversation_id,
        )


@dataclass
class Conversation:
    id: str
    context: List[Message] = field(default_factory=list)
    command_history: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "context": context_to_list(self.context),
            "history": list(self.command_history),
        }

    @classmethod
    def from_dict(cls, data: Any, conversation_id: str) -> "Conversation":
        if not isinstance(data, dict):
            data = {}
        history = data.get("history")
        if not isinstance(history, list):
            history = []
        return cls(
            id=conversation_id,
            context=context_from_list(data.get("context")),
            command_history=[h for h in history if isinstance(h, str)],
        )


@dataclass
class SessionState:
    """The single current session.

    ``paused`` implies ``paused_context`` is non-empty and
    ``paused_conversation_id`` is set.
    """

    current_conversation_id: Optional[str] = None
    last_response_id: Optional[str] = None
    active_context: List[Message] = field(default_factory=list)
    paused: bool = False
    paused_conversation_id: Optional[str] = None
    paused_context: List[Message] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lastResponseId": self.last_response_id,
            "conversationContext": context_to_list(self.active_context),
            "currentConversationId": self.current_conversation_id,
            "pausedConversation": self.paused,
            "pausedConversationContext": context_to_list(self.paused_context),
            "pausedConversationId": self.paused_conversation_id,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "SessionState":
        if not isinstance(data, dict):
            return cls()

        def _optional_str(key: str) -> Optional[str]:
            value = data.get(key)
            return value if isinstance(value, str) and value else None

        state = cls(
            current_conversation_id=_optional_str("currentConversationId"),
            last_response_id=_optional_str("lastResponseId"),
            active_context=context_from_list(data.get("conversationContext")),
            paused=data.get("pausedConversation") is True,
            paused_conversation_id=_optional_str("pausedConversationId"),
            paused_context=context_from_list(data.get("pausedConversationContext")),
        )
        # A half-written snapshot is not resumable.
        if state.paused and (not state.paused_context or state.paused_conversation_id is None):
            state.clear_pause()
        return state

    def clear_pause(self) -> None:
        self.paused = False
        self.paused_conversation_id = None
        self.paused_context = []

    @property
    def phase(self) -> str:
        if self.paused:
            return "paused"
        if self.active_context:
            return "active"
        return "empty"
