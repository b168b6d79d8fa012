"""Response history, per conversation and across all conversations."""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional

from .records import ResponseRecord

MAX_HISTORY = 50
MAX_GLOBAL_HISTORY = MAX_HISTORY * 5


class HistoryIndex:
    """Most-recent-first lists of :class:`ResponseRecord`.

    Each conversation keeps at most ``capacity`` records and the global view
    at most ``global_capacity``; the oldest entries fall off the tail.
    """

    def __init__(self, capacity: int = MAX_HISTORY, global_capacity: int = MAX_GLOBAL_HISTORY):
        self.capacity = capacity
        self.global_capacity = global_capacity
        self._by_conversation: Dict[str, List[ResponseRecord]] = {}
        self._all: List[ResponseRecord] = []

    @classmethod
    def from_records(
        cls,
        responses: Mapping[str, Iterable[ResponseRecord]],
        capacity: int = MAX_HISTORY,
        global_capacity: int = MAX_GLOBAL_HISTORY,
    ) -> "HistoryIndex":
        """Build an index from stored per-conversation lists.

        Files are enumerated in no particular order, so the merged global list
        is re-sorted by timestamp. The sort is stable: equal timestamps keep
        the order they were merged in.
        """
        index = cls(capacity, global_capacity)
        merged: List[ResponseRecord] = []
        for conv_id, records in responses.items():
            records = list(records)[:capacity]
            index._by_conversation[conv_id] = records
            merged.extend(records)
        merged.sort(key=lambda r: r.timestamp, reverse=True)
        index._all = merged[:global_capacity]
        return index

    def record(self, conversation_id: str, record: ResponseRecord) -> None:
        records = self._by_conversation.setdefault(conversation_id, [])
        records.insert(0, record)
        del records[self.capacity:]

        self._all.insert(0, record)
        del self._all[self.global_capacity:]

    def list(self, conversation_id) -> List[ResponseRecord]:
        if not conversation_id:
            return []
        return list(self._by_conversation.get(conversation_id, []))

    def list_all(self) -> List[ResponseRecord]:
        return list(self._all)

    def most_recent(self, conversation_id) -> Optional[ResponseRecord]:
        records = self._by_conversation.get(conversation_id) if conversation_id else None
        return records[0] if records else None

    def conversation_ids(self) -> List[str]:
        return list(self._by_conversation)
