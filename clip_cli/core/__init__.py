from .engine import PreparedRequest, SessionEngine
from .errors import ClipError, SessionBusyError, SetupDeclinedError
from .history import HistoryIndex, MAX_GLOBAL_HISTORY, MAX_HISTORY
from .records import Conversation, Message, ResponseRecord, SessionState
from .resolver import ContinuationResolver, Resolution, ResumePath
from .store import RecordStore

__all__ = [
    "PreparedRequest",
    "SessionEngine",
    "ClipError",
    "SessionBusyError",
    "SetupDeclinedError",
    "HistoryIndex",
    "MAX_GLOBAL_HISTORY",
    "MAX_HISTORY",
    "Conversation",
    "Message",
    "ResponseRecord",
    "SessionState",
    "ContinuationResolver",
    "Resolution",
    "ResumePath",
    "RecordStore",
]
