"""JSON persistence for session state, conversations and response history.

Layout under the data directory::

    state.json
    conversations/<conversation id>.json
    responses/<conversation id>.json

Each file is written on its own (temp file, then rename) so saving one
conversation never rewrites another. There is no transaction across files;
``load`` copes with whatever subset made it to disk.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Tuple

from .records import Conversation, ResponseRecord, SessionState

logger = logging.getLogger(__name__)

DIR_MODE = 0o700
FILENAME_SUFFIX = ".json"

LoadResult = Tuple[SessionState, Dict[str, Conversation], Dict[str, List[ResponseRecord]]]


def _make_private_dir(directory: Path) -> None:
    directory.mkdir(parents=True, exist_ok=True, mode=DIR_MODE)
    # mkdir's mode is filtered through the umask.
    os.chmod(directory, DIR_MODE)


class RecordStore:
    """Load/save of the on-disk records. No business logic lives here."""

    STATE_FILENAME = "state.json"

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    @property
    def state_path(self) -> Path:
        return self.root / self.STATE_FILENAME

    @property
    def conversations_dir(self) -> Path:
        return self.root / "conversations"

    @property
    def responses_dir(self) -> Path:
        return self.root / "responses"

    def exists(self) -> bool:
        return self.root.is_dir()

    def create_layout(self) -> None:
        """Create the data directories, readable by the owner only."""
        for directory in (self.root, self.conversations_dir, self.responses_dir):
            _make_private_dir(directory)

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def _read(self, path: Path) -> Any:
        return json.loads(path.read_text(encoding="utf-8"))

    def _iter_records(self, directory: Path):
        if not directory.is_dir():
            return
        for path in sorted(directory.glob(f"*{FILENAME_SUFFIX}")):
            try:
                yield path.stem, self._read(path)
            except (OSError, ValueError):
                logger.warning("Skipping unreadable record %s", path, exc_info=True)

    def load(self) -> LoadResult:
        """Return the stored state, conversations and per-conversation responses.

        A missing state file is replaced by a default one; a corrupt one is
        treated as missing. Unreadable conversation or response files are
        skipped without affecting the others.
        """
        state = None
        if self.state_path.exists():
            try:
                state = SessionState.from_dict(self._read(self.state_path))
            except (OSError, ValueError):
                logger.warning("State file %s is unreadable, starting fresh", self.state_path, exc_info=True)
        if state is None:
            state = SessionState()
            self.save_state(state)

        conversations: Dict[str, Conversation] = {}
        for conv_id, data in self._iter_records(self.conversations_dir):
            conversations[conv_id] = Conversation.from_dict(data, conv_id)

        responses: Dict[str, List[ResponseRecord]] = {}
        for conv_id, data in self._iter_records(self.responses_dir):
            if not isinstance(data, list):
                logger.warning("Response history for %s is not a list, skipping", conv_id)
                continue
            records = (ResponseRecord.from_dict(item, conv_id) for item in data)
            responses[conv_id] = [r for r in records if r is not None]

        logger.info(
            "Loaded %d conversations, %d response histories from %s",
            len(conversations),
            len(responses),
            self.root,
        )
        return state, conversations, responses

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def _write(self, path: Path, data: Any) -> bool:
        """Atomically replace *path* with *data*. Failures are logged, not raised."""
        tmp_path = path.with_suffix(".tmp")
        try:
            if not path.parent.is_dir():
                _make_private_dir(path.parent)
            tmp_path.write_text(
                json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8"
            )
            os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError):
            logger.error("Failed to write %s", path, exc_info=True)
            try:
                tmp_path.unlink()
            except FileNotFoundError:
                pass
            return False
        logger.debug("Wrote %s", path)
        return True

    def save_state(self, state: SessionState) -> bool:
        return self._write(self.state_path, state.to_dict())

    def save_conversation(self, conversation: Conversation) -> bool:
        path = self.conversations_dir / f"{conversation.id}{FILENAME_SUFFIX}"
        return self._write(path, conversation.to_dict())

    def save_responses(self, conversation_id: str, records: List[ResponseRecord]) -> bool:
        path = self.responses_dir / f"{conversation_id}{FILENAME_SUFFIX}"
        return self._write(path, [r.to_dict() for r in records])
