import shutil
import tempfile
import unittest
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import Mock, patch

from clip_cli import ChatCLI, OpenAIClientWrapper, RecordStore, SessionEngine
from clip_cli.core.records import ResponseRecord


def make_record(record_id, conversation_id, timestamp, prompt=None, response=None):
    return ResponseRecord(
        id=record_id,
        prompt=prompt if prompt is not None else f"prompt for {record_id}",
        response=response if response is not None else f"response for {record_id}",
        timestamp=timestamp,
        conversation_id=conversation_id,
    )


def stream_events(response_id, *chunks, web_search=False):
    """Build a list of Responses API stream events for a mocked client."""
    events = [SimpleNamespace(type="response.created", response=SimpleNamespace(id=response_id))]
    if web_search:
        events.append(SimpleNamespace(type="response.web_search_call.in_progress"))
        events.append(SimpleNamespace(type="response.web_search_call.completed"))
    for chunk in chunks:
        events.append(SimpleNamespace(type="response.output_text.delta", delta=chunk))
    events.append(SimpleNamespace(type="response.completed", response=SimpleNamespace(id=response_id)))
    return events


class BaseClipTest(unittest.TestCase):
    def setUp(self):
        # Store everything in a throwaway directory
        self.data_dir = Path(tempfile.mkdtemp(prefix="clip_test_"))
        self.store = RecordStore(self.data_dir)
        self.store.create_layout()

        # Patch print to suppress streamed output
        self.print_patcher = patch('builtins.print')
        self.print_patcher.start()

        # Keep the spinner from touching the terminal
        self.spinner_patcher = patch('clip_cli.utils.spinner.yaspin')
        self.spinner_patcher.start()

        # Mock the OpenAI client
        self.mock_client = Mock()
        self.mock_wrapper = OpenAIClientWrapper(self.mock_client)

        self.engine = SessionEngine(self.store)
        self.engine.load()

        self.cli = ChatCLI(self.engine, self.mock_wrapper, "gpt-4o")

    def tearDown(self):
        self.print_patcher.stop()
        self.spinner_patcher.stop()
        shutil.rmtree(self.data_dir, ignore_errors=True)

    def reload_engine(self, resume_session=True):
        """Simulate a restart by loading a fresh engine from the same directory."""
        engine = SessionEngine(RecordStore(self.data_dir))
        engine.load(resume_session=resume_session)
        return engine
