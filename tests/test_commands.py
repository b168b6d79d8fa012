from unittest.mock import patch

from clip_cli.core.records import Message
from .test_base import BaseClipTest, make_record


class TestCommands(BaseClipTest):
    def complete_exchange(self, prompt, reply, response_id):
        self.engine.prepare(prompt)
        self.engine.record(prompt, reply, response_id)

    def test_websearch_tool_toggle(self):
        """Test enabling and disabling the web search tool"""
        self.cli.handle_command("/tool websearch on")
        self.assertTrue(self.cli.web_search)

        self.cli.handle_command("/tool websearch off")
        self.assertFalse(self.cli.web_search)

        # Invalid usage should not change anything
        self.cli.handle_command("/tool invalid on")
        self.assertFalse(self.cli.web_search)

    def test_exit_returns_false(self):
        self.assertFalse(self.cli.handle_command("/exit"))
        self.assertTrue(self.cli.handle_command("/help"))
        self.assertTrue(self.cli.handle_command("/menu"))
        self.assertTrue(self.cli.handle_command("/"))
        self.assertTrue(self.cli.handle_command("/unknown"))

    @patch("clip_cli.cli.load_history")
    def test_continue_resumes_paused(self, mock_load_history):
        self.complete_exchange("hi", "hello!", "resp_1")

        self.cli.handle_command("/continue")

        state = self.engine.state
        self.assertFalse(state.paused)
        self.assertEqual(state.active_context, [Message("user", "hi"), Message("assistant", "hello!")])
        self.assertEqual(state.last_response_id, "resp_1")
        mock_load_history.assert_called_once_with(["hi"])

    def test_continue_with_index(self):
        self.complete_exchange("one", "first", "resp_1")
        self.engine.resume()
        self.complete_exchange("two", "second", "resp_2")

        self.cli.handle_command("/continue 2")

        self.assertEqual(self.engine.state.last_response_id, "resp_1")
        self.assertEqual(
            self.engine.state.active_context, [Message("user", "one"), Message("assistant", "first")]
        )

    def test_continue_rejects_non_numeric_index(self):
        self.complete_exchange("hi", "hello!", "resp_1")
        self.cli.handle_command("/continue two")
        self.assertTrue(self.engine.state.paused)

    def test_continue_with_nothing(self):
        self.assertFalse(self.cli.continue_conversation())
        self.assertIsNone(self.engine.state.current_conversation_id)

    def test_new_command(self):
        self.complete_exchange("hi", "hello!", "resp_1")
        old = self.engine.state.current_conversation_id

        self.cli.handle_command("/new")

        self.assertNotEqual(self.engine.state.current_conversation_id, old)
        self.assertFalse(self.engine.state.paused)

    def test_commands_rejected_while_busy(self):
        self.complete_exchange("hi", "hello!", "resp_1")
        with self.engine.request():
            self.assertTrue(self.cli.handle_command("/continue"))
            self.assertTrue(self.cli.handle_command("/new"))
        self.assertTrue(self.engine.state.paused)

    def test_history_and_debug_are_read_only(self):
        self.engine.history.record("conv_x", make_record("resp_x", "conv_x", 1000))
        self.complete_exchange("hi", "hello!", "resp_1")
        before = self.engine.describe()

        for line in ("/history", "/history --all", "/debug", "/clear"):
            self.assertTrue(self.cli.handle_command(line))

        self.assertEqual(self.engine.describe(), before)

    def test_status_line(self):
        self.assertNotIn("conversation", self.cli.status_line())
        self.complete_exchange("hi", "hello!", "resp_1")
        self.assertIn("Paused conversation (2 msgs)", self.cli.status_line())
        self.engine.resume()
        self.assertIn("Active conversation (2 msgs)", self.cli.status_line())
