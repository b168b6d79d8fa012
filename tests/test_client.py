from types import SimpleNamespace
from unittest.mock import patch

import httpx
import openai

from clip_cli.core.engine import PreparedRequest
from clip_cli.core.records import Message
from .test_base import BaseClipTest, stream_events


def status_error(cls, status):
    request = httpx.Request("POST", "https://api.openai.com/v1/responses")
    response = httpx.Response(status, request=request)
    return cls(f"status {status}", response=response, body=None)


class TestOpenAIClientWrapper(BaseClipTest):
    def setUp(self):
        super().setUp()
        self.request = PreparedRequest("hi", [Message("user", "hi")])

    def test_stream_is_collected(self):
        self.mock_client.responses.create.return_value = stream_events("resp_1", "Hel", "lo", "!")

        completion = self.mock_wrapper.create_response("gpt-4o", self.request)

        self.assertEqual(completion.id, "resp_1")
        self.assertEqual(completion.text, "Hello!")
        self.assertFalse(completion.used_web_search)

    def test_stream_reports_web_search(self):
        self.mock_client.responses.create.return_value = stream_events("resp_1", "found", web_search=True)
        completion = self.mock_wrapper.create_response("gpt-4o", self.request, enable_web_search=True)
        self.assertTrue(completion.used_web_search)
        self.assertEqual(completion.text, "found")

    def test_stream_without_id(self):
        self.mock_client.responses.create.return_value = [
            SimpleNamespace(type="response.output_text.delta", delta="text")
        ]
        completion = self.mock_wrapper.create_response("gpt-4o", self.request)
        self.assertIsNone(completion.id)
        self.assertEqual(completion.text, "text")

    def test_non_streaming_response(self):
        content = SimpleNamespace(type="output_text", text="Full answer")
        resp = SimpleNamespace(
            id="resp_9",
            output_text=None,
            output=[SimpleNamespace(type="message", content=[content])],
        )
        self.mock_client.responses.create.return_value = resp

        completion = self.mock_wrapper.create_response("gpt-4o", self.request, stream=False)

        self.assertEqual(completion.id, "resp_9")
        self.assertEqual(completion.text, "Full answer")
        self.assertFalse(self.mock_client.responses.create.call_args.kwargs["stream"])

    def test_request_parameters(self):
        self.mock_client.responses.create.return_value = stream_events("resp_2", "ok")
        request = PreparedRequest("next", [Message("user", "next")], previous_response_id="resp_1")

        self.mock_wrapper.create_response("gpt-4o", request, enable_web_search=True)

        kwargs = self.mock_client.responses.create.call_args.kwargs
        self.assertEqual(kwargs["model"], "gpt-4o")
        self.assertEqual(kwargs["input"], [{"role": "user", "content": "next"}])
        self.assertEqual(kwargs["previous_response_id"], "resp_1")
        self.assertEqual(kwargs["tools"], [{"type": "web_search"}])
        self.assertEqual(kwargs["temperature"], 0.7)
        self.assertTrue(kwargs["stream"])

    def test_parameters_without_extras(self):
        params = self.mock_wrapper.build_params("gpt-4o", self.request, enable_web_search=False, stream=True)
        self.assertNotIn("previous_response_id", params)
        self.assertNotIn("tools", params)

    @patch("clip_cli.core.client.time.sleep")
    def test_retries_with_backoff(self, mock_sleep):
        self.mock_client.responses.create.side_effect = [
            status_error(openai.RateLimitError, 429),
            status_error(openai.InternalServerError, 503),
            stream_events("resp_1", "finally"),
        ]

        completion = self.mock_wrapper.create_response("gpt-4o", self.request)

        self.assertEqual(completion.text, "finally")
        self.assertEqual([c.args[0] for c in mock_sleep.call_args_list], [1, 2])

    @patch("clip_cli.core.client.time.sleep")
    def test_gives_up_after_max_retries(self, mock_sleep):
        self.mock_client.responses.create.side_effect = status_error(openai.RateLimitError, 429)

        completion = self.mock_wrapper.create_response("gpt-4o", self.request)

        self.assertIsNone(completion)
        self.assertEqual(self.mock_client.responses.create.call_count, 4)
        self.assertEqual([c.args[0] for c in mock_sleep.call_args_list], [1, 2, 4])

    @patch("clip_cli.core.client.time.sleep")
    def test_client_errors_are_not_retried(self, mock_sleep):
        self.mock_client.responses.create.side_effect = status_error(openai.BadRequestError, 400)

        self.assertIsNone(self.mock_wrapper.create_response("gpt-4o", self.request))
        self.assertEqual(self.mock_client.responses.create.call_count, 1)
        mock_sleep.assert_not_called()

    def test_interrupt_discards_partial_answer(self):
        def events():
            yield SimpleNamespace(type="response.output_text.delta", delta="partial")
            raise KeyboardInterrupt

        self.mock_client.responses.create.return_value = events()
        self.assertIsNone(self.mock_wrapper.create_response("gpt-4o", self.request))

    def test_failed_stream_discards_partial_answer(self):
        self.mock_client.responses.create.return_value = [
            SimpleNamespace(type="response.created", response=SimpleNamespace(id="resp_bad")),
            SimpleNamespace(type="response.output_text.delta", delta="Partial ans"),
            SimpleNamespace(type="response.failed", response=SimpleNamespace(id="resp_bad")),
        ]

        with self.assertLogs("clip_cli.core.client", level="ERROR"):
            self.assertIsNone(self.mock_wrapper.create_response("gpt-4o", self.request))
