"""OpenAI Responses API wrapper: retries, streaming and text extraction."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

import openai
from openai import OpenAI  # type: ignore

from ..utils import ERROR_LABEL, WARNING_LABEL, Ansi, Spinner, console
from .engine import PreparedRequest

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.7
MAX_RETRIES = 3

WEB_SEARCH_TOOL = {"type": "web_search"}

# Errors worth retrying: rate limiting (429) and server side failures (5xx).
RETRYABLE_ERRORS = (openai.RateLimitError, openai.InternalServerError)


@dataclass
class Completion:
    """The normalised result of one request."""

    id: Optional[str]
    text: str
    used_web_search: bool = False


class OpenAIClientWrapper:
    """Thin wrapper around the OpenAI SDK hiding retry and streaming details."""

    def __init__(
        self,
        client: OpenAI,
        *,
        temperature: float = DEFAULT_TEMPERATURE,
        max_retries: int = MAX_RETRIES,
    ):
        self.client = client
        self.temperature = temperature
        self.max_retries = max_retries

    # ------------------------------------------------------------------
    # Helper methods
    # ------------------------------------------------------------------

    @staticmethod
    def _extract_text_from_response(resp: Any) -> str:
        """Return the concatenated ``output_text`` parts of a Responses API object."""
        text = getattr(resp, "output_text", None)
        if isinstance(text, str) and text:
            return text
        texts: List[str] = []
        for output in getattr(resp, "output", None) or []:
            if getattr(output, "type", None) != "message":
                continue
            for content in getattr(output, "content", None) or []:
                if getattr(content, "type", None) == "output_text":
                    txt = getattr(content, "text", None)
                    if isinstance(txt, str):
                        texts.append(txt)
        return "".join(texts)

    @staticmethod
    def _used_web_search(resp: Any) -> bool:
        return any(
            getattr(output, "type", None) == "web_search_call"
            for output in getattr(resp, "output", None) or []
        )

    def build_params(
        self,
        model: str,
        request: PreparedRequest,
        *,
        enable_web_search: bool,
        stream: bool,
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "model": model,
            "input": request.input_payload(),
            "temperature": self.temperature,
            "stream": stream,
        }
        if request.previous_response_id:
            params["previous_response_id"] = request.previous_response_id
        if enable_web_search:
            params["tools"] = [WEB_SEARCH_TOOL]
        return params

    def _create_with_retry(self, params: Dict[str, Any]) -> Any:
        """Call the API, backing off 1s, 2s, 4s... on retryable errors."""
        retries = 0
        while True:
            try:
                return self.client.responses.create(**params)  # type: ignore[arg-type]
            except RETRYABLE_ERRORS as exc:
                if retries >= self.max_retries:
                    logger.error("Giving up after %d retries", retries)
                    raise
                backoff = 2 ** retries
                reason = "Rate limited" if isinstance(exc, openai.RateLimitError) else "Server error"
                console.print(
                    Ansi.style(f"{reason}. Retrying in {backoff} seconds...", Ansi.FG_YELLOW)
                )
                logger.info("%s (%s); retry %d in %ss", reason, exc, retries + 1, backoff)
                time.sleep(backoff)
                retries += 1

    def _drain_stream(self, events: Iterable[Any], spinner: Spinner) -> Optional[Completion]:
        """Print deltas as they arrive. A stream that reports failure yields None."""
        response_id: Optional[str] = None
        chunks: List[str] = []
        used_web_search = False
        failed = False

        for event in events:
            kind = getattr(event, "type", None)
            logger.debug("Stream event %s", kind)

            if kind in ("response.created", "response.completed"):
                resp = getattr(event, "response", None)
                response_id = getattr(resp, "id", None) or response_id
            elif kind == "response.output_text.delta":
                delta = getattr(event, "delta", "")
                if not delta:
                    continue
                spinner.stop()
                print(delta, end="", flush=True)
                chunks.append(delta)
            elif kind == "response.web_search_call.in_progress":
                used_web_search = True
                spinner.stop()
                console.print(Ansi.style("\n[Searching the web...]", Ansi.DIM))
            elif kind == "response.web_search_call.completed":
                console.print(Ansi.style("[Search complete]", Ansi.DIM))
            elif kind in ("error", "response.failed"):
                logger.error("Stream reported failure: %s", event)
                failed = True

        spinner.stop()
        print()
        if failed:
            console.print(f"[{ERROR_LABEL}] The response failed before it completed; nothing was recorded.")
            return None
        return Completion(id=response_id, text="".join(chunks), used_web_search=used_web_search)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def create_response(
        self,
        model: str,
        request: PreparedRequest,
        *,
        enable_web_search: bool = False,
        stream: bool = True,
    ) -> Optional[Completion]:
        """Send *request* and print the answer as it arrives.

        Returns None when the request failed or was interrupted; nothing should
        be recorded in that case.
        """
        params = self.build_params(
            model, request, enable_web_search=enable_web_search, stream=stream
        )
        logger.info(
            "Sending request: model=%s, tools=%s, previous_response_id=%s, %d input messages",
            model,
            "yes" if enable_web_search else "no",
            "yes" if request.previous_response_id else "no",
            len(params["input"]),
        )

        spinner = Spinner()
        try:
            with spinner:
                resp = self._create_with_retry(params)
                if stream:
                    return self._drain_stream(resp, spinner)
                spinner.stop()
                text = self._extract_text_from_response(resp)
                print(text)
                return Completion(
                    id=getattr(resp, "id", None),
                    text=text,
                    used_web_search=self._used_web_search(resp),
                )
        except openai.OpenAIError as exc:
            console.print(f"\n[{ERROR_LABEL}] OpenAI API error: {exc}\n")
            logger.debug("Request failed", exc_info=True)
            return None
        except KeyboardInterrupt:
            console.print(f"\n[{WARNING_LABEL}] interrupted")
            return None
