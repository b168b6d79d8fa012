"""Terminal front end: the prompt loop and slash commands."""
from __future__ import annotations

import argparse
import logging
import sys
import time
from datetime import datetime
from typing import List, Optional

import questionary
from openai import OpenAI  # type: ignore
from rich.panel import Panel

from .config import Settings
from .core import RecordStore, ResponseRecord, ResumePath, SessionBusyError, SessionEngine, SetupDeclinedError
from .core.client import OpenAIClientWrapper
from .utils import (
    ASSISTANT_LABEL,
    WARNING_LABEL,
    Ansi,
    configure_logging,
    console,
    install_completer,
    load_history,
    mode_label,
)

logger = logging.getLogger(__name__)

COMMANDS = {
    "exit": "Exit the application",
    "menu": "Show help (alias of /help)",
    "history": "Show response history for the current conversation",
    "help": "Show help information",
    "clear": "Clear the screen",
    "continue": "Resume paused conversation or continue from a specific response",
    "new": "Start a new conversation with fresh history",
    "debug": "Show current conversation state (for troubleshooting)",
    "tool": "Enable or disable web search: /tool websearch on|off",
}

HELP_TEXT = """\
Usage:
  Type your message to chat with the AI
  Type /command to execute a command (use Tab to autocomplete)

Conversation management:
  /continue       Resume the paused conversation (or the most recent response)
  /continue n     Continue from response #n in the current conversation
  /history        View response history for the current conversation
  /history --all  View history across all conversations
  /new            Start a new conversation with fresh context
  /debug          Show the current conversation state
  /tool websearch on|off
                  Let the AI search the web

Note: after each response the conversation is paused.
      Use /continue to resume it before asking a follow-up question.
"""


def _short(value: Optional[str], length: int = 8) -> str:
    if not value:
        return "None"
    return value[:length] + "..." if len(value) > length else value


def _clip(text: str, length: int) -> str:
    return text[:length] + "..." if len(text) > length else text


def _when(record: ResponseRecord) -> str:
    return datetime.fromtimestamp(record.timestamp / 1000).strftime("%Y-%m-%d %H:%M:%S")


def _dim(text: str) -> None:
    console.print(Ansi.style(text, Ansi.DIM))


class ChatCLI:
    """High-level orchestration class for the interactive REPL."""

    def __init__(
        self,
        engine: SessionEngine,
        client_wrapper: OpenAIClientWrapper,
        model: str,
        *,
        web_search: bool = False,
        stream: bool = True,
    ):
        self.engine = engine
        self.client = client_wrapper
        self.model = model
        self.web_search = web_search
        self.stream = stream

    # ---------------- Output helpers ----------------

    def banner(self) -> None:
        console.print(Panel.fit("✧ CLIP ✧", style="bold"))

    def status_line(self) -> str:
        state = self.engine.state
        parts = [mode_label(self.web_search)]
        if state.paused:
            parts.append(Ansi.style(f"Paused conversation ({len(state.paused_context)} msgs)", Ansi.DIM))
        elif state.active_context:
            parts.append(Ansi.style(f"Active conversation ({len(state.active_context)} msgs)", Ansi.DIM))
        elif state.last_response_id:
            parts.append(Ansi.style("Continuing conversation", Ansi.DIM))
        return Ansi.style(" · ", Ansi.DIM).join(parts)

    def show_history(self, show_all: bool = False) -> None:
        if show_all:
            records = self.engine.history.list_all()
            console.print(Ansi.style("Response History (All Conversations):", Ansi.BOLD))
        else:
            conv_id = self.engine.state.current_conversation_id
            records = self.engine.history.list(conv_id)
            console.print(Ansi.style(f"Response History (Conversation: {_short(conv_id)})", Ansi.BOLD))

        if not records:
            if show_all:
                _dim("No response history yet.")
            else:
                _dim("No response history for this conversation.")
                _dim('Use "/history --all" to view history across all conversations.')
            return

        if not show_all:
            _dim('You can continue from any response using "/continue n" (e.g. "/continue 2")')
        console.print()
        for i, record in enumerate(records, start=1):
            console.print(Ansi.style(f"{i}.", Ansi.BOLD) + Ansi.style(f" [{_when(record)}]", Ansi.DIM))
            if show_all:
                _dim(f"   Conversation: {record.conversation_id}")
            _dim(f"   Prompt: {_clip(record.prompt, 60)}")
            _dim(f"   Response: {record.preview}")
            _dim(f"   ID: {_short(record.id)}")
            console.print()

    def show_debug(self) -> None:
        info = self.engine.describe()
        console.print(Ansi.style("Current conversation state:", Ansi.BOLD))
        _dim(f"Current conversation ID: {info['current_conversation_id'] or 'None'}")
        _dim(f"Last response ID: {info['last_response_id'] or 'None'}")
        _dim(f"Conversation context: {info['context_messages']} messages")
        _dim(f"Paused conversation: {'Yes' if info['paused'] else 'No'}")
        if info["paused"]:
            _dim(f"Paused conversation ID: {info['paused_conversation_id'] or 'None'}")
            _dim(f"Paused conversation context: {info['paused_context_messages']} messages")

    # ---------------- Conversation commands ---------------

    def continue_conversation(self, index: Optional[int] = None) -> bool:
        resolution = self.engine.resume(index)
        path = resolution.path
        if path is ResumePath.NOTHING:
            _dim("No response history available to continue from.")
            return False

        if index is not None and path is not ResumePath.INDEX:
            _dim(f"No response #{index} in this conversation.")

        if path is ResumePath.PAUSED:
            _dim("Resuming paused conversation...")
            if self.engine.state.last_response_id:
                _dim(f"Using response ID: {_short(self.engine.state.last_response_id)}")
            load_history(self.engine.command_history())
        elif path is ResumePath.INDEX:
            _dim(f"Continuing from response #{index}")
        elif path is ResumePath.BRANCH:
            _dim("Continuing from most recent response (in a new conversation)")
        else:
            _dim("Continuing from most recent response")
        return True

    def handle_command(self, line: str) -> bool:
        """Handle slash commands. Return False to exit REPL."""

        parts = line.strip()[1:].split()
        if not parts:
            self.show_commands()
            return True

        cmd = parts[0].lower()

        try:
            if cmd == "exit":
                console.print(Ansi.style("Goodbye", Ansi.DIM))
                return False

            elif cmd in ("help", "menu"):
                console.print(Ansi.style(HELP_TEXT, Ansi.DIM))
                console.print(
                    Ansi.style(f"Current model: {self.model} · Mode: ", Ansi.DIM) + mode_label(self.web_search)
                )

            elif cmd == "history":
                self.show_history(show_all=len(parts) > 1 and parts[1] == "--all")

            elif cmd == "clear":
                console.clear()
                self.banner()
                console.print(self.status_line())

            elif cmd == "continue":
                index = None
                if len(parts) > 1:
                    if not parts[1].isdigit():
                        console.print("Usage: /continue [n]")
                        return True
                    index = int(parts[1])
                self.continue_conversation(index)

            elif cmd == "new":
                self.engine.new_conversation()
                load_history([])
                _dim("Started new conversation")

            elif cmd == "debug":
                self.show_debug()

            elif cmd == "tool":
                if len(parts) != 3 or parts[1].lower() != "websearch" or parts[2] not in {"on", "off"}:
                    console.print("Usage: /tool websearch on|off")
                else:
                    self.web_search = parts[2] == "on"
                    if self.web_search:
                        console.print(Ansi.style("✓ Web search enabled", Ansi.FG_GREEN))
                    else:
                        console.print(Ansi.style("✗ Web search disabled", Ansi.FG_YELLOW))

            else:
                _dim(f"Unknown command: /{cmd}")
                _dim("Type / to see available commands")
        except SessionBusyError as exc:
            console.print(f"[{WARNING_LABEL}] {exc}")

        return True

    def show_commands(self) -> None:
        console.print(Ansi.style("Available Commands:", Ansi.BOLD))
        for name, description in COMMANDS.items():
            console.print(Ansi.style(f"/{name}", Ansi.BOLD) + Ansi.style(f" - {description}", Ansi.DIM))

    # ---------------- Sending prompts ---------------

    def send(self, prompt: str) -> None:
        try:
            request = self.engine.prepare(prompt)
        except SessionBusyError as exc:
            console.print(f"[{WARNING_LABEL}] {exc}")
            return

        with self.engine.request():
            console.print(ASSISTANT_LABEL + ":")
            if request.previous_response_id:
                _dim(f"Continuing with response ID: {_short(request.previous_response_id)}")
            elif len(request.messages) > 1:
                _dim(f"Using conversation context with {len(request.messages) - 1} messages")

            started = time.monotonic()
            completion = self.client.create_response(
                self.model, request, enable_web_search=self.web_search, stream=self.stream
            )
            if completion is None:
                self.engine.discard()
                return
            if not completion.text:
                console.print(Ansi.style("Empty response received, conversation continuity may not work", Ansi.FG_RED))
                self.engine.discard()
                return

            self.engine.record(prompt, completion.text, completion.id)
            if not completion.id:
                _dim("No response ID received. Conversation continuity may be limited.")

            elapsed = time.monotonic() - started
            stats: List[str] = [f"{elapsed:.2f}s", f"{len(completion.text)} chars"]
            if completion.used_web_search:
                stats.append("Used web search")
            stats.append("Type /continue to resume")
            console.print(
                mode_label(self.web_search) + Ansi.style(" · " + " · ".join(stats), Ansi.DIM)
            )

    # ---------------- Interaction loop ---------------

    def repl(self) -> None:
        """Run the interactive read–eval–print-loop."""
        self.banner()
        _dim("Welcome to CLIP! Type your message or type '/' to see available commands.")
        install_completer(COMMANDS)
        load_history(self.engine.command_history())

        while True:
            console.print()
            console.print(self.status_line())
            try:
                line = console.input("> ").strip()
            except (EOFError, KeyboardInterrupt):
                console.print(Ansi.style("\nExiting...", Ansi.DIM))
                break

            if not line:
                continue

            if line.startswith("/"):
                if not self.handle_command(line):
                    break
                continue

            self.send(line)


# ---------------------------------------------------------------------------
# Entrypoint helpers (keeping it separate simplifies __main__ handling)
# ---------------------------------------------------------------------------

def ensure_data_dir(store: RecordStore) -> None:
    """Create the data directory after the user agrees to it."""
    if store.exists():
        return
    console.print(Ansi.style("Security Notice:", Ansi.FG_YELLOW, Ansi.BOLD))
    console.print(f"CLIP will create a directory at {store.root} to store conversation data.")
    console.print("Only your user account will be able to access it.")
    try:
        agreed = questionary.confirm("Do you want to continue?", default=False).ask()
    except (KeyboardInterrupt, EOFError):
        agreed = False
    if not agreed:
        raise SetupDeclinedError(f"declined to create {store.root}")
    store.create_layout()
    logger.info("Created data directory %s", store.root)
    console.print(Ansi.style("Secure directories created successfully.", Ansi.FG_GREEN))


def _parse_args(argv=None) -> argparse.Namespace:  # pragma: no cover
    parser = argparse.ArgumentParser(
        description="Interactive CLI for OpenAI models with resumable conversations."
    )
    parser.add_argument("--model", "-m", help="Model name to use")
    parser.add_argument("--web-search", action="store_true", help="Start with web search enabled")
    parser.add_argument(
        "--resume-session",
        action="store_true",
        help="Restore the saved session instead of starting fresh",
    )
    parser.add_argument("--no-stream", action="store_true", help="Wait for the whole answer")
    return parser.parse_args(argv)


def run_cli(argv=None) -> None:  # pragma: no cover
    args = _parse_args(argv)
    configure_logging()

    settings = Settings.from_env()
    if args.model:
        settings.model = args.model
    settings.web_search = settings.web_search or args.web_search
    settings.resume_session = args.resume_session
    settings.stream = not args.no_stream

    store = RecordStore(settings.data_dir)
    try:
        ensure_data_dir(store)
    except SetupDeclinedError:
        console.print(Ansi.style("Setup cancelled. Exiting.", Ansi.DIM))
        sys.exit(0)

    engine = SessionEngine(store)
    engine.load(resume_session=settings.resume_session)

    if not settings.api_key:
        # Kept in memory only, never written to disk.
        settings.api_key = questionary.password("Enter your OpenAI API key:").ask()
        if not settings.api_key:
            console.print(Ansi.style("No API key provided. Exiting.", Ansi.DIM))
            sys.exit(0)

    client = OpenAI(**settings.client_kwargs())  # type: ignore[arg-type]
    wrapper = OpenAIClientWrapper(client)

    ChatCLI(
        engine,
        wrapper,
        settings.model,
        web_search=settings.web_search,
        stream=settings.stream,
    ).repl()


if __name__ == "__main__":  # pragma: no cover
    run_cli()
