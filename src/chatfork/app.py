"""Main Chatfork TUI application."""

import asyncio
import contextlib
import logging

from rich.text import Text
from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical
from textual.css.query import NoMatches
from textual.events import Key
from textual.reactive import reactive
from textual.widgets import Footer, Label

from chatfork.commands import (
    COMMAND_DESCRIPTIONS,
    COMMANDS,
    StatusLine,
    TangentCommand,
    TangentSubcommand,
    UsageError,
    clear_command,
    experiment_command,
    metrics_command,
    split_command,
)
from chatfork.config import Settings, settings, tangent_key_char
from chatfork.models import Models, load_llm
from chatfork.models import llm as llm_mod
from chatfork.performance import TimingRecorder
from chatfork.session import ChatSession
from chatfork.state import AppState
from chatfork.summarizer import LLMSummarizer
from chatfork.telemetry import UsageEventSink
from chatfork.themes import CHATFORK_THEME, ERROR, PALETTE_4, PALETTE_7
from chatfork.widgets import ChatInput, ConversationLog, MetricsPanel, StatusPanel

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = "Welcome to Chatfork! Type a message or /tangent to branch off."


def _longest_common_prefix(strings: list[str]) -> str:
    """Return the longest common prefix of a list of strings."""
    if not strings:
        return ""
    prefix = strings[0]
    for s in strings[1:]:
        while not s.startswith(prefix):
            prefix = prefix[:-1]
    return prefix


class ChatforkApp(App):
    """Chatfork terminal chat application."""

    CSS_PATH = "styles.tcss"
    TITLE = "Chatfork"

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit", priority=True),
        Binding("ctrl+l", "clear_conversation", "Clear"),
    ]

    state: reactive[AppState] = reactive(AppState.LOADING)

    def __init__(
        self,
        config: Settings | None = None,
        sink: UsageEventSink | None = None,
    ) -> None:
        super().__init__()
        self.config = config or settings
        self.sink = sink
        self.models: Models | None = None
        self.session: ChatSession | None = None
        self.is_processing = False

    def compose(self) -> ComposeResult:
        yield ConversationLog(id="conversation-log", wrap=True)

        with Vertical(id="bottom-section"):
            with Horizontal(id="status-bar"):
                yield StatusPanel(id="status-panel")
                yield MetricsPanel(id="metrics-panel")

            with Container(id="input-container"):
                yield Label(id="command-hint", classes="hidden")
                yield ChatInput(
                    id="user-input", tangent_key=tangent_key_char(self.config)
                )

        yield Footer()

    def on_mount(self) -> None:
        self.register_theme(CHATFORK_THEME)
        self.theme = CHATFORK_THEME.name

        chat_input = self.query_one("#user-input", ChatInput)
        chat_input.focus()
        chat_input.show_line_numbers = False
        chat_input.disabled = True

        status_panel = self.query_one("#status-panel", StatusPanel)
        status_panel.current_state = self.state

        self.set_interval(1.0, self._refresh_tangent_indicator)
        self.run_worker(self._load_models())

    async def _load_models(self) -> None:
        """Load the chat model in the background."""
        loop = asyncio.get_running_loop()
        status_panel = self.query_one("#status-panel", StatusPanel)

        status_panel.show_ephemeral_message("Loading model...")
        llm = await loop.run_in_executor(None, load_llm)

        self.models = Models(llm=llm)
        self.session = ChatSession(
            summarizer=LLMSummarizer(llm), sink=self.sink, config=self.config
        )

        chat_input = self.query_one("#user-input", ChatInput)
        chat_input.disabled = False
        chat_input.focus()
        self.state = AppState.READY

        conv_log = self.query_one("#conversation-log", ConversationLog)
        conv_log.add_system_message(WELCOME_MESSAGE, style=f"bold {PALETTE_4}")

    def watch_state(self, new_state: AppState) -> None:
        logger.debug(f"App state: {new_state}")
        with contextlib.suppress(NoMatches):
            status_panel = self.query_one("#status-panel", StatusPanel)
            status_panel.current_state = new_state

    def _refresh_tangent_indicator(self) -> None:
        if self.session is None:
            return
        with contextlib.suppress(NoMatches):
            status_panel = self.query_one("#status-panel", StatusPanel)
            status_panel.tangent_seconds = self.session.tangent.duration_seconds()

    def on_key(self, event: Key) -> None:
        """Handle Tab key for command autocomplete."""
        if event.key != "tab":
            return

        chat_input = self.query_one("#user-input", ChatInput)
        text = chat_input.text.strip()

        if not text.startswith("/"):
            return

        matches = [cmd for cmd in COMMANDS if cmd.startswith(text.lower())]
        if not matches:
            return

        event.prevent_default()
        event.stop()

        if len(matches) == 1:
            replacement = matches[0]
        else:
            replacement = _longest_common_prefix(matches)

        chat_input.clear()
        chat_input.insert(replacement)

    @on(ChatInput.Changed)
    def handle_input_changed(self, event: ChatInput.Changed) -> None:
        self._update_command_hints(event.text_area.text)

    @on(ChatInput.Submitted)
    def handle_submitted(self, event: ChatInput.Submitted) -> None:
        if self.is_processing:
            return
        user_input = event.value.strip()
        if user_input:
            event.chat_input.clear()
            self._hide_command_hints()
            self.run_worker(self._process_input(user_input))

    @on(ChatInput.TangentShortcut)
    def handle_tangent_shortcut(self) -> None:
        if not self.is_processing:
            self.run_worker(self._process_input("/tangent"))

    def _update_command_hints(self, text: str) -> None:
        hint_label = self.query_one("#command-hint", Label)

        if text.startswith("/") and "\n" not in text:
            typed = text.strip().lower()
            matches = [cmd for cmd in COMMANDS if cmd.startswith(typed)]

            if matches:
                hint_text = Text()
                for i, cmd in enumerate(matches):
                    if i > 0:
                        hint_text.append("\n")
                    hint_text.append(cmd, style=f"bold {PALETTE_4}")
                    hint_text.append(f" {COMMAND_DESCRIPTIONS[cmd]}", style=PALETTE_7)
                hint_label.update(hint_text)
                hint_label.remove_class("hidden")
            else:
                self._hide_command_hints()
        else:
            self._hide_command_hints()

    def _hide_command_hints(self) -> None:
        with contextlib.suppress(NoMatches):
            self.query_one("#command-hint", Label).add_class("hidden")

    def _write_status(self, lines: list[StatusLine]) -> None:
        conv_log = self.query_one("#conversation-log", ConversationLog)
        for line in lines:
            conv_log.add_status(line)

    async def _process_input(self, text: str) -> None:
        """Route user input to the appropriate handler."""
        if self.state == AppState.LOADING or self.session is None:
            return
        self.is_processing = True
        conv_log = self.query_one("#conversation-log", ConversationLog)

        try:
            if text.startswith("/"):
                await self._run_command(text)
            else:
                conv_log.add_user_message(text)
                await self._run_llm_pipeline(text)
        except UsageError as e:
            conv_log.add_system_message(str(e), style=ERROR)
        except Exception as e:
            logger.exception("Failed to process input")
            conv_log.add_error(str(e))
        finally:
            self.state = AppState.READY
            self.is_processing = False

    async def _run_command(self, text: str) -> None:
        session = self.session
        conv_log = self.query_one("#conversation-log", ConversationLog)
        name, args = split_command(text)

        if name == "/tangent":
            await self._run_tangent(TangentCommand.from_args(args))
        elif name == "/experiment":
            in_tangent = session.tangent.is_in_tangent_mode()
            self._write_status(experiment_command(session.flags, args, in_tangent))
        elif name == "/metrics":
            self._write_status(metrics_command(session))
        elif name == "/clear":
            self.action_clear_conversation()
        elif name == "/exit":
            self.exit()
        else:
            conv_log.add_system_message(
                f"Unknown command: {name}. Available: {', '.join(COMMANDS)}",
                style=ERROR,
            )

    async def _run_tangent(self, command: TangentCommand) -> None:
        session = self.session
        was_in_tangent = session.tangent.is_in_tangent_mode()
        if command.subcommand == TangentSubcommand.COMPACT and was_in_tangent:
            self.state = AppState.SUMMARIZING

        lines = await command.execute(session)

        conv_log = self.query_one("#conversation-log", ConversationLog)
        if was_in_tangent and not session.tangent.is_in_tangent_mode():
            conv_log.replay(session.conversation.history)
        self._write_status(lines)
        self._refresh_tangent_indicator()

    async def _run_llm_pipeline(self, text: str) -> None:
        """Stream a reply to ``text`` and record its performance."""
        session = self.session
        conv_log = self.query_one("#conversation-log", ConversationLog)
        metrics_panel = self.query_one("#metrics-panel", MetricsPanel)

        history = list(session.conversation.history)
        prompt_tokens = llm_mod.count_tokens(
            llm_mod.format_prompt(text, history, self.config.system_prompt)
        )
        recorder = TimingRecorder(model_id=self.models.llm.name)

        self.state = AppState.THINKING
        token_count = 0
        full_response = ""

        conv_log.start_streaming_response()
        recorder.start()

        async for token in llm_mod.generate_streaming(
            self.models.llm,
            text,
            max_tokens=self.config.max_tokens,
            history=history,
        ):
            recorder.mark_token()
            full_response += token
            conv_log.update_streaming_response(token)
            token_count += 1

        sample = recorder.finish(
            total_tokens=prompt_tokens + token_count, prompt_tokens=prompt_tokens
        )
        conv_log.finish_streaming_response()

        session.conversation.append_exchange(text, full_response)

        metrics = session.record_sample(sample)
        if metrics is not None:
            metrics_panel.update_metrics(metrics)
            if self.config.show_metrics:
                conv_log.add_status(StatusLine(metrics.format_comprehensive()))

    def action_clear_conversation(self) -> None:
        """Clear the conversation history."""
        if self.session is None:
            return
        lines = clear_command(self.session)
        if lines:
            self._write_status(lines)
            return

        conv_log = self.query_one("#conversation-log", ConversationLog)
        conv_log.clear()
        conv_log.add_system_message(WELCOME_MESSAGE, style=f"bold {PALETTE_4}")

        metrics_panel = self.query_one("#metrics-panel", MetricsPanel)
        metrics_panel.clear_metrics()
