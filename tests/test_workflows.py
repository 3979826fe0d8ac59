"""Integration tests for user workflows."""

from chatfork.app import ChatforkApp
from chatfork.config import Settings
from chatfork.state import AppState
from chatfork.telemetry import LoggingEventSink
from chatfork.widgets import ChatInput, ConversationLog, MetricsPanel, StatusPanel

SIZE = (160, 40)


async def _wait_for_ready(app: ChatforkApp) -> None:
    """Wait for all workers to complete and process pending messages."""
    await app.workers.wait_for_complete()


async def _submit(app: ChatforkApp, pilot, text: str) -> None:
    chat_input = app.query_one("#user-input", ChatInput)
    chat_input.insert(text)
    await pilot.press("enter")
    await _wait_for_ready(app)
    await pilot.pause()


def _log_text(app: ChatforkApp) -> str:
    """Return the log contents with wrapped lines joined back together."""
    conv_log = app.query_one("#conversation-log", ConversationLog)
    return " ".join(" ".join(line.text for line in conv_log.lines).split())


def _tangent_app(sink: LoggingEventSink | None = None) -> ChatforkApp:
    return ChatforkApp(
        config=Settings(enable_tangent_mode=True, token_delay=0.0), sink=sink
    )


async def test_app_loads_with_mocked_model(mock_model_loading):
    """App loads successfully and transitions to READY state."""
    app = ChatforkApp()
    async with app.run_test(size=SIZE):
        await _wait_for_ready(app)
        assert app.models is not None
        assert app.session is not None
        assert app.state == AppState.READY

        chat_input = app.query_one("#user-input", ChatInput)
        assert chat_input.disabled is False


async def test_text_input_triggers_llm_generation(mock_model_loading, mock_llm_stream):
    app = ChatforkApp()
    async with app.run_test(size=SIZE) as pilot:
        await _wait_for_ready(app)

        await _submit(app, pilot, "Hello AI")

        assert app.session.conversation.history == [
            {"role": "user", "content": "Hello AI"},
            {"role": "assistant", "content": "Hello world!"},
        ]


async def test_metrics_update_after_llm_generation(mock_model_loading, mock_llm_stream):
    app = ChatforkApp()
    async with app.run_test(size=SIZE) as pilot:
        await _wait_for_ready(app)

        metrics_panel = app.query_one("#metrics-panel", MetricsPanel)
        assert metrics_panel.current_metrics is None

        await _submit(app, pilot, "Test query")

        metrics = metrics_panel.current_metrics
        assert metrics is not None
        assert metrics.total_tokens - metrics.prompt_tokens == 4
        assert app.session.last_metrics is metrics

        await _submit(app, pilot, "/metrics")
        assert "Performance Metrics:" in _log_text(app)


async def test_tangent_disabled_by_default(mock_model_loading):
    app = ChatforkApp(config=Settings(enable_tangent_mode=False))
    async with app.run_test(size=SIZE) as pilot:
        await _wait_for_ready(app)

        await _submit(app, pilot, "/tangent")

        assert not app.session.tangent.is_in_tangent_mode()
        assert "Tangent mode is disabled" in _log_text(app)


async def test_experiment_command_enables_tangent(mock_model_loading):
    app = ChatforkApp(config=Settings(enable_tangent_mode=False))
    async with app.run_test(size=SIZE) as pilot:
        await _wait_for_ready(app)

        await _submit(app, pilot, "/experiment tangent")
        await _submit(app, pilot, "/tangent")

        assert app.session.tangent.is_in_tangent_mode()


async def test_tangent_toggle_restores_main_conversation(
    mock_model_loading, mock_llm_stream
):
    sink = LoggingEventSink()
    app = _tangent_app(sink)
    async with app.run_test(size=SIZE) as pilot:
        await _wait_for_ready(app)

        await _submit(app, pilot, "Main question")
        await _submit(app, pilot, "/tangent")
        assert app.session.tangent.is_in_tangent_mode()
        assert "Created a conversation checkpoint" in _log_text(app)

        await _submit(app, pilot, "Side question")
        assert len(app.session.conversation) == 4

        await _submit(app, pilot, "/tangent")
        await app.session.tangent.drain()

        assert not app.session.tangent.is_in_tangent_mode()
        assert [m["content"] for m in app.session.conversation] == [
            "Main question",
            "Hello world!",
        ]
        log_text = _log_text(app)
        assert "Side question" not in log_text
        assert "Returned to main conversation" in log_text
        assert len(sink.events) == 1


async def test_tangent_tail_keeps_last_exchange(mock_model_loading, mock_llm_stream):
    app = _tangent_app()
    async with app.run_test(size=SIZE) as pilot:
        await _wait_for_ready(app)

        await _submit(app, pilot, "/tangent")
        await _submit(app, pilot, "First try")
        await _submit(app, pilot, "Second try")
        await _submit(app, pilot, "/tangent tail")
        await app.session.tangent.drain()

        assert not app.session.tangent.is_in_tangent_mode()
        assert [m["content"] for m in app.session.conversation] == [
            "Second try",
            "Hello world!",
        ]
        assert "last conversation entry preserved" in _log_text(app)


async def test_tangent_compact_outside_tangent_shows_error(mock_model_loading):
    app = _tangent_app()
    async with app.run_test(size=SIZE) as pilot:
        await _wait_for_ready(app)

        await _submit(app, pilot, "/tangent compact")

        assert app.state == AppState.READY
        assert "You need to be in tangent mode to use /tangent compact." in _log_text(
            app
        )


async def test_tangent_compact_replaces_branch_with_summary(
    mock_model_loading, mock_llm_stream
):
    app = _tangent_app()
    async with app.run_test(size=SIZE) as pilot:
        await _wait_for_ready(app)

        await _submit(app, pilot, "/tangent")
        await _submit(app, pilot, "Which index type?")
        await _submit(app, pilot, "/tangent compact")
        await app.session.tangent.drain()

        history = app.session.conversation.history
        assert len(history) == 1
        assert "Which index type?" in history[0]["content"]
        assert "compacted and summarized" in _log_text(app)


async def test_unknown_tangent_subcommand_shows_usage(mock_model_loading):
    app = _tangent_app()
    async with app.run_test(size=SIZE) as pilot:
        await _wait_for_ready(app)

        await _submit(app, pilot, "/tangent rewind")

        assert not app.session.tangent.is_in_tangent_mode()
        assert "Unknown /tangent subcommand" in _log_text(app)


async def test_tangent_shortcut_toggles_mode(mock_model_loading):
    app = _tangent_app()
    async with app.run_test(size=SIZE) as pilot:
        await _wait_for_ready(app)

        await pilot.press("ctrl+t")
        await _wait_for_ready(app)
        assert app.session.tangent.is_in_tangent_mode()

        chat_input = app.query_one("#user-input", ChatInput)
        assert chat_input.text == ""

        await pilot.press("ctrl+t")
        await _wait_for_ready(app)
        assert not app.session.tangent.is_in_tangent_mode()


async def test_status_panel_shows_tangent_duration(mock_model_loading):
    app = _tangent_app()
    async with app.run_test(size=SIZE) as pilot:
        await _wait_for_ready(app)

        status_panel = app.query_one("#status-panel", StatusPanel)
        assert status_panel.tangent_seconds is None

        await _submit(app, pilot, "/tangent")
        assert status_panel.tangent_seconds == 0

        await _submit(app, pilot, "/tangent")
        assert status_panel.tangent_seconds is None


async def test_clear_command_clears_history(mock_model_loading):
    app = _tangent_app()
    async with app.run_test(size=SIZE) as pilot:
        await _wait_for_ready(app)

        app.session.conversation.append_exchange("test", "response")
        assert len(app.session.conversation) == 2

        await _submit(app, pilot, "/tangent")
        await _submit(app, pilot, "/clear")
        assert len(app.session.conversation) == 2
        assert "Exit tangent mode before clearing" in _log_text(app)

        await _submit(app, pilot, "/tangent")
        await _submit(app, pilot, "/clear")
        assert len(app.session.conversation) == 0


async def test_tab_completion_for_commands(mock_model_loading):
    app = ChatforkApp()
    async with app.run_test(size=SIZE) as pilot:
        await _wait_for_ready(app)

        chat_input = app.query_one("#user-input", ChatInput)
        chat_input.insert("/ta")
        await pilot.press("tab")
        await pilot.pause(0)

        assert chat_input.text == "/tangent"


async def test_command_hints_appear_when_typing_slash(mock_model_loading):
    app = ChatforkApp()
    async with app.run_test(size=SIZE) as pilot:
        await _wait_for_ready(app)

        chat_input = app.query_one("#user-input", ChatInput)
        hint_label = app.query_one("#command-hint")

        assert "hidden" in hint_label.classes

        chat_input.insert("/tan")
        await pilot.pause(0)

        assert "hidden" not in hint_label.classes
        hint_text = str(hint_label.render())
        assert "/tangent compact" in hint_text


async def test_unknown_command_shows_error(mock_model_loading):
    app = ChatforkApp()
    async with app.run_test(size=SIZE) as pilot:
        await _wait_for_ready(app)

        await _submit(app, pilot, "/unknown")

        assert app.state == AppState.READY
        assert "Unknown command" in _log_text(app)


async def test_tangent_experiment_cannot_be_disabled_mid_tangent(mock_model_loading):
    app = _tangent_app()
    async with app.run_test(size=SIZE) as pilot:
        await _wait_for_ready(app)

        await _submit(app, pilot, "/tangent")
        await _submit(app, pilot, "/experiment tangent")

        assert "Exit tangent mode before disabling" in _log_text(app)
        assert app.session.tangent.is_in_tangent_mode()

        await _submit(app, pilot, "/tangent")
        await app.session.tangent.drain()
        assert not app.session.tangent.is_in_tangent_mode()
