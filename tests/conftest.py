"""Shared pytest fixtures for Chatfork tests."""

from unittest.mock import patch

import pytest

from chatfork.config import FeatureFlags, Settings
from chatfork.models.llm import LocalLLM
from chatfork.session import ChatSession
from chatfork.telemetry import LoggingEventSink, TangentModeSessionArgs, TelemetryResult


class FakeClock:
    """Manually advanced clock for duration tests."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FailingSink:
    """Sink whose every send raises."""

    def __init__(self) -> None:
        self.attempts = 0

    async def send_tangent_mode_session(
        self,
        session_id: str,
        result: TelemetryResult,
        args: TangentModeSessionArgs,
    ) -> None:
        self.attempts += 1
        raise ConnectionError("telemetry endpoint unreachable")


class StubSummarizer:
    """Summarizer returning a fixed text and remembering its input."""

    def __init__(self, summary: str = "We picked PostgreSQL.") -> None:
        self.summary = summary
        self.calls: list[list[dict[str, str]]] = []

    async def summarize(self, exchanges: list[dict[str, str]]) -> str:
        self.calls.append(list(exchanges))
        return self.summary


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sink():
    return LoggingEventSink()


@pytest.fixture
def tangent_settings():
    """Settings with tangent mode switched on and an instant local model."""
    return Settings(enable_tangent_mode=True, enable_checkpoint=False, token_delay=0.0)


@pytest.fixture
def summarizer():
    return StubSummarizer()


@pytest.fixture
def session(tangent_settings, sink, summarizer):
    """Chat session with tangent mode enabled."""
    return ChatSession(
        summarizer=summarizer,
        flags=FeatureFlags(tangent_settings),
        sink=sink,
        config=tangent_settings,
    )


@pytest.fixture
def mock_model_loading():
    """Patch model loading to return an instant local model."""
    model = LocalLLM(name="test-model", token_delay=0.0)
    with patch("chatfork.app.load_llm", return_value=model):
        yield model


@pytest.fixture
def mock_llm_stream():
    """Mock LLM streaming to yield fake tokens."""

    async def fake_generate(*args, **kwargs):
        for token in ["Hello", " ", "world", "!"]:
            yield token

    with patch("chatfork.models.llm.generate_streaming", side_effect=fake_generate):
        yield


@pytest.fixture
def failing_sink():
    return FailingSink()
