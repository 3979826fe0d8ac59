"""Summarization of tangent conversations for compact exits."""

from typing import Protocol

from chatfork.models import llm as llm_mod
from chatfork.models.llm import LocalLLM
from chatfork.state import ChatMessage


class Summarizer(Protocol):
    """Turns the messages of a tangent into a short summary."""

    async def summarize(self, exchanges: list[ChatMessage]) -> str: ...


class LLMSummarizer:
    """Summarizer backed by the chat model."""

    def __init__(self, model: LocalLLM) -> None:
        self.model = model

    async def summarize(self, exchanges: list[ChatMessage]) -> str:
        if not exchanges:
            return "No messages were exchanged in the tangent."
        return await llm_mod.generate_summary(self.model, exchanges)
