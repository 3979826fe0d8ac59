"""Local streaming chat model.

Replies are assembled from canned and contextual templates and streamed
word by word, so the client works without a network model.
"""

import asyncio
import random
import re
from collections.abc import AsyncGenerator

from chatfork.config import settings
from chatfork.state import ChatMessage

_TOKEN_PATTERN = re.compile(r"\w+|[^\w\s]", flags=re.UNICODE)


def count_tokens(text: str) -> int:
    """Count the number of tokens in a text string."""
    return len(_TOKEN_PATTERN.findall(text))


def format_prompt(
    user_input: str,
    history: list[ChatMessage] | None = None,
    system_prompt: str = settings.system_prompt,
) -> str:
    """Render the system prompt, history and new input as one prompt string."""
    messages: list[ChatMessage] = [{"role": "system", "content": system_prompt}]
    if history:
        messages.extend(history)
    messages.append({"role": "user", "content": user_input})
    return "\n".join(f"{m['role']}: {m['content']}" for m in messages)


class LocalLLM:
    """Keyword-driven responder that streams its reply token by token."""

    RESPONSES = {
        "greeting": [
            "Hello! How can I help you today?",
            "Hi there! What would you like to talk about?",
        ],
        "summary": [
            "We covered a side question and reached an answer.",
        ],
        "help": [
            (
                "Ask me anything. Use /tangent to explore a side question "
                "without cluttering the main conversation."
            ),
        ],
        "default": [
            "That's an interesting question! Here's what I think:",
            "Good point. Let me consider that carefully.",
            "Great question! Based on what we've discussed so far:",
        ],
    }

    def __init__(self, name: str = settings.model_name, token_delay: float = 0.0):
        self.name = name
        self.token_delay = token_delay

    def respond(self, prompt: str, history: list[ChatMessage]) -> str:
        """Pick a reply for ``prompt`` given the conversation so far."""
        prompt_lower = prompt.lower()

        if any(word in prompt_lower for word in ["hello", "hi", "hey"]):
            return random.choice(self.RESPONSES["greeting"])
        if any(word in prompt_lower for word in ["help", "what can you"]):
            return random.choice(self.RESPONSES["help"])
        base = random.choice(self.RESPONSES["default"])
        turns = sum(1 for message in history if message["role"] == "user")
        if "?" in prompt:
            context = f"you asked about {prompt.rstrip('?').strip()}"
        else:
            context = f"you said {prompt.strip()}"
        return f"{base} {context}, after {turns} earlier turn(s)."

    def summarize(self, transcript: str) -> str:
        """Condense a rendered transcript into a short recap."""
        questions = [
            line.removeprefix("user: ").strip()
            for line in transcript.splitlines()
            if line.startswith("user: ")
        ]
        if not questions:
            return random.choice(self.RESPONSES["summary"])
        return "Discussed: " + "; ".join(questions)

    def tokenize(self, text: str) -> list[str]:
        """Split text into word and punctuation tokens, keeping spacing."""
        return re.findall(r"\s*\S+", text)

    async def stream(self, text: str, max_tokens: int) -> AsyncGenerator[str]:
        for token in self.tokenize(text)[:max_tokens]:
            if self.token_delay:
                await asyncio.sleep(self.token_delay)
            yield token


async def generate_streaming(
    model: LocalLLM,
    user_input: str,
    max_tokens: int = settings.max_tokens,
    history: list[ChatMessage] | None = None,
) -> AsyncGenerator[str]:
    """Async generator that yields tokens as they are generated."""
    response = model.respond(user_input, history or [])
    async for token in model.stream(response, max_tokens):
        yield token


async def generate_summary(
    model: LocalLLM,
    messages: list[ChatMessage],
    max_tokens: int = settings.max_tokens,
) -> str:
    """Stream a summary of ``messages`` and return it as one string."""
    transcript = "\n".join(f"{m['role']}: {m['content']}" for m in messages)
    summary = ""
    async for token in model.stream(model.summarize(transcript), max_tokens):
        summary += token
    return summary.strip()
