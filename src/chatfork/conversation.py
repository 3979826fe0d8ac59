"""Conversation transcript owned by a chat session."""

import uuid
from collections.abc import Iterator

from chatfork.state import ChatMessage, ConversationBranchState

SUMMARY_PREFIX = "Summary of tangent conversation:"


def user_message(content: str) -> ChatMessage:
    return {"role": "user", "content": content}


def assistant_message(content: str) -> ChatMessage:
    return {"role": "assistant", "content": content}


def summary_message(summary: str) -> ChatMessage:
    """Synthetic entry that stands in for a compacted tangent."""
    return {"role": "assistant", "content": f"{SUMMARY_PREFIX}\n{summary}"}


class Conversation:
    """Chat history plus the branch state that forks it."""

    def __init__(self, conversation_id: str | None = None) -> None:
        self.conversation_id = conversation_id or str(uuid.uuid4())
        self.history: list[ChatMessage] = []
        self.branch = ConversationBranchState()

    def __len__(self) -> int:
        return len(self.history)

    def __iter__(self) -> Iterator[ChatMessage]:
        return iter(self.history)

    def append_exchange(self, user_input: str, response: str) -> None:
        """Record one user prompt and the assistant reply to it."""
        self.history.append(user_message(user_input))
        self.history.append(assistant_message(response))

    def branch_entries(self) -> list[ChatMessage]:
        """Messages added since the tangent checkpoint was taken."""
        checkpoint = self.branch.checkpoint
        if checkpoint is None:
            return []
        return self.history[len(checkpoint) :]

    def clear(self) -> None:
        self.history.clear()


def last_exchange(messages: list[ChatMessage]) -> list[ChatMessage]:
    """Return the final user/assistant pair in ``messages``, or an empty list."""
    for index in range(len(messages) - 2, -1, -1):
        if (
            messages[index]["role"] == "user"
            and messages[index + 1]["role"] == "assistant"
        ):
            return [dict(messages[index]), dict(messages[index + 1])]
    return []
