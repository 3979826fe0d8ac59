"""State management data structures for Chatfork."""

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TypeAlias

ChatMessage: TypeAlias = dict[str, str]
Checkpoint: TypeAlias = tuple[ChatMessage, ...]


class AppState(Enum):
    """Application state machine states."""

    LOADING = "loading"
    READY = "ready"
    THINKING = "thinking"
    SUMMARIZING = "summarizing"

    def __str__(self) -> str:
        """Return human-readable state name."""
        return self.value.capitalize()


class BranchMode(Enum):
    """Which branch of the conversation is live."""

    MAIN = "main"
    TANGENT = "tangent"


@dataclass(slots=True)
class ConversationBranchState:
    """Branch bookkeeping for a single conversation.

    ``entered_at`` and ``checkpoint`` are set iff ``mode`` is TANGENT. The
    checkpoint is a private copy of the main transcript, so edits made to the
    live history while in the tangent never reach it.
    """

    mode: BranchMode = BranchMode.MAIN
    entered_at: float | None = None
    checkpoint: Checkpoint | None = None

    def __post_init__(self) -> None:
        in_tangent = self.mode == BranchMode.TANGENT
        if in_tangent != (self.entered_at is not None) or in_tangent != (
            self.checkpoint is not None
        ):
            raise ValueError(
                "entered_at and checkpoint must be set exactly when in tangent mode"
            )

    @property
    def in_tangent(self) -> bool:
        return self.mode == BranchMode.TANGENT

    def fork(self, transcript: Sequence[ChatMessage], now: float) -> None:
        """Snapshot ``transcript`` and switch to the tangent branch."""
        self.checkpoint = tuple(dict(message) for message in transcript)
        self.entered_at = now
        self.mode = BranchMode.TANGENT

    def release(self) -> list[ChatMessage]:
        """Return a fresh copy of the checkpoint and go back to the main branch."""
        if self.checkpoint is None:
            raise ValueError("no checkpoint to release outside tangent mode")
        restored = [dict(message) for message in self.checkpoint]
        self.mode = BranchMode.MAIN
        self.entered_at = None
        self.checkpoint = None
        return restored
