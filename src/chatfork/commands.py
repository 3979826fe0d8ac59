"""Slash commands that act on the chat session."""

import logging
from dataclasses import dataclass
from enum import Enum

from chatfork.config import FEATURE_DESCRIPTIONS, Feature, FeatureFlags, tangent_key_char
from chatfork.session import ChatSession
from chatfork.tangent import checkpoint_conflict
from chatfork.themes import ERROR, MUTED, SUCCESS, WARNING

logger = logging.getLogger(__name__)

COMMAND_DESCRIPTIONS: dict[str, str] = {
    "/tangent": "Enter or leave a side conversation",
    "/tangent tail": "Leave tangent mode keeping the last exchange",
    "/tangent compact": "Leave tangent mode keeping a summary",
    "/experiment": "List or toggle experimental features",
    "/metrics": "Show metrics for the last response",
    "/clear": "Clear conversation",
    "/exit": "Exit application",
}
COMMANDS = list(COMMAND_DESCRIPTIONS)

TANGENT_DISABLED = (
    "Tangent mode is disabled. Enable it with: /experiment tangent"
)
CHECKPOINT_WARNING = (
    "⚠️ Checkpoint is disabled while in tangent mode. "
    "Please exit tangent mode if you want to use checkpoint."
)
EXPERIMENTAL_NOTE = (
    "Note: this functionality is experimental and may change or be removed "
    "in the future."
)
RETURNED_TO_MAIN = (
    "Restored conversation from checkpoint (↯). - Returned to main conversation."
)
TAIL_PRESERVED = (
    "Restored conversation from checkpoint (↯) with last conversation entry "
    "preserved."
)
COMPACTED = "✔ Tangent conversation compacted and summarized!"
TAIL_OUTSIDE_TANGENT = "You need to be in tangent mode to use tail."
COMPACT_OUTSIDE_TANGENT = "You need to be in tangent mode to use /tangent compact."
NO_METRICS = "No performance metrics available yet."
CLEAR_IN_TANGENT = "Exit tangent mode before clearing the conversation."
TANGENT_LOCKED = "Exit tangent mode before disabling the tangent experiment."


class UsageError(ValueError):
    """A command was invoked with arguments it does not accept."""


@dataclass(frozen=True, slots=True)
class StatusLine:
    """A line of command output for the conversation log."""

    text: str
    style: str = MUTED


class TangentSubcommand(Enum):
    TAIL = "tail"
    COMPACT = "compact"


def split_command(text: str) -> tuple[str, str]:
    """Split ``/name args`` into a lowercased name and the remaining text."""
    name, _, args = text.strip().partition(" ")
    return name.lower(), args.strip()


def parse_tangent_args(args: str) -> TangentSubcommand | None:
    if not args:
        return None
    try:
        return TangentSubcommand(args.lower())
    except ValueError:
        raise UsageError(
            f"Unknown /tangent subcommand: {args}. Usage: /tangent [tail|compact]"
        ) from None


def entered_message(key: str) -> str:
    return (
        f"Created a conversation checkpoint (↯). Use ctrl + {key} or /tangent "
        "to restore the conversation later."
    )


class TangentCommand:
    """``/tangent`` toggles tangent mode; ``tail`` and ``compact`` pick how to exit."""

    def __init__(self, subcommand: TangentSubcommand | None = None) -> None:
        self.subcommand = subcommand

    @classmethod
    def from_args(cls, args: str) -> "TangentCommand":
        return cls(parse_tangent_args(args))

    async def execute(self, session: ChatSession) -> list[StatusLine]:
        if not session.flags.is_enabled(Feature.TANGENT_MODE):
            return [StatusLine(TANGENT_DISABLED, ERROR)]

        lines: list[StatusLine] = []
        if checkpoint_conflict(session.flags):
            lines.append(StatusLine(CHECKPOINT_WARNING, WARNING))

        match self.subcommand:
            case TangentSubcommand.TAIL:
                lines.extend(self._tail(session))
            case TangentSubcommand.COMPACT:
                lines.extend(await self._compact(session))
            case None:
                lines.extend(self._toggle(session))
        return lines

    def _toggle(self, session: ChatSession) -> list[StatusLine]:
        controller = session.tangent
        if controller.is_in_tangent_mode():
            controller.exit_discard()
            return [StatusLine(RETURNED_TO_MAIN)]
        controller.enter()
        key = tangent_key_char(session.config)
        return [StatusLine(entered_message(key)), StatusLine(EXPERIMENTAL_NOTE)]

    def _tail(self, session: ChatSession) -> list[StatusLine]:
        if session.tangent.exit_tail() is None:
            return [StatusLine(TAIL_OUTSIDE_TANGENT, ERROR)]
        return [StatusLine(TAIL_PRESERVED)]

    async def _compact(self, session: ChatSession) -> list[StatusLine]:
        if not session.tangent.is_in_tangent_mode():
            return [StatusLine(COMPACT_OUTSIDE_TANGENT, ERROR)]
        try:
            summary = await session.compact_tangent_conversation()
        except Exception as e:
            logger.error(f"Tangent summarization failed: {e!r}")
            return [
                StatusLine(f"Failed to summarize tangent conversation: {e}", ERROR)
            ]
        session.tangent.exit_compact(summary)
        return [StatusLine(COMPACTED, SUCCESS)]


def experiment_command(
    flags: FeatureFlags, args: str, in_tangent: bool = False
) -> list[StatusLine]:
    """List experiments, or toggle the one named in ``args``.

    Tangent mode cannot be switched off while a tangent is open, since every
    way out of it goes through the feature.
    """
    if not args:
        lines = [StatusLine("Experiments:")]
        for feature, description in FEATURE_DESCRIPTIONS.items():
            state = "on" if flags.is_enabled(feature) else "off"
            lines.append(StatusLine(f"  {feature} [{state}] - {description}"))
        return lines

    feature = flags.lookup(args)
    if feature is None:
        names = ", ".join(str(f) for f in Feature)
        raise UsageError(f"Unknown experiment: {args}. Available: {names}")
    if (
        feature is Feature.TANGENT_MODE
        and in_tangent
        and flags.is_enabled(Feature.TANGENT_MODE)
    ):
        return [StatusLine(TANGENT_LOCKED, ERROR)]
    enabled = flags.toggle(feature)
    logger.info(f"Experiment {feature} {'enabled' if enabled else 'disabled'}")
    return [
        StatusLine(
            f"{feature} {'enabled' if enabled else 'disabled'}.",
            SUCCESS if enabled else MUTED,
        )
    ]


def metrics_command(session: ChatSession) -> list[StatusLine]:
    if session.last_metrics is None:
        return [StatusLine(NO_METRICS)]
    return [StatusLine(session.last_metrics.format_comprehensive())]


def clear_command(session: ChatSession) -> list[StatusLine]:
    """Clear the transcript unless a tangent is open."""
    if session.tangent.is_in_tangent_mode():
        return [StatusLine(CLEAR_IN_TANGENT, ERROR)]
    session.clear()
    return []
