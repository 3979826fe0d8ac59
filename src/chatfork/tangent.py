"""Tangent mode: fork a side conversation and fold it back into the main one."""

import asyncio
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from chatfork.config import Feature, FeatureFlags
from chatfork.conversation import Conversation, last_exchange, summary_message
from chatfork.state import ChatMessage
from chatfork.telemetry import (
    LoggingEventSink,
    TangentModeSessionArgs,
    TelemetryResult,
    UsageEventSink,
)

logger = logging.getLogger(__name__)


class ExitPolicy(Enum):
    """How the tangent's messages are merged back on exit."""

    DISCARD = "discard"
    TAIL = "tail"
    COMPACT = "compact"


@dataclass(frozen=True, slots=True)
class TangentExit:
    """Result of leaving tangent mode."""

    policy: ExitPolicy
    duration_seconds: int


def checkpoint_conflict(flags: FeatureFlags) -> bool:
    """Whether the checkpoint feature is on alongside tangent mode."""
    return flags.is_enabled(Feature.TANGENT_MODE) and flags.is_enabled(
        Feature.CHECKPOINT
    )


class TangentController:
    """Enters and exits tangent mode on a conversation.

    The controller is the only writer of ``conversation.branch``. Each exit
    restores the transcript from the checkpoint, applies its merge policy and
    only then schedules the usage event, so a failing sink can never undo or
    delay the transition.
    """

    def __init__(
        self,
        conversation: Conversation,
        sink: UsageEventSink | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.conversation = conversation
        self._sink: UsageEventSink = sink or LoggingEventSink()
        self._clock = clock
        self._pending: set[asyncio.Task[None]] = set()
        self._threads: list[threading.Thread] = []

    def is_in_tangent_mode(self) -> bool:
        return self.conversation.branch.in_tangent

    def duration_seconds(self) -> int | None:
        """Whole seconds spent in the current tangent, or None outside one."""
        entered_at = self.conversation.branch.entered_at
        if entered_at is None:
            return None
        return max(0, int(self._clock() - entered_at))

    def enter(self) -> None:
        """Checkpoint the transcript and start a tangent."""
        if self.is_in_tangent_mode():
            logger.warning("Already in tangent mode; keeping the existing checkpoint")
            return
        self.conversation.branch.fork(self.conversation.history, self._clock())
        logger.debug(
            f"Entered tangent mode with {len(self.conversation)} checkpointed messages"
        )

    def exit_discard(self) -> TangentExit | None:
        """Drop everything said in the tangent."""
        if not self.is_in_tangent_mode():
            return self._not_in_tangent(ExitPolicy.DISCARD)
        return self._exit(ExitPolicy.DISCARD, [])

    def exit_tail(self) -> TangentExit | None:
        """Drop the tangent but keep its last question and answer."""
        if not self.is_in_tangent_mode():
            return self._not_in_tangent(ExitPolicy.TAIL)
        tail = last_exchange(self.conversation.branch_entries())
        return self._exit(ExitPolicy.TAIL, tail)

    def exit_compact(self, summary: str) -> TangentExit | None:
        """Replace the tangent with a single summary entry."""
        if not self.is_in_tangent_mode():
            return self._not_in_tangent(ExitPolicy.COMPACT)
        return self._exit(ExitPolicy.COMPACT, [summary_message(summary)])

    async def drain(self) -> None:
        """Wait for usage events that are still in flight."""
        if self._pending:
            await asyncio.gather(*self._pending)
        threads, self._threads = self._threads, []
        for thread in threads:
            await asyncio.to_thread(thread.join)

    def _not_in_tangent(self, policy: ExitPolicy) -> None:
        logger.debug(f"Ignoring {policy.value} exit: not in tangent mode")
        return None

    def _exit(self, policy: ExitPolicy, merged: list[ChatMessage]) -> TangentExit:
        duration = self.duration_seconds() or 0
        restored = self.conversation.branch.release()
        restored.extend(merged)
        self.conversation.history[:] = restored
        logger.info(
            f"Exited tangent mode ({policy.value}) after {duration}s, "
            f"{len(merged)} message(s) merged"
        )
        self._emit(duration)
        return TangentExit(policy, duration)

    def _emit(self, duration_seconds: int) -> None:
        send = self._send_usage_event(duration_seconds)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop to schedule on: send from a worker thread instead.
            self._threads = [t for t in self._threads if t.is_alive()]
            thread = threading.Thread(
                target=asyncio.run,
                args=(send,),
                name="tangent-telemetry",
                daemon=True,
            )
            self._threads.append(thread)
            thread.start()
            return
        task = loop.create_task(send)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _send_usage_event(self, duration_seconds: int) -> None:
        try:
            await self._sink.send_tangent_mode_session(
                self.conversation.conversation_id,
                TelemetryResult.SUCCEEDED,
                TangentModeSessionArgs(duration_seconds=duration_seconds),
            )
        except Exception as e:
            logger.warning(f"Failed to send tangent mode session telemetry: {e!r}")
