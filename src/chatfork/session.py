"""Chat session: the conversation and its collaborators."""

import logging

from chatfork.config import FeatureFlags, Settings, settings
from chatfork.conversation import Conversation
from chatfork.performance import PerformanceMetrics, TimingSample
from chatfork.summarizer import Summarizer
from chatfork.tangent import TangentController
from chatfork.telemetry import LoggingEventSink, UsageEventSink

logger = logging.getLogger(__name__)


class ChatSession:
    """Owns one conversation and everything that acts on it."""

    def __init__(
        self,
        summarizer: Summarizer,
        flags: FeatureFlags | None = None,
        sink: UsageEventSink | None = None,
        config: Settings | None = None,
    ) -> None:
        self.config = config or settings
        self.flags = flags or FeatureFlags(self.config)
        self.sink = sink or LoggingEventSink()
        self.summarizer = summarizer
        self.conversation = Conversation()
        self.tangent = TangentController(self.conversation, sink=self.sink)
        self.last_metrics: PerformanceMetrics | None = None

    @property
    def session_id(self) -> str:
        return self.conversation.conversation_id

    async def compact_tangent_conversation(self) -> str:
        """Summarize the messages exchanged since entering tangent mode."""
        return await self.summarizer.summarize(self.conversation.branch_entries())

    def record_sample(self, sample: TimingSample) -> PerformanceMetrics | None:
        """Compute metrics for a finished response and remember them."""
        metrics = PerformanceMetrics.calculate(sample)
        if metrics is None:
            logger.debug("Performance metrics unavailable for this response")
            return None
        logger.info(f"Response metrics ({sample.model_id}): {metrics.as_dict()}")
        self.last_metrics = metrics
        return metrics

    def clear(self) -> None:
        self.conversation.clear()
        self.last_metrics = None
