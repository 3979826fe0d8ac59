"""Custom Textual widgets for Chatfork."""

from chatfork.widgets.chat_input import ChatInput
from chatfork.widgets.conversation import ConversationLog
from chatfork.widgets.metrics_panel import MetricsPanel
from chatfork.widgets.status_panel import StatusPanel

__all__ = [
    "ChatInput",
    "ConversationLog",
    "MetricsPanel",
    "StatusPanel",
]
