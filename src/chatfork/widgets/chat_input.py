"""Chat input with submit and tangent shortcut handling."""

from textual import events
from textual.binding import Binding
from textual.message import Message
from textual.widgets import TextArea

from chatfork.config import tangent_key_char


class ChatInput(TextArea):
    """TextArea subclass where Enter submits and Ctrl+J inserts a newline.

    Ctrl plus the configured tangent key posts ``TangentShortcut`` instead of
    editing the text.
    """

    BINDINGS = [
        Binding("enter", "submit", "Submit", priority=True),
        Binding("shift+enter,ctrl+j", "newline", "Newline"),
    ]

    class Submitted(Message):
        """Posted when the user presses Enter to submit input."""

        def __init__(self, chat_input: "ChatInput", value: str) -> None:
            super().__init__()
            self.chat_input = chat_input
            self.value = value

    class TangentShortcut(Message):
        """Posted when the tangent toggle shortcut is pressed."""

    def __init__(self, *args, tangent_key: str | None = None, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.tangent_key = tangent_key or tangent_key_char()

    async def _on_key(self, event: events.Key) -> None:
        if event.key == f"ctrl+{self.tangent_key}":
            event.stop()
            event.prevent_default()
            self.post_message(self.TangentShortcut())
            return
        await super()._on_key(event)

    def action_submit(self) -> None:
        """Submit the current text."""
        self.post_message(self.Submitted(self, self.text))

    def action_newline(self) -> None:
        self.insert("\n")
