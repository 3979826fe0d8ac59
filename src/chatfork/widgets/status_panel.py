"""Status panel widget for displaying app state and the active branch."""

from rich.text import Text
from textual.reactive import reactive
from textual.timer import Timer
from textual.widgets import Static

from chatfork.state import AppState
from chatfork.themes import (
    FOREGROUND,
    PALETTE_1,
    PALETTE_3,
    PALETTE_4,
    PALETTE_5,
    TANGENT_MARK,
    TANGENT_STYLE,
)


class StatusPanel(Static):
    """Widget for displaying current status and state."""

    SPINNER_FRAMES = ["⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏"]

    current_state: reactive[AppState] = reactive(AppState.LOADING)
    status_message: reactive[str | None] = reactive(None)
    tangent_seconds: reactive[int | None] = reactive(None)
    _frame_index: int = 0
    _animation_timer: Timer | None = None
    _ephemeral_timer: Timer | None = None

    def show_ephemeral_message(self, message: str, timeout: float = 3.0) -> None:
        """Show a temporary status message that auto-clears."""
        if self._ephemeral_timer is not None:
            self._ephemeral_timer.stop()
        self.status_message = message
        self._ephemeral_timer = self.set_timer(timeout, self._clear_ephemeral)

    def _clear_ephemeral(self) -> None:
        self.status_message = None
        self._ephemeral_timer = None

    def watch_status_message(self) -> None:
        self.update_display()

    def watch_tangent_seconds(self) -> None:
        self.update_display()

    def watch_current_state(self, new_state: AppState) -> None:
        if self._animation_timer is not None:
            if new_state == AppState.READY:
                self._animation_timer.pause()
            else:
                self._animation_timer.resume()
        self.update_display()

    def update_display(self) -> None:
        """Update the panel display with current state."""
        content = Text()
        content.append("Chatfork", style=PALETTE_4)
        content.append("  •  ")

        if self.current_state != AppState.READY:
            spinner = self.SPINNER_FRAMES[self._frame_index]
            content.append(f"{spinner} ", style=self._get_state_color())
        content.append(str(self.current_state), style=self._get_state_color())

        if self.tangent_seconds is not None:
            content.append(
                f"  •  {TANGENT_MARK} tangent {self.tangent_seconds}s",
                style=TANGENT_STYLE,
            )

        if self.status_message:
            content.append(f"  •  {self.status_message}", style=f"dim {PALETTE_3}")

        self.update(content)

    def _advance_animation(self) -> None:
        self._frame_index = (self._frame_index + 1) % len(self.SPINNER_FRAMES)
        self.update_display()

    def _get_state_color(self) -> str:
        color_map = {
            AppState.LOADING: PALETTE_3,
            AppState.READY: PALETTE_5,
            AppState.THINKING: PALETTE_3,
            AppState.SUMMARIZING: PALETTE_1,
        }
        return color_map.get(self.current_state, FOREGROUND)

    def on_mount(self) -> None:
        self.update_display()
        pause = self.current_state == AppState.READY
        self._animation_timer = self.set_interval(
            0.1, self._advance_animation, pause=pause
        )
