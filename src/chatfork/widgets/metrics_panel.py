"""Metrics panel widget for displaying response performance."""

import psutil
from rich.text import Text
from textual.widgets import Static

from chatfork.performance import PerformanceMetrics
from chatfork.themes import FOREGROUND

_process = psutil.Process()


def _get_memory_mb() -> int:
    """Return current RSS in megabytes."""
    return _process.memory_info().rss // (1024 * 1024)


class MetricsPanel(Static):
    """Widget for displaying metrics of the last response."""

    current_metrics: PerformanceMetrics | None = None

    def update_metrics(self, metrics: PerformanceMetrics) -> None:
        """Update the displayed metrics."""
        self.current_metrics = metrics
        self.update_display()

    def update_display(self) -> None:
        """Update the panel display with current metrics."""
        content = Text()

        if self.current_metrics is not None:
            metrics = self.current_metrics
            content.append("TTFT: ", style="dim")
            content.append(f"{metrics.time_to_first_token_ms}ms", style=FOREGROUND)
            content.append("  Tokens: ", style="dim")
            content.append(f"{metrics.tokens_per_second:.0f}/s", style=FOREGROUND)
            content.append("  Total: ", style="dim")
            content.append(
                f"{metrics.total_duration_ms / 1000.0:.1f}s", style=FOREGROUND
            )
            content.append("  ")

        content.append("Mem: ", style="dim")
        content.append(f"{_get_memory_mb()} MB", style=FOREGROUND)
        self.update(content)

    def clear_metrics(self) -> None:
        """Clear the current metrics."""
        self.current_metrics = None
        self.update_display()

    def on_mount(self) -> None:
        """Called when widget is mounted."""
        self.update_display()
        self.set_interval(3.0, self.update_display)
