"""Streaming performance metrics derived from per-response timing samples."""

import logging
import time
from dataclasses import asdict, dataclass, field

logger = logging.getLogger(__name__)


def _saturating_sub(a: int, b: int) -> int:
    return max(0, a - b)


def _monotonic_ms() -> int:
    return time.monotonic_ns() // 1_000_000


@dataclass(frozen=True, slots=True)
class TokenMetrics:
    """Token counts and arrival offsets (ms since request start) for one response."""

    total_tokens: int
    prompt_tokens: int
    time_to_first_token_ms: int | None = None
    time_to_last_token_ms: int | None = None
    token_timestamps_ms: tuple[int, ...] = ()


@dataclass(frozen=True, slots=True)
class TimingSample:
    """Raw timing of one completed request."""

    request_start_ms: int
    stream_end_ms: int
    token_metrics: TokenMetrics | None = None
    request_id: str | None = None
    model_id: str | None = None


@dataclass(frozen=True, slots=True)
class PerformanceMetrics:
    """Latency and throughput statistics for a single response."""

    tokens_per_second: float
    time_to_first_token_ms: int
    total_duration_ms: int
    prompt_processing_time_ms: int | None
    generation_time_ms: int
    average_inter_token_latency_ms: float
    total_tokens: int
    prompt_tokens: int

    @classmethod
    def calculate(cls, sample: TimingSample) -> "PerformanceMetrics | None":
        """Derive metrics from ``sample``.

        Returns None when the sample has no token metrics or no time to first
        token. All subtractions floor at zero so out-of-order timestamps never
        produce negative durations.
        """
        token_metrics = sample.token_metrics
        if token_metrics is None:
            logger.debug(f"No metrics for {sample.request_id}: token metrics missing")
            return None
        ttft = token_metrics.time_to_first_token_ms
        if ttft is None:
            logger.debug(f"No metrics for {sample.request_id}: TTFT missing")
            return None

        total_duration_ms = _saturating_sub(
            sample.stream_end_ms, sample.request_start_ms
        )
        last_token_ms = token_metrics.time_to_last_token_ms
        generation_time_ms = _saturating_sub(
            ttft if last_token_ms is None else last_token_ms, ttft
        )

        total_tokens = token_metrics.total_tokens
        if generation_time_ms > 0:
            tokens_per_second = total_tokens / (generation_time_ms / 1000.0)
        else:
            tokens_per_second = 0.0

        if total_tokens > 1:
            average_inter_token_latency_ms = generation_time_ms / (total_tokens - 1)
        else:
            average_inter_token_latency_ms = 0.0

        return cls(
            tokens_per_second=tokens_per_second,
            time_to_first_token_ms=ttft,
            total_duration_ms=total_duration_ms,
            prompt_processing_time_ms=ttft,
            generation_time_ms=generation_time_ms,
            average_inter_token_latency_ms=average_inter_token_latency_ms,
            total_tokens=total_tokens,
            prompt_tokens=token_metrics.prompt_tokens,
        )

    @property
    def completion_tokens(self) -> int:
        return _saturating_sub(self.total_tokens, self.prompt_tokens)

    def format_comprehensive(self) -> str:
        """Multi-line report with every metric."""
        lines = [
            "Performance Metrics:",
            f"  Tokens/sec: {self.tokens_per_second:.1f}",
            f"  TTFT: {self.time_to_first_token_ms}ms",
            f"  Total duration: {self.total_duration_ms / 1000.0:.1f}s",
            f"  Generation time: {self.generation_time_ms}ms",
            f"  Avg inter-token latency: {self.average_inter_token_latency_ms:.1f}ms",
            f"  Total tokens: {self.total_tokens} "
            f"({self.prompt_tokens} prompt + {self.completion_tokens} completion)",
        ]
        if self.prompt_processing_time_ms is not None:
            lines.append(f"  Prompt processing: {self.prompt_processing_time_ms}ms")
        return "\n".join(lines)

    def as_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(slots=True)
class TimingRecorder:
    """Collects timestamps while a response streams in.

    Call ``start()`` before sending the request, ``mark_token()`` for each
    streamed token and ``finish()`` once the stream ends.
    """

    request_id: str | None = None
    model_id: str | None = None
    _start_ms: int | None = None
    _token_offsets: list[int] = field(default_factory=list)

    def start(self) -> None:
        self._start_ms = _monotonic_ms()
        self._token_offsets.clear()

    def mark_token(self) -> None:
        if self._start_ms is None:
            return
        self._token_offsets.append(_saturating_sub(_monotonic_ms(), self._start_ms))

    def finish(self, total_tokens: int, prompt_tokens: int) -> TimingSample:
        """Freeze the collected timestamps into a sample."""
        end_ms = _monotonic_ms()
        start_ms = end_ms if self._start_ms is None else self._start_ms
        offsets = tuple(self._token_offsets)
        token_metrics = TokenMetrics(
            total_tokens=total_tokens,
            prompt_tokens=prompt_tokens,
            time_to_first_token_ms=offsets[0] if offsets else None,
            time_to_last_token_ms=offsets[-1] if offsets else None,
            token_timestamps_ms=offsets,
        )
        return TimingSample(
            request_start_ms=start_ms,
            stream_end_ms=end_ms,
            token_metrics=token_metrics,
            request_id=self.request_id,
            model_id=self.model_id,
        )
