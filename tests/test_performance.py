"""Tests for response performance metrics."""

from dataclasses import replace
from unittest.mock import patch

import pytest

from chatfork.performance import (
    PerformanceMetrics,
    TimingRecorder,
    TimingSample,
    TokenMetrics,
)


def _sample(
    total_tokens: int = 100,
    prompt_tokens: int = 20,
    ttft_ms: int | None = 500,
    ttlt_ms: int | None = 2500,
    request_start_ms: int = 1000,
    stream_end_ms: int = 3000,
) -> TimingSample:
    return TimingSample(
        request_start_ms=request_start_ms,
        stream_end_ms=stream_end_ms,
        token_metrics=TokenMetrics(
            total_tokens=total_tokens,
            prompt_tokens=prompt_tokens,
            time_to_first_token_ms=ttft_ms,
            time_to_last_token_ms=ttlt_ms,
        ),
        request_id="test-request",
        model_id="test-model",
    )


def test_calculate_basic_metrics():
    metrics = PerformanceMetrics.calculate(_sample())

    assert metrics is not None
    assert metrics.total_tokens == 100
    assert metrics.prompt_tokens == 20
    assert metrics.time_to_first_token_ms == 500
    assert metrics.generation_time_ms == 2000
    assert metrics.total_duration_ms == 2000
    assert metrics.tokens_per_second == pytest.approx(50.0, abs=0.1)
    assert metrics.average_inter_token_latency_ms == pytest.approx(20.2, abs=0.1)
    assert metrics.prompt_processing_time_ms == 500


def test_calculate_with_zero_generation_time():
    metrics = PerformanceMetrics.calculate(
        _sample(
            total_tokens=1,
            prompt_tokens=0,
            ttft_ms=500,
            ttlt_ms=500,
            request_start_ms=1000,
            stream_end_ms=1500,
        )
    )

    assert metrics is not None
    assert metrics.generation_time_ms == 0
    assert metrics.tokens_per_second == 0.0
    assert metrics.average_inter_token_latency_ms == 0.0


def test_calculate_returns_none_without_token_metrics():
    sample = replace(_sample(), token_metrics=None)
    assert PerformanceMetrics.calculate(sample) is None


def test_calculate_returns_none_without_ttft():
    assert PerformanceMetrics.calculate(_sample(ttft_ms=None)) is None


def test_missing_last_token_means_no_generation_time():
    metrics = PerformanceMetrics.calculate(_sample(ttlt_ms=None))
    assert metrics is not None
    assert metrics.generation_time_ms == 0
    assert metrics.tokens_per_second == 0.0


def test_out_of_order_timestamps_floor_at_zero():
    metrics = PerformanceMetrics.calculate(
        _sample(ttft_ms=900, ttlt_ms=400, request_start_ms=5000, stream_end_ms=10)
    )
    assert metrics is not None
    assert metrics.total_duration_ms == 0
    assert metrics.generation_time_ms == 0
    assert metrics.average_inter_token_latency_ms == 0.0


def test_format_comprehensive():
    metrics = PerformanceMetrics.calculate(_sample())
    assert metrics is not None

    formatted = metrics.format_comprehensive()

    assert formatted.startswith("Performance Metrics:")
    assert "Tokens/sec: 50.0" in formatted
    assert "TTFT: 500ms" in formatted
    assert "Total duration: 2.0s" in formatted
    assert "Generation time: 2000ms" in formatted
    assert "Avg inter-token latency: 20.2ms" in formatted
    assert "Total tokens: 100 (20 prompt + 80 completion)" in formatted
    assert formatted.endswith("Prompt processing: 500ms")


def test_format_without_prompt_processing_and_more_prompt_than_total():
    metrics = PerformanceMetrics(
        tokens_per_second=12.345,
        time_to_first_token_ms=80,
        total_duration_ms=1240,
        prompt_processing_time_ms=None,
        generation_time_ms=400,
        average_inter_token_latency_ms=4.44,
        total_tokens=5,
        prompt_tokens=9,
    )

    formatted = metrics.format_comprehensive()

    assert "Tokens/sec: 12.3" in formatted
    assert "Total duration: 1.2s" in formatted
    assert "Total tokens: 5 (9 prompt + 0 completion)" in formatted
    assert "Prompt processing" not in formatted


def test_as_dict_has_every_field():
    metrics = PerformanceMetrics.calculate(_sample())
    assert metrics is not None
    data = metrics.as_dict()
    assert data["generation_time_ms"] == 2000
    assert data["prompt_processing_time_ms"] == 500
    assert set(data) == {
        "tokens_per_second",
        "time_to_first_token_ms",
        "total_duration_ms",
        "prompt_processing_time_ms",
        "generation_time_ms",
        "average_inter_token_latency_ms",
        "total_tokens",
        "prompt_tokens",
    }


def test_recorder_builds_sample_from_token_offsets():
    recorder = TimingRecorder(request_id="req-1", model_id="test-model")
    with patch(
        "chatfork.performance._monotonic_ms",
        side_effect=[1000, 1500, 1900, 2500, 3000],
    ):
        recorder.start()
        recorder.mark_token()
        recorder.mark_token()
        recorder.mark_token()
        sample = recorder.finish(total_tokens=13, prompt_tokens=10)

    assert sample.request_start_ms == 1000
    assert sample.stream_end_ms == 3000
    assert sample.request_id == "req-1"
    assert sample.token_metrics == TokenMetrics(
        total_tokens=13,
        prompt_tokens=10,
        time_to_first_token_ms=500,
        time_to_last_token_ms=1500,
        token_timestamps_ms=(500, 900, 1500),
    )

    metrics = PerformanceMetrics.calculate(sample)
    assert metrics is not None
    assert metrics.generation_time_ms == 1000
    assert metrics.total_duration_ms == 2000


def test_recorder_without_tokens_has_no_metrics():
    recorder = TimingRecorder()
    recorder.start()
    sample = recorder.finish(total_tokens=4, prompt_tokens=4)

    assert sample.token_metrics is not None
    assert sample.token_metrics.time_to_first_token_ms is None
    assert PerformanceMetrics.calculate(sample) is None
