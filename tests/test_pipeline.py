"""Tests for the pipeline orchestrator."""

from __future__ import annotations

import pytest

from conftest import RecordingSleep, ScriptedClient, make_pipeline
from resilient_llm.exceptions import GenerationError, RetryExhaustedError
from resilient_llm.models import (
    APOLOGY_MESSAGE,
    Degraded,
    Ok,
    PipelineConfig,
    RateLimitConfig,
    Rejected,
)
from resilient_llm.pipeline import SAFETY_TEMPLATE, Pipeline, PipelineContext
from resilient_llm.validator import SENSITIVE_REASON


class TestPipelineHappyPath:
    """Tests for successful generation and caching."""

    @pytest.mark.asyncio
    async def test_ok_result(self, sleep: RecordingSleep, pipeline_config: PipelineConfig) -> None:
        """A working primary produces Ok."""
        primary = ScriptedClient(["AI is..."])
        pipeline = make_pipeline(primary, ScriptedClient(["fb"]), sleep, pipeline_config)

        result = await pipeline.process("What is AI?")

        assert result == Ok("AI is...")
        assert primary.prompts == ["What is AI?"]

    @pytest.mark.asyncio
    async def test_second_call_served_from_cache(
        self, sleep: RecordingSleep, pipeline_config: PipelineConfig
    ) -> None:
        """A repeated prompt hits the cache and skips the model."""
        primary = ScriptedClient(["AI is..."])
        pipeline = make_pipeline(primary, ScriptedClient(["fb"]), sleep, pipeline_config)

        await pipeline.process("What is AI?")
        result = await pipeline.process("What is AI?")

        assert isinstance(result, Ok)
        assert result.cached
        assert result.text == "AI is..."
        assert primary.calls == 1

    @pytest.mark.asyncio
    async def test_metrics_recorded_per_attempt(
        self, sleep: RecordingSleep, pipeline_config: PipelineConfig
    ) -> None:
        """Each primary attempt is recorded, failures included."""
        primary = ScriptedClient([GenerationError("flaky"), "answer"])
        pipeline = make_pipeline(primary, ScriptedClient(["fb"]), sleep, pipeline_config)

        await pipeline.process("hello")

        metrics = pipeline.health().metrics
        assert metrics.total == 2
        assert metrics.succeeded == 1
        assert metrics.failed == 1
        assert metrics.total_output_size == len("answer")

    @pytest.mark.asyncio
    async def test_prompt_wrapped_by_default(self, sleep: RecordingSleep) -> None:
        """With default config the model sees the safety template."""
        primary = ScriptedClient(["ok"])
        pipeline = make_pipeline(primary, ScriptedClient(["fb"]), sleep, PipelineConfig())

        await pipeline.process("What is AI?")

        assert primary.prompts == [SAFETY_TEMPLATE.format(prompt="What is AI?")]
        assert primary.prompts[0].endswith("User question: What is AI?")


class TestPipelineRejections:
    """Tests for requests refused before any model call."""

    @pytest.mark.asyncio
    async def test_validation_rejects_without_model_call(
        self, sleep: RecordingSleep, pipeline_config: PipelineConfig
    ) -> None:
        """Sensitive input is Rejected and no client is called."""
        primary = ScriptedClient(["x"])
        fallback = ScriptedClient(["y"])
        pipeline = make_pipeline(primary, fallback, sleep, pipeline_config)

        result = await pipeline.process("What is my password?")

        assert isinstance(result, Rejected)
        assert result.reason == SENSITIVE_REASON
        assert primary.calls == 0
        assert fallback.calls == 0

    @pytest.mark.asyncio
    async def test_rate_limit_rejects(self, sleep: RecordingSleep) -> None:
        """Requests beyond the quota are Rejected."""
        config = PipelineConfig(
            rate_limit=RateLimitConfig(max_requests=2), wrap_prompt=False
        )
        primary = ScriptedClient(["x"])
        pipeline = make_pipeline(primary, ScriptedClient(["y"]), sleep, config)

        await pipeline.process("one")
        await pipeline.process("two")
        result = await pipeline.process("three")

        assert result == Rejected("Rate limit exceeded")
        assert primary.calls == 2

    @pytest.mark.asyncio
    async def test_rejected_requests_do_not_consume_quota(self, sleep: RecordingSleep) -> None:
        """Validation runs before the rate check."""
        config = PipelineConfig(
            rate_limit=RateLimitConfig(max_requests=1), wrap_prompt=False
        )
        pipeline = make_pipeline(ScriptedClient(["x"]), ScriptedClient(["y"]), sleep, config)

        await pipeline.process("my secret")
        assert isinstance(await pipeline.process("fine"), Ok)


class TestPipelineDegradation:
    """Tests for the fallback edge."""

    @pytest.mark.asyncio
    async def test_fallback_answer(
        self, sleep: RecordingSleep, pipeline_config: PipelineConfig
    ) -> None:
        """Exhausted primary falls back to the cheaper model."""
        primary = ScriptedClient([GenerationError("down")])
        fallback = ScriptedClient(["cheap answer"])
        pipeline = make_pipeline(primary, fallback, sleep, pipeline_config)

        result = await pipeline.process("What is AI?")

        assert isinstance(result, Degraded)
        assert result.text == "cheap answer"
        assert isinstance(result.cause, RetryExhaustedError)
        assert primary.calls == 3
        assert sleep.delays == [2.0, 4.0]

    @pytest.mark.asyncio
    async def test_fallback_answer_not_cached(
        self, sleep: RecordingSleep, pipeline_config: PipelineConfig
    ) -> None:
        """Only primary answers are cached."""
        primary = ScriptedClient([GenerationError("a"), GenerationError("b"), GenerationError("c"), "real"])
        fallback = ScriptedClient(["cheap answer"])
        pipeline = make_pipeline(primary, fallback, sleep, pipeline_config)

        await pipeline.process("q")
        result = await pipeline.process("q")

        assert result == Ok("real")

    @pytest.mark.asyncio
    async def test_total_failure_returns_apology(
        self, sleep: RecordingSleep, pipeline_config: PipelineConfig
    ) -> None:
        """Primary and fallback both failing yields the apology, never an exception."""
        pipeline = make_pipeline(
            ScriptedClient([GenerationError("down")]),
            ScriptedClient([GenerationError("also down")]),
            sleep,
            pipeline_config,
        )

        result = await pipeline.process("What is AI?")

        assert isinstance(result, Degraded)
        assert result.canned
        assert result.text == APOLOGY_MESSAGE
        assert await pipeline.process_text("What is AI?") == APOLOGY_MESSAGE

    @pytest.mark.asyncio
    async def test_unexpected_stage_error_takes_fallback_edge(
        self, sleep: RecordingSleep, pipeline_config: PipelineConfig
    ) -> None:
        """An error outside generation still resolves through the fallback."""
        context = PipelineContext.create(pipeline_config)

        def broken_get(key: str) -> None:
            raise RuntimeError("cache exploded")

        context.cache.get = broken_get  # type: ignore[assignment]
        fallback = ScriptedClient(["fallback text"])
        pipeline = Pipeline(
            ScriptedClient(["x"]), fallback, config=pipeline_config, context=context, sleep=sleep
        )

        result = await pipeline.process("hello")

        assert isinstance(result, Degraded)
        assert result.text == "fallback text"
        assert isinstance(result.cause, RuntimeError)


class TestPipelineBatchAndHealth:
    """Tests for batch processing and health reporting."""

    @pytest.mark.asyncio
    async def test_process_batch_preserves_order(
        self, sleep: RecordingSleep, pipeline_config: PipelineConfig
    ) -> None:
        """Batch results line up with prompts, rejections included."""

        class Upper:
            name = "upper"

            async def generate(self, prompt: str) -> str:
                return prompt.upper()

        pipeline = Pipeline(
            Upper(), ScriptedClient(["fb"]), config=pipeline_config, sleep=sleep
        )
        prompts = [f"q{i}" for i in range(7)] + ["my password"]

        results = await pipeline.process_batch(prompts)

        assert results[:7] == [f"Q{i}" for i in range(7)]
        assert results[7] == Rejected(SENSITIVE_REASON).text
        assert sleep.delays == [1.0]

    @pytest.mark.asyncio
    async def test_health(self, sleep: RecordingSleep, pipeline_config: PipelineConfig) -> None:
        """Health reflects cache, metrics and remaining quota."""
        pipeline = make_pipeline(ScriptedClient(["a"]), ScriptedClient(["b"]), sleep, pipeline_config)

        await pipeline.process("q")
        await pipeline.process("q")
        health = pipeline.health()

        assert health.cache.size == 1
        assert health.cache.hits == 1
        assert health.metrics.total == 1
        assert health.rate_limit_remaining == 98

    @pytest.mark.asyncio
    async def test_context_close_clears_state(
        self, sleep: RecordingSleep, pipeline_config: PipelineConfig
    ) -> None:
        """Closing the context empties cache, window and metrics."""
        pipeline = make_pipeline(ScriptedClient(["a"]), ScriptedClient(["b"]), sleep, pipeline_config)
        await pipeline.process("q")

        pipeline.context.close()
        health = pipeline.health()

        assert health.cache.size == 0
        assert health.metrics.total == 0
        assert health.rate_limit_remaining == 100
