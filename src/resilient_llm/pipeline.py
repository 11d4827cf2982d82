"""Request pipeline: validate, rate-limit, cache, generate, fall back."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence

from resilient_llm.batch import BatchRunner
from resilient_llm.cache import ResponseCache, fingerprint
from resilient_llm.client import ModelClient
from resilient_llm.exceptions import RateLimitExceededError, ValidationError
from resilient_llm.metrics import MetricsCollector
from resilient_llm.models import (
    Ok,
    PipelineConfig,
    PipelineResult,
    Rejected,
    SystemHealth,
)
from resilient_llm.rate_limiter import RateLimiter
from resilient_llm.retry import FallbackExecutor, RetryExecutor
from resilient_llm.validator import InputValidator

logger = logging.getLogger(__name__)

SAFETY_TEMPLATE = (
    "You are a helpful AI assistant. Please respond to the user's question "
    "professionally and safely.\n"
    "\n"
    "Guidelines:\n"
    "- Do not provide personal, financial, or sensitive information\n"
    "- Do not generate harmful or inappropriate content\n"
    "- Be helpful and informative\n"
    "\n"
    "User question: {prompt}"
)


@dataclass
class PipelineContext:
    """Owns every piece of mutable pipeline state.

    Args:
        validator: Input validator
        rate_limiter: Rolling request window
        cache: Response cache
        metrics: Call metrics
    """

    validator: InputValidator
    rate_limiter: RateLimiter
    cache: ResponseCache
    metrics: MetricsCollector

    @classmethod
    def create(cls, config: Optional[PipelineConfig] = None) -> PipelineContext:
        """Build a fresh context from configuration.

        Args:
            config: Pipeline configuration (uses defaults if not provided)

        Returns:
            A context with empty cache, window and metrics
        """
        config = config or PipelineConfig()
        return cls(
            validator=InputValidator(max_length=config.max_input_length),
            rate_limiter=RateLimiter(config.rate_limit),
            cache=ResponseCache(config.cache),
            metrics=MetricsCollector(),
        )

    def close(self) -> None:
        """Drop all in-memory state."""
        self.cache.clear()
        self.rate_limiter.reset()
        self.metrics.reset()
        logger.info("Pipeline context closed")


class Pipeline:
    """Sequences the hardening stages for each request.

    ``process`` never raises. Every path ends in ``Ok``, ``Degraded`` or
    ``Rejected``, and ``process_text`` flattens that to the string a user
    would see.
    """

    def __init__(
        self,
        primary: ModelClient,
        fallback: ModelClient,
        config: Optional[PipelineConfig] = None,
        context: Optional[PipelineContext] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the pipeline.

        Args:
            primary: Client used for normal generation
            fallback: Cheaper client used once retries are exhausted
            config: Pipeline configuration (uses defaults if not provided)
            context: State holder (a fresh one is created if not provided)
            sleep: Coroutine used for backoff and inter-batch delays
        """
        self.config = config or PipelineConfig()
        self.context = context or PipelineContext.create(self.config)
        self.primary = primary
        self.fallback = fallback
        self.retry = RetryExecutor(self.config.retry, sleep=sleep)
        self.batch_runner = BatchRunner(self.config.batch, sleep=sleep)

        logger.info(
            f"Pipeline initialized: primary={primary.name}, fallback={fallback.name}"
        )

    def build_prompt(self, prompt: str) -> str:
        """Prompt text actually sent to the model."""
        if not self.config.wrap_prompt:
            return prompt
        return SAFETY_TEMPLATE.format(prompt=prompt)

    async def process(self, prompt: str) -> PipelineResult:
        """Run one request through every stage.

        Args:
            prompt: User input

        Returns:
            Ok, Degraded or Rejected; never raises
        """
        ctx = self.context
        model_prompt = self.build_prompt(prompt)
        executor = FallbackExecutor(
            self.retry, lambda: self.fallback.generate(model_prompt)
        )

        try:
            try:
                ctx.validator.check(prompt)
                ctx.rate_limiter.acquire()
            except (ValidationError, RateLimitExceededError) as e:
                return Rejected(str(e))

            key = fingerprint(prompt)
            cached = ctx.cache.get(key)
            if cached is not None:
                return Ok(cached, cached=True)

            result = await executor.execute(
                lambda: self._generate_monitored(model_prompt)
            )
            if isinstance(result, Ok):
                ctx.cache.put(key, result.text)
            return result

        except Exception as e:
            logger.exception(f"Pipeline error: {e}")
            return await executor.run_fallback(e)

    async def process_text(self, prompt: str) -> str:
        """Run one request and return only the user-facing text."""
        result = await self.process(prompt)
        return result.text

    async def process_batch(self, prompts: Sequence[str]) -> List[str]:
        """Run many requests through the batch runner.

        Args:
            prompts: User inputs

        Returns:
            One user-facing string per prompt, in input order
        """
        return await self.batch_runner.run(prompts, self.process_text)

    def health(self) -> SystemHealth:
        """Snapshot of cache, metrics and rate limiter state."""
        ctx = self.context
        return SystemHealth(
            cache=ctx.cache.stats,
            metrics=ctx.metrics.snapshot(),
            rate_limit_remaining=ctx.rate_limiter.remaining,
        )

    async def _generate_monitored(self, prompt: str) -> str:
        start = time.perf_counter()
        try:
            response = await self.primary.generate(prompt)
        except Exception:
            self.context.metrics.record(False, _elapsed_ms(start), 0)
            raise
        self.context.metrics.record(True, _elapsed_ms(start), len(response))
        return response


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000.0
