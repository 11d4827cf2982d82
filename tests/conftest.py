"""Shared test fixtures for resilient-llm."""

from __future__ import annotations

from typing import List, Sequence, Union

import pytest

from resilient_llm.cache import ResponseCache
from resilient_llm.models import (
    CacheConfig,
    PipelineConfig,
    RateLimitConfig,
)
from resilient_llm.pipeline import Pipeline, PipelineContext
from resilient_llm.rate_limiter import RateLimiter


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)

    @property
    def total(self) -> float:
        return sum(self.delays)


class ScriptedClient:
    """Model client that replays a script of responses and errors.

    Once the script runs out the last step repeats.
    """

    def __init__(
        self,
        script: Sequence[Union[str, Exception]],
        name: str = "scripted",
    ) -> None:
        self.script = list(script)
        self.name = name
        self.prompts: List[str] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    async def generate(self, prompt: str) -> str:
        step = self.script[min(len(self.prompts), len(self.script) - 1)]
        self.prompts.append(prompt)
        if isinstance(step, Exception):
            raise step
        return step


@pytest.fixture
def clock() -> FakeClock:
    """Manually advanced clock starting at t=1000."""
    return FakeClock()


@pytest.fixture
def sleep() -> RecordingSleep:
    """Sleep that returns immediately and records delays."""
    return RecordingSleep()


@pytest.fixture
def small_limiter(clock: FakeClock) -> RateLimiter:
    """Rate limiter allowing 2 requests per 60 seconds."""
    return RateLimiter(RateLimitConfig(max_requests=2, window_seconds=60.0), clock=clock)


@pytest.fixture
def cache(clock: FakeClock) -> ResponseCache:
    """Response cache with a 300 second TTL and lazy expiry."""
    return ResponseCache(CacheConfig(ttl_seconds=300.0), clock=clock)


@pytest.fixture
def pipeline_config() -> PipelineConfig:
    """Pipeline config that sends prompts unwrapped."""
    return PipelineConfig(wrap_prompt=False)


def make_pipeline(
    primary: ScriptedClient,
    fallback: ScriptedClient,
    sleep: RecordingSleep,
    config: PipelineConfig,
) -> Pipeline:
    """Pipeline wired to scripted clients and a recording sleep."""
    return Pipeline(
        primary,
        fallback,
        config=config,
        context=PipelineContext.create(config),
        sleep=sleep,
    )
