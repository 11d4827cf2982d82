"""Data models for resilient-llm."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union

APOLOGY_MESSAGE = (
    "I apologize, but I'm currently unable to process your request. "
    "Please try again later."
)

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_MODEL = "google/gemini-2.0-flash-001"
DEFAULT_FALLBACK_MODEL = "google/gemini-flash-1.5"

ENV_PREFIX = "RESILIENT_LLM_"


@dataclass
class RateLimitConfig:
    """Configuration for the fixed-window rate limiter.

    Args:
        max_requests: Maximum requests admitted per window
        window_seconds: Length of the rolling window in seconds
    """

    max_requests: int = 100
    window_seconds: float = 60.0

    def __post_init__(self) -> None:
        if self.max_requests < 1:
            raise ValueError(f"max_requests must be >= 1, got {self.max_requests}")
        if self.window_seconds <= 0:
            raise ValueError(
                f"window_seconds must be > 0, got {self.window_seconds}"
            )


@dataclass
class CacheConfig:
    """Configuration for the response cache.

    Args:
        ttl_seconds: Time-to-live for cached responses
        max_entries: Upper bound on stored entries (0 = unbounded, lazy expiry only)
    """

    ttl_seconds: float = 300.0
    max_entries: int = 0

    def __post_init__(self) -> None:
        if self.ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be > 0, got {self.ttl_seconds}")
        if self.max_entries < 0:
            raise ValueError(f"max_entries must be >= 0, got {self.max_entries}")


@dataclass
class RetryConfig:
    """Configuration for retry with exponential backoff.

    Args:
        max_attempts: Total attempts before giving up
        base_delay_seconds: Multiplier for the ``2 ** attempt`` backoff
    """

    max_attempts: int = 3
    base_delay_seconds: float = 1.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.base_delay_seconds < 0:
            raise ValueError(
                f"base_delay_seconds must be >= 0, got {self.base_delay_seconds}"
            )


@dataclass
class BatchConfig:
    """Configuration for the batch runner.

    Args:
        batch_size: Number of items run concurrently per group
        delay_seconds: Pause between consecutive groups
    """

    batch_size: int = 5
    delay_seconds: float = 1.0

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {self.batch_size}")
        if self.delay_seconds < 0:
            raise ValueError(
                f"delay_seconds must be >= 0, got {self.delay_seconds}"
            )


@dataclass
class ModelConfig:
    """Connection settings for a hosted chat-completions model.

    Args:
        model: Model identifier sent to the API
        api_key: Bearer token for the API (None for unauthenticated endpoints)
        base_url: API root; ``/chat/completions`` is appended
        temperature: Sampling temperature
        max_output_tokens: Completion length cap
        timeout_seconds: Per-request HTTP timeout
    """

    model: str = DEFAULT_MODEL
    api_key: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    temperature: float = 0.7
    max_output_tokens: int = 1000
    timeout_seconds: float = 30.0

    def __post_init__(self) -> None:
        if not self.model:
            raise ValueError("model must be a non-empty string")
        if not 0.0 <= self.temperature <= 2.0:
            raise ValueError(
                f"temperature must be within [0, 2], got {self.temperature}"
            )
        if self.max_output_tokens < 1:
            raise ValueError(
                f"max_output_tokens must be >= 1, got {self.max_output_tokens}"
            )
        if self.timeout_seconds <= 0:
            raise ValueError(
                f"timeout_seconds must be > 0, got {self.timeout_seconds}"
            )

    @classmethod
    def from_env(
        cls,
        env: Optional[Mapping[str, str]] = None,
        fallback: bool = False,
    ) -> ModelConfig:
        """Build a model config from ``RESILIENT_LLM_*`` environment variables.

        Args:
            env: Mapping to read from (defaults to ``os.environ``)
            fallback: Read the fallback model name and use the cheaper settings

        Returns:
            ModelConfig populated from the environment
        """
        env = os.environ if env is None else env
        if fallback:
            model = env.get(f"{ENV_PREFIX}FALLBACK_MODEL", DEFAULT_FALLBACK_MODEL)
            temperature = 0.3
        else:
            model = env.get(f"{ENV_PREFIX}MODEL", DEFAULT_MODEL)
            temperature = 0.7
        return cls(
            model=model,
            api_key=env.get(f"{ENV_PREFIX}API_KEY"),
            base_url=env.get(f"{ENV_PREFIX}BASE_URL", DEFAULT_BASE_URL),
            temperature=temperature,
        )


@dataclass
class PipelineConfig:
    """Aggregate configuration for a production pipeline.

    Args:
        rate_limit: Rate limiter settings
        cache: Response cache settings
        retry: Retry/backoff settings
        batch: Batch runner settings
        max_input_length: Longest prompt accepted by the validator
        wrap_prompt: Wrap prompts in the safety instructions before generation
    """

    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    batch: BatchConfig = field(default_factory=BatchConfig)
    max_input_length: int = 10_000
    wrap_prompt: bool = True

    def __post_init__(self) -> None:
        if self.max_input_length < 1:
            raise ValueError(
                f"max_input_length must be >= 1, got {self.max_input_length}"
            )


@dataclass
class Verdict:
    """Outcome of validating one input.

    Args:
        valid: Whether the input may be sent to the model
        reason: Human-readable rejection reason (None when valid)
    """

    valid: bool
    reason: Optional[str] = None


@dataclass
class CacheStats:
    """Response cache statistics.

    Args:
        size: Entries currently stored, expired ones included
        hits: Lookups answered from the cache
        misses: Lookups that found nothing or an expired entry
        evictions: Entries removed by sweeps or the size bound
    """

    size: int = 0
    hits: int = 0
    misses: int = 0
    evictions: int = 0

    @property
    def hit_rate(self) -> float:
        """Cache hit rate as a fraction."""
        lookups = self.hits + self.misses
        if lookups == 0:
            return 0.0
        return self.hits / lookups


@dataclass
class MetricsSnapshot:
    """Point-in-time copy of the metrics counters.

    Args:
        total: Completed calls recorded
        succeeded: Calls that returned a completion
        failed: Calls that raised
        average_latency_ms: Running mean latency in milliseconds
        total_output_size: Sum of completion lengths in characters
    """

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    average_latency_ms: float = 0.0
    total_output_size: int = 0

    @property
    def success_rate(self) -> float:
        """Fraction of recorded calls that succeeded (0.0 with no data)."""
        if self.total == 0:
            return 0.0
        return self.succeeded / self.total

    @property
    def avg_output_size(self) -> float:
        """Mean completion length per recorded call (0.0 with no data)."""
        if self.total == 0:
            return 0.0
        return self.total_output_size / self.total


@dataclass
class Ok:
    """A real answer from the primary model or the cache."""

    text: str
    cached: bool = False

    status = "ok"


@dataclass
class Degraded:
    """An answer produced after the primary path failed.

    ``canned`` is True when even the fallback model failed and ``text`` is the
    fixed apology message.
    """

    text: str
    cause: Optional[BaseException] = None
    canned: bool = False

    status = "degraded"


@dataclass
class Rejected:
    """A request refused before any model call."""

    reason: str

    status = "rejected"

    @property
    def text(self) -> str:
        return f"Request rejected: {self.reason}"


PipelineResult = Union[Ok, Degraded, Rejected]


@dataclass
class SystemHealth:
    """Combined view of the pipeline's in-memory state."""

    cache: CacheStats
    metrics: MetricsSnapshot
    rate_limit_remaining: int

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-friendly dict."""
        return {
            "cache": {
                "size": self.cache.size,
                "hits": self.cache.hits,
                "misses": self.cache.misses,
                "evictions": self.cache.evictions,
                "hit_rate": self.cache.hit_rate,
            },
            "metrics": {
                "total": self.metrics.total,
                "succeeded": self.metrics.succeeded,
                "failed": self.metrics.failed,
                "average_latency_ms": self.metrics.average_latency_ms,
                "total_output_size": self.metrics.total_output_size,
                "success_rate": self.metrics.success_rate,
                "avg_output_size": self.metrics.avg_output_size,
            },
            "rate_limit": {"remaining": self.rate_limit_remaining},
        }
