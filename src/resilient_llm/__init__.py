"""resilient-llm: Validation, rate limiting, caching, retries and fallback for hosted LLM calls."""

from __future__ import annotations

__version__ = "0.1.0"

from resilient_llm.batch import BatchRunner
from resilient_llm.cache import CacheEntry, ResponseCache, fingerprint
from resilient_llm.client import EchoModelClient, HostedModelClient, ModelClient
from resilient_llm.exceptions import (
    GenerationError,
    PipelineError,
    RateLimitExceededError,
    RetryExhaustedError,
    ValidationError,
)
from resilient_llm.metrics import MetricsCollector
from resilient_llm.models import (
    APOLOGY_MESSAGE,
    BatchConfig,
    CacheConfig,
    CacheStats,
    Degraded,
    MetricsSnapshot,
    ModelConfig,
    Ok,
    PipelineConfig,
    PipelineResult,
    RateLimitConfig,
    Rejected,
    RetryConfig,
    SystemHealth,
    Verdict,
)
from resilient_llm.pipeline import Pipeline, PipelineContext
from resilient_llm.rate_limiter import RateLimiter
from resilient_llm.retry import FallbackExecutor, RetryExecutor
from resilient_llm.validator import DEFAULT_RULES, InputValidator, ValidationRule

__all__ = [
    "APOLOGY_MESSAGE",
    "BatchConfig",
    "BatchRunner",
    "CacheConfig",
    "CacheEntry",
    "CacheStats",
    "DEFAULT_RULES",
    "Degraded",
    "EchoModelClient",
    "FallbackExecutor",
    "GenerationError",
    "HostedModelClient",
    "InputValidator",
    "MetricsCollector",
    "MetricsSnapshot",
    "ModelClient",
    "ModelConfig",
    "Ok",
    "Pipeline",
    "PipelineConfig",
    "PipelineContext",
    "PipelineError",
    "PipelineResult",
    "RateLimitConfig",
    "RateLimitExceededError",
    "RateLimiter",
    "Rejected",
    "ResponseCache",
    "RetryConfig",
    "RetryExecutor",
    "RetryExhaustedError",
    "SystemHealth",
    "ValidationError",
    "ValidationRule",
    "Verdict",
    "fingerprint",
]
