"""Custom exceptions for resilient-llm."""

from __future__ import annotations

from typing import Optional


class PipelineError(Exception):
    """Base exception for all pipeline errors."""


class ValidationError(PipelineError):
    """Raised when input fails validation before any model call."""


class RateLimitExceededError(PipelineError):
    """Raised when the rate window has no remaining capacity."""


class GenerationError(PipelineError):
    """Raised when a model client fails to produce a completion."""


class RetryExhaustedError(PipelineError):
    """Raised when every retry attempt of an operation has failed.

    Args:
        attempts: Number of attempts made
        last_error: The error raised by the final attempt
    """

    def __init__(self, attempts: int, last_error: Optional[BaseException]) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Failed after {attempts} attempts. Last error: {last_error}"
        )
