"""Retry with exponential backoff, and a fallback layer that never raises."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar, Union

from resilient_llm.exceptions import RetryExhaustedError
from resilient_llm.models import APOLOGY_MESSAGE, Degraded, Ok, RetryConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

Operation = Callable[[], Awaitable[T]]
SleepFn = Callable[[float], Awaitable[None]]


class RetryExecutor:
    """Runs an async operation until it succeeds or attempts run out.

    After failed attempt ``n`` (1-based) the executor waits
    ``2 ** n * base_delay_seconds`` before trying again. No wait follows the
    final attempt.
    """

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        """Initialize the retry executor.

        Args:
            config: Retry configuration (uses defaults if not provided)
            sleep: Coroutine used to wait between attempts
        """
        self.config = config or RetryConfig()
        self._sleep = sleep

    def backoff_delay(self, attempt: int) -> float:
        """Delay in seconds after the given failed attempt."""
        return (2 ** attempt) * self.config.base_delay_seconds

    async def execute(self, operation: Operation[T]) -> T:
        """Run the operation with retries.

        Args:
            operation: Zero-argument coroutine function to call

        Returns:
            The first successful result

        Raises:
            RetryExhaustedError: If every attempt raised
        """
        max_attempts = self.config.max_attempts
        last_error: Optional[Exception] = None

        for attempt in range(1, max_attempts + 1):
            try:
                logger.debug(f"Attempt {attempt}/{max_attempts}")
                return await operation()
            except Exception as e:
                last_error = e
                logger.warning(f"Attempt {attempt}/{max_attempts} failed: {e}")

                if attempt < max_attempts:
                    delay = self.backoff_delay(attempt)
                    logger.info(f"Retrying in {delay:.1f}s...")
                    await self._sleep(delay)

        raise RetryExhaustedError(max_attempts, last_error)


class FallbackExecutor:
    """Retries a primary operation, then falls back, then apologizes.

    The outermost layer never raises: callers observe an ``Ok`` answer, a
    ``Degraded`` answer from the fallback, or a ``Degraded`` apology.
    """

    def __init__(
        self,
        retry: RetryExecutor,
        fallback: Operation[str],
        apology: str = APOLOGY_MESSAGE,
    ) -> None:
        """Initialize the fallback executor.

        Args:
            retry: Executor used for the primary operation
            fallback: Cheaper operation tried once after retries are exhausted
            apology: Fixed response returned when the fallback also fails
        """
        self.retry = retry
        self.fallback = fallback
        self.apology = apology

    async def execute(self, primary: Operation[str]) -> Union[Ok, Degraded]:
        """Run the primary operation behind retries and the fallback.

        Args:
            primary: Zero-argument coroutine function producing the answer

        Returns:
            Ok with the primary answer, or Degraded with the fallback answer
            or the apology
        """
        try:
            return Ok(await self.retry.execute(primary))
        except RetryExhaustedError as e:
            logger.error(f"Primary operation failed, using fallback: {e}")
            return await self.run_fallback(e)

    async def run_fallback(self, cause: BaseException) -> Degraded:
        """Invoke the fallback once, degrading to the apology if it fails.

        Args:
            cause: The failure that triggered the fallback

        Returns:
            Degraded result carrying the cause
        """
        try:
            text = await self.fallback()
        except Exception as fallback_error:
            logger.error(f"Fallback failed: {fallback_error}")
            return Degraded(self.apology, cause=cause, canned=True)
        return Degraded(text, cause=cause)
