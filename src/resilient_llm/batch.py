"""Fixed-size concurrent batches with a pause between groups."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

from resilient_llm.models import BatchConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

Worker = Callable[[T], Awaitable[str]]


class BatchRunner:
    """Runs a worker over items in groups of ``batch_size``.

    Items within a group run concurrently. A worker failure becomes an error
    string in that item's slot, so one bad item never aborts the batch.
    """

    def __init__(
        self,
        config: Optional[BatchConfig] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the batch runner.

        Args:
            config: Batch configuration (uses defaults if not provided)
            sleep: Coroutine used to wait between groups
        """
        self.config = config or BatchConfig()
        self._sleep = sleep

    def partition(self, items: Sequence[T]) -> List[Sequence[T]]:
        """Split items into consecutive groups of at most ``batch_size``."""
        size = self.config.batch_size
        return [items[i:i + size] for i in range(0, len(items), size)]

    async def run(self, items: Sequence[T], worker: Worker[T]) -> List[str]:
        """Process every item, preserving input order in the output.

        Args:
            items: Inputs to process
            worker: Coroutine function producing a string per item

        Returns:
            One result string per input item
        """
        groups = self.partition(items)
        total = len(groups)
        results: List[str] = []

        for index, group in enumerate(groups, start=1):
            logger.info(f"Processing batch {index}/{total} ({len(group)} items)")
            results.extend(
                await asyncio.gather(*(self._run_one(worker, item) for item in group))
            )

            if index < total:
                await self._sleep(self.config.delay_seconds)

        return results

    @staticmethod
    async def _run_one(worker: Worker[T], item: T) -> str:
        try:
            return await worker(item)
        except Exception as e:
            logger.warning(f"Batch item failed: {e}")
            return f"Error processing: {e}"

