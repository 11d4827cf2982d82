"""Running counters and mean latency for completed model calls."""

from __future__ import annotations

import logging
from dataclasses import replace

from resilient_llm.models import MetricsSnapshot

logger = logging.getLogger(__name__)


class MetricsCollector:
    """Accumulates call outcomes without storing per-call history."""

    def __init__(self) -> None:
        self._metrics = MetricsSnapshot()

    def record(self, success: bool, latency_ms: float, output_size: int) -> None:
        """Record one completed call.

        Args:
            success: Whether the call returned a completion
            latency_ms: Wall time of the call in milliseconds
            output_size: Length of the completion (0 for failures)
        """
        m = self._metrics
        m.total += 1
        if success:
            m.succeeded += 1
        else:
            m.failed += 1

        # Incremental mean
        m.average_latency_ms = (
            m.average_latency_ms * (m.total - 1) + latency_ms
        ) / m.total
        m.total_output_size += output_size

        logger.debug(
            f"Recorded call: success={success}, latency={latency_ms:.1f}ms, "
            f"output_size={output_size}"
        )

    def snapshot(self) -> MetricsSnapshot:
        """Return a copy of the current counters."""
        return replace(self._metrics)

    def reset(self) -> None:
        """Zero every counter."""
        self._metrics = MetricsSnapshot()
