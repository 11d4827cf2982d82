"""Utility functions for resilient-llm."""

from __future__ import annotations

import logging

from resilient_llm.models import (
    Degraded,
    MetricsSnapshot,
    PipelineResult,
    Rejected,
    SystemHealth,
    Verdict,
)

logger = logging.getLogger(__name__)


def format_metrics_report(metrics: MetricsSnapshot) -> str:
    """Format call metrics as a human-readable report.

    Args:
        metrics: MetricsSnapshot to format

    Returns:
        Formatted report string
    """
    lines = [
        "=== Model Call Metrics ===",
        f"Total Calls:    {metrics.total}",
        f"Succeeded:      {metrics.succeeded}",
        f"Failed:         {metrics.failed}",
        f"Success Rate:   {metrics.success_rate:.1%}",
        f"Avg Latency:    {metrics.average_latency_ms:.1f} ms",
        f"Output Chars:   {metrics.total_output_size}",
        f"Avg Output:     {metrics.avg_output_size:.1f} chars",
        "==========================",
    ]
    return "\n".join(lines)


def format_health_report(health: SystemHealth) -> str:
    """Format a pipeline health snapshot as a human-readable report.

    Args:
        health: SystemHealth to format

    Returns:
        Formatted report string
    """
    cache = health.cache
    lines = [
        "=== Pipeline Health ===",
        f"Cache Entries:  {cache.size}",
        f"Cache Hits:     {cache.hits}",
        f"Cache Misses:   {cache.misses}",
        f"Hit Rate:       {cache.hit_rate:.1%}",
        f"Evictions:      {cache.evictions}",
        f"Rate Capacity:  {health.rate_limit_remaining} requests left",
        "",
        format_metrics_report(health.metrics),
    ]
    return "\n".join(lines)


def format_result(result: PipelineResult) -> str:
    """One-line status prefix plus the result text."""
    if isinstance(result, Rejected):
        return f"REJECTED: {result.reason}"
    if isinstance(result, Degraded):
        label = "APOLOGY" if result.canned else "FALLBACK"
        return f"{label}: {result.text}"
    tag = "CACHED" if result.cached else "OK"
    return f"{tag}: {result.text}"


def format_verdict(verdict: Verdict) -> str:
    if verdict.valid:
        return "VALID"
    return f"INVALID: {verdict.reason}"
