"""Performance benchmarks for resilient-llm components."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import List

from resilient_llm.cache import ResponseCache, fingerprint
from resilient_llm.client import EchoModelClient
from resilient_llm.models import BatchConfig, PipelineConfig, RateLimitConfig
from resilient_llm.pipeline import Pipeline
from resilient_llm.rate_limiter import RateLimiter
from resilient_llm.validator import InputValidator

logging.basicConfig(level=logging.WARNING)

NUM_ITERATIONS = 3


@dataclass
class BenchResult:
    """Benchmark result."""

    name: str
    mean_seconds: float
    items_processed: int
    throughput_per_sec: float


def generate_prompts(count: int, length: int = 200) -> List[str]:
    """Generate distinct prompts of roughly the given length.

    Args:
        count: Number of prompts to generate
        length: Approximate prompt length in characters

    Returns:
        List of prompts
    """
    filler = "Explain how large language models handle context windows. "
    body = (filler * (length // len(filler) + 1))[:length]
    return [f"[{i}] {body}" for i in range(count)]


def _timed(name: str, n_items: int, fn) -> BenchResult:
    timings: List[float] = []
    for _ in range(NUM_ITERATIONS):
        start = time.perf_counter()
        fn()
        timings.append(time.perf_counter() - start)

    mean_time = sum(timings) / len(timings)
    return BenchResult(
        name=name,
        mean_seconds=mean_time,
        items_processed=n_items,
        throughput_per_sec=n_items / mean_time,
    )


def bench_validator() -> BenchResult:
    """Benchmark validation of long clean prompts."""
    prompts = generate_prompts(20000, length=2000)
    validator = InputValidator()

    def run() -> None:
        for prompt in prompts:
            validator.validate(prompt)

    return _timed(f"Validate ({len(prompts)} prompts, 2000 chars)", len(prompts), run)


def bench_cache() -> BenchResult:
    """Benchmark fingerprint + put + get."""
    prompts = generate_prompts(50000)

    def run() -> None:
        cache = ResponseCache()
        for prompt in prompts:
            key = fingerprint(prompt)
            cache.put(key, prompt)
            cache.get(key)

    return _timed(f"Cache Put/Get ({len(prompts)} entries)", len(prompts), run)


def bench_rate_limiter() -> BenchResult:
    """Benchmark admission checks against a full window."""
    n_checks = 200000

    def run() -> None:
        limiter = RateLimiter(RateLimitConfig(max_requests=1000))
        for _ in range(n_checks):
            limiter.allow()

    return _timed(f"Rate Limiter ({n_checks} checks)", n_checks, run)


def bench_pipeline() -> BenchResult:
    """Benchmark end-to-end batches with an offline client."""
    prompts = generate_prompts(5000)
    config = PipelineConfig(
        rate_limit=RateLimitConfig(max_requests=len(prompts) * NUM_ITERATIONS),
        batch=BatchConfig(batch_size=50, delay_seconds=0.0),
    )

    def run() -> None:
        pipeline = Pipeline(EchoModelClient(), EchoModelClient(), config=config)
        asyncio.run(pipeline.process_batch(prompts))

    return _timed(f"Pipeline Batch ({len(prompts)} prompts)", len(prompts), run)


def main() -> None:
    """Run all benchmarks."""
    benchmarks = [
        bench_validator,
        bench_cache,
        bench_rate_limiter,
        bench_pipeline,
    ]

    results: List[BenchResult] = []
    for bench_fn in benchmarks:
        results.append(bench_fn())

    header = f"{'Benchmark':<50} {'Time (s)':>10} {'Items':>8} {'Throughput':>14}"
    sep = "-" * len(header)

    print()
    print("=" * len(header))
    print("Resilient LLM - Performance Benchmarks")
    print("=" * len(header))
    print()
    print(header)
    print(sep)

    for r in results:
        print(
            f"{r.name:<50} {r.mean_seconds:>10.4f} {r.items_processed:>8} "
            f"{r.throughput_per_sec:>12.2f}/s"
        )

    print(sep)
    print()


if __name__ == "__main__":
    main()
