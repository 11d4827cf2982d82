"""Command-line interface for resilient-llm."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import click
import uvicorn
from dotenv import load_dotenv

from resilient_llm.api import create_app
from resilient_llm.client import EchoModelClient, HostedModelClient, ModelClient
from resilient_llm.models import BatchConfig, ModelConfig, PipelineConfig
from resilient_llm.pipeline import Pipeline
from resilient_llm.utils import format_health_report, format_result, format_verdict
from resilient_llm.validator import InputValidator

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def build_pipeline(
    offline: bool,
    model: Optional[str] = None,
    fallback_model: Optional[str] = None,
    wrap_prompt: bool = True,
    batch: Optional[BatchConfig] = None,
) -> Pipeline:
    """Create a pipeline from CLI options and the environment.

    Args:
        offline: Use echo clients instead of the hosted API
        model: Override for the primary model name
        fallback_model: Override for the fallback model name
        wrap_prompt: Wrap prompts in the safety instructions
        batch: Batch runner settings (defaults if not provided)

    Returns:
        Ready-to-use pipeline
    """
    primary: ModelClient
    fallback: ModelClient
    if offline:
        primary, fallback = EchoModelClient(), EchoModelClient()
    else:
        primary_config = ModelConfig.from_env()
        fallback_config = ModelConfig.from_env(fallback=True)
        if model:
            primary_config.model = model
        if fallback_model:
            fallback_config.model = fallback_model
        primary = HostedModelClient(primary_config)
        fallback = HostedModelClient(fallback_config)

    config = PipelineConfig(wrap_prompt=wrap_prompt, batch=batch or BatchConfig())
    return Pipeline(primary, fallback, config=config)


@click.group()
@click.option("--offline", is_flag=True, help="Answer with the echo client, no network")
@click.option("--model", default=None, help="Primary model name")
@click.option("--fallback-model", default=None, help="Fallback model name")
@click.option("--no-wrap", is_flag=True, help="Send prompts without safety instructions")
@click.pass_context
def main(
    ctx: click.Context,
    offline: bool,
    model: Optional[str],
    fallback_model: Optional[str],
    no_wrap: bool,
) -> None:
    """Resilient LLM - validated, rate-limited, cached and retried generation."""
    load_dotenv()
    ctx.obj = {
        "offline": offline,
        "model": model,
        "fallback_model": fallback_model,
        "wrap_prompt": not no_wrap,
    }


def _pipeline(ctx: click.Context, **overrides: object) -> Pipeline:
    return build_pipeline(**{**ctx.obj, **overrides})


@main.command()
@click.argument("prompt")
@click.option("--stats", is_flag=True, help="Print pipeline health afterwards")
@click.pass_context
def ask(ctx: click.Context, prompt: str, stats: bool) -> None:
    """Send one prompt through the pipeline."""
    pipeline = _pipeline(ctx)
    result = asyncio.run(pipeline.process(prompt))
    click.echo(format_result(result))

    if stats:
        click.echo()
        click.echo(format_health_report(pipeline.health()))


@main.command()
@click.argument("prompts", nargs=-1, required=True)
@click.option("--batch-size", default=5, help="Prompts processed concurrently")
@click.option("--delay", default=1.0, help="Seconds to wait between batches")
@click.pass_context
def batch(ctx: click.Context, prompts: tuple, batch_size: int, delay: float) -> None:
    """Send many prompts through the pipeline in batches."""
    pipeline = _pipeline(ctx, batch=BatchConfig(batch_size=batch_size, delay_seconds=delay))

    click.echo(f"Processing {len(prompts)} prompts...\n")
    results = asyncio.run(pipeline.process_batch(list(prompts)))
    for i, (prompt, text) in enumerate(zip(prompts, results), start=1):
        click.echo(f"[{i}] {prompt[:50]}")
        click.echo(f"    {text}")

    click.echo()
    click.echo(format_health_report(pipeline.health()))


@main.command()
@click.argument("text")
def validate(text: str) -> None:
    """Check input against the validation rules without calling a model."""
    click.echo(format_verdict(InputValidator().validate(text)))


@main.command()
@click.option("--host", default="127.0.0.1", help="Bind address")
@click.option("--port", default=8000, help="Bind port")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int) -> None:
    """Serve the HTTP API."""
    uvicorn.run(create_app(_pipeline(ctx)), host=host, port=port)


if __name__ == "__main__":
    main()
