"""JSON-over-HTTP routes in front of a pipeline.

Run with:
    resilient-llm serve
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

from resilient_llm.pipeline import Pipeline

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["generation"])


async def _read_body(request: Request) -> Dict[str, Any]:
    """Parse a JSON or form-encoded request body into a dict."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(
        ("application/x-www-form-urlencoded", "multipart/form-data")
    ):
        form = await request.form()
        return dict(form)
    body = await request.json()
    return body if isinstance(body, dict) else {}


def _pipeline(request: Request) -> Pipeline:
    return request.app.state.pipeline


@router.post("/text")
async def generate_text(request: Request) -> JSONResponse:
    """Generate a completion for ``prompt``.

    The pipeline itself never raises; a 500 here means the body could not be
    read or the pipeline was misconfigured.
    """
    try:
        body = await _read_body(request)
        prompt: Optional[str] = body.get("prompt")
        if not prompt or not isinstance(prompt, str):
            return JSONResponse({"error": "Prompt is required"}, status_code=400)

        result = await _pipeline(request).process(prompt)
        return JSONResponse(
            {"success": True, "content": result.text, "status": result.status}
        )
    except Exception as e:
        logger.error(f"Text generation error: {e}")
        return JSONResponse({"error": "Failed to generate text"}, status_code=500)


@router.post("/batch")
async def generate_batch(request: Request) -> JSONResponse:
    """Generate completions for every entry of ``prompts``."""
    try:
        body = await _read_body(request)
        prompts = body.get("prompts")
        if (
            not prompts
            or not isinstance(prompts, list)
            or not all(isinstance(p, str) for p in prompts)
        ):
            return JSONResponse(
                {"error": "Prompts must be a non-empty list of strings"},
                status_code=400,
            )

        results = await _pipeline(request).process_batch(prompts)
        return JSONResponse({"success": True, "results": results})
    except Exception as e:
        logger.error(f"Batch generation error: {e}")
        return JSONResponse({"error": "Failed to generate text"}, status_code=500)


@router.get("/health")
async def health(request: Request) -> Dict[str, Any]:
    """Cache, metrics and rate limiter state."""
    return _pipeline(request).health().to_dict()


def create_app(pipeline: Pipeline) -> FastAPI:
    """Build the FastAPI application around a pipeline.

    Args:
        pipeline: Pipeline serving every route

    Returns:
        Configured FastAPI app
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("API started")
        yield
        pipeline.context.close()
        logger.info("API stopped")

    app = FastAPI(
        title="resilient-llm",
        description="Hardened text generation: validation, rate limiting, "
        "caching, retries and fallback.",
        lifespan=lifespan,
    )
    app.state.pipeline = pipeline
    app.include_router(router)
    return app
