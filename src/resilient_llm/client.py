"""Model clients: a hosted chat-completions client and an offline echo client."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

import httpx

from resilient_llm.exceptions import GenerationError
from resilient_llm.models import ModelConfig

logger = logging.getLogger(__name__)


class ModelClient(Protocol):
    """Anything that turns a prompt into a completion."""

    name: str

    async def generate(self, prompt: str) -> str:
        ...


class HostedModelClient:
    """Calls an OpenAI-compatible ``/chat/completions`` endpoint over HTTP.

    Every failure (HTTP status, transport, or an unexpected payload shape) is
    raised as ``GenerationError`` so the retry layer can handle it uniformly.
    """

    def __init__(
        self,
        config: Optional[ModelConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Model connection settings (uses defaults if not provided)
            transport: Custom httpx transport, e.g. ``httpx.MockTransport`` in tests
        """
        self.config = config or ModelConfig()
        self._transport = transport

    @property
    def name(self) -> str:
        return self.config.model

    @property
    def url(self) -> str:
        return self.config.base_url.rstrip("/") + "/chat/completions"

    def build_payload(self, prompt: str) -> Dict[str, Any]:
        """Request body for a single-turn completion."""
        return {
            "model": self.config.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_output_tokens,
        }

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        return headers

    async def generate(self, prompt: str) -> str:
        """Request a completion for the prompt.

        Args:
            prompt: Prompt text sent as the user message

        Returns:
            The completion text

        Raises:
            GenerationError: If the request fails or the response is malformed
        """
        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout_seconds,
                transport=self._transport,
            ) as client:
                resp = await client.post(
                    self.url,
                    json=self.build_payload(prompt),
                    headers=self._headers(),
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as e:
            raise GenerationError(
                f"{self.name}: HTTP {e.response.status_code} - {e.response.text[:200]}"
            ) from e
        except httpx.RequestError as e:
            raise GenerationError(f"{self.name}: request failed: {e}") from e
        except ValueError as e:
            raise GenerationError(f"{self.name}: response is not JSON") from e

        return self._extract_content(data)

    def _extract_content(self, data: Any) -> str:
        choices = data.get("choices") if isinstance(data, dict) else None
        if not choices or not isinstance(choices, list):
            raise GenerationError(f"{self.name}: 'choices' missing or empty")

        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise GenerationError(f"{self.name}: malformed message content")

        content = content.strip()
        if not content:
            raise GenerationError(f"{self.name}: empty completion")

        logger.debug(f"{self.name} returned {len(content)} chars")
        return content


class EchoModelClient:
    """Offline client returning the last non-empty line of the prompt."""

    name = "echo"

    async def generate(self, prompt: str) -> str:
        lines = [line.strip() for line in prompt.splitlines() if line.strip()]
        return lines[-1] if lines else ""
