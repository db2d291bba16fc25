"""Chat backend for OpenAI-compatible ``/v1/chat/completions`` servers.

Works against vLLM, Ollama, LiteLLM, llama.cpp server and hosted
OpenAI-compatible endpoints.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from strata.backends.base import BackendError, BackendResponse, ModelSpec

logger = logging.getLogger(__name__)


class OpenAICompatibleBackend:
    """Async client for an OpenAI-compatible chat completions API."""

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 120.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the backend.

        Args:
            base_url: Server URL (e.g., http://localhost:8000)
            api_key: Bearer token, if the server requires one
            timeout: Request timeout in seconds
            client: Preconfigured client (tests use ``httpx.MockTransport``)
        """
        self.base_url = base_url.rstrip("/")
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout, headers=headers)

    async def invoke(self, prompt: str, model: ModelSpec) -> BackendResponse:
        """Send one user prompt and return the assistant message.

        Raises:
            BackendError: On transport errors, non-2xx responses or a body
                without a choice message
        """
        payload = {
            "model": model.name,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": model.temperature,
            "max_tokens": model.max_output_tokens,
            "stream": False,
        }

        try:
            response = await self.client.post(f"{self.base_url}/v1/chat/completions", json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise BackendError(
                f"Model {model.name} returned HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise BackendError(f"Request to model {model.name} failed: {e}") from e

        return BackendResponse(content=_extract_content(response, model.name))

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()


def _extract_content(response: httpx.Response, model_name: str) -> str:
    try:
        data: Any = response.json()
        content = data["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError) as e:
        raise BackendError(f"Malformed response from model {model_name}: {e}") from e

    if not isinstance(content, str):
        raise BackendError(f"Malformed response from model {model_name}: content is not text")
    return content
