"""Tests for the OpenAI-compatible chat backend."""

from __future__ import annotations

import json

import httpx
import pytest

from strata.backends.base import BackendError, ChatBackend, ModelSpec
from strata.backends.openai_compat import OpenAICompatibleBackend

MODEL = ModelSpec(name="deep", temperature=0.3, max_output_tokens=32768)


def completion(content: str) -> dict:
    return {"choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]}


def make_backend(handler, **kwargs) -> OpenAICompatibleBackend:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OpenAICompatibleBackend("http://llm.local:8000/", client=client, **kwargs)


class TestOpenAICompatibleBackend:
    """Test suite for OpenAICompatibleBackend."""

    @pytest.mark.asyncio
    async def test_invoke_sends_chat_completion(self) -> None:
        """Test request shape and response parsing."""
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=completion("Hello there"))

        backend = make_backend(handler)

        reply = await backend.invoke("Say hello", MODEL)

        assert reply.content == "Hello there"
        request = requests[0]
        assert request.method == "POST"
        assert str(request.url) == "http://llm.local:8000/v1/chat/completions"
        assert json.loads(request.content) == {
            "model": "deep",
            "messages": [{"role": "user", "content": "Say hello"}],
            "temperature": 0.3,
            "max_tokens": 32768,
            "stream": False,
        }

    @pytest.mark.asyncio
    async def test_http_error_status(self) -> None:
        """Test non-2xx responses become BackendError with the status code."""
        backend = make_backend(lambda request: httpx.Response(429, json={"error": "rate limited"}))

        with pytest.raises(BackendError) as exc_info:
            await backend.invoke("hi", MODEL)

        assert exc_info.value.status_code == 429
        assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)

    @pytest.mark.asyncio
    async def test_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        backend = make_backend(handler)

        with pytest.raises(BackendError, match="failed") as exc_info:
            await backend.invoke("hi", MODEL)

        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            b"not json",
            json.dumps({"choices": []}).encode(),
            json.dumps({"result": "x"}).encode(),
            json.dumps(completion(None)).encode(),  # type: ignore[arg-type]
        ],
    )
    async def test_malformed_body(self, body: bytes) -> None:
        """Test a 200 without a usable message is a BackendError."""
        backend = make_backend(lambda request: httpx.Response(200, content=body))

        with pytest.raises(BackendError, match="Malformed"):
            await backend.invoke("hi", MODEL)

    @pytest.mark.asyncio
    async def test_api_key_header(self) -> None:
        """Test the bearer token is sent when configured."""
        backend = OpenAICompatibleBackend("http://llm.local", api_key="sk-test")
        try:
            assert backend.client.headers["Authorization"] == "Bearer sk-test"
        finally:
            await backend.close()

    @pytest.mark.asyncio
    async def test_close_leaves_injected_client_open(self) -> None:
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        backend = OpenAICompatibleBackend("http://llm.local", client=client)

        await backend.close()

        assert client.is_closed is False
        await client.aclose()

    def test_satisfies_protocol(self) -> None:
        assert isinstance(OpenAICompatibleBackend("http://llm.local"), ChatBackend)
