"""Chat backend interface.

The core only ever talks to a model through ``ChatBackend.invoke``; the
transport behind it is swappable.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from pydantic import BaseModel, Field


class ModelSpec(BaseModel):
    """Model name plus sampling settings for one invocation."""

    name: str
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_output_tokens: int = Field(default=8192, gt=0)


class BackendResponse(BaseModel):
    """Text produced by a backend model."""

    content: str


class BackendError(Exception):
    """Transport, quota or malformed-response failure from a chat backend."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@runtime_checkable
class ChatBackend(Protocol):
    """Single-prompt chat model invocation."""

    async def invoke(self, prompt: str, model: ModelSpec) -> BackendResponse: ...

    async def close(self) -> None: ...
