"""Chat model backends."""

from strata.backends.base import BackendError, BackendResponse, ChatBackend, ModelSpec
from strata.backends.openai_compat import OpenAICompatibleBackend

__all__ = [
    "BackendError",
    "BackendResponse",
    "ChatBackend",
    "ModelSpec",
    "OpenAICompatibleBackend",
]
