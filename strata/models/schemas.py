"""Pydantic schemas for classification, context and chat results."""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from strata.processing.tokens import estimate_tokens

HOT_PLACEHOLDER = "No recent history"
WARM_PLACEHOLDER = "No relevant past conversations"
COLD_PLACEHOLDER = "No historical data"


class ModelTier(str, Enum):
    """Backend model tiers a query can be routed to."""

    FAST = "fast"
    BALANCED = "balanced"
    DEEP = "deep"


class QueryAnalysis(BaseModel):
    """Classifier verdict for one query.

    Validation is strict: unknown enum values, missing fields, negative token
    estimates and string-typed numbers are all rejected. Both the snake_case
    field names and the camelCase names the classifier prompt asks for are
    accepted.
    """

    model_config = ConfigDict(strict=True, populate_by_name=True, frozen=True)

    complexity: Literal["simple", "medium", "complex"]
    type: Literal["dialogue", "creative", "technical", "retrieval"]
    requires_memory: bool = Field(alias="requiresMemory")
    estimated_tokens: int = Field(alias="estimatedTokens", ge=0)

    @classmethod
    def fallback(cls) -> QueryAnalysis:
        """Analysis used whenever classification fails."""
        return cls(complexity="medium", type="dialogue", requires_memory=True, estimated_tokens=500)


class ContextBundle(BaseModel):
    """Context assembled from the three memory tiers.

    ``token_count`` is ``ceil(len(render()) / 4)``, an estimate rather than
    a tokenizer count.
    """

    hot: str = ""
    warm: str = ""
    cold: str = ""

    def render(self) -> str:
        return (
            f"RECENT CONVERSATION (Hot):\n{self.hot or HOT_PLACEHOLDER}\n\n"
            f"RELEVANT PAST CONVERSATIONS (Warm):\n{self.warm or WARM_PLACEHOLDER}\n\n"
            f"HISTORICAL KNOWLEDGE (Cold):\n{self.cold or COLD_PLACEHOLDER}"
        )

    @property
    def token_count(self) -> int:
        return estimate_tokens(self.render())


class QueryPayload(BaseModel):
    """``beforeQuery`` payload. Hooks may rewrite the message or attach fields."""

    model_config = ConfigDict(extra="allow")

    message: str
    session_id: str = "default"


class RoutePayload(BaseModel):
    """``onModelRoute`` payload: what the router will see."""

    model_config = ConfigDict(extra="allow")

    query: str
    context: str = ""


class ChatMetadata(BaseModel):
    """Per-turn metadata returned with every chat result."""

    model_config = ConfigDict(extra="allow")

    complexity: str
    memory_tokens: int
    tokens: int
    cached: bool = False


class ChatResult(BaseModel):
    """Final result of one chat turn (``afterQuery`` payload)."""

    model_config = ConfigDict(extra="allow")

    response: str
    model_name: str
    tier: ModelTier
    analysis: QueryAnalysis
    metadata: ChatMetadata

    def extras(self) -> dict[str, Any]:
        """Fields attached by ``afterQuery`` hooks."""
        return dict(self.model_extra or {})
