"""Strata data models."""

from strata.models.schemas import (
    COLD_PLACEHOLDER,
    HOT_PLACEHOLDER,
    WARM_PLACEHOLDER,
    ChatMetadata,
    ChatResult,
    ContextBundle,
    ModelTier,
    QueryAnalysis,
    QueryPayload,
    RoutePayload,
)

__all__ = [
    "COLD_PLACEHOLDER",
    "HOT_PLACEHOLDER",
    "WARM_PLACEHOLDER",
    "ChatMetadata",
    "ChatResult",
    "ContextBundle",
    "ModelTier",
    "QueryAnalysis",
    "QueryPayload",
    "RoutePayload",
]
