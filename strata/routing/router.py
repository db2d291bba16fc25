"""Model routing: classify a query, pick a model tier, invoke it."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel

from strata.models.schemas import ModelTier, QueryAnalysis
from strata.observability.metrics import record_route_decision

if TYPE_CHECKING:
    from strata.backends.base import ChatBackend
    from strata.config import ModelsConfig
    from strata.routing.classifier import ComplexityClassifier

logger = logging.getLogger(__name__)

FAST_TOKEN_LIMIT = 1000


class RouteResult(BaseModel):
    """Backend response plus the routing decision that produced it."""

    response: str
    model_name: str
    tier: ModelTier
    analysis: QueryAnalysis


def select_tier(analysis: QueryAnalysis) -> ModelTier:
    """Pick a model tier; first matching rule wins.

    1. simple and under 1000 estimated tokens -> fast
    2. technical or complex -> deep
    3. anything else -> balanced
    """
    if analysis.complexity == "simple" and analysis.estimated_tokens < FAST_TOKEN_LIMIT:
        return ModelTier.FAST
    if analysis.type == "technical" or analysis.complexity == "complex":
        return ModelTier.DEEP
    return ModelTier.BALANCED


def build_prompt(query: str, context: str = "") -> str:
    """Combine context and query into the single prompt sent to the model."""
    if context:
        return f"CONTEXT:\n{context}\n\nUSER QUERY: {query}"
    return query


class ModelRouter:
    """Stateless router over a shared chat backend.

    Backend errors propagate unmodified: there is no retry and no fallback
    to another tier.
    """

    def __init__(
        self,
        backend: ChatBackend,
        classifier: ComplexityClassifier,
        models: ModelsConfig,
    ) -> None:
        self.backend = backend
        self.classifier = classifier
        self.models = models

    async def route(self, query: str, context: str = "") -> RouteResult:
        analysis = await self.classifier.classify(query)
        tier = select_tier(analysis)
        spec = self.models.for_tier(tier)

        logger.info(
            f"Routing to {tier.value} model '{spec.name}' "
            f"(complexity={analysis.complexity}, type={analysis.type}, "
            f"~{analysis.estimated_tokens} tokens)"
        )
        record_route_decision(tier.value)

        reply = await self.backend.invoke(build_prompt(query, context), spec)
        return RouteResult(response=reply.content, model_name=spec.name, tier=tier, analysis=analysis)
