"""Query complexity classification.

A low-cost model is asked for a fixed-shape JSON verdict. The reply is
validated against the strict ``QueryAnalysis`` schema; anything that does
not validate, and any backend failure, yields ``QueryAnalysis.fallback()``
so routing is never blocked by classification.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from pydantic import ValidationError

from strata.models.schemas import QueryAnalysis
from strata.observability.metrics import record_classifier_fallback

if TYPE_CHECKING:
    from strata.backends.base import ChatBackend, ModelSpec

logger = logging.getLogger(__name__)

CLASSIFIER_PROMPT = """Analyze this query and return ONLY JSON (no markdown, no backticks):
{{
  "complexity": "simple|medium|complex",
  "type": "dialogue|creative|technical|retrieval",
  "requiresMemory": true|false,
  "estimatedTokens": number
}}

Query: {query}"""

# Whole reply wrapped in one ``` or ```json fence
_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*\n?(?P<body>.*?)\n?\s*```\s*$", re.DOTALL | re.IGNORECASE)


def unwrap_code_fence(text: str) -> str:
    """Return the body of a fenced reply, or the stripped text unchanged."""
    match = _FENCE_RE.match(text)
    return match.group("body").strip() if match else text.strip()


class ComplexityClassifier:
    """Classify queries with the fast model."""

    def __init__(self, backend: ChatBackend, model: ModelSpec) -> None:
        self.backend = backend
        self.model = model

    async def classify(self, query: str) -> QueryAnalysis:
        """Classify ``query``; never raises for backend or parsing failures."""
        try:
            reply = await self.backend.invoke(CLASSIFIER_PROMPT.format(query=query), self.model)
        except Exception as e:
            logger.warning(f"Classifier backend call failed, using fallback analysis: {e}")
            record_classifier_fallback("backend_error")
            return QueryAnalysis.fallback()

        try:
            return QueryAnalysis.model_validate_json(unwrap_code_fence(reply.content))
        except ValidationError as e:
            logger.warning(
                f"Classifier returned invalid analysis, using fallback: "
                f"{e.error_count()} validation error(s)"
            )
            record_classifier_fallback("invalid_output")
            return QueryAnalysis.fallback()
