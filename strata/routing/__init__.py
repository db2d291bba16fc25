"""Query classification and model routing."""

from strata.models.schemas import ModelTier
from strata.routing.classifier import CLASSIFIER_PROMPT, ComplexityClassifier, unwrap_code_fence
from strata.routing.router import ModelRouter, RouteResult, build_prompt, select_tier

__all__ = [
    "CLASSIFIER_PROMPT",
    "ComplexityClassifier",
    "ModelRouter",
    "ModelTier",
    "RouteResult",
    "build_prompt",
    "select_tier",
    "unwrap_code_fence",
]
