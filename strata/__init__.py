"""Strata: tiered conversational memory with complexity-based model routing."""

from strata.config import StrataConfig, get_config
from strata.orchestrator import ConversationEngine, EngineNotInitializedError

__all__ = ["ConversationEngine", "EngineNotInitializedError", "StrataConfig", "get_config"]
