"""Retention: write-back rules and background archival."""

from strata.retention.manager import SUMMARIZE_PROMPT, RetentionManager, conversation_text
from strata.retention.writer import BackgroundWriter

__all__ = ["SUMMARIZE_PROMPT", "BackgroundWriter", "RetentionManager", "conversation_text"]
