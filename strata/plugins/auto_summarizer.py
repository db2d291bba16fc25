"""Message-count based summarization of archived conversation text.

Runs alongside the token-based hot buffer summarization; the two triggers
are independent.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from strata.plugins.base import Plugin

if TYPE_CHECKING:
    from strata.backends.base import ChatBackend, ModelSpec

logger = logging.getLogger(__name__)

SUMMARY_PROMPT = "Create a concise summary preserving key facts, relationships, and events:\n\n{conversation}"


class AutoSummarizerPlugin(Plugin):
    """Every ``interval`` saves, append a model-written summary to the archived text."""

    name = "Auto Summarizer"

    def __init__(self, backend: ChatBackend, model: ModelSpec, interval: int = 20) -> None:
        if interval < 1:
            raise ValueError("interval must be >= 1")
        self.backend = backend
        self.model = model
        self.interval = interval
        self.message_count = 0

    async def on_memory_save(self, text: str) -> str:
        self.message_count += 1
        if self.message_count < self.interval:
            return text

        logger.info(f"Auto-summarizing after {self.message_count} messages")
        try:
            summary = await self.backend.invoke(SUMMARY_PROMPT.format(conversation=text), self.model)
        except Exception as e:
            # Counter is kept so the next save tries again
            logger.warning(f"Auto-summarization failed, archiving text unchanged: {e}")
            return text

        self.message_count = 0
        return f"{text}\n\n[SUMMARY: {summary.content}]"
