"""Retention: what is written back to which tier after a turn, and when the
hot buffer is compacted."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from strata.observability.metrics import record_summarization
from strata.storage.models import Exchange, Tier

if TYPE_CHECKING:
    from strata.backends.base import ChatBackend, ModelSpec
    from strata.models.schemas import QueryAnalysis
    from strata.retention.writer import BackgroundWriter
    from strata.storage.tiered import TieredStore

logger = logging.getLogger(__name__)

SUMMARIZE_PROMPT = (
    "Summarize the following conversation, preserving all important facts, "
    "relationships, and events:\n\n{history}"
)


def conversation_text(exchange: Exchange) -> str:
    """Text handed to ``onMemorySave`` hooks and archived to the cold tier."""
    return f"User: {exchange.input}\nAssistant: {exchange.output}"


class RetentionManager:
    """Apply the write-back rules for one completed turn.

    - the exchange is appended to the session's hot buffer and written to
      the warm tier (one best-effort attempt);
    - when the hot estimate crosses the ceiling the buffer is summarized
      into ``[summary, *last K]``;
    - exchanges whose analysis requires memory are archived to the cold tier.

    Callers hold the session's hot lock while calling ``retain``.
    """

    def __init__(
        self,
        store: TieredStore,
        writer: BackgroundWriter,
        backend: ChatBackend,
        summary_model: ModelSpec,
        keep_recent: int = 10,
    ) -> None:
        self.store = store
        self.writer = writer
        self.backend = backend
        self.summary_model = summary_model
        self.keep_recent = keep_recent

    async def retain(
        self,
        exchange: Exchange,
        analysis: QueryAnalysis,
        archive_text: str | None = None,
    ) -> bool:
        """Write back one exchange.

        Args:
            exchange: The completed turn
            analysis: Classifier verdict for the turn's query
            archive_text: Cold-tier text (``onMemorySave`` output); defaults
                to the plain conversation text

        Returns:
            True if the hot buffer was summarized during this call
        """
        session_id = exchange.session_id
        await self.store.put(Tier.HOT, exchange, session_id=session_id)
        self.writer.schedule(
            Tier.WARM,
            self.store.put,
            Tier.WARM,
            exchange.as_text(),
            metadata=_metadata(session_id, "conversation"),
        )

        summarized = False
        if self.store.hot.buffer(session_id).needs_summary:
            summarized = await self.summarize(session_id)

        if analysis.requires_memory:
            self.writer.schedule(
                Tier.COLD,
                self.store.put,
                Tier.COLD,
                archive_text if archive_text is not None else conversation_text(exchange),
                metadata=_metadata(session_id, analysis.type),
            )

        return summarized

    async def summarize(self, session_id: str) -> bool:
        """Compress a session's hot buffer into one summary exchange.

        On failure the buffer keeps its ``needs_summary`` flag and the next
        append tries again.
        """
        buffer = self.store.hot.buffer(session_id)
        history = "\n\n".join(e.as_text() for e in buffer.recent(len(buffer.exchanges)))

        logger.info(f"Summarizing hot buffer for session {session_id} (~{buffer.token_count} tokens)")
        try:
            reply = await self.backend.invoke(SUMMARIZE_PROMPT.format(history=history), self.summary_model)
        except Exception as e:
            logger.warning(f"Hot buffer summarization failed for session {session_id}: {e}")
            record_summarization("error")
            return False

        marker = Exchange.summary_marker(reply.content, session_id)
        buffer.compact(marker, self.keep_recent)
        record_summarization("success")
        logger.info(
            f"Session {session_id} compacted to summary + {len(buffer.exchanges)} exchanges "
            f"(~{buffer.token_count} tokens)"
        )

        self.writer.schedule(
            Tier.WARM,
            self.store.put,
            Tier.WARM,
            marker.as_text(),
            metadata=_metadata(session_id, "summary"),
        )
        return True


def _metadata(session_id: str, kind: str) -> dict[str, Any]:
    return {"session_id": session_id, "type": kind, "timestamp": datetime.now(UTC).isoformat()}
