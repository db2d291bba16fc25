"""Hot store: in-process, per-session buffer of recent exchanges."""

from __future__ import annotations

import asyncio
import logging
import weakref
from dataclasses import dataclass, field

from strata.processing.tokens import estimate_tokens
from strata.storage.models import Exchange

logger = logging.getLogger(__name__)


@dataclass
class HotBuffer:
    """Recent exchanges for one session plus an optional summary marker.

    ``token_count`` is the running estimate used against the ceiling. Once it
    exceeds the ceiling the buffer is flagged ``needs_summary`` until a
    summarization cycle succeeds.
    """

    session_id: str
    exchanges: list[Exchange] = field(default_factory=list)
    summary: Exchange | None = None
    token_count: int = 0
    needs_summary: bool = False

    def append(self, exchange: Exchange) -> int:
        """Append an exchange and return the updated token estimate."""
        self.exchanges.append(exchange)
        self.token_count += exchange_tokens(exchange)
        return self.token_count

    def recent(self, limit: int) -> list[Exchange]:
        """Summary marker (if any) followed by the last ``limit`` exchanges."""
        window = self.exchanges[-limit:] if limit > 0 else []
        return [self.summary, *window] if self.summary else list(window)

    def compact(self, summary: Exchange, keep_recent: int) -> None:
        """Replace older history with ``summary`` and keep the last ``keep_recent`` turns.

        The counter is reset to the summary's own estimated size.
        """
        self.exchanges = self.exchanges[-keep_recent:] if keep_recent > 0 else []
        self.summary = summary
        self.token_count = exchange_tokens(summary)
        self.needs_summary = False

    def clear(self) -> None:
        self.exchanges = []
        self.summary = None
        self.token_count = 0
        self.needs_summary = False


def exchange_tokens(exchange: Exchange) -> int:
    """Estimated token size of one exchange."""
    return estimate_tokens(exchange.input + exchange.output)


class HotStore:
    """Per-session hot buffers with single-writer locking.

    No I/O happens here. Each session owns one ``asyncio.Lock``; callers
    that mutate a session's buffer across suspension points hold
    ``session_lock(session_id)`` so concurrent turns for that session
    serialize. Locks live only while held or awaited; clearing a session
    drops its buffer.
    """

    def __init__(self, token_ceiling: int = 80_000, history_window: int = 20) -> None:
        """Initialize hot store.

        Args:
            token_ceiling: Estimated-token ceiling that triggers summarization
            history_window: Exchanges returned by a read
        """
        self.token_ceiling = token_ceiling
        self.history_window = history_window
        self._buffers: dict[str, HotBuffer] = {}
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def session_lock(self, session_id: str) -> asyncio.Lock:
        """Lock guarding one session's buffer."""
        lock = self._locks.get(session_id)
        if lock is None:
            lock = self._locks[session_id] = asyncio.Lock()
        return lock

    def buffer(self, session_id: str) -> HotBuffer:
        """Get (or create) a session's buffer."""
        buffer = self._buffers.get(session_id)
        if buffer is None:
            buffer = self._buffers[session_id] = HotBuffer(session_id=session_id)
        return buffer

    def read(self, session_id: str, limit: int | None = None) -> list[Exchange]:
        """Chronological exchanges for a session (summary marker first)."""
        buffer = self._buffers.get(session_id)
        if buffer is None:
            return []
        return buffer.recent(self.history_window if limit is None else limit)

    def append(self, session_id: str, exchange: Exchange) -> HotBuffer:
        """Append an exchange and flag the buffer if it crossed the ceiling."""
        buffer = self.buffer(session_id)
        tokens = buffer.append(exchange)
        if tokens > self.token_ceiling and not buffer.needs_summary:
            logger.info(
                f"Hot buffer for session {session_id} at ~{tokens} tokens "
                f"(ceiling {self.token_ceiling}), summarization required"
            )
            buffer.needs_summary = True
        return buffer

    def clear(self, session_id: str) -> None:
        """Wipe a session's hot buffer and forget the session."""
        buffer = self._buffers.pop(session_id, None)
        if buffer is not None:
            buffer.clear()

    def render(self, session_id: str) -> str:
        """Prompt-ready text of a session's recent history."""
        return "\n\n".join(e.as_text() for e in self.read(session_id))

    @property
    def sessions(self) -> list[str]:
        return list(self._buffers)
