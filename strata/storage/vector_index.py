"""Vector indexes backing the warm and cold tiers.

The tiers treat an index as an opaque nearest-neighbour service: append an
entry, search by vector, list a session's entries. Two implementations:

- ``InMemoryVectorIndex``: numpy cosine similarity, process-local (lite mode).
- ``DuckDBVectorIndex``: DuckDB ``FLOAT[dim]`` column searched with
  ``array_cosine_similarity`` (standard mode, one database file per tier).

Both are append-only: upserting an id that already exists is a no-op.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import duckdb
import numpy as np

from strata.storage.models import TierEntry

logger = logging.getLogger(__name__)

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")


@runtime_checkable
class VectorIndex(Protocol):
    """Nearest-neighbour index over tier entries."""

    dimension: int

    async def initialize(self) -> None: ...

    async def upsert(self, entry: TierEntry) -> str: ...

    async def similarity_search(
        self, query_embedding: list[float], k: int
    ) -> list[tuple[TierEntry, float]]: ...

    async def session_entries(self, session_id: str, limit: int) -> list[TierEntry]: ...

    async def count(self) -> int: ...

    async def close(self) -> None: ...


def _check_dimension(embedding: list[float], dimension: int) -> None:
    if len(embedding) != dimension:
        raise ValueError(f"Embedding dimension {len(embedding)} does not match index dimension {dimension}")


class InMemoryVectorIndex:
    """Process-local vector index using numpy cosine similarity."""

    def __init__(self, dimension: int = 768) -> None:
        self.dimension = dimension
        self._entries: list[TierEntry] = []
        self._ids: set[str] = set()
        self._matrix = np.empty((0, dimension), dtype=np.float32)
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        logger.debug(f"In-memory vector index ready (dim={self.dimension})")

    async def upsert(self, entry: TierEntry) -> str:
        _check_dimension(entry.embedding, self.dimension)
        async with self._lock:
            if entry.id in self._ids:
                return entry.id
            row = np.asarray(entry.embedding, dtype=np.float32).reshape(1, -1)
            self._matrix = np.vstack([self._matrix, row])
            self._entries.append(entry)
            self._ids.add(entry.id)
        return entry.id

    async def similarity_search(
        self, query_embedding: list[float], k: int
    ) -> list[tuple[TierEntry, float]]:
        _check_dimension(query_embedding, self.dimension)
        async with self._lock:
            if not self._entries or k <= 0:
                return []
            query = np.asarray(query_embedding, dtype=np.float32)
            norms = np.linalg.norm(self._matrix, axis=1) * np.linalg.norm(query)
            norms = np.where(norms == 0, 1.0, norms)
            scores = (self._matrix @ query) / norms
            # Stable sort keeps insertion order among equal scores
            order = np.argsort(-scores, kind="stable")[:k]
            return [(self._entries[i], float(scores[i])) for i in order]

    async def session_entries(self, session_id: str, limit: int) -> list[TierEntry]:
        async with self._lock:
            matches = [e for e in self._entries if e.session_id == session_id]
        return matches[-limit:] if limit > 0 else []

    async def count(self) -> int:
        return len(self._entries)

    async def close(self) -> None:
        return None


class DuckDBVectorIndex:
    """Vector index persisted in a DuckDB database file."""

    def __init__(
        self,
        database_path: str | Path,
        table: str = "entries",
        dimension: int = 768,
    ) -> None:
        """Initialize DuckDB index.

        Args:
            database_path: DuckDB database path (":memory:" for in-memory)
            table: Table holding the entries
            dimension: Embedding dimensionality (FLOAT[dimension])
        """
        if not _IDENTIFIER_RE.match(table):
            raise ValueError(f"Invalid table name: {table!r}")

        self.db_path = database_path
        self.table = table
        self.dimension = int(dimension)
        self.conn: duckdb.DuckDBPyConnection | None = None
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Open the database and create the entries table."""
        async with self._lock:
            if self.conn is not None:
                return
            await asyncio.to_thread(self._initialize_sync)
            logger.info(f"DuckDB vector index '{self.table}' initialized at {self.db_path}")

    def _initialize_sync(self) -> None:
        if str(self.db_path) != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        self.conn = duckdb.connect(str(self.db_path))
        self.conn.execute(f"""
            CREATE TABLE IF NOT EXISTS {self.table} (
                id VARCHAR PRIMARY KEY,
                session_id VARCHAR,
                content TEXT,
                embedding FLOAT[{self.dimension}],
                metadata JSON,
                timestamp TIMESTAMP
            )
        """)

    def _require_conn(self) -> duckdb.DuckDBPyConnection:
        if not self.conn:
            raise RuntimeError("Vector index not initialized")
        return self.conn

    async def upsert(self, entry: TierEntry) -> str:
        """Append an entry; an existing id is left untouched."""
        _check_dimension(entry.embedding, self.dimension)
        async with self._lock:
            conn = self._require_conn()
            await asyncio.to_thread(
                conn.execute,
                f"""
                INSERT INTO {self.table}
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT DO NOTHING
                """,
                [
                    entry.id,
                    entry.session_id,
                    entry.content,
                    entry.embedding,
                    json.dumps(entry.metadata, default=str),
                    _to_naive_utc(entry.timestamp),
                ],
            )
        return entry.id

    async def similarity_search(
        self, query_embedding: list[float], k: int
    ) -> list[tuple[TierEntry, float]]:
        """Return the ``k`` nearest entries with their cosine similarity."""
        _check_dimension(query_embedding, self.dimension)
        if k <= 0:
            return []
        async with self._lock:
            conn = self._require_conn()
            rows = await asyncio.to_thread(
                lambda: conn.execute(
                    f"""
                    SELECT id, content, embedding, metadata, timestamp,
                        array_cosine_similarity(embedding, ?::FLOAT[{self.dimension}]) AS similarity
                    FROM {self.table}
                    ORDER BY similarity DESC, timestamp ASC
                    LIMIT ?
                    """,
                    [query_embedding, k],
                ).fetchall()
            )
        return [(self._row_to_entry(r), float(r[5] or 0.0)) for r in rows]

    async def session_entries(self, session_id: str, limit: int) -> list[TierEntry]:
        """List a session's entries in chronological order."""
        if limit <= 0:
            return []
        async with self._lock:
            conn = self._require_conn()
            rows = await asyncio.to_thread(
                lambda: conn.execute(
                    f"""
                    SELECT id, content, embedding, metadata, timestamp
                    FROM (
                        SELECT * FROM {self.table}
                        WHERE session_id = ?
                        ORDER BY timestamp DESC
                        LIMIT ?
                    )
                    ORDER BY timestamp ASC
                    """,
                    [session_id, limit],
                ).fetchall()
            )
        return [self._row_to_entry(r) for r in rows]

    async def count(self) -> int:
        async with self._lock:
            conn = self._require_conn()
            result = await asyncio.to_thread(
                lambda: conn.execute(f"SELECT COUNT(*) FROM {self.table}").fetchone()
            )
        return result[0] if result else 0

    @staticmethod
    def _row_to_entry(row: tuple[Any, ...]) -> TierEntry:
        metadata = row[3]
        if isinstance(metadata, str):
            metadata = json.loads(metadata)
        timestamp = row[4]
        if isinstance(timestamp, datetime) and timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=UTC)
        return TierEntry(
            id=row[0],
            content=row[1],
            embedding=list(row[2]),
            metadata=metadata or {},
            timestamp=timestamp,
        )

    async def close(self) -> None:
        """Close database connection."""
        async with self._lock:
            if self.conn:
                self.conn.close()
                self.conn = None
                logger.info(f"DuckDB vector index '{self.table}' closed")


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)
