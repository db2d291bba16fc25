"""Storage models for Strata.

Defines Pydantic models for conversation exchanges, semantic tier entries
and world-knowledge cache records.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Tier(str, Enum):
    """Memory tiers, in order of increasing latency and scope."""

    HOT = "hot"
    WARM = "warm"
    COLD = "cold"


class Exchange(BaseModel):
    """One completed turn: user input and assistant output.

    Immutable once created. A summary marker is an exchange with
    ``is_summary=True`` holding a compacted summary of older turns.
    """

    model_config = ConfigDict(frozen=True)

    input: str
    output: str
    session_id: str = "default"
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    is_summary: bool = False

    @classmethod
    def summary_marker(cls, summary: str, session_id: str) -> Exchange:
        """Build the synthetic exchange that stands in for summarized history."""
        return cls(input="SUMMARY", output=summary, session_id=session_id, is_summary=True)

    def as_text(self) -> str:
        """Render the exchange the way it is stored in the semantic tiers."""
        if self.is_summary:
            return f"CONVERSATION SUMMARY: {self.output}"
        return f"Human: {self.input}\nAI: {self.output}"


class TierEntry(BaseModel):
    """Record stored in the warm or cold tier.

    Entries are append-only; the embedding must be present and match the
    dimensionality of the index it is written to.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    content: str
    embedding: list[float]
    metadata: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("embedding")
    @classmethod
    def validate_embedding(cls, v: list[float]) -> list[float]:
        """Reject empty embeddings."""
        if not v:
            raise ValueError("TierEntry requires a non-empty embedding")
        return v

    @property
    def session_id(self) -> str | None:
        """Session the entry was written from, if recorded."""
        return self.metadata.get("session_id")


class CacheRecord(BaseModel):
    """Static world-knowledge cache record.

    A record is usable only while ``now - created_at < ttl``.
    """

    key: str
    name: str
    content: str
    created_at: datetime
    ttl: timedelta

    def is_expired(self, now: datetime) -> bool:
        """Check expiry against the given instant."""
        return now - self.created_at >= self.ttl
