"""Static world-knowledge cache.

Holds content that is the same for every turn (world facts, product data)
so it can be prepended to routed context. Records expire after their TTL;
expiry is checked lazily on read.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from strata.observability.metrics import record_cache_lookup
from strata.storage.models import CacheRecord

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(hours=1)
WORLD_CACHE_KEY = "world"


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _as_ttl(ttl: timedelta | float | None) -> timedelta:
    if ttl is None:
        return DEFAULT_TTL
    if isinstance(ttl, timedelta):
        result = ttl
    else:
        result = timedelta(seconds=ttl)
    if result <= timedelta(0):
        raise ValueError("Cache TTL must be positive")
    return result


class CacheManager:
    """In-process cache of static content keyed by name."""

    def __init__(self, clock: Callable[[], datetime] = _utc_now) -> None:
        """Initialize cache manager.

        Args:
            clock: Source of the current UTC time (injectable for tests)
        """
        self._clock = clock
        self._records: dict[str, CacheRecord] = {}

    def create_cache(
        self,
        key: str,
        content: str,
        ttl: timedelta | float | None = None,
    ) -> CacheRecord:
        """Store ``content`` under ``key``, replacing any existing record.

        Args:
            key: Cache key
            content: Cached text
            ttl: Lifetime as a timedelta or seconds (default one hour)
        """
        now = self._clock()
        record = CacheRecord(
            key=key,
            name=f"{key}_cache_{int(now.timestamp() * 1000)}",
            content=content,
            created_at=now,
            ttl=_as_ttl(ttl),
        )
        self._records[key] = record
        logger.info(f"Cache created: {record.name} (ttl={record.ttl.total_seconds():.0f}s)")
        return record

    def create_world_cache(
        self,
        world_data: Mapping[str, Any],
        ttl: timedelta | float | None = None,
    ) -> CacheRecord:
        """Serialize world data as indented JSON and cache it under ``world``."""
        content = json.dumps(world_data, indent=2, default=str)
        return self.create_cache(WORLD_CACHE_KEY, content, ttl)

    def get(self, key: str = WORLD_CACHE_KEY) -> CacheRecord | None:
        """Live record for ``key``; expired records are removed and reported as a miss."""
        record = self._records.get(key)
        if record is None:
            record_cache_lookup("miss")
            return None

        if record.is_expired(self._clock()):
            del self._records[key]
            logger.info(f"Cache expired: {record.name}")
            record_cache_lookup("expired")
            return None

        record_cache_lookup("hit")
        return record

    def refresh(self, key: str, ttl: timedelta | float | None = None) -> CacheRecord | None:
        """Restart a record's lifetime, optionally with a new TTL."""
        record = self._records.get(key)
        if record is None:
            return None
        refreshed = record.model_copy(update={"created_at": self._clock(), "ttl": _as_ttl(ttl)})
        self._records[key] = refreshed
        logger.info(f"Cache refreshed: {key}")
        return refreshed

    def list_caches(self) -> list[dict[str, Any]]:
        now = self._clock()
        return [
            {
                "key": key,
                "name": record.name,
                "created_at": record.created_at.isoformat(),
                "ttl_seconds": record.ttl.total_seconds(),
                "expired": record.is_expired(now),
            }
            for key, record in self._records.items()
        ]

    def clear(self, key: str) -> None:
        if self._records.pop(key, None) is not None:
            logger.info(f"Cache cleared: {key}")

    def clear_all(self) -> None:
        self._records.clear()
        logger.info("All caches cleared")
