"""Warm store: semantic search over recent conversation turns and summaries."""

from __future__ import annotations

from strata.storage.models import Tier
from strata.storage.semantic import SemanticStore


class WarmStore(SemanticStore):
    """Warm tier.

    Every completed exchange is written here (``type: "conversation"``),
    as is each hot-buffer summary (``type: "summary"``). Context assembly
    pulls the top 3 entries for the raw query text.
    """

    tier = Tier.WARM
    default_k = 3
