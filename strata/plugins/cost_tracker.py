"""Cost tracking plugin."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from strata.models.schemas import ChatResult
from strata.plugins.base import Plugin

# Flat per-query estimate used for the monthly projection
COST_PER_QUERY = 0.00075


@dataclass(frozen=True)
class CostRecord:
    timestamp: datetime
    model_name: str
    tokens: int
    cached: bool


class CostTrackerPlugin(Plugin):
    """Record model, estimated tokens and cache use for every turn."""

    name = "Cost Tracker"

    def __init__(self) -> None:
        self.records: list[CostRecord] = []

    async def after_query(self, result: ChatResult) -> ChatResult:
        self.records.append(
            CostRecord(
                timestamp=datetime.now(UTC),
                model_name=result.model_name,
                tokens=result.metadata.tokens,
                cached=result.metadata.cached,
            )
        )
        return result

    def stats(self) -> dict[str, Any]:
        """Aggregate usage.

        Returns:
            total_queries, cache_hit_rate ("12.5%"), avg_tokens_per_query and
            estimated_monthly_cost ("$0.07")
        """
        total = len(self.records)
        if total == 0:
            return {
                "total_queries": 0,
                "cache_hit_rate": "0%",
                "avg_tokens_per_query": 0,
                "estimated_monthly_cost": "$0.00",
            }

        cached = sum(1 for r in self.records if r.cached)
        avg_tokens = sum(r.tokens for r in self.records) / total

        return {
            "total_queries": total,
            "cache_hit_rate": f"{cached / total * 100:.1f}%",
            "avg_tokens_per_query": math.floor(avg_tokens + 0.5),
            "estimated_monthly_cost": f"${total * COST_PER_QUERY * 30:.2f}",
        }
