"""Usage analytics plugin."""

from __future__ import annotations

from collections import Counter
from typing import Any

from strata.models.schemas import ChatResult
from strata.plugins.base import Plugin


class AnalyticsPlugin(Plugin):
    """Count messages per model and per query type."""

    name = "Analytics"

    def __init__(self) -> None:
        self.total_messages = 0
        self.by_model: Counter[str] = Counter()
        self.by_type: Counter[str] = Counter()

    async def after_query(self, result: ChatResult) -> ChatResult:
        self.total_messages += 1
        self.by_model[result.model_name] += 1
        self.by_type[result.analysis.type] += 1
        return result

    def stats(self) -> dict[str, Any]:
        return {
            "total_messages": self.total_messages,
            "by_model": dict(self.by_model),
            "by_type": dict(self.by_type),
            "popular_types": [t for t, _ in self.by_type.most_common(3)],
        }
