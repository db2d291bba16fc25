"""Cold store: long-term archive of memory-worthy exchanges."""

from __future__ import annotations

from strata.storage.models import Tier
from strata.storage.semantic import SemanticStore


class ColdStore(SemanticStore):
    """Cold tier.

    Only exchanges classified as requiring memory are archived, after the
    ``onMemorySave`` hooks have had a chance to rewrite the text. Context
    assembly pulls the top 2 entries.
    """

    tier = Tier.COLD
    default_k = 2
