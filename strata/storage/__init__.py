"""Storage layer for Strata: hot, warm and cold memory tiers."""

from strata.storage.cold_store import ColdStore
from strata.storage.hot_store import HotBuffer, HotStore
from strata.storage.models import CacheRecord, Exchange, Tier, TierEntry
from strata.storage.path_resolver import StoragePathResolver, get_default_resolver
from strata.storage.semantic import SemanticStore
from strata.storage.tiered import TieredStore
from strata.storage.vector_index import DuckDBVectorIndex, InMemoryVectorIndex, VectorIndex
from strata.storage.warm_store import WarmStore

__all__ = [
    "CacheRecord",
    "ColdStore",
    "DuckDBVectorIndex",
    "Exchange",
    "HotBuffer",
    "HotStore",
    "InMemoryVectorIndex",
    "SemanticStore",
    "StoragePathResolver",
    "Tier",
    "TierEntry",
    "TieredStore",
    "VectorIndex",
    "WarmStore",
    "get_default_resolver",
]
