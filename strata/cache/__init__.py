"""World-knowledge cache."""

from strata.cache.world_cache import DEFAULT_TTL, WORLD_CACHE_KEY, CacheManager

__all__ = ["DEFAULT_TTL", "WORLD_CACHE_KEY", "CacheManager"]
