"""API response caching with TTL and LRU eviction.

Cache keys are generated from tool name + canonical parameters, so a whole
tool's result family can be dropped with `invalidate_pattern("<tool>:")`.
"""

from .cache import DEFAULT_MAX_ENTRIES, DEFAULT_TTL, ApiCache, CacheEntry

__all__ = ["ApiCache", "CacheEntry", "DEFAULT_TTL", "DEFAULT_MAX_ENTRIES"]
