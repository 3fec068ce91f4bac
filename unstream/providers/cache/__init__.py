"""Cache providers.

MemoryCacheProvider is a key-value TTL cache for per-query facts.
RefreshingCache holds one shared dataset (directory or feed) that refreshes
lazily, de-duplicates concurrent refreshes and serves stale data when a
refresh fails.
"""

from unstream.providers.cache.memory_cache import MemoryCacheProvider
from unstream.providers.cache.refreshing_cache import RefreshingCache

__all__ = ["MemoryCacheProvider", "RefreshingCache"]
