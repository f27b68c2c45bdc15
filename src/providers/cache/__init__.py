"""Cache providers.

In-memory cache for chart feed responses, so repeated requests for the
recent chart or a given chart date do not hit the feed every time.

MemoryCacheProvider wraps a cachetools TLRUCache with per-entry TTLs -- fast
but not shared across processes. For multi-worker deployments, swap in a Redis adapter implementing
ICacheProvider without changing any business logic.
"""

from src.providers.cache.memory_cache import MemoryCacheProvider

__all__ = ["MemoryCacheProvider"]
