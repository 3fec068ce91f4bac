"""Per-query fact cache on cachetools.TLRUCache.

Holds enrichment records and resolved streaming URLs for a single
process.  Aggregated search results are never stored here; they are
rebuilt on every request.

Each entry carries its own lifetime: callers may pass ``ttl`` per entry,
and entries stored without one use the lifetime given at construction.
When the cache is full, expired entries go first and then the least
recently used one.
"""

from __future__ import annotations

import time
from typing import Any, Callable, NamedTuple

import structlog
from cachetools import TLRUCache

from unstream.interfaces.cache_provider import ICacheProvider

logger = structlog.get_logger(logger_name=__name__)


class _Entry(NamedTuple):
    value: Any
    ttl: float


def _time_to_use(_key: str, entry: _Entry, now: float) -> float:
    return now + entry.ttl


class MemoryCacheProvider(ICacheProvider):
    """In-process key-value cache with per-entry expiry.

    Parameters
    ----------
    name:
        Label used in log events, e.g. ``"enrichment"``.
    max_size:
        Entries kept before eviction.
    ttl:
        Lifetime in seconds for entries stored without their own ``ttl``.
    timer:
        Monotonic clock, injectable for tests.
    """

    def __init__(
        self,
        name: str = "default",
        max_size: int = 1000,
        ttl: float = 3600,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._name = name
        self._default_ttl = ttl
        self._entries: TLRUCache[str, _Entry] = TLRUCache(
            maxsize=max_size, ttu=_time_to_use, timer=timer
        )

    async def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            logger.debug("cache_miss", cache=self._name, key=key)
            return None
        logger.debug("cache_hit", cache=self._name, key=key)
        return entry.value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        lifetime = self._default_ttl if ttl is None else ttl
        if lifetime <= 0:
            self._entries.pop(key, None)
            return
        self._entries[key] = _Entry(value, lifetime)
        logger.debug("cache_set", cache=self._name, key=key, ttl=lifetime)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def exists(self, key: str) -> bool:
        return key in self._entries
