"""Abstract base classes for cache services.

Two kinds of caching are used:

- :class:`ICacheProvider` -- plain key-value caching of per-query facts
  (enrichment records, resolved URLs).
- :class:`IRefreshingCache` -- a single shared dataset (a directory or a
  feed) that many concurrent searches read and that refreshes itself
  lazily after its time-to-live.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

_T = TypeVar("_T")


class ICacheProvider(ABC):
    """Contract for key-value cache services.

    All operations are async so a network-backed store could be swapped in
    without blocking the event loop.
    """

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Retrieve the value stored under *key*.

        Returns
        -------
        Any or None
            The cached value if present and not expired; ``None`` otherwise.
        """

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store *value* under *key* with an optional time-to-live in seconds."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove the entry stored under *key* (no-op if absent)."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Return ``True`` if *key* is present in the cache and not expired."""


class IRefreshingCache(ABC, Generic[_T]):
    """Contract for a shared, self-refreshing dataset.

    Implementations must allow any number of concurrent readers, run at
    most one refresh at a time, and fail open: a failed refresh serves the
    previous data instead of raising.
    """

    @abstractmethod
    async def get(self) -> _T:
        """Return the current data, refreshing first if it has expired."""

    @abstractmethod
    def invalidate(self) -> None:
        """Mark the data expired so the next :meth:`get` refreshes it."""

    @property
    @abstractmethod
    def is_stale(self) -> bool:
        """``True`` if the data has never loaded or has outlived its TTL."""
