"""Shared, lazily refreshed dataset with fail-open semantics.

Used for datasets that every search reads but that are expensive to fetch:
the Faircamp webring directory, the Jam.coop artist index and the Mirlo
release feed.  One instance is built per process and injected into the
adapters that read it.

Behaviour:

- fresh data is returned without any I/O,
- after the TTL the next reader triggers and awaits a refresh; readers
  arriving while it is in flight get the stale data at once, or, when
  nothing has loaded yet, await the same task instead of starting another,
- a refresh that raises or returns ``None`` keeps the previous data
  (or the configured empty value if nothing ever loaded) and is retried
  by the next reader.
"""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, TypeVar

import structlog

from unstream.interfaces.cache_provider import IRefreshingCache
from unstream.utils.logging import get_logger

_T = TypeVar("_T")


class RefreshingCache(IRefreshingCache[_T]):
    """TTL cache around a single loader coroutine.

    Parameters
    ----------
    name:
        Label used in log events, e.g. ``"faircamp_directory"``.
    loader:
        Zero-argument coroutine function fetching the whole dataset.
        Returning ``None`` marks the attempt as failed.
    ttl:
        Seconds a successful load stays fresh.
    empty:
        Value served when no load has ever succeeded.
    clock:
        Monotonic clock, injectable for tests.
    """

    def __init__(
        self,
        name: str,
        loader: Callable[[], Awaitable[_T | None]],
        ttl: float,
        empty: _T,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._name = name
        self._loader = loader
        self._ttl = ttl
        self._empty = empty
        self._clock = clock
        self._data: _T | None = None
        self._loaded_at: float | None = None
        self._refresh_task: asyncio.Task[_T] | None = None
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def is_stale(self) -> bool:
        if self._loaded_at is None:
            return True
        return self._clock() - self._loaded_at >= self._ttl

    @property
    def has_data(self) -> bool:
        return self._data is not None

    async def get(self) -> _T:
        if not self.is_stale and self._data is not None:
            return self._data

        task = self._refresh_task
        if task is not None and not task.done() and self._data is not None:
            # Someone else is already refreshing; serve what we have.
            return self._data
        if task is None or task.done():
            task = asyncio.ensure_future(self._refresh())
            self._refresh_task = task

        # shield: a reader cancelled at its own deadline must not cancel
        # the refresh other readers are waiting on.
        return await asyncio.shield(task)

    def invalidate(self) -> None:
        self._loaded_at = None

    async def _refresh(self) -> _T:
        try:
            loaded = await self._loader()
        except Exception as exc:
            self._logger.warning(
                "cache_refresh_failed",
                cache=self._name,
                error=str(exc),
                serving_stale=self._data is not None,
            )
            return self._fallback()

        if loaded is None:
            self._logger.warning(
                "cache_refresh_empty",
                cache=self._name,
                serving_stale=self._data is not None,
            )
            return self._fallback()

        self._data = loaded
        self._loaded_at = self._clock()
        self._logger.info("cache_refreshed", cache=self._name)
        return loaded

    def _fallback(self) -> _T:
        return self._data if self._data is not None else self._empty
