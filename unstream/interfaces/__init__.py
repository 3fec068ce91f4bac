"""Public interface definitions for all external sources and caches.

Every external catalog, feed or metadata service is reached only through
the abstract base classes in this package.  Concrete adapters implement
them and are injected at startup by ``unstream.main.build_services``, so
tests can hand the services fakes instead of live HTTP clients.

CONCRETE PROVIDER MAP:
    Interface          →  Concrete implementations (in unstream/providers/)
    ─────────────────────────────────────────────────────────────────────
    ISourceAdapter     →  BandcampSearchAdapter, MirloAdapter
    IDirectorySource   →  FaircampDirectoryAdapter, JamCoopDirectoryAdapter,
                          BandwagonAdapter, PatreonAdapter, QobuzSearchAdapter
    IReleaseSource     →  BandcampReleaseSource, QobuzReleaseSource
    IReleaseChecker    →  MirloReleaseChecker, FaircampReleaseChecker,
                          BandcampReleaseChecker, QobuzReleaseChecker
    ICacheProvider     →  MemoryCacheProvider
    IRefreshingCache   →  RefreshingCache
"""

from unstream.interfaces.cache_provider import ICacheProvider, IRefreshingCache
from unstream.interfaces.source_adapter import (
    IDirectorySource,
    IReleaseChecker,
    IReleaseSource,
    ISourceAdapter,
)

__all__ = [
    "ICacheProvider",
    "IDirectorySource",
    "IRefreshingCache",
    "IReleaseChecker",
    "IReleaseSource",
    "ISourceAdapter",
]
