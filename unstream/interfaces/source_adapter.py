"""Abstract base classes for external source adapters.

Every external catalog or service is wrapped behind one of these
contracts, so the search and release-check services never know which
markup, API or feed sits behind an adapter.

Contract shared by every implementation:

- never raise past the adapter boundary; a network error, timeout,
  non-2xx status or parse failure yields an empty result,
- enforce its own request timeout,
- never retry; a failed attempt contributes nothing for that call.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from unstream.models.releases import ReleaseFinding, ReleasePlatform
from unstream.models.search import Candidate, LatestRelease, Query, SourceId


class ISourceAdapter(ABC):
    """Contract for catalog-search and existence-check sources."""

    source_id: SourceId

    @abstractmethod
    async def find(self, query: Query) -> list[Candidate]:
        """Return zero or more candidates matching *query*.

        Parameters
        ----------
        query:
            The listener's query with its normalized form.

        Returns
        -------
        list[Candidate]
            Matches in the source's own ranking order; empty on any failure.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier for this source (e.g. ``"bandcamp"``)."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the adapter is configured and usable."""


class IDirectorySource(ABC):
    """Contract for sources that answer with a name -> URL mapping.

    Directory caches, JSON APIs and catalog searches whose hits are only
    ever attached to existing identities use this shape.  Keys are
    normalized names (see :func:`unstream.utils.text_normalizer.normalize`).
    """

    source_id: SourceId

    @abstractmethod
    async def find(self, query: Query) -> dict[str, str]:
        """Return normalized name -> profile URL for matches of *query*."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier for this source."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the adapter is configured and usable."""


class IReleaseSource(ABC):
    """Contract for platforms able to report an artist's releases."""

    source_id: SourceId

    @abstractmethod
    async def get_latest_release(self, artist_url: str) -> LatestRelease | None:
        """Return the most recent release on the artist page, or ``None`` if unknown.

        Parameters
        ----------
        artist_url:
            The artist's profile URL on this platform.
        """

    @abstractmethod
    async def get_release_titles(self, artist_url: str) -> list[str]:
        """Return normalized release titles from the artist page (may be empty)."""


class IReleaseChecker(ABC):
    """Contract for the per-platform probes used by the freshness checker."""

    platform: ReleasePlatform

    @abstractmethod
    async def check(self, url: str) -> ReleaseFinding | None:
        """Return the platform's most recent release for the artist at *url*.

        Parameters
        ----------
        url:
            The saved artist's profile URL on this platform.

        Returns
        -------
        ReleaseFinding or None
            ``None`` when nothing dated could be found or the fetch failed.
        """
