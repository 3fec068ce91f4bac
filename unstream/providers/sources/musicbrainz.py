"""MusicBrainz metadata adapter for artist enrichment.

Uses the musicbrainzngs library, which is synchronous: each call runs in a
worker thread via ``asyncio.to_thread``.  MusicBrainz asks anonymous
clients for at most one request per second, so consecutive calls made
through one adapter are spaced by ``_MIN_REQUEST_INTERVAL`` seconds, counted
from the end of one call to the start of the next.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

import musicbrainzngs
import structlog

from unstream.config.settings import Settings
from unstream.models.enrichment import SocialLink
from unstream.utils.text_normalizer import names_overlap

logger = structlog.get_logger(logger_name=__name__)

MIN_MATCH_SCORE = 95
PRE_STREAMING_YEAR = 2005

_SOCIAL_RELATION_TYPES = frozenset({"social network", "youtube"})


@dataclass(frozen=True)
class MusicBrainzArtist:
    id: str
    name: str
    score: int


@dataclass
class ArtistLinks:
    """URL relations of one artist, split by what enrichment does with them."""

    official_url: str | None = None
    discogs_url: str | None = None
    social_links: list[SocialLink] = field(default_factory=list)


class MusicBrainzAdapter:
    """Rate-limited MusicBrainz client.

    Every public method returns an empty result instead of raising; the
    enrichment service treats "nothing found" and "service failed" alike.

    Attributes
    ----------
    _last_request_time : float
        Monotonic timestamp of when the most recent API call finished.
    _sleep : Callable
        Injected so tests can observe the spacing without waiting.
    """

    _MIN_REQUEST_INTERVAL: float = 1.1  # seconds between requests

    def __init__(
        self,
        settings: Settings,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._settings = settings
        self._sleep = sleep
        self._last_request_time: float | None = None
        self._lock = asyncio.Lock()

        musicbrainzngs.set_useragent(
            settings.musicbrainz_app_name,
            settings.musicbrainz_app_version,
            settings.musicbrainz_contact or None,
        )

    # ------------------------------------------------------------------
    # Rate-limiting helper
    # ------------------------------------------------------------------

    async def _throttle(self) -> None:
        """Wait until ``_MIN_REQUEST_INTERVAL`` has passed since the last request finished."""
        if self._last_request_time is not None:
            elapsed = time.monotonic() - self._last_request_time
            if elapsed < self._MIN_REQUEST_INTERVAL:
                await self._sleep(self._MIN_REQUEST_INTERVAL - elapsed)

    async def _call(self, operation: str, func: Callable[..., Any], **kwargs: Any) -> Any | None:
        async with self._lock:
            await self._throttle()
            try:
                return await asyncio.to_thread(func, **kwargs)
            except Exception as exc:
                logger.warning(
                    "musicbrainz_request_failed",
                    operation=operation,
                    error=str(exc) or type(exc).__name__,
                )
                return None
            finally:
                self._last_request_time = time.monotonic()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def search_artist(self, name: str) -> MusicBrainzArtist | None:
        """Return the top artist match for *name* if it is trustworthy.

        Trustworthy means a score of at least ``MIN_MATCH_SCORE`` and
        normalized names that contain one another.
        """
        response = await self._call(
            "search_artists", musicbrainzngs.search_artists, artist=name, limit=1
        )
        if not response:
            return None
        artists = response.get("artist-list") or []
        if not artists:
            return None

        top = artists[0]
        try:
            score = int(top.get("ext:score", 0))
        except (TypeError, ValueError):
            score = 0
        artist_name = top.get("name", "")
        if score < MIN_MATCH_SCORE or not names_overlap(artist_name, name):
            logger.debug(
                "musicbrainz_match_rejected", query=name, candidate=artist_name, score=score
            )
            return None
        return MusicBrainzArtist(id=top["id"], name=artist_name, score=score)

    async def get_artist_links(self, artist_id: str) -> ArtistLinks:
        response = await self._call(
            "get_artist_by_id",
            musicbrainzngs.get_artist_by_id,
            id=artist_id,
            includes=["url-rels"],
        )
        links = ArtistLinks()
        if not response:
            return links

        for relation in (response.get("artist") or {}).get("url-relation-list") or []:
            rel_type = (relation.get("type") or "").lower()
            target = relation.get("target") or ""
            if not target:
                continue
            if rel_type == "official homepage" and links.official_url is None:
                links.official_url = target
            elif rel_type == "discogs" and links.discogs_url is None:
                links.discogs_url = target
            elif rel_type in _SOCIAL_RELATION_TYPES:
                social = SocialLink.from_url(target)
                if social is not None:
                    links.social_links.append(social)
        return links

    async def has_release_before(self, artist_id: str, year: int = PRE_STREAMING_YEAR) -> bool:
        """Return True if any release group first appeared before *year*."""
        response = await self._call(
            "browse_release_groups",
            musicbrainzngs.browse_release_groups,
            artist=artist_id,
            limit=20,
        )
        if not response:
            return False
        for group in response.get("release-group-list") or []:
            first = (group.get("first-release-date") or "")[:4]
            if first.isdigit() and int(first) < year:
                return True
        return False

    def get_provider_name(self) -> str:
        return "musicbrainz"

    def is_available(self) -> bool:
        return True
