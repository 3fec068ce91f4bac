"""Mirlo adapters: profile existence check and feed-backed release checks.

Mirlo has no public artist search.  A profile exists when
``https://mirlo.space/<name>`` serves a social-preview title that is not
Mirlo's own placeholder.  New releases come from Mirlo's global RSS feed,
which is cached process-wide and shared by every artist check.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import quote

import httpx

from unstream.interfaces.cache_provider import IRefreshingCache
from unstream.interfaces.source_adapter import IReleaseChecker, ISourceAdapter
from unstream.models.releases import ReleaseFinding, ReleasePlatform
from unstream.models.search import Candidate, EntityKind, Query, SourceId
from unstream.providers.sources.base import HttpSource, OpenGraphParser
from unstream.providers.sources.feeds import RssFeedParser

_PROFILE_URL = "https://mirlo.space/{slug}"
_FEED_URL = "https://api.mirlo.space/v1/trackGroups?format=rss"
_PROFILE_TIMEOUT = 3.0
_FEED_TIMEOUT = 10.0
_PLACEHOLDER_TITLE = "mirlo"
_PREFIX_LENGTH = 4

_SLUG_IN_URL = re.compile(r"mirlo\.space/([^/?#]+)", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")


def compact_query(text: str) -> str:
    """Lowercase *text* and drop whitespace, which is how Mirlo builds profile slugs."""
    return _WHITESPACE.sub("", text.lower())


def artist_slug(url: str) -> str | None:
    match = _SLUG_IN_URL.search(url)
    return match.group(1).lower() if match else None


@dataclass(frozen=True)
class MirloFeedItem:
    title: str
    link: str
    pub_date: str
    artist_slug: str


class MirloAdapter(HttpSource, ISourceAdapter):
    """Existence check against a guessed Mirlo profile URL."""

    provider_name = "mirlo"
    source_id = SourceId.MIRLO

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        parser: OpenGraphParser | None = None,
    ) -> None:
        super().__init__(http_client)
        self._parser = parser or OpenGraphParser()

    async def find(self, query: Query) -> list[Candidate]:
        slug = compact_query(query.raw)
        if not slug:
            return []
        url = _PROFILE_URL.format(slug=quote(slug, safe=""))
        html = await self._fetch_text(url, timeout=_PROFILE_TIMEOUT)
        if html is None:
            return []

        properties = self._parser.parse(html)
        title = properties.get("og:title", "")
        lowered = title.lower()
        if not title or lowered == _PLACEHOLDER_TITLE:
            return []
        if slug[:_PREFIX_LENGTH] not in lowered:
            self._logger.debug("mirlo_title_mismatch", query=query.raw, title=title)
            return []

        return [
            Candidate(
                source=SourceId.MIRLO,
                name=title,
                kind=EntityKind.ARTIST,
                url=url,
                image_url=properties.get("og:image") or None,
            )
        ]


class MirloFeedLoader(HttpSource):
    """Fetches Mirlo's global release feed for the shared feed cache."""

    provider_name = "mirlo"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        parser: RssFeedParser | None = None,
    ) -> None:
        super().__init__(http_client)
        self._parser = parser or RssFeedParser()

    async def load(self) -> list[MirloFeedItem] | None:
        xml_text = await self._fetch_text(_FEED_URL, timeout=_FEED_TIMEOUT)
        if xml_text is None:
            return None

        items: list[MirloFeedItem] = []
        for item in self._parser.parse(xml_text):
            slug = artist_slug(item.link)
            if slug:
                items.append(
                    MirloFeedItem(
                        title=item.title,
                        link=item.link,
                        pub_date=item.pub_date,
                        artist_slug=slug,
                    )
                )
        self._logger.info("mirlo_feed_loaded", items=len(items))
        return items


class MirloReleaseChecker(IReleaseChecker):
    """Freshness probe: the newest feed item whose link belongs to the artist."""

    platform = ReleasePlatform.MIRLO

    def __init__(self, feed: IRefreshingCache[list[MirloFeedItem]]) -> None:
        self._feed = feed

    async def check(self, url: str) -> ReleaseFinding | None:
        slug = artist_slug(url)
        if slug is None:
            return None
        for item in await self._feed.get():
            if item.artist_slug == slug:
                return ReleaseFinding(
                    release_name=item.title,
                    release_date=item.pub_date,
                    release_url=item.link,
                    platform=self.platform,
                )
        return None
