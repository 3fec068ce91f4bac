"""Faircamp adapters: webring directory lookup and per-site RSS release checks.

Faircamp sites are self-hosted, so there is no catalog search.  The
webring publishes one JSON directory of member sites
(``domain -> {title, artists, description}``), which is held in a shared
:class:`~unstream.providers.cache.refreshing_cache.RefreshingCache` and
matched locally.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import httpx

from unstream.interfaces.cache_provider import IRefreshingCache
from unstream.interfaces.source_adapter import IDirectorySource, IReleaseChecker
from unstream.models.releases import ReleaseFinding, ReleasePlatform
from unstream.models.search import Query, SourceId
from unstream.providers.sources.base import HttpSource
from unstream.providers.sources.feeds import RssFeedParser
from unstream.utils.text_normalizer import normalize

_DIRECTORY_URL = "https://faircamp.webr.ing/directory.json"
_DIRECTORY_TIMEOUT = 5.0
_FEED_TIMEOUT = 5.0
_MAX_MATCHES = 10


@dataclass(frozen=True)
class FaircampSite:
    domain: str
    title: str = ""
    artists: tuple[str, ...] = field(default_factory=tuple)


class FaircampDirectoryLoader(HttpSource):
    """Fetches the webring directory for the shared directory cache."""

    provider_name = "faircamp"

    async def load(self) -> dict[str, FaircampSite] | None:
        payload = await self._fetch_json(_DIRECTORY_URL, timeout=_DIRECTORY_TIMEOUT)
        if not isinstance(payload, dict):
            return None

        sites: dict[str, FaircampSite] = {}
        for domain, info in payload.items():
            if not isinstance(info, dict):
                continue
            artists = info.get("artists") or []
            sites[domain] = FaircampSite(
                domain=domain,
                title=str(info.get("title") or ""),
                artists=tuple(a for a in artists if isinstance(a, str) and a.strip()),
            )
        self._logger.info("faircamp_directory_loaded", sites=len(sites))
        return sites


class FaircampDirectoryAdapter(IDirectorySource):
    """Substring match of the query against every member artist name.

    Containment runs in either direction on lower-cased names, so
    "the cure" finds "The Cure Tribute" and "cure" finds "The Cure".
    """

    source_id = SourceId.FAIRCAMP

    def __init__(self, directory: IRefreshingCache[dict[str, FaircampSite]]) -> None:
        self._directory = directory

    async def find(self, query: Query) -> dict[str, str]:
        needle = query.raw.strip().lower()
        if not needle:
            return {}

        matches: dict[str, str] = {}
        for site in (await self._directory.get()).values():
            for artist in site.artists:
                lowered = artist.lower()
                if needle in lowered or lowered in needle:
                    key = normalize(artist)
                    if key and key not in matches:
                        matches[key] = f"https://{site.domain}"
                if len(matches) >= _MAX_MATCHES:
                    return matches
        return matches

    def get_provider_name(self) -> str:
        return "faircamp"

    def is_available(self) -> bool:
        return True


class FaircampReleaseChecker(HttpSource, IReleaseChecker):
    """Freshness probe: first item of the site's own ``feed.rss``."""

    provider_name = "faircamp"
    platform = ReleasePlatform.FAIRCAMP

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        parser: RssFeedParser | None = None,
    ) -> None:
        super().__init__(http_client)
        self._parser = parser or RssFeedParser()

    async def check(self, url: str) -> ReleaseFinding | None:
        feed_url = f"{url.strip().rstrip('/')}/feed.rss"
        xml_text = await self._fetch_text(feed_url, timeout=_FEED_TIMEOUT)
        if xml_text is None:
            return None
        items = self._parser.parse(xml_text, limit=1)
        if not items:
            return None
        first = items[0]
        return ReleaseFinding(
            release_name=first.title,
            release_date=first.pub_date,
            release_url=first.link,
            platform=self.platform,
        )
