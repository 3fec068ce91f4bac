"""Bandcamp adapters: catalog search, release details and release checks.

Bandcamp is the anchor source of a search: search-only platforms are only
attached to identities confirmed here.  No API key is used; everything is
scraped from public pages with BeautifulSoup.

Parsing rules live in small parser classes so they can be tested against
saved markup without any HTTP.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import quote_plus, urljoin

import httpx
from bs4 import BeautifulSoup

from unstream.interfaces.source_adapter import IReleaseChecker, IReleaseSource, ISourceAdapter
from unstream.models.releases import ReleaseFinding, ReleasePlatform
from unstream.models.search import (
    Candidate,
    EntityKind,
    LatestRelease,
    Query,
    ReleaseKind,
    SourceId,
)
from unstream.providers.sources.base import HttpSource
from unstream.utils.dates import to_iso
from unstream.utils.text_normalizer import normalize

_SEARCH_URL = "https://bandcamp.com/search"
_SEARCH_TIMEOUT = 5.0
_PAGE_TIMEOUT = 3.0
_MAX_SEARCH_RESULTS = 10
_MAX_RELEASE_TITLES = 20

_ARTIST_SUFFIX = re.compile(r"/(music|album|track).*$")
_BY_ARTIST = re.compile(r"\bby\s+(.+)$", re.IGNORECASE)
_DATE_PUBLISHED = re.compile(r'"datePublished"\s*:\s*"([^"]+)"')
_RELEASED_TEXT = re.compile(r"released\s+(\w+\s+\d{1,2},?\s+\d{4})", re.IGNORECASE)

_ITEM_TYPES = {
    "artist": EntityKind.ARTIST,
    "album": EntityKind.ALBUM,
    "track": EntityKind.TRACK,
}


def artist_base_url(url: str) -> str:
    """Strip ``/music``, ``/album/...`` or ``/track/...`` from a Bandcamp URL."""
    return _ARTIST_SUFFIX.sub("", url.strip()).rstrip("/")


@dataclass(frozen=True)
class GridItem:
    """One release tile on an artist's ``/music`` page."""

    title: str
    url: str
    kind: ReleaseKind
    image_url: str | None = None


# ---------------------------------------------------------------------------
# Parsers
# ---------------------------------------------------------------------------

class BandcampSearchParser:
    """Reads ``.searchresult`` items from a bandcamp.com search page."""

    def parse(self, html: str, limit: int = _MAX_SEARCH_RESULTS) -> list[Candidate]:
        soup = BeautifulSoup(html, "html.parser")
        candidates: list[Candidate] = []

        for item in soup.select(".searchresult")[:limit]:
            type_el = item.select_one(".result-info .itemtype")
            kind = _ITEM_TYPES.get(type_el.get_text(strip=True).lower()) if type_el else None
            if kind is None:
                continue

            heading = item.select_one(".result-info .heading a")
            if heading is None:
                continue
            name = heading.get_text(strip=True)
            url = (heading.get("href") or "").split("?")[0]
            if not name or not url:
                continue

            artist: str | None = None
            subhead = item.select_one(".result-info .subhead")
            if subhead is not None and kind != EntityKind.ARTIST:
                match = _BY_ARTIST.search(" ".join(subhead.get_text(" ", strip=True).split()))
                if match:
                    artist = match.group(1).strip()

            img = item.select_one(".art img")
            image_url = img.get("src") if img is not None else None

            candidates.append(
                Candidate(
                    source=SourceId.BANDCAMP,
                    name=name,
                    artist=artist,
                    kind=kind,
                    url=url,
                    image_url=image_url or None,
                )
            )

        return candidates


class BandcampMusicGridParser:
    """Reads release tiles from an artist's ``/music`` page, newest first."""

    def parse(self, html: str, base_url: str) -> list[GridItem]:
        soup = BeautifulSoup(html, "html.parser")
        items: list[GridItem] = []

        for tile in soup.select(".music-grid-item"):
            link = tile.select_one("a")
            title_el = tile.select_one(".title")
            if link is None or title_el is None:
                continue

            override = title_el.select_one(".artist-override")
            if override is not None:
                override.extract()
            title = " ".join(title_el.get_text(" ", strip=True).split())
            href = link.get("href") or ""
            if not title or not href:
                continue

            img = tile.select_one("img")
            image_url = None
            if img is not None:
                image_url = img.get("data-original") or img.get("src") or None

            items.append(
                GridItem(
                    title=title,
                    url=href if href.startswith("http") else urljoin(base_url + "/", href.lstrip("/")),
                    kind=ReleaseKind.TRACK if "/track/" in href else ReleaseKind.ALBUM,
                    image_url=image_url,
                )
            )

        return items


class BandcampReleaseDateParser:
    """Finds the release date on an album or track page."""

    def parse(self, html: str) -> str | None:
        match = _DATE_PUBLISHED.search(html) or _RELEASED_TEXT.search(html)
        return match.group(1).strip() if match else None


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------

class BandcampSearchAdapter(HttpSource, ISourceAdapter):
    """Catalog search over bandcamp.com.

    Returns artist, album and track hits; the search service keeps only
    artist-typed ones for identity aggregation.
    """

    provider_name = "bandcamp"
    source_id = SourceId.BANDCAMP

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        parser: BandcampSearchParser | None = None,
    ) -> None:
        super().__init__(http_client)
        self._parser = parser or BandcampSearchParser()

    async def find(self, query: Query) -> list[Candidate]:
        url = f"{_SEARCH_URL}?q={quote_plus(query.raw)}"
        html = await self._fetch_text(url, timeout=_SEARCH_TIMEOUT)
        if html is None:
            return []
        candidates = self._parser.parse(html)
        self._logger.info("bandcamp_search_complete", query=query.raw, results=len(candidates))
        return candidates


class BandcampReleaseSource(HttpSource, IReleaseSource):
    """Latest release and release titles from an artist's ``/music`` page."""

    provider_name = "bandcamp"
    source_id = SourceId.BANDCAMP

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        grid_parser: BandcampMusicGridParser | None = None,
        date_parser: BandcampReleaseDateParser | None = None,
    ) -> None:
        super().__init__(http_client)
        self._grid_parser = grid_parser or BandcampMusicGridParser()
        self._date_parser = date_parser or BandcampReleaseDateParser()

    async def _grid(self, artist_url: str) -> list[GridItem]:
        base_url = artist_base_url(artist_url)
        html = await self._fetch_text(f"{base_url}/music", timeout=_PAGE_TIMEOUT)
        if html is None:
            return []
        return self._grid_parser.parse(html, base_url)

    async def get_latest_release(self, artist_url: str) -> LatestRelease | None:
        items = await self._grid(artist_url)
        if not items:
            return None
        latest = items[0]

        # Undated is still useful for display and disambiguation.
        release_date = None
        album_html = await self._fetch_text(latest.url, timeout=_PAGE_TIMEOUT)
        if album_html is not None:
            release_date = self._date_parser.parse(album_html)

        return LatestRelease(
            title=latest.title,
            kind=latest.kind,
            url=latest.url,
            image_url=latest.image_url,
            release_date=release_date,
        )

    async def get_release_titles(self, artist_url: str) -> list[str]:
        items = await self._grid(artist_url)
        titles = [normalize(item.title) for item in items]
        return [t for t in titles if t][:_MAX_RELEASE_TITLES]


class BandcampReleaseChecker(IReleaseChecker):
    """Freshness probe: the newest ``/music`` tile, dated from its own page."""

    platform = ReleasePlatform.BANDCAMP

    def __init__(self, release_source: BandcampReleaseSource) -> None:
        self._source = release_source

    async def check(self, url: str) -> ReleaseFinding | None:
        latest = await self._source.get_latest_release(url)
        if latest is None:
            return None
        release_date = to_iso(latest.release_date)
        if release_date is None:
            return None
        return ReleaseFinding(
            release_name=latest.title,
            release_date=release_date,
            release_url=latest.url,
            platform=self.platform,
        )
