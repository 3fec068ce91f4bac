"""Qobuz adapters: strict artist search, release details and release checks.

Qobuz disambiguates homonyms with numbered slugs (``/interpreter/morice/1``,
``/interpreter/morice1/2``).  Search results are kept only when the slug
is the query itself or the query plus digits, so that broad Qobuz hits
never create identities of their own.
"""

from __future__ import annotations

import asyncio
import html as html_lib
import re
from urllib.parse import quote

import httpx

from unstream.interfaces.source_adapter import IDirectorySource, IReleaseChecker, IReleaseSource
from unstream.models.releases import ReleaseFinding, ReleasePlatform
from unstream.models.search import LatestRelease, Query, ReleaseKind, SourceId
from unstream.providers.sources.base import HttpSource
from unstream.utils.dates import parse_release_date, to_iso
from unstream.utils.text_normalizer import normalize, slug_to_title, strip_numeric_suffix

_BASE_URL = "https://www.qobuz.com"
_SEARCH_URL = f"{_BASE_URL}/us-en/search/artists/{{query}}"
_ALBUM_SEARCH_URL = (
    f"{_BASE_URL}/us-en/search/albums/{{query}}?ssf%5Bs%5D=main_catalog_date_desc"
)
_SEARCH_TIMEOUT = 5.0
_ARTIST_PAGE_TIMEOUT = 3.0
_ALBUM_PAGE_TIMEOUT = 2.0
_CHECK_TIMEOUT = 5.0
_MAX_MATCHES = 10
_MAX_ALBUMS = 10
_MAX_DATED_ALBUMS = 5
_MAX_RELEASE_TITLES = 20
_DATE_WINDOW = 500

_INTERPRETER_LINK = re.compile(r'href="(/us-en/interpreter/([^/"]+)/(\d+))"')
_INTERPRETER_SLUG = re.compile(r"/interpreter/([^/?#]+)")
_ALBUM_LINK = re.compile(r'href="(/us-en/album/([^/"]+)/([^/"?#]+))"')
_ALBUM_DATE_PATTERNS = (
    re.compile(r'"releaseDate"\s*:\s*"([^"]+)"'),
    re.compile(r'"release_date_original"\s*:\s*"([^"]+)"'),
    re.compile(
        r"Release date\s*:?\s*(?:<[^>]+>\s*)*"
        r"([A-Za-z]+\s+\d{1,2},?\s+\d{4}|\d{4}-\d{2}-\d{2}|\d{4})"
    ),
    re.compile(r"Released\s+(?:on\s+)?([A-Za-z]+\s+\d{1,2},?\s+\d{4}|\d{1,2}/\d{1,2}/\d{4})"),
)
_YEAR_ONLY = re.compile(r"^\d{4}$")
_COVER_OVERLAY = re.compile(
    r'<a[^>]+href="(/us-en/album/[^"]+)"[^>]*class="[^"]*CoverModelOverlay[^"]*"'
    r'[^>]*title="([^"]*)"',
    re.IGNORECASE,
)
_MONTH_DATE = re.compile(
    r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\.?\s+\d{1,2},?\s+\d{4}"
)
_ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")


def is_strict_match(slug: str, query: str) -> bool:
    """Return True if the de-hyphenated *slug* names the query artist.

    Accepted: exact match, a query that starts with the slug, or the
    query followed only by digits (a numbered homonym).
    """
    compact = slug.replace("-", "").lower()
    if not compact or not query:
        return False
    if compact == query or query.startswith(compact):
        return True
    return compact.startswith(query) and compact[len(query):].isdigit()


def interpreter_slug(url: str) -> str | None:
    match = _INTERPRETER_SLUG.search(url)
    return match.group(1).lower() if match else None


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

class QobuzSearchAdapter(HttpSource, IDirectorySource):
    """Artist search returning normalized name -> interpreter URL."""

    provider_name = "qobuz"
    source_id = SourceId.QOBUZ

    async def find(self, query: Query) -> dict[str, str]:
        if not query.normalized:
            return {}
        html = await self._fetch_text(
            _SEARCH_URL.format(query=quote(query.raw, safe="")), timeout=_SEARCH_TIMEOUT
        )
        if html is None:
            return {}

        matches: dict[str, str] = {}
        for path, slug, _artist_id in _INTERPRETER_LINK.findall(html):
            if not is_strict_match(slug, query.normalized):
                continue
            key = normalize(slug_to_title(slug))
            if key and key not in matches:
                matches[key] = f"{_BASE_URL}{path}"
                if len(matches) >= _MAX_MATCHES:
                    break

        self._logger.info("qobuz_search_complete", query=query.raw, matches=len(matches))
        return matches


# ---------------------------------------------------------------------------
# Release details
# ---------------------------------------------------------------------------

class QobuzReleaseSource(HttpSource, IReleaseSource):
    """Albums listed on an interpreter page, dated from their own pages."""

    provider_name = "qobuz"
    source_id = SourceId.QOBUZ

    async def _album_links(self, artist_url: str) -> list[tuple[str, str]]:
        """Return ``(album_url, album_slug)`` pairs that belong to the artist."""
        slug = interpreter_slug(artist_url)
        if slug is None:
            return []
        html = await self._fetch_text(artist_url, timeout=_ARTIST_PAGE_TIMEOUT)
        if html is None:
            return []

        artist_key = normalize(slug)
        base_key = strip_numeric_suffix(artist_key)
        albums: list[tuple[str, str]] = []
        seen: set[str] = set()
        for path, album_slug, _album_id in _ALBUM_LINK.findall(html):
            if path in seen:
                continue
            album_key = normalize(album_slug)
            if artist_key in album_key or (base_key and base_key in album_key):
                seen.add(path)
                albums.append((f"{_BASE_URL}{path}", album_slug))
                if len(albums) >= _MAX_ALBUMS:
                    break
        return albums

    async def _album_date(self, album_url: str) -> str | None:
        html = await self._fetch_text(album_url, timeout=_ALBUM_PAGE_TIMEOUT)
        if html is None:
            return None
        for pattern in _ALBUM_DATE_PATTERNS:
            match = pattern.search(html)
            if match:
                value = match.group(1).strip()
                if _YEAR_ONLY.match(value):
                    return f"{value}-01-01"
                return value
        return None

    async def get_latest_release(self, artist_url: str) -> LatestRelease | None:
        albums = await self._album_links(artist_url)
        if not albums:
            return None

        candidates = albums[:_MAX_DATED_ALBUMS]
        dates = await asyncio.gather(*(self._album_date(url) for url, _ in candidates))

        newest: tuple[str, str, str] | None = None
        for (url, slug), raw_date in zip(candidates, dates):
            parsed = parse_release_date(raw_date)
            if parsed is None:
                continue
            if newest is None or parsed > parse_release_date(newest[2]):
                newest = (url, slug, raw_date)

        if newest is None:
            url, slug = albums[0]
            return LatestRelease(title=slug_to_title(slug), kind=ReleaseKind.ALBUM, url=url)

        url, slug, raw_date = newest
        return LatestRelease(
            title=slug_to_title(slug),
            kind=ReleaseKind.ALBUM,
            url=url,
            release_date=raw_date,
        )

    async def get_release_titles(self, artist_url: str) -> list[str]:
        titles = [normalize(slug) for _, slug in await self._album_links(artist_url)]
        return [t for t in titles if t][:_MAX_RELEASE_TITLES]


# ---------------------------------------------------------------------------
# Release check
# ---------------------------------------------------------------------------

class QobuzReleaseChecker(HttpSource, IReleaseChecker):
    """Freshness probe via the album search sorted by catalog date.

    The artist name comes from the saved interpreter slug; the first
    album whose title mentions that name and has a date near its link
    is reported.
    """

    provider_name = "qobuz"
    platform = ReleasePlatform.QOBUZ

    async def check(self, url: str) -> ReleaseFinding | None:
        slug = interpreter_slug(url)
        if slug is None:
            return None
        artist_name = slug.replace("-", " ")
        html = await self._fetch_text(
            _ALBUM_SEARCH_URL.format(query=quote(artist_name, safe="")),
            timeout=_CHECK_TIMEOUT,
        )
        if html is None:
            return None

        for match in _COVER_OVERLAY.finditer(html):
            path, raw_title = match.group(1), match.group(2)
            title = html_lib.unescape(raw_title).strip()
            if artist_name not in title.lower():
                continue
            window = html[match.end(): match.end() + _DATE_WINDOW]
            date_match = _MONTH_DATE.search(window) or _ISO_DATE.search(window)
            release_date = to_iso(date_match.group(0)) if date_match else None
            if release_date is None:
                continue
            return ReleaseFinding(
                release_name=title,
                release_date=release_date,
                release_url=f"{_BASE_URL}{path}",
                platform=self.platform,
            )
        return None
