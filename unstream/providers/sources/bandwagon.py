"""Bandwagon artist search (scraped)."""

from __future__ import annotations

from urllib.parse import quote_plus

from unstream.interfaces.source_adapter import IDirectorySource
from unstream.models.search import Query, SourceId
from unstream.providers.sources.base import HttpSource
from unstream.utils.text_normalizer import normalize

_SEARCH_URL = "https://bandwagon.fm/artists?q={query}"
_TIMEOUT = 3.0
_MAX_MATCHES = 10
_MAX_NAME_LENGTH = 100


class BandwagonAdapter(HttpSource, IDirectorySource):
    """Reads ``bandwagon.fm/@handle`` links from the artist search page.

    The display name is taken from the link's ``.bold`` element; links
    whose name is empty or implausibly long are navigation, not artists.
    """

    provider_name = "bandwagon"
    source_id = SourceId.BANDWAGON

    async def find(self, query: Query) -> dict[str, str]:
        needle = query.normalized
        if not needle:
            return {}
        soup = await self._fetch_soup(
            _SEARCH_URL.format(query=quote_plus(query.raw)), timeout=_TIMEOUT
        )
        if soup is None:
            return {}

        matches: dict[str, str] = {}
        seen_hrefs: set[str] = set()
        for link in soup.select('a[href*="bandwagon.fm/@"]'):
            href = link.get("href") or ""
            if not href or href in seen_hrefs:
                continue
            seen_hrefs.add(href)

            name_el = link.select_one(".bold")
            name = name_el.get_text(strip=True) if name_el is not None else ""
            if not 0 < len(name) < _MAX_NAME_LENGTH:
                continue

            key = normalize(name)
            if key and (needle in key or key in needle) and key not in matches:
                matches[key] = href
                if len(matches) >= _MAX_MATCHES:
                    break

        self._logger.debug("bandwagon_search_complete", query=query.raw, matches=len(matches))
        return matches
