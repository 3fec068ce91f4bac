"""jam.coop directory: the full artist list scraped once and matched locally."""

from __future__ import annotations

from unstream.interfaces.cache_provider import IRefreshingCache
from unstream.interfaces.source_adapter import IDirectorySource
from unstream.models.search import Query, SourceId
from unstream.providers.sources.base import HttpSource
from unstream.utils.text_normalizer import normalize

_BASE_URL = "https://jam.coop"
_ARTISTS_URL = f"{_BASE_URL}/artists"
_TIMEOUT = 5.0
_MAX_MATCHES = 10


class JamCoopDirectoryLoader(HttpSource):
    """Scrapes ``/artists`` into normalized name -> profile URL."""

    provider_name = "jamcoop"

    async def load(self) -> dict[str, str] | None:
        soup = await self._fetch_soup(_ARTISTS_URL, timeout=_TIMEOUT)
        if soup is None:
            return None

        directory: dict[str, str] = {}
        for link in soup.select('a[href^="/artists/"]'):
            href = (link.get("href") or "").rstrip("/")
            if not href or href == "/artists":
                continue
            key = normalize(link.get_text(" ", strip=True))
            if key and key not in directory:
                directory[key] = f"{_BASE_URL}{href}"

        self._logger.info("jamcoop_directory_loaded", artists=len(directory))
        return directory


class JamCoopDirectoryAdapter(IDirectorySource):
    source_id = SourceId.JAMCOOP

    def __init__(self, directory: IRefreshingCache[dict[str, str]]) -> None:
        self._directory = directory

    async def find(self, query: Query) -> dict[str, str]:
        needle = query.normalized
        if not needle:
            return {}

        matches: dict[str, str] = {}
        for name, url in (await self._directory.get()).items():
            if name == needle or needle in name or name in needle:
                matches[name] = url
                if len(matches) >= _MAX_MATCHES:
                    break
        return matches

    def get_provider_name(self) -> str:
        return "jamcoop"

    def is_available(self) -> bool:
        return True
