"""Peripheral lookups: streaming URL -> artist name, Bandcamp URL -> embed player.

Neither feeds the search pipeline; callers use them to start a search from
a pasted link, or to show a playable preview next to a result.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import urljoin

import httpx
from pydantic import BaseModel, ConfigDict

from unstream.interfaces.cache_provider import ICacheProvider
from unstream.providers.sources.base import HttpSource, OpenGraphParser

_TIMEOUT = 5.0

# ---------------------------------------------------------------------------
# URL resolution
# ---------------------------------------------------------------------------

_SPOTIFY_URL = re.compile(r"open\.spotify\.com/(?:intl-[a-z]+/)?(artist|album|track)/([A-Za-z0-9]+)")
_APPLE_URL = re.compile(r"music\.apple\.com/[a-z]{2}/(artist|album|song)/([^/]+)/(\d+)")
_BY_OR_FROM = re.compile(r"(?:\bby|\bfrom)\s+([^·]+)", re.IGNORECASE)
_SPOTIFY_ARTIST_LINK = re.compile(r'href="/artist/[^"]+">([^<]+)</a>')
_TITLE_TAG = re.compile(r"<title>([^<]+)</title>", re.IGNORECASE)
_DASH_SPLIT = re.compile(r"\s*[-–—]\s*")
_SPOTIFY_SUFFIX = re.compile(r"\s*[-–—]\s*Spotify.*$", re.IGNORECASE)
_APPLE_SUFFIXES = (
    re.compile(r"\s+on\s+Apple\s*Music.*$", re.IGNORECASE),
    re.compile(r"\s*[-–—]\s*Apple\s*Music.*$", re.IGNORECASE),
    re.compile(r"\s*\|\s*Apple\s*Music.*$", re.IGNORECASE),
)
_SONG_BY_ARTIST = re.compile(r"^.+?\s+by\s+(.+)$", re.IGNORECASE)


class ResolvedArtist(BaseModel):
    model_config = ConfigDict(frozen=True)

    artist_name: str
    source: str


def spotify_uri_to_url(value: str) -> str:
    """Turn ``spotify:artist:ID`` into ``https://open.spotify.com/artist/ID``."""
    parts = value.split(":")
    if value.startswith("spotify:") and len(parts) >= 3:
        return f"https://open.spotify.com/{parts[1]}/{parts[2]}"
    return value


def clean_apple_suffix(name: str) -> str:
    for pattern in _APPLE_SUFFIXES:
        name = pattern.sub("", name)
    return name.strip()


class UrlResolver(HttpSource):
    """Best-guess artist name for a Spotify or Apple Music link.

    Resolutions are cached per URL; unresolvable links are not cached.
    """

    provider_name = "resolver"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        cache: ICacheProvider | None = None,
        parser: OpenGraphParser | None = None,
    ) -> None:
        super().__init__(http_client)
        self._cache = cache
        self._parser = parser or OpenGraphParser()

    async def resolve(self, url: str) -> ResolvedArtist | None:
        url = spotify_uri_to_url(url.strip())
        cache_key = f"resolve:{url}"
        if self._cache is not None:
            cached = await self._cache.get(cache_key)
            if cached is not None:
                return cached

        resolved = await self._resolve_uncached(url)
        if resolved is not None and self._cache is not None:
            await self._cache.set(cache_key, resolved)
        return resolved

    async def _resolve_uncached(self, url: str) -> ResolvedArtist | None:
        spotify = _SPOTIFY_URL.search(url)
        if spotify:
            html = await self._fetch_text(url, timeout=_TIMEOUT)
            name = self._spotify_artist(html, spotify.group(1)) if html else None
            return ResolvedArtist(artist_name=name, source="spotify") if name else None

        apple = _APPLE_URL.search(url)
        if apple:
            html = await self._fetch_text(url, timeout=_TIMEOUT)
            name = self._apple_artist(html, apple.group(1)) if html else None
            return ResolvedArtist(artist_name=name, source="apple") if name else None

        self._logger.debug("resolve_unsupported_url", url=url)
        return None

    def _spotify_artist(self, html: str, page_type: str) -> str | None:
        meta = self._parser.parse(html)
        if page_type == "artist":
            return meta.get("og:title") or None

        by_match = _BY_OR_FROM.search(meta.get("og:description", ""))
        if by_match:
            return by_match.group(1).strip()

        link_match = _SPOTIFY_ARTIST_LINK.search(html)
        if link_match:
            return link_match.group(1).strip()

        # "<Track> - <Artist> - Spotify" style titles
        title_match = _TITLE_TAG.search(html)
        if title_match:
            parts = _DASH_SPLIT.split(title_match.group(1))
            if len(parts) >= 2:
                artist = _SPOTIFY_SUFFIX.sub("", parts[1]).strip()
                if artist and artist.lower() != "spotify":
                    return artist
        return None

    def _apple_artist(self, html: str, page_type: str) -> str | None:
        meta = self._parser.parse(html)
        title = meta.get("og:title")
        if page_type == "artist":
            return clean_apple_suffix(title) if title else None

        if title:
            by_match = _SONG_BY_ARTIST.match(clean_apple_suffix(title))
            if by_match:
                return clean_apple_suffix(by_match.group(1))

        artist_meta = meta.get("twitter:audio:artist_name")
        if artist_meta:
            return clean_apple_suffix(artist_meta)
        return None


# ---------------------------------------------------------------------------
# Bandcamp embeds
# ---------------------------------------------------------------------------

EMBED_PLAYER_URL = (
    "https://bandcamp.com/EmbeddedPlayer/{item_type}={item_id}"
    "/size=small/bgcol=ffffff/linkcol=0687f5/transparent=true/"
)

_CURRENT_ID = re.compile(r'"current"\s*:\s*\{[^}]*"id"\s*:\s*(\d+)')
_ALBUM_HREF = re.compile(r'href="(/album/[^"]+)"')
_TRACK_HREF = re.compile(r'href="(/track/[^"]+)"')
_TRACK_ITEM_ID = re.compile(r'data-item-id="track-(\d+)"')


@dataclass(frozen=True)
class EmbedInfo:
    embed_url: str
    title: str


def embed_url(item_type: str, item_id: str) -> str:
    return EMBED_PLAYER_URL.format(item_type=item_type, item_id=item_id)


def _item_id(html: str, item_type: str) -> str | None:
    match = (
        re.search(rf"{item_type}=(\d+)", html)
        or re.search(rf'"{item_type}_id"\s*:\s*(\d+)', html)
        or _CURRENT_ID.search(html)
    )
    return match.group(1) if match else None


def _page_title(html: str) -> str:
    match = _TITLE_TAG.search(html)
    title = match.group(1).split("|")[0].strip() if match else ""
    return title or "Music"


class EmbedService(HttpSource):
    """Bandcamp embedded-player reference for an album, track or artist URL.

    Artist pages use their first album (or track) link; a page listing
    only track ids falls back to the first of those.
    """

    provider_name = "bandcamp_embed"

    async def lookup(self, url: str) -> EmbedInfo | None:
        url = url.strip()
        html = await self._fetch_text(url, timeout=_TIMEOUT)
        if html is None:
            return None

        for item_type in ("album", "track"):
            if f"/{item_type}/" in url:
                return self._from_item_page(html, item_type)

        album = _ALBUM_HREF.search(html)
        track = _TRACK_HREF.search(html)
        if album is None and track is None:
            track_id = _TRACK_ITEM_ID.search(html)
            if track_id:
                return EmbedInfo(embed_url=embed_url("track", track_id.group(1)), title="Track")
            return None

        item_type, path = ("album", album.group(1)) if album else ("track", track.group(1))
        base = re.sub(r"/music$", "", url.rstrip("/"))
        item_html = await self._fetch_text(urljoin(base + "/", path.lstrip("/")), timeout=_TIMEOUT)
        if item_html is None:
            return None
        return self._from_item_page(item_html, item_type)

    def _from_item_page(self, html: str, item_type: str) -> EmbedInfo | None:
        item_id = _item_id(html, item_type)
        if item_id is None:
            return None
        return EmbedInfo(embed_url=embed_url(item_type, item_id), title=_page_title(html))
