"""Discogs artist-profile adapter using python3-discogs-client.

Only one fact is taken from Discogs: the list of external URLs on an
artist profile, which enrichment sorts into social links and
link-aggregator pages.  The artist id
is read from the Discogs URL MusicBrainz already gave us, so no search
request is made.
"""

from __future__ import annotations

import asyncio
import re
import time

import discogs_client

from unstream.config.settings import Settings
from unstream.utils.logging import get_logger

_ARTIST_ID = re.compile(r"/artist/(\d+)")
_MIN_REQUEST_INTERVAL = 1.0  # seconds, 60 requests per minute


def artist_id_from_url(url: str) -> int | None:
    match = _ARTIST_ID.search(url or "")
    return int(match.group(1)) if match else None


class DiscogsAdapter:
    """Reads the ``urls`` list of a Discogs artist.

    The client is initialized lazily on first use.  A personal access
    token is optional; anonymous requests work at a lower rate limit.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._client: discogs_client.Client | None = None
        self._last_request_time: float = 0.0
        self._logger = get_logger(__name__)

    # -- Private helpers -------------------------------------------------------

    def _get_client(self) -> discogs_client.Client:
        if self._client is None:
            self._client = discogs_client.Client(
                self._settings.discogs_user_agent,
                user_token=self._settings.discogs_token or None,
            )
        return self._client

    async def _throttle(self) -> None:
        now = time.monotonic()
        elapsed = now - self._last_request_time
        if self._last_request_time > 0 and elapsed < _MIN_REQUEST_INTERVAL:
            await asyncio.sleep(_MIN_REQUEST_INTERVAL - elapsed)
        self._last_request_time = time.monotonic()

    def _artist_urls_sync(self, artist_id: int) -> list[str]:
        artist = self._get_client().artist(artist_id)
        return [url for url in (artist.urls or []) if isinstance(url, str)]

    # -- Public API ------------------------------------------------------------

    async def get_artist_urls(self, discogs_url: str) -> list[str]:
        """Return every external URL on the artist profile at *discogs_url*."""
        artist_id = artist_id_from_url(discogs_url)
        if artist_id is None:
            return []
        await self._throttle()
        try:
            return await asyncio.to_thread(self._artist_urls_sync, artist_id)
        except Exception as exc:
            self._logger.warning(
                "discogs_artist_lookup_failed",
                artist_id=artist_id,
                error=str(exc) or type(exc).__name__,
            )
            return []

    def get_provider_name(self) -> str:
        return "discogs"

    def is_available(self) -> bool:
        return True
