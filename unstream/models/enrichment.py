"""Enrichment models: social links and the per-artist enrichment record."""

from __future__ import annotations

from enum import Enum
from urllib.parse import quote, quote_plus, urlparse

from pydantic import BaseModel, ConfigDict, Field

from unstream.models.search import PlatformEntry, SourceId


class SocialPlatform(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    INSTAGRAM = "instagram"
    FACEBOOK = "facebook"
    TIKTOK = "tiktok"
    YOUTUBE = "youtube"
    THREADS = "threads"
    BLUESKY = "bluesky"
    TWITTER = "twitter"


# Checked in order; a platform may own several domains.
_PLATFORM_DOMAINS: tuple[tuple[SocialPlatform, tuple[str, ...]], ...] = (
    (SocialPlatform.INSTAGRAM, ("instagram.com",)),
    (SocialPlatform.FACEBOOK, ("facebook.com",)),
    (SocialPlatform.TIKTOK, ("tiktok.com",)),
    (SocialPlatform.YOUTUBE, ("youtube.com", "youtu.be")),
    (SocialPlatform.THREADS, ("threads.net", "threads.com")),
    (SocialPlatform.BLUESKY, ("bsky.app", "bsky.social")),
    (SocialPlatform.TWITTER, ("twitter.com", "x.com")),
)


def _host_matches(host: str, domain: str) -> bool:
    return host == domain or host.endswith("." + domain)


class SocialLink(BaseModel):
    """One social profile link for an artist."""

    model_config = ConfigDict(frozen=True)

    platform: SocialPlatform
    url: str

    @classmethod
    def from_url(cls, url: str) -> SocialLink | None:
        """Classify *url* by its host, or ``None`` if it is not a known social platform.

        Matching is on the host name so that e.g. ``dropbox.com`` is not
        taken for ``x.com``.
        """
        try:
            host = (urlparse(url.strip()).hostname or "").lower()
        except ValueError:
            return None
        if not host:
            return None
        for platform, domains in _PLATFORM_DOMAINS:
            if any(_host_matches(host, domain) for domain in domains):
                return cls(platform=platform, url=url.strip())
        if "bluesky" in host:
            return cls(platform=SocialPlatform.BLUESKY, url=url.strip())
        return None


class EnrichmentRecord(BaseModel):
    """Secondary facts about an artist, looked up after the main search.

    ``artist_name`` is ``None`` when the metadata service did not return a
    trustworthy match; every other field is then empty too.
    """

    model_config = ConfigDict(frozen=True)

    query: str
    artist_name: str | None = None
    official_url: str | None = None
    discogs_url: str | None = None
    has_pre_2005_release: bool = False
    social_links: list[SocialLink] = Field(default_factory=list)

    @classmethod
    def empty(cls, query: str) -> EnrichmentRecord:
        return cls(query=query)

    @property
    def found(self) -> bool:
        return self.artist_name is not None

    @property
    def library_links(self) -> list[PlatformEntry]:
        """Library-service search links, offered only for artists with pre-2005 releases."""
        if not self.has_pre_2005_release or not self.artist_name:
            return []
        name = self.artist_name
        return [
            PlatformEntry(
                source=SourceId.HOOPLA,
                url=f"https://www.hoopladigital.com/search?q={quote_plus(name)}&type=music",
            ),
            PlatformEntry(
                source=SourceId.FREEGAL,
                url=f"https://www.freegalmusic.com/search-page/{quote(name, safe='')}",
            ),
        ]

    @property
    def platform_links(self) -> list[PlatformEntry]:
        """Official site, Discogs and library links as platform entries for a result card."""
        entries: list[PlatformEntry] = []
        if self.official_url:
            entries.append(PlatformEntry(source=SourceId.OFFICIALSITE, url=self.official_url))
        if self.discogs_url:
            entries.append(PlatformEntry(source=SourceId.DISCOGS, url=self.discogs_url))
        entries.extend(self.library_links)
        return entries
