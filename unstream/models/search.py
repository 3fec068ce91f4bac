"""Search-side domain models: queries, candidates and aggregated results.

A search flows through these types in order:

    Query -> Candidate (one per adapter hit) -> AggregatedResult
          -> SearchResponse

``Candidate`` and ``PlatformEntry`` are frozen value objects.
``AggregatedResult`` is mutable while the aggregation and disambiguation
stages build it, and lives only for the duration of one request.
"""

from __future__ import annotations

import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from unstream.utils.dates import parse_release_date
from unstream.utils.text_normalizer import identity_key as build_identity_key
from unstream.utils.text_normalizer import normalize


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class SourceId(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    """Every platform a result can link to.

    Includes the search-only platforms (constructed query URLs) and the
    enrichment-derived links (official site, Discogs, library services).
    """

    BANDCAMP = "bandcamp"
    MIRLO = "mirlo"
    NINA = "nina"
    AMPWALL = "ampwall"
    BANDWAGON = "bandwagon"
    FAIRCAMP = "faircamp"
    JAMCOOP = "jamcoop"
    PATREON = "patreon"
    BUYMEACOFFEE = "buymeacoffee"
    KOFI = "kofi"
    QOBUZ = "qobuz"
    OFFICIALSITE = "officialsite"
    DISCOGS = "discogs"
    HOOPLA = "hoopla"
    FREEGAL = "freegal"


class EntityKind(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    ARTIST = "artist"
    ALBUM = "album"
    TRACK = "track"


class ReleaseKind(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    ALBUM = "album"
    TRACK = "track"


class MatchConfidence(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    """How far an aggregated identity is corroborated.

    VERIFIED:   release evidence agrees, or one source has releases and
                nothing contradicts it.
    UNVERIFIED: name-only match with no comparable release evidence.
    """

    VERIFIED = "verified"
    UNVERIFIED = "unverified"


# The platform every augmentation decision is anchored on.
ANCHOR_SOURCE = SourceId.BANDCAMP

# Platforms with no usable search: entries carry a constructed query URL.
SEARCH_ONLY_SOURCES = frozenset({
    SourceId.AMPWALL,
    SourceId.NINA,
    SourceId.KOFI,
    SourceId.BUYMEACOFFEE,
})

# Platforms that can report a latest release and a release-title list.
RELEASE_CAPABLE_SOURCES = frozenset({SourceId.BANDCAMP, SourceId.QOBUZ})

# Links attached after enrichment rather than by a search adapter.
ENRICHMENT_SOURCES = frozenset({
    SourceId.OFFICIALSITE,
    SourceId.DISCOGS,
    SourceId.HOOPLA,
    SourceId.FREEGAL,
})


# ---------------------------------------------------------------------------
# Query / candidate
# ---------------------------------------------------------------------------

class Query(BaseModel):
    """Free text typed by the listener plus its normalized form."""

    model_config = ConfigDict(frozen=True)

    raw: str
    normalized: str

    @classmethod
    def from_text(cls, text: str) -> Query:
        stripped = text.strip()
        return cls(raw=stripped, normalized=normalize(stripped))


class LatestRelease(BaseModel):
    """Most recent release a platform reports for an artist.

    ``release_date`` keeps the source's own text (ISO, long month or slash
    encoded).  ``None`` means unknown, never "no release".
    """

    model_config = ConfigDict(frozen=True)

    title: str
    kind: ReleaseKind = ReleaseKind.ALBUM
    url: str
    image_url: str | None = None
    release_date: str | None = None

    @property
    def parsed_date(self) -> datetime.date | None:
        return parse_release_date(self.release_date)


class Candidate(BaseModel):
    """One adapter's claim that it has something matching the query."""

    model_config = ConfigDict(frozen=True)

    source: SourceId
    name: str
    artist: str | None = None
    kind: EntityKind = EntityKind.ARTIST
    url: str
    image_url: str | None = None
    latest_release: LatestRelease | None = None

    @property
    def identity_key(self) -> str:
        return build_identity_key(self.name, self.artist)


# ---------------------------------------------------------------------------
# Aggregated results
# ---------------------------------------------------------------------------

class PlatformEntry(BaseModel):
    """A link from an aggregated identity to one platform."""

    model_config = ConfigDict(frozen=True)

    source: SourceId
    url: str
    latest_release: LatestRelease | None = None
    release_titles: list[str] = Field(default_factory=list)

    @property
    def search_only(self) -> bool:
        return self.source in SEARCH_ONLY_SOURCES

    @property
    def has_release_data(self) -> bool:
        return self.latest_release is not None


class AggregatedResult(BaseModel):
    """Canonical identity assembled from one or more candidates.

    Invariant: no two entries in ``platforms`` share a source id.
    Use :meth:`add_platform` / :meth:`replace_platform` rather than
    mutating the list directly.
    """

    id: str
    name: str
    artist: str | None = None
    kind: EntityKind = EntityKind.ARTIST
    image_url: str | None = None
    platforms: list[PlatformEntry] = Field(default_factory=list)
    match_confidence: MatchConfidence | None = None

    def platform(self, source: SourceId) -> PlatformEntry | None:
        for entry in self.platforms:
            if entry.source == source:
                return entry
        return None

    def has_source(self, source: SourceId) -> bool:
        return self.platform(source) is not None

    def add_platform(self, entry: PlatformEntry) -> bool:
        """Append *entry* unless its source is already present."""
        if self.has_source(entry.source):
            return False
        self.platforms.append(entry)
        return True

    def replace_platform(self, entry: PlatformEntry) -> None:
        """Swap the entry with the same source for *entry*."""
        self.platforms = [entry if p.source == entry.source else p for p in self.platforms]

    def remove_platform(self, source: SourceId) -> None:
        self.platforms = [p for p in self.platforms if p.source != source]

    @property
    def platform_count(self) -> int:
        return len(self.platforms)

    @property
    def is_search_only(self) -> bool:
        """True when every entry is a constructed search link."""
        return all(p.search_only for p in self.platforms)


class SearchResponse(BaseModel):
    """What the search entry point hands back to callers.

    The failure shape keeps ``query`` and an empty ``results`` list so
    callers never branch on response structure.
    """

    query: str
    results: list[AggregatedResult] = Field(default_factory=list)
    has_pending_enrichment: bool = False
    error: str | None = None

    @classmethod
    def failed(cls, query: str, error: str = "Search failed") -> SearchResponse:
        return cls(query=query, results=[], has_pending_enrichment=False, error=error)
