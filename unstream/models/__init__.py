"""Unstream domain models -- re-exports from all model modules."""

from unstream.models.enrichment import EnrichmentRecord, SocialLink, SocialPlatform
from unstream.models.releases import (
    NEW_RELEASE_ACTIVE_DAYS,
    RELEASE_PRIORITY,
    KnownRelease,
    NewRelease,
    ReleaseCheckState,
    ReleaseFinding,
    ReleasePlatform,
)
from unstream.models.search import (
    ANCHOR_SOURCE,
    RELEASE_CAPABLE_SOURCES,
    SEARCH_ONLY_SOURCES,
    AggregatedResult,
    Candidate,
    EntityKind,
    LatestRelease,
    MatchConfidence,
    PlatformEntry,
    Query,
    ReleaseKind,
    SearchResponse,
    SourceId,
)

__all__ = [
    "ANCHOR_SOURCE",
    "AggregatedResult",
    "Candidate",
    "EnrichmentRecord",
    "EntityKind",
    "KnownRelease",
    "LatestRelease",
    "MatchConfidence",
    "NEW_RELEASE_ACTIVE_DAYS",
    "NewRelease",
    "PlatformEntry",
    "Query",
    "RELEASE_CAPABLE_SOURCES",
    "RELEASE_PRIORITY",
    "ReleaseCheckState",
    "ReleaseFinding",
    "ReleaseKind",
    "ReleasePlatform",
    "SEARCH_ONLY_SOURCES",
    "SearchResponse",
    "SocialLink",
    "SocialPlatform",
    "SourceId",
]
