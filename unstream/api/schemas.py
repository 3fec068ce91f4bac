"""Pydantic request/response schemas for the Unstream API.

Search and enrichment responses reuse the domain models directly
(:class:`~unstream.models.search.SearchResponse`,
:class:`~unstream.models.enrichment.EnrichmentRecord`); the schemas here
cover the endpoints whose wire shape differs from a domain model.

Convention: request schemas end with "Request", response schemas end with
"Response".
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from unstream.models.enrichment import SocialLink
from unstream.models.releases import ReleaseFinding, ReleasePlatform
from unstream.models.search import PlatformEntry


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, bool]


class EnrichmentResponse(BaseModel):
    """Enrichment payload for merging into an already displayed result."""

    query: str
    artist_name: str | None = None
    official_url: str | None = None
    discogs_url: str | None = None
    has_pre_2005_release: bool = False
    social_links: list[SocialLink] = Field(default_factory=list)
    platform_links: list[PlatformEntry] = Field(default_factory=list)


class ReleaseCheckRequest(BaseModel):
    """An artist name plus the platform URLs the caller saved for it."""

    artist_name: str = Field(..., min_length=1, max_length=200)
    platforms: dict[ReleasePlatform, str] = Field(default_factory=dict)


class ReleaseCheckResponse(BaseModel):
    artist_name: str
    release: ReleaseFinding | None = None


class ResolveResponse(BaseModel):
    artist_name: str
    source: str


class EmbedResponse(BaseModel):
    embed_url: str
    title: str
