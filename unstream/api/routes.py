"""FastAPI route definitions for the Unstream API.

Handlers are thin: they validate input, call one service from
``app.state`` and shape the response.  Services are resolved through
``Depends`` helpers so tests can swap them on ``app.state``.

Endpoints (all under ``/api/v1``):

    GET  /search?query=      multi-source artist search
    GET  /enrich?query=      official site, Discogs and social links
    POST /releases/check     freshest release for one saved artist
    GET  /resolve?url=       artist name behind a Spotify / Apple Music link
    GET  /embed?url=         Bandcamp embedded-player reference
    GET  /health             adapter availability
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from unstream import __version__
from unstream.api.schemas import (
    EmbedResponse,
    EnrichmentResponse,
    ErrorResponse,
    HealthResponse,
    ReleaseCheckRequest,
    ReleaseCheckResponse,
    ResolveResponse,
)
from unstream.models.enrichment import EnrichmentRecord
from unstream.models.search import SearchResponse
from unstream.services.enrichment_service import EnrichmentService
from unstream.services.link_resolver import EmbedService, UrlResolver
from unstream.services.release_checker import ReleaseChecker
from unstream.services.search_service import SearchService
from unstream.utils.errors import InvalidQueryError
from unstream.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def _get_search_service(request: Request) -> SearchService:
    return request.app.state.search_service


def _get_enrichment_service(request: Request) -> EnrichmentService:
    return request.app.state.enrichment_service


def _get_release_checker(request: Request) -> ReleaseChecker:
    return request.app.state.release_checker


def _get_url_resolver(request: Request) -> UrlResolver:
    return request.app.state.url_resolver


def _get_embed_service(request: Request) -> EmbedService:
    return request.app.state.embed_service


SearchServiceDep = Annotated[SearchService, Depends(_get_search_service)]
EnrichmentServiceDep = Annotated[EnrichmentService, Depends(_get_enrichment_service)]
ReleaseCheckerDep = Annotated[ReleaseChecker, Depends(_get_release_checker)]
UrlResolverDep = Annotated[UrlResolver, Depends(_get_url_resolver)]
EmbedServiceDep = Annotated[EmbedService, Depends(_get_embed_service)]


# ---------------------------------------------------------------------------
# Search / enrichment
# ---------------------------------------------------------------------------


@router.get(
    "/search",
    response_model=SearchResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Search every source for an artist",
)
async def search(
    service: SearchServiceDep,
    query: str = Query(default="", max_length=200),
) -> SearchResponse:
    try:
        return await service.search(query)
    except InvalidQueryError as exc:
        raise HTTPException(status_code=400, detail=exc.message) from exc


def _enrichment_response(record: EnrichmentRecord) -> EnrichmentResponse:
    return EnrichmentResponse(
        query=record.query,
        artist_name=record.artist_name,
        official_url=record.official_url,
        discogs_url=record.discogs_url,
        has_pre_2005_release=record.has_pre_2005_release,
        social_links=record.social_links,
        platform_links=record.platform_links,
    )


@router.get(
    "/enrich",
    response_model=EnrichmentResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Official site, Discogs and social links for an artist",
)
async def enrich(
    service: EnrichmentServiceDep,
    query: str = Query(default="", max_length=200),
) -> EnrichmentResponse:
    """Enrichment never fails the request: errors yield the empty record."""
    if not query.strip():
        raise HTTPException(status_code=400, detail=InvalidQueryError().message)
    try:
        record = await service.enrich(query)
    except Exception as exc:
        logger.warning("enrichment_failed", query=query, error=str(exc))
        record = EnrichmentRecord.empty(query.strip())
    return _enrichment_response(record)


# ---------------------------------------------------------------------------
# Release check
# ---------------------------------------------------------------------------


@router.post(
    "/releases/check",
    response_model=ReleaseCheckResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Freshest release (0-8 days old) for one saved artist",
)
async def check_releases(
    body: ReleaseCheckRequest,
    checker: ReleaseCheckerDep,
) -> ReleaseCheckResponse:
    platforms = {p: url.strip() for p, url in body.platforms.items() if url and url.strip()}
    if not platforms:
        raise HTTPException(status_code=400, detail="At least one platform URL is required")
    release = await checker.find_release(platforms)
    return ReleaseCheckResponse(artist_name=body.artist_name, release=release)


# ---------------------------------------------------------------------------
# Peripheral helpers
# ---------------------------------------------------------------------------


@router.get(
    "/resolve",
    response_model=ResolveResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Artist name behind a Spotify or Apple Music link",
)
async def resolve(
    resolver: UrlResolverDep,
    url: str = Query(default=""),
) -> ResolveResponse:
    if not url.strip():
        raise HTTPException(status_code=400, detail="URL parameter is required")
    resolved = await resolver.resolve(url)
    if resolved is None:
        raise HTTPException(status_code=404, detail="Could not resolve artist from URL")
    return ResolveResponse(artist_name=resolved.artist_name, source=resolved.source)


@router.get(
    "/embed",
    response_model=EmbedResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Bandcamp embedded-player reference",
)
async def embed(
    embed_service: EmbedServiceDep,
    url: str = Query(default=""),
) -> EmbedResponse:
    if not url.strip():
        raise HTTPException(status_code=400, detail="URL parameter is required")
    info = await embed_service.lookup(url)
    if info is None:
        raise HTTPException(status_code=404, detail="Could not find embeddable content")
    return EmbedResponse(embed_url=info.embed_url, title=info.title)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse, summary="Adapter availability")
async def health(service: SearchServiceDep) -> HealthResponse:
    return HealthResponse(status="ok", version=__version__, providers=service.health())
