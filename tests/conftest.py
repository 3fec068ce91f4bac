"""Shared pytest fixtures for the Unstream test suite."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from unstream.config.settings import Settings
from unstream.models.search import (
    AggregatedResult,
    Candidate,
    EntityKind,
    LatestRelease,
    PlatformEntry,
    SourceId,
)

# ---------------------------------------------------------------------------
# HTTP helpers
# ---------------------------------------------------------------------------


def make_response(
    text: str = "",
    status_code: int = 200,
    json_data: Any = None,
) -> MagicMock:
    """Build a stand-in for ``httpx.Response`` with the attributes adapters read."""
    response = MagicMock()
    response.text = text
    response.status_code = status_code
    if status_code >= 400:
        request = httpx.Request("GET", "https://example.test")
        real = httpx.Response(status_code, request=request)
        response.raise_for_status = MagicMock(
            side_effect=httpx.HTTPStatusError("error", request=request, response=real)
        )
    else:
        response.raise_for_status = MagicMock()
    response.json = MagicMock(return_value=json_data)
    return response


def route_client(routes: dict[str, Any], default: Any = None) -> AsyncMock:
    """An ``httpx.AsyncClient`` mock whose ``get`` answers by URL substring.

    Values may be a response, an exception instance (raised), or a callable
    taking the URL.  The first matching substring wins.
    """
    client = AsyncMock(spec=httpx.AsyncClient)

    async def _get(url: str, *args: Any, **kwargs: Any) -> Any:
        for fragment, outcome in routes.items():
            if fragment in url:
                if isinstance(outcome, BaseException):
                    raise outcome
                if callable(outcome) and not isinstance(outcome, MagicMock):
                    return outcome(url)
                return outcome
        if default is None:
            raise httpx.ConnectError(f"no route for {url}")
        return default

    client.get = AsyncMock(side_effect=_get)
    return client


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def settings() -> Settings:
    return Settings(
        musicbrainz_app_name="Unstream-test",
        musicbrainz_app_version="0.0.1",
        musicbrainz_contact="test@example.com",
        discogs_user_agent="UnstreamTest/0.0.1",
        discogs_token="",
    )


@pytest.fixture
def fixed_now() -> datetime:
    """A stable 'now' for freshness tests: 2024-12-10 12:00 UTC."""
    return datetime(2024, 12, 10, 12, 0, tzinfo=timezone.utc)  # noqa: UP017


# ---------------------------------------------------------------------------
# Model builders
# ---------------------------------------------------------------------------


def candidate(
    source: SourceId,
    name: str,
    url: str | None = None,
    kind: EntityKind = EntityKind.ARTIST,
    artist: str | None = None,
    image_url: str | None = None,
) -> Candidate:
    return Candidate(
        source=source,
        name=name,
        artist=artist,
        kind=kind,
        url=url or f"https://{source.value}.example/{name.lower().replace(' ', '-')}",
        image_url=image_url,
    )


def release(title: str, date: str | None = "2024-12-06", url: str = "") -> LatestRelease:
    return LatestRelease(
        title=title,
        url=url or f"https://example.test/album/{title.lower().replace(' ', '-')}",
        release_date=date,
    )


def entry(
    source: SourceId,
    url: str | None = None,
    latest: LatestRelease | None = None,
    titles: list[str] | None = None,
) -> PlatformEntry:
    return PlatformEntry(
        source=source,
        url=url or f"https://{source.value}.example/artist",
        latest_release=latest,
        release_titles=titles or [],
    )


def result(name: str, *entries: PlatformEntry, result_id: str | None = None) -> AggregatedResult:
    return AggregatedResult(
        id=result_id or name.lower().replace(" ", ""),
        name=name,
        platforms=list(entries),
    )
