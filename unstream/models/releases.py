"""Release-freshness models.

``ReleaseCheckState`` belongs to the caller: it is loaded from whatever
storage the caller uses, passed into the checker, mutated there, and handed
back for the caller to persist.  The checker never stores it.
"""

from __future__ import annotations

import datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from unstream.utils.dates import parse_release_date, utc_now

# A NewRelease stays user-visible for this long after detection.
NEW_RELEASE_ACTIVE_DAYS = 7


class ReleasePlatform(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    """Platforms the freshness checker polls, in priority order."""

    MIRLO = "mirlo"
    FAIRCAMP = "faircamp"
    BANDCAMP = "bandcamp"
    QOBUZ = "qobuz"


# When several platforms report a fresh release, the first one listed wins.
RELEASE_PRIORITY: tuple[ReleasePlatform, ...] = (
    ReleasePlatform.MIRLO,
    ReleasePlatform.FAIRCAMP,
    ReleasePlatform.BANDCAMP,
    ReleasePlatform.QOBUZ,
)


class ReleaseFinding(BaseModel):
    """The most recent release one platform reports for an artist."""

    model_config = ConfigDict(frozen=True)

    release_name: str
    release_date: str
    release_url: str
    platform: ReleasePlatform

    @property
    def parsed_date(self) -> datetime.date | None:
        return parse_release_date(self.release_date)


class KnownRelease(BaseModel):
    """A (release name, platform) pair already reported for an artist."""

    model_config = ConfigDict(frozen=True)

    release_name: str
    platform: ReleasePlatform
    release_date: str | None = None

    def matches(self, release_name: str, platform: ReleasePlatform) -> bool:
        return (
            self.platform == platform
            and self.release_name.strip().lower() == release_name.strip().lower()
        )


class NewRelease(BaseModel):
    """A release reported to the caller once, visible for seven days."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    artist_name: str
    release_name: str
    release_date: str
    release_url: str
    platform: ReleasePlatform
    detected_at: datetime.datetime = Field(default_factory=utc_now)

    def is_active_at(self, now: datetime.datetime) -> bool:
        return now - self.detected_at < datetime.timedelta(days=NEW_RELEASE_ACTIVE_DAYS)

    @property
    def is_active(self) -> bool:
        return self.is_active_at(utc_now())


class ReleaseCheckState(BaseModel):
    """Caller-owned freshness state for all saved artists.

    ``known_releases`` is keyed by the lower-cased artist name and only
    grows, except through :meth:`reset_known`.
    """

    known_releases: dict[str, list[KnownRelease]] = Field(default_factory=dict)
    new_releases: list[NewRelease] = Field(default_factory=list)
    last_check_date: datetime.datetime | None = None

    @staticmethod
    def artist_key(artist_name: str) -> str:
        return artist_name.strip().lower()

    def is_known(self, artist_name: str, release_name: str, platform: ReleasePlatform) -> bool:
        known = self.known_releases.get(self.artist_key(artist_name), [])
        return any(k.matches(release_name, platform) for k in known)

    def add_known(self, artist_name: str, release: KnownRelease) -> bool:
        """Record *release*; returns False if it was already known."""
        if self.is_known(artist_name, release.release_name, release.platform):
            return False
        self.known_releases.setdefault(self.artist_key(artist_name), []).append(release)
        return True

    def prune_expired(self, now: datetime.datetime | None = None) -> int:
        """Drop NewRelease entries older than the visibility window; returns how many."""
        current = now or utc_now()
        kept = [r for r in self.new_releases if r.is_active_at(current)]
        removed = len(self.new_releases) - len(kept)
        self.new_releases = kept
        return removed

    def reset_known(self, artist_name: str | None = None) -> None:
        """Operator reset: forget known releases for one artist, or for everyone."""
        if artist_name is None:
            self.known_releases.clear()
        else:
            self.known_releases.pop(self.artist_key(artist_name), None)

    def active_new_releases(self, now: datetime.datetime | None = None) -> list[NewRelease]:
        current = now or utc_now()
        return [r for r in self.new_releases if r.is_active_at(current)]
