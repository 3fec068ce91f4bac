"""Release-freshness checker for saved artists.

Given an artist and the platform URLs the caller saved for it, ask each
platform for its most recent release, keep the ones published within the
window (0 to 8 days before the check), and report at most one, chosen by
fixed platform priority (Mirlo, Faircamp, Bandcamp, Qobuz).

Stateful checks (:meth:`ReleaseChecker.check_artist`) compare that release
against the caller's :class:`ReleaseCheckState` and emit a
:class:`NewRelease` only the first time a (release name, platform) pair is
seen.  The read-compare-write sequence is serialized per artist so
concurrent checks of the same artist never emit twice.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping
from datetime import datetime

from unstream.interfaces.source_adapter import IReleaseChecker
from unstream.models.releases import (
    RELEASE_PRIORITY,
    KnownRelease,
    NewRelease,
    ReleaseCheckState,
    ReleaseFinding,
    ReleasePlatform,
)
from unstream.utils.concurrency import settle_all
from unstream.utils.dates import utc_now, within_days
from unstream.utils.logging import get_logger

DEFAULT_WINDOW_DAYS = 8


class ReleaseChecker:
    """Per-artist freshness probe over the four release platforms.

    Parameters
    ----------
    checkers:
        One :class:`IReleaseChecker` per platform it can probe.
    window_days:
        Oldest release age, in whole days, that still counts as fresh.
    """

    def __init__(
        self,
        checkers: Mapping[ReleasePlatform, IReleaseChecker],
        window_days: int = DEFAULT_WINDOW_DAYS,
    ) -> None:
        self._checkers = dict(checkers)
        self._window_days = window_days
        self._locks: dict[str, asyncio.Lock] = {}
        self._logger = get_logger(__name__)

    async def find_release(
        self,
        platforms: Mapping[ReleasePlatform, str],
        now: datetime | None = None,
    ) -> ReleaseFinding | None:
        """Return the highest-priority fresh release among *platforms*, if any."""
        current = now or utc_now()
        branches = {
            platform.value: self._checkers[platform].check(url)
            for platform, url in platforms.items()
            if url and platform in self._checkers
        }
        if not branches:
            return None
        settled = await settle_all(branches, logger=self._logger)

        for platform in RELEASE_PRIORITY:
            outcome = settled.get(platform.value)
            finding = outcome.value_or(None) if outcome is not None else None
            if finding is not None and self._is_fresh(finding, current):
                return finding
        return None

    async def check_artist(
        self,
        artist_name: str,
        platforms: Mapping[ReleasePlatform, str],
        state: ReleaseCheckState,
        now: datetime | None = None,
    ) -> NewRelease | None:
        """Check one artist and record any release not seen before in *state*."""
        current = now or utc_now()
        key = ReleaseCheckState.artist_key(artist_name)
        lock = self._locks.setdefault(key, asyncio.Lock())

        async with lock:
            pruned = state.prune_expired(current)
            if pruned:
                self._logger.debug("new_releases_pruned", count=pruned)

            finding = await self.find_release(platforms, current)
            state.last_check_date = current
            if finding is None:
                return None

            known = KnownRelease(
                release_name=finding.release_name,
                platform=finding.platform,
                release_date=finding.release_date,
            )
            if not state.add_known(artist_name, known):
                self._logger.debug(
                    "release_already_known",
                    artist=artist_name,
                    release=finding.release_name,
                    platform=finding.platform.value,
                )
                return None

            release = NewRelease(
                artist_name=artist_name,
                release_name=finding.release_name,
                release_date=finding.release_date,
                release_url=finding.release_url,
                platform=finding.platform,
                detected_at=current,
            )
            state.new_releases.append(release)
            self._logger.info(
                "new_release_detected",
                artist=artist_name,
                release=finding.release_name,
                platform=finding.platform.value,
            )
            return release

    async def check_all(
        self,
        artists: Iterable[tuple[str, Mapping[ReleasePlatform, str]]],
        state: ReleaseCheckState,
        now: datetime | None = None,
    ) -> list[NewRelease]:
        """Check each artist in turn; returns the releases newly recorded."""
        found: list[NewRelease] = []
        for artist_name, platforms in artists:
            release = await self.check_artist(artist_name, platforms, state, now)
            if release is not None:
                found.append(release)
        return found

    def _is_fresh(self, finding: ReleaseFinding, now: datetime) -> bool:
        released = finding.parsed_date
        return released is not None and within_days(released, self._window_days, now)
