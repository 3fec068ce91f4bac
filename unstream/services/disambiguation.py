"""Split name-merged identities whose release evidence disagrees.

Identical display names can belong to unrelated artists.  After release
data has been attached, each group's platforms that carry a latest
release are partitioned by release-title agreement:

- no release data anywhere  -> one result, ``unverified``
- one agreeing sub-group    -> one result, ``verified`` (platforms without
                               release data stay attached)
- several sub-groups        -> one ``verified`` result per sub-group, plus
                               one ``unverified`` result holding every
                               platform without release data

A release-capable platform that reported nothing counts as missing
data, never as a conflict.  That asymmetry can hide a real collision when
a platform silently fails for the "wrong" artist; it is kept on purpose
as a precision/recall trade-off.
"""

from __future__ import annotations

from collections.abc import Iterable

from unstream.models.search import AggregatedResult, MatchConfidence, PlatformEntry
from unstream.services.aggregation import platform_sort_key
from unstream.utils.logging import get_logger
from unstream.utils.text_normalizer import normalize

logger = get_logger(__name__)


def release_evidence(entry: PlatformEntry) -> set[str]:
    """Normalized titles an entry can be compared on (latest release plus title list)."""
    titles = set(entry.release_titles)
    if entry.latest_release is not None:
        titles.add(normalize(entry.latest_release.title))
    titles.discard("")
    return titles


def titles_agree(left: set[str], right: set[str]) -> bool:
    """True if any title of one side equals or contains a title of the other."""
    for a in left:
        for b in right:
            if a == b or a in b or b in a:
                return True
    return False


def partition_by_release(entries: list[PlatformEntry]) -> list[list[PlatformEntry]]:
    """Single-linkage partition of *entries* by :func:`titles_agree`.

    Sub-groups keep the input order of their members, and are themselves
    ordered by their first member.
    """
    evidence = [release_evidence(e) for e in entries]
    parent = list(range(len(entries)))

    def find(i: int) -> int:
        while parent[i] != i:
            parent[i] = parent[parent[i]]
            i = parent[i]
        return i

    for i in range(len(entries)):
        for j in range(i + 1, len(entries)):
            if titles_agree(evidence[i], evidence[j]):
                parent[find(j)] = find(i)

    groups: dict[int, list[PlatformEntry]] = {}
    for i, entry in enumerate(entries):
        groups.setdefault(find(i), []).append(entry)
    return list(groups.values())


def _split(
    result: AggregatedResult,
    suffix: str,
    platforms: list[PlatformEntry],
    confidence: MatchConfidence,
    image_url: str | None,
) -> AggregatedResult:
    return AggregatedResult(
        id=f"{result.id}-{suffix}",
        name=result.name,
        artist=result.artist,
        kind=result.kind,
        image_url=image_url,
        platforms=sorted(platforms, key=platform_sort_key),
        match_confidence=confidence,
    )


def disambiguate(result: AggregatedResult) -> list[AggregatedResult]:
    """Return *result* (marked) or the splits it falls into."""
    # A release whose title normalizes to nothing is no evidence either way.
    with_release: list[PlatformEntry] = []
    without_release: list[PlatformEntry] = []
    for platform in result.platforms:
        if platform.has_release_data and release_evidence(platform):
            with_release.append(platform)
        else:
            without_release.append(platform)

    if not with_release:
        result.match_confidence = MatchConfidence.UNVERIFIED
        return [result]

    subgroups = partition_by_release(with_release)
    if len(subgroups) == 1:
        result.match_confidence = MatchConfidence.VERIFIED
        return [result]

    splits: list[AggregatedResult] = []
    for subgroup in subgroups:
        artwork = next(
            (p.latest_release.image_url for p in subgroup if p.latest_release.image_url),
            None,
        )
        suffix = "-".join(p.source.value for p in subgroup)
        splits.append(
            _split(result, suffix, subgroup, MatchConfidence.VERIFIED, artwork or result.image_url)
        )

    if without_release and not all(p.search_only for p in without_release):
        splits.append(
            _split(result, "unverified", without_release, MatchConfidence.UNVERIFIED, result.image_url)
        )

    logger.info(
        "identity_split",
        result_id=result.id,
        name=result.name,
        verified_groups=len(subgroups),
        splits=len(splits),
    )
    return splits


def confidence_sort_key(result: AggregatedResult) -> tuple[int, int]:
    verified = result.match_confidence == MatchConfidence.VERIFIED
    return (0 if verified else 1, -result.platform_count)


def disambiguate_all(results: Iterable[AggregatedResult]) -> list[AggregatedResult]:
    """Disambiguate every result and order verified ones first, then by platform count."""
    resolved: list[AggregatedResult] = []
    for result in results:
        resolved.extend(disambiguate(result))
    return sorted(resolved, key=confidence_sort_key)
