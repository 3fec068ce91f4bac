"""Release-date parsing shared by the search adapters and the release checker.

Sources publish dates in several textual encodings:

- ISO ``2024-12-06`` (optionally followed by a time component)
- long or short month first ``December 6, 2024`` / ``Dec 6 2024``
- day first, as in Bandcamp JSON-LD ``06 Dec 2024 00:00:00 GMT``
- RSS ``pubDate`` (RFC 822) ``Fri, 06 Dec 2024 10:00:00 +0000``
- US month-first numeric ``12/06/2024`` or ``12-06-2024``

:func:`parse_release_date` folds all of them into a :class:`datetime.date`
in UTC using python-dateutil's fuzzy parser.  Anything it cannot read, or
that lacks a year, month or day, yields ``None``, which callers treat as
"release date unknown".
"""

from __future__ import annotations

import re
from datetime import date, datetime, timezone

from dateutil import parser as dateutil_parser

# Strips "st", "nd", "rd", "th" from day numbers so "6th" becomes "6".
_ORDINAL_RE = re.compile(r"(\d+)(st|nd|rd|th)\b", re.IGNORECASE)

# dateutil fills missing fields from ``default``; parsing against two
# defaults that differ in every field exposes a partial date.
_DEFAULT_A = datetime(2000, 1, 1)
_DEFAULT_B = datetime(2001, 2, 2)


def _parse_with_default(text: str, default: datetime) -> date:
    stamp = dateutil_parser.parse(text, default=default, dayfirst=False, fuzzy=True)
    if stamp.tzinfo is not None:
        stamp = stamp.astimezone(timezone.utc)
    return stamp.date()


def parse_release_date(text: str | None) -> date | None:
    """Parse *text* in any supported encoding; ``None`` if unreadable."""
    if not text or not text.strip():
        return None
    cleaned = _ORDINAL_RE.sub(r"\1", text.strip())

    try:
        first = _parse_with_default(cleaned, _DEFAULT_A)
        second = _parse_with_default(cleaned, _DEFAULT_B)
    except (ValueError, OverflowError):
        return None

    if first != second:
        return None
    return first


def to_iso(text: str | None) -> str | None:
    """Return the ISO ``YYYY-MM-DD`` form of *text*, or ``None``."""
    parsed = parse_release_date(text)
    return parsed.isoformat() if parsed else None


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)  # noqa: UP017


def days_since(released: date, now: datetime | None = None) -> int:
    """Whole calendar days from *released* to *now* (UTC); negative if in the future."""
    current = now or utc_now()
    if current.tzinfo is not None:
        current = current.astimezone(timezone.utc)
    return (current.date() - released).days


def within_days(released: date, max_days: int, now: datetime | None = None) -> bool:
    """True when *released* is between 0 and *max_days* days before *now*, inclusive."""
    age = days_since(released, now)
    return 0 <= age <= max_days
