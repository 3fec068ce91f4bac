"""Identity normalization for artist, album and track names.

Every identity comparison in the engine goes through :func:`normalize`:
lowercase, then drop every character outside ``[a-z0-9]``.  Aggregation
keys, directory lookups, release-title comparison and the enrichment
containment check all assume exactly this folding, so any new comparison
site must use these helpers rather than its own.
"""

import re
import uuid

_NON_ALNUM = re.compile(r"[^a-z0-9]")
_TRAILING_DIGITS = re.compile(r"\d+$")


def normalize(text: str | None) -> str:
    """Fold *text* to its comparison form.

    ``normalize("Radio-Head!") == normalize("RADIOHEAD") == "radiohead"``.
    Idempotent.  Non-ASCII letters are dropped, not transliterated.
    """
    if not text:
        return ""
    return _NON_ALNUM.sub("", text.lower())


def names_overlap(a: str | None, b: str | None) -> bool:
    """Return True when the normalized forms are equal or one contains the other.

    Empty normalized forms never overlap; otherwise the empty string would
    be contained in every name.
    """
    left = normalize(a)
    right = normalize(b)
    if not left or not right:
        return False
    return left == right or left in right or right in left


def identity_key(name: str, artist: str | None = None) -> str:
    """Build the aggregation key for a candidate.

    ``normalize(artist + "-" + name)`` when an associated artist is known,
    else ``normalize(name)``.  Names that fold to nothing (all symbols or
    non-Latin script) get a unique random key so that unrelated entries
    never collapse into one group.
    """
    raw = f"{artist}-{name}" if artist else name
    key = normalize(raw)
    if not key:
        return f"unkeyed-{uuid.uuid4().hex[:12]}"
    return key


def is_numbered_variant(candidate: str, base: str) -> bool:
    """Return True if *candidate* is *base* or *base* followed only by digits.

    Catalogs such as Qobuz disambiguate homonyms with numeric slugs
    (``morice``, ``morice1``, ``morice2``).
    """
    if not base or not candidate.startswith(base):
        return False
    suffix = candidate[len(base):]
    return suffix == "" or suffix.isdigit()


def strip_numeric_suffix(key: str) -> str:
    """Drop a trailing run of digits from an already-normalized key."""
    return _TRAILING_DIGITS.sub("", key)


def slug_to_title(slug: str) -> str:
    """Turn a hyphenated URL slug into a display name (``"the-cure"`` -> ``"The Cure"``)."""
    return " ".join(word[:1].upper() + word[1:] for word in slug.split("-") if word)
