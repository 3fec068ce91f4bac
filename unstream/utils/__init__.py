"""Utility modules for Unstream.

Available utility modules (all re-exported here for convenience):

- **errors** -- Exception hierarchy rooted at UnstreamError.
- **concurrency** -- Settle-all join and soft-deadline gather used by the
  search fan-out.
- **dates** -- Release-date parsing across ISO, long-month, day-first,
  RFC 822 and slash encodings, plus the freshness-window helpers.
- **logging** -- structlog setup with console output in development and
  JSON in production.
- **text_normalizer** -- The single identity folding used for every name
  comparison.
"""

# -- Domain exception hierarchy --------------------------------------------
from unstream.utils.errors import (
    AggregationError,
    ConfigurationError,
    InvalidQueryError,
    UnstreamError,
)

# -- Async fan-out helpers -------------------------------------------------
from unstream.utils.concurrency import Settled, gather_with_deadline, settle_all

# -- Release dates ---------------------------------------------------------
from unstream.utils.dates import days_since, parse_release_date, to_iso, within_days

# -- Structured logging setup ----------------------------------------------
from unstream.utils.logging import configure_logging, get_logger

# -- Identity normalization ------------------------------------------------
from unstream.utils.text_normalizer import identity_key, names_overlap, normalize

__all__ = [
    "AggregationError",
    "ConfigurationError",
    "InvalidQueryError",
    "Settled",
    "UnstreamError",
    "configure_logging",
    "days_since",
    "gather_with_deadline",
    "get_logger",
    "identity_key",
    "names_overlap",
    "normalize",
    "parse_release_date",
    "settle_all",
    "to_iso",
    "within_days",
]
