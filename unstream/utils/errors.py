"""Custom exception hierarchy for Unstream.

All application exceptions inherit from :class:`UnstreamError`, which
carries an optional ``provider_name`` so error handlers can identify which
external source (e.g. "bandcamp", "musicbrainz", "qobuz") was involved.

    UnstreamError  (base -- catch-all for any unstream error)
    +-- InvalidQueryError   (caller supplied an unusable query or URL)
    +-- AggregationError    (defect while merging candidates)
    +-- ConfigurationError  (startup / missing config)

Source adapters raise nothing: network and parse failures are logged
and yield an empty result.  Only ``InvalidQueryError`` reaches API callers as a 4xx; every
other error that escapes a service is turned into the stable failure
response by the service or by the error-handling middleware.
"""


class UnstreamError(Exception):
    """Base exception for all Unstream errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name``.  ``__str__`` prefixes the provider name in brackets,
    e.g. ``[qobuz] Album page unreadable``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Caller errors
# ---------------------------------------------------------------------------

class InvalidQueryError(UnstreamError):
    """Raised when a query or URL is blank or otherwise unusable."""

    def __init__(
        self,
        message: str = "Query parameter is required",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Internal errors
# ---------------------------------------------------------------------------

class AggregationError(UnstreamError):
    """Raised when merging or disambiguating candidates hits a defect."""

    def __init__(
        self,
        message: str = "Search failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(UnstreamError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
