"""Custom exception hierarchy for tunefeed.

All application exceptions inherit from :class:`TuneFeedError`, which
carries an optional ``provider_name`` so error handlers can identify which
external system (e.g. "billboard", "musicbrainz", "curated_store") caused
the failure.

The hierarchy is organized by how callers are expected to react:

    TuneFeedError  (base -- catch-all for any tunefeed error)
    +-- UpstreamUnavailableError (chart feed / store unreachable -- fatal to the run)
    |   +-- StoreTimeoutError    (a store query exceeded its time budget)
    +-- NotFoundError            (a specific recording/date/artist has no data)
    +-- InputValidationError     (malformed input, rejected before store access)
    +-- DuplicateEntryError      (the row already exists, e.g. song already archived)
    +-- RateLimitError           (outbound request ceiling exceeded)
    +-- StoreWriteError          (a batch upsert failed -- aborts the load)
    +-- PoolStateError           (connection pool used outside its READY state)
    +-- PipelineError            (ingestion orchestration failure)
    +-- ConfigurationError       (startup / missing config)

Batch ingestion lets every one of these propagate and abort the run.  The
API edge (``src/api/middleware.py``) maps each type to a status code.
"""


class TuneFeedError(Exception):
    """Base exception for all tunefeed errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external system triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[billboard] Chart feed returned 503``.
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
# Upstream / store availability
# ---------------------------------------------------------------------------

class UpstreamUnavailableError(TuneFeedError):
    """Raised when the chart feed, reference store or serving store is unreachable.

    Fatal to the current ingestion run; surfaced as a 502 at the API edge.
    """

    def __init__(
        self,
        message: str = "Upstream service is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class StoreTimeoutError(UpstreamUnavailableError):
    """Raised when a store query does not complete within its timeout."""

    def __init__(
        self,
        message: str = "Store query timed out",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class StoreWriteError(TuneFeedError):
    """Raised when a batch write to the serving store fails.

    The loader stops at the first failing batch; batches committed before
    it stay in place until the next full load replaces them.
    """

    def __init__(
        self,
        message: str = "Store write failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class PoolStateError(TuneFeedError):
    """Raised when a connection pool is used before ``open()`` or after ``close()``."""

    def __init__(
        self,
        message: str = "Connection pool is not ready",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Request-level errors
# ---------------------------------------------------------------------------

class NotFoundError(TuneFeedError):
    """Raised when a specific recording, chart date or artist has no data."""

    def __init__(
        self,
        message: str = "Resource not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class InputValidationError(TuneFeedError):
    """Raised for malformed caller input (e.g. a bad chart date format)."""

    def __init__(
        self,
        message: str = "Invalid input",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class DuplicateEntryError(TuneFeedError):
    """Raised when inserting a row that already exists for the same owner."""

    def __init__(
        self,
        message: str = "Entry already exists",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RateLimitError(TuneFeedError):
    """Raised when an outbound rate limit is exceeded.

    Outbound calls to rate-limited services go through
    :class:`src.utils.concurrency.SpacedRequestQueue`, so this should
    only surface when the remote side rejects a request anyway.
    """

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Orchestration / configuration errors
# ---------------------------------------------------------------------------

class PipelineError(TuneFeedError):
    """Raised when ingestion orchestration fails (e.g. overlapping runs)."""

    def __init__(
        self,
        message: str = "Ingestion pipeline failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(TuneFeedError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
