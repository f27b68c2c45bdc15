"""Utility modules for tunefeed.

- **errors** -- Domain exception hierarchy rooted at TuneFeedError; the API
  middleware maps each subclass to an HTTP status code.
- **concurrency** -- batching, bounded fan-out and the spaced request queue
  used for rate-limited outbound calls.
- **logging** -- structlog setup with console output in development and
  JSON in production, plus contextvar correlation helpers.
- **text_normalizer** -- song and identity keys shared by the chart
  normalizer and the curator.
"""

from src.utils.concurrency import SpacedRequestQueue, chunked, throttled_gather
from src.utils.errors import (
    ConfigurationError,
    DuplicateEntryError,
    InputValidationError,
    NotFoundError,
    PipelineError,
    PoolStateError,
    RateLimitError,
    StoreTimeoutError,
    StoreWriteError,
    TuneFeedError,
    UpstreamUnavailableError,
)
from src.utils.logging import bind_context, clear_context, configure_logging, get_logger
from src.utils.text_normalizer import identity_key, song_key

__all__ = [
    "ConfigurationError",
    "DuplicateEntryError",
    "InputValidationError",
    "NotFoundError",
    "PipelineError",
    "PoolStateError",
    "RateLimitError",
    "SpacedRequestQueue",
    "StoreTimeoutError",
    "StoreWriteError",
    "TuneFeedError",
    "UpstreamUnavailableError",
    "bind_context",
    "chunked",
    "clear_context",
    "configure_logging",
    "get_logger",
    "identity_key",
    "song_key",
    "throttled_gather",
]
