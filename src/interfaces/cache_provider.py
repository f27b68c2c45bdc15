"""Abstract base class for the chart response cache.

ChartService keeps upstream chart responses (the recent chart, per-date
charts, the valid-dates list) here so repeated API reads do not hit the
Billboard feed.  The folded chart aggregates are never cached; the batch
job always folds a fresh feed.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class ICacheProvider(ABC):
    """Async key-value store with per-entry expiry.

    Keys are namespaced by the caller (``billboard:recent``,
    ``billboard:date:2024-01-06``).  Values are stored as given; the
    in-process implementation does not serialise them.
    """

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the live value under *key*, or ``None`` on a miss or after expiry."""

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store *value* under *key*.

        *ttl* is in seconds; ``None`` falls back to the provider's default.
        Setting an existing key replaces both the value and its expiry.
        """

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Drop *key*; missing keys are ignored."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Return ``True`` while *key* holds an unexpired value."""
