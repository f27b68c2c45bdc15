"""Abstract base class for chart feed providers.

Defines the contract for reading published weekly charts (e.g. the
Billboard Hot 100 mirror).  The chart normalizer only ever sees
:class:`ChartSnapshot` objects, so the feed's wire format stays inside the
concrete adapter.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.chart import ChartSnapshot


class IChartFeedProvider(ABC):
    """Contract for read-only chart feeds.

    Implementations raise :class:`src.utils.errors.UpstreamUnavailableError`
    when the feed cannot be reached or answers with a non-success status,
    and :class:`src.utils.errors.NotFoundError` when a specific chart does
    not exist.
    """

    @abstractmethod
    async def fetch_all_charts(self) -> list[ChartSnapshot]:
        """Return every published chart, in feed order."""

    @abstractmethod
    async def fetch_recent(self) -> ChartSnapshot:
        """Return the most recently published chart."""

    @abstractmethod
    async def fetch_chart(self, chart_date: str) -> ChartSnapshot:
        """Return the chart published for *chart_date* (``YYYY-MM-DD``).

        Raises
        ------
        src.utils.errors.NotFoundError
            If no chart was published for that date.
        """

    @abstractmethod
    async def fetch_valid_dates(self) -> list[str]:
        """Return every date for which a chart exists, ascending."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"billboard"``."""
