"""Chart feed normalization and chart lookups.

:func:`fold_chart_snapshots` turns published charts into one
:class:`SongChartAggregate` per song key::

    key = lower(title) + "_by_" + lower(artist)
    total_weeks_charted += 1 per entry
    best_peak_position  = min(best_peak_position, entry.peak_position)

Both reductions are commutative and associative, so snapshot order never
matters.  Folding is *not* idempotent: the same snapshot folded twice
counts its songs twice, so callers fold each snapshot exactly once.

:class:`ChartService` wraps the chart feed provider for the ingestion run
(``load_aggregates``) and for the chart browsing endpoints (recent chart,
chart by date, valid dates), caching the latter.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from datetime import date

import structlog

from src.interfaces.cache_provider import ICacheProvider
from src.interfaces.chart_feed_provider import IChartFeedProvider
from src.models.chart import ChartSnapshot, SongChartAggregate
from src.utils.errors import InputValidationError
from src.utils.text_normalizer import song_key

logger = structlog.get_logger(logger_name=__name__)

_CHART_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def fold_chart_snapshots(
    snapshots: Iterable[ChartSnapshot],
    aggregates: Mapping[str, SongChartAggregate] | None = None,
) -> dict[str, SongChartAggregate]:
    """Fold *snapshots* into per-song aggregates.

    Parameters
    ----------
    snapshots:
        Charts to fold, in any order.
    aggregates:
        Aggregates from an earlier fold to extend.  Not modified.

    Returns
    -------
    dict[str, SongChartAggregate]
        A new mapping keyed by :func:`song_key`.
    """
    # [weeks, best_peak] accumulators; models are built once at the end.
    acc: dict[str, list[int]] = {
        key: [agg.total_weeks_charted, agg.best_peak_position]
        for key, agg in (aggregates or {}).items()
    }
    for snapshot in snapshots:
        for entry in snapshot.entries:
            key = song_key(entry.song_title, entry.artist_name)
            current = acc.get(key)
            if current is None:
                acc[key] = [1, entry.peak_position]
            else:
                current[0] += 1
                if entry.peak_position < current[1]:
                    current[1] = entry.peak_position

    return {
        key: SongChartAggregate(total_weeks_charted=weeks, best_peak_position=peak)
        for key, (weeks, peak) in acc.items()
    }


def validate_chart_date(chart_date: str) -> str:
    """Return *chart_date* if it is a real ``YYYY-MM-DD`` date.

    Raises
    ------
    InputValidationError
        For any other shape, before anything is fetched.
    """
    if not _CHART_DATE_RE.match(chart_date):
        raise InputValidationError(message="Invalid date format. Use YYYY-MM-DD.")
    try:
        date.fromisoformat(chart_date)
    except ValueError as exc:
        raise InputValidationError(message=f"Invalid date: {chart_date}") from exc
    return chart_date


class ChartService:
    """Chart aggregation for ingestion and cached chart lookups for the API.

    Parameters
    ----------
    chart_feed:
        Provider for the published charts.
    cache:
        Optional cache for browse lookups.  ``load_aggregates`` is never
        cached: every ingestion run folds a fresh copy of the feed.
    recent_ttl:
        Seconds the latest chart stays cached.
    archive_ttl:
        Seconds a dated chart or the valid-dates list stays cached.
    """

    def __init__(
        self,
        chart_feed: IChartFeedProvider,
        cache: ICacheProvider | None = None,
        recent_ttl: int = 3600,
        archive_ttl: int = 86400,
    ) -> None:
        self._chart_feed = chart_feed
        self._cache = cache
        self._recent_ttl = recent_ttl
        self._archive_ttl = archive_ttl

    async def load_aggregates(self) -> dict[str, SongChartAggregate]:
        """Fetch every published chart and fold it.

        Any feed failure propagates (``UpstreamUnavailableError``); no
        partial aggregate is ever returned.
        """
        snapshots = await self._chart_feed.fetch_all_charts()
        aggregates = fold_chart_snapshots(snapshots)
        logger.info(
            "chart_aggregates_built",
            provider=self._chart_feed.get_provider_name(),
            charts=len(snapshots),
            songs=len(aggregates),
        )
        return aggregates

    async def recent_chart(self) -> ChartSnapshot:
        """Return the latest published chart."""
        return await self._cached(
            "billboard:recent", self._recent_ttl, self._chart_feed.fetch_recent
        )

    async def chart_for_date(self, chart_date: str) -> ChartSnapshot:
        """Return the chart for *chart_date* (``YYYY-MM-DD``).

        Raises
        ------
        InputValidationError
            If the date is malformed.
        NotFoundError
            If no chart was published that day.
        """
        validate_chart_date(chart_date)
        return await self._cached(
            f"billboard:date:{chart_date}",
            self._archive_ttl,
            lambda: self._chart_feed.fetch_chart(chart_date),
        )

    async def valid_dates(self) -> list[str]:
        """Return every date with a published chart."""
        return await self._cached(
            "billboard:valid_dates", self._archive_ttl, self._chart_feed.fetch_valid_dates
        )

    async def _cached(self, key, ttl, fetch):  # noqa: ANN001, ANN202
        if self._cache is not None:
            hit = await self._cache.get(key)
            if hit is not None:
                return hit
        value = await fetch()
        if self._cache is not None:
            await self._cache.set(key, value, ttl=ttl)
        return value
