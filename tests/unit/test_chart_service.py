"""Unit tests for chart folding, chart date validation and ChartService."""

from __future__ import annotations

import itertools
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.interfaces.chart_feed_provider import IChartFeedProvider
from src.models.chart import ChartEntry, ChartSnapshot, SongChartAggregate
from src.providers.cache.memory_cache import MemoryCacheProvider
from src.services.chart_service import ChartService, fold_chart_snapshots, validate_chart_date
from src.services.popularity import composite_popularity
from src.utils.errors import InputValidationError, NotFoundError, UpstreamUnavailableError


def _snapshot(chart_date: str, *entries: tuple[str, str, int]) -> ChartSnapshot:
    return ChartSnapshot(
        date=chart_date,
        entries=[
            ChartEntry(song_title=t, artist_name=a, peak_position=p, rank_this_period=p)
            for t, a, p in entries
        ],
    )


# ======================================================================
# fold_chart_snapshots
# ======================================================================


class TestFoldChartSnapshots:
    def test_two_weeks_for_song_x(self) -> None:
        aggregates = fold_chart_snapshots(
            [
                _snapshot("2023-01-07", ("Song X", "Artist Y", 10)),
                _snapshot("2023-01-14", ("Song X", "Artist Y", 3)),
            ]
        )
        agg = aggregates["song x_by_artist y"]
        assert agg == SongChartAggregate(total_weeks_charted=2, best_peak_position=3)
        assert composite_popularity(0, agg.best_peak_position, agg.total_weeks_charted) == 1.0

    def test_case_variants_share_a_key(self) -> None:
        aggregates = fold_chart_snapshots(
            [
                _snapshot("2023-01-07", ("SONG X", "artist y", 8)),
                _snapshot("2023-01-14", ("Song X", "Artist Y", 9)),
            ]
        )
        assert list(aggregates) == ["song x_by_artist y"]
        assert aggregates["song x_by_artist y"].total_weeks_charted == 2

    def test_order_does_not_matter(self, chart_snapshots: list[ChartSnapshot]) -> None:
        results = [fold_chart_snapshots(p) for p in itertools.permutations(chart_snapshots)]
        assert all(r == results[0] for r in results)

    def test_weeks_equal_number_of_snapshots_containing_key(self) -> None:
        snapshots = [
            _snapshot("2023-01-07", ("A", "X", 5), ("B", "Y", 1)),
            _snapshot("2023-01-14", ("A", "X", 4)),
            _snapshot("2023-01-21", ("A", "X", 7), ("B", "Y", 2)),
        ]
        aggregates = fold_chart_snapshots(snapshots)
        assert aggregates["a_by_x"].total_weeks_charted == 3
        assert aggregates["b_by_y"].total_weeks_charted == 2

    def test_best_peak_is_minimum_seen(self) -> None:
        aggregates = fold_chart_snapshots(
            [
                _snapshot("d1", ("A", "X", 50)),
                _snapshot("d2", ("A", "X", 12)),
                _snapshot("d3", ("A", "X", 30)),
            ]
        )
        assert aggregates["a_by_x"].best_peak_position == 12

    def test_folding_the_same_snapshot_twice_counts_twice(self) -> None:
        snap = _snapshot("2023-01-07", ("A", "X", 5))
        assert fold_chart_snapshots([snap, snap])["a_by_x"].total_weeks_charted == 2

    def test_extends_previous_aggregates_without_mutating_them(self) -> None:
        first = fold_chart_snapshots([_snapshot("d1", ("A", "X", 20))])
        combined = fold_chart_snapshots([_snapshot("d2", ("A", "X", 5))], first)
        assert combined["a_by_x"] == SongChartAggregate(total_weeks_charted=2, best_peak_position=5)
        assert first["a_by_x"].total_weeks_charted == 1

    def test_empty_input(self) -> None:
        assert fold_chart_snapshots([]) == {}


# ======================================================================
# validate_chart_date
# ======================================================================


class TestValidateChartDate:
    def test_accepts_iso_date(self) -> None:
        assert validate_chart_date("2024-02-03") == "2024-02-03"

    @pytest.mark.parametrize("bad", ["2024-2-3", "20240203", "yesterday", "2024-02-03T00:00", ""])
    def test_rejects_malformed(self, bad: str) -> None:
        with pytest.raises(InputValidationError, match="YYYY-MM-DD"):
            validate_chart_date(bad)

    def test_rejects_impossible_date(self) -> None:
        with pytest.raises(InputValidationError):
            validate_chart_date("2024-02-30")


# ======================================================================
# ChartService
# ======================================================================


class TestChartService:
    @pytest.mark.asyncio
    async def test_load_aggregates_folds_every_chart(self, mock_chart_feed) -> None:  # noqa: ANN001
        aggregates = await ChartService(mock_chart_feed).load_aggregates()
        assert aggregates["song x_by_artist y"].total_weeks_charted == 2
        assert aggregates["anthem_by_the band"].best_peak_position == 40
        mock_chart_feed.fetch_all_charts.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_load_aggregates_propagates_feed_failure(self) -> None:
        feed = MagicMock(spec=IChartFeedProvider)
        feed.get_provider_name.return_value = "mock"
        feed.fetch_all_charts = AsyncMock(side_effect=UpstreamUnavailableError("down"))
        with pytest.raises(UpstreamUnavailableError):
            await ChartService(feed).load_aggregates()

    @pytest.mark.asyncio
    async def test_bad_date_rejected_before_fetch(self, mock_chart_feed) -> None:  # noqa: ANN001
        with pytest.raises(InputValidationError):
            await ChartService(mock_chart_feed).chart_for_date("03/02/2024")
        mock_chart_feed.fetch_chart.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_chart_is_not_found(self, mock_chart_feed) -> None:  # noqa: ANN001
        mock_chart_feed.fetch_chart = AsyncMock(side_effect=NotFoundError("no chart"))
        with pytest.raises(NotFoundError):
            await ChartService(mock_chart_feed).chart_for_date("1900-01-01")

    @pytest.mark.asyncio
    async def test_browse_lookups_are_cached(self, mock_chart_feed) -> None:  # noqa: ANN001
        service = ChartService(mock_chart_feed, cache=MemoryCacheProvider())
        first = await service.recent_chart()
        second = await service.recent_chart()
        assert first == second
        mock_chart_feed.fetch_recent.assert_awaited_once()

        await service.chart_for_date("2023-01-07")
        await service.chart_for_date("2023-01-07")
        mock_chart_feed.fetch_chart.assert_awaited_once_with("2023-01-07")

        assert await service.valid_dates() == ["2023-01-07", "2023-01-14"]
        await service.valid_dates()
        mock_chart_feed.fetch_valid_dates.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_without_cache_every_call_fetches(self, mock_chart_feed) -> None:  # noqa: ANN001
        service = ChartService(mock_chart_feed)
        await service.recent_chart()
        await service.recent_chart()
        assert mock_chart_feed.fetch_recent.await_count == 2

    @pytest.mark.asyncio
    async def test_aggregates_are_never_cached(self, mock_chart_feed) -> None:  # noqa: ANN001
        service = ChartService(mock_chart_feed, cache=MemoryCacheProvider())
        await service.load_aggregates()
        await service.load_aggregates()
        assert mock_chart_feed.fetch_all_charts.await_count == 2
