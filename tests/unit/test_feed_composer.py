"""Unit tests for FeedComposer."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from src.models.catalog import CuratedArtist
from src.services.feed_composer import FeedComposer
from src.utils.errors import NotFoundError, StoreTimeoutError


def _charted(make_curated, recording_id: str, artist_id: str, weeks: int, peak: int, **kw):  # noqa: ANN001, ANN202
    """Curated row whose chart-only score is ``2 * weeks - peak``."""
    return make_curated(
        recording_id,
        artist_id=artist_id,
        billboard_weeks_on_chart=weeks,
        billboard_peak_pos=peak,
        **kw,
    )


# ======================================================================
# compose
# ======================================================================


class TestCompose:
    @pytest.mark.asyncio
    async def test_only_engaged_artists_are_ranked(
        self, mock_curated_store, make_curated  # noqa: ANN001
    ) -> None:
        mock_curated_store.find_recordings_by_artists = AsyncMock(
            return_value=[
                _charted(make_curated, "r-a5", "A", weeks=3, peak=1),
                _charted(make_curated, "r-b99", "B", weeks=50, peak=1),
                _charted(make_curated, "r-a20", "A", weeks=11, peak=2),
            ]
        )
        items = await FeedComposer(mock_curated_store).compose("user-1", {"A"})

        assert [(i.primary_artist_id, i.calculated_popularity) for i in items] == [
            ("A", 20.0),
            ("A", 5.0),
        ]

    @pytest.mark.asyncio
    async def test_empty_engaged_set_skips_the_store(self, mock_curated_store) -> None:  # noqa: ANN001
        assert await FeedComposer(mock_curated_store).compose("user-1", set()) == []
        mock_curated_store.find_recordings_by_artists.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_blank_artist_ids_count_as_empty(self, mock_curated_store) -> None:  # noqa: ANN001
        assert await FeedComposer(mock_curated_store).compose("user-1", ["", None]) == []
        mock_curated_store.find_recordings_by_artists.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_store_query_is_capped(self, mock_curated_store) -> None:  # noqa: ANN001
        await FeedComposer(mock_curated_store, query_cap=7).compose("u", ["B", "A", "A"])
        mock_curated_store.find_recordings_by_artists.assert_awaited_once_with(["A", "B"], 7)

    @pytest.mark.asyncio
    async def test_result_is_truncated(self, mock_curated_store, make_curated) -> None:  # noqa: ANN001
        mock_curated_store.find_recordings_by_artists = AsyncMock(
            return_value=[_charted(make_curated, f"r{i}", "A", weeks=i, peak=1) for i in range(10)]
        )
        composer = FeedComposer(mock_curated_store, result_limit=4)

        default = await composer.compose("u", {"A"})
        assert [i.mb_recording_id for i in default] == ["r9", "r8", "r7", "r6"]
        assert len(await composer.compose("u", {"A"}, limit=2)) == 2

    @pytest.mark.asyncio
    async def test_ties_broken_by_recording_id(self, mock_curated_store, make_curated) -> None:  # noqa: ANN001
        mock_curated_store.find_recordings_by_artists = AsyncMock(
            return_value=[make_curated("r-z", "A"), make_curated("r-a", "A")]
        )
        items = await FeedComposer(mock_curated_store).compose("u", {"A"})
        assert [i.mb_recording_id for i in items] == ["r-a", "r-z"]

    @pytest.mark.asyncio
    async def test_app_popularity_ignored_by_default(
        self, mock_curated_store, make_curated  # noqa: ANN001
    ) -> None:
        mock_curated_store.find_recordings_by_artists = AsyncMock(
            return_value=[_charted(make_curated, "r1", "A", weeks=2, peak=3, app_popularity=4)]
        )
        chart_only = await FeedComposer(mock_curated_store).compose("u", {"A"})
        with_app = await FeedComposer(mock_curated_store, include_app_popularity=True).compose(
            "u", {"A"}
        )
        assert chart_only[0].calculated_popularity == 1.0
        assert with_app[0].calculated_popularity == 41.0

    @pytest.mark.asyncio
    async def test_release_group_art_fallback(self, mock_curated_store, make_curated) -> None:  # noqa: ANN001
        mock_curated_store.find_recordings_by_artists = AsyncMock(
            return_value=[
                make_curated("r1", "A", mb_release_group_id="rg-1"),
                make_curated("r2", "A", album_art_url="https://img/r2.jpg", mb_release_group_id="rg-2"),
                make_curated("r3", "A"),
            ]
        )
        items = {i.mb_recording_id: i for i in await FeedComposer(mock_curated_store).compose("u", {"A"})}
        assert items["r1"].album_art_url == "https://coverartarchive.org/release-group/rg-1/front-250"
        assert items["r2"].album_art_url == "https://img/r2.jpg"
        assert items["r3"].album_art_url is None

    @pytest.mark.asyncio
    async def test_store_timeout_propagates(self, mock_curated_store) -> None:  # noqa: ANN001
        mock_curated_store.find_recordings_by_artists = AsyncMock(side_effect=StoreTimeoutError())
        with pytest.raises(StoreTimeoutError):
            await FeedComposer(mock_curated_store).compose("u", {"A"})


# ======================================================================
# Artist pages
# ======================================================================


class TestArtistLookups:
    @pytest.mark.asyncio
    async def test_artist_songs_ranked(self, mock_curated_store, make_curated) -> None:  # noqa: ANN001
        mock_curated_store.find_recordings_by_artists = AsyncMock(
            return_value=[
                _charted(make_curated, "r1", "A", weeks=1, peak=50),
                _charted(make_curated, "r2", "A", weeks=10, peak=1),
            ]
        )
        songs = await FeedComposer(mock_curated_store).artist_songs("A", limit=5)
        assert [s.mb_recording_id for s in songs] == ["r2", "r1"]
        mock_curated_store.find_recordings_by_artists.assert_awaited_once_with(["A"], 5)

    @pytest.mark.asyncio
    async def test_artist_without_songs_is_not_found(self, mock_curated_store) -> None:  # noqa: ANN001
        with pytest.raises(NotFoundError):
            await FeedComposer(mock_curated_store).artist_songs("nobody")

    @pytest.mark.asyncio
    async def test_artist(self, mock_curated_store, sample_artist: CuratedArtist) -> None:  # noqa: ANN001
        mock_curated_store.get_artist = AsyncMock(return_value=sample_artist)
        assert await FeedComposer(mock_curated_store).artist("a-1") == sample_artist

    @pytest.mark.asyncio
    async def test_unknown_artist(self, mock_curated_store) -> None:  # noqa: ANN001
        with pytest.raises(NotFoundError, match="Artist not found"):
            await FeedComposer(mock_curated_store).artist("missing")
