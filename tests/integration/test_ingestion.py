"""End-to-end ingestion: chart feed + seeded reference mirror -> curated
serving store -> feed."""

from __future__ import annotations

from pathlib import Path

import pytest

from src.interfaces.curated_store_provider import CuratedTable
from src.models.pipeline import IngestionPhase
from src.pipeline.ingestion_pipeline import IngestionPipeline
from src.services.chart_service import ChartService
from src.services.curator import CatalogCurator
from src.services.feed_composer import FeedComposer
from src.services.store_loader import CuratedStoreLoader


def _pipeline(reference_provider, mock_chart_feed, curated_store, max_songs: int = 3) -> IngestionPipeline:  # noqa: ANN001
    return IngestionPipeline(
        ChartService(mock_chart_feed),
        CatalogCurator(reference_provider, reference_provider, page_size=2, enrichment_batch_size=2),
        CuratedStoreLoader(curated_store, batch_size=2),
        max_songs=max_songs,
    )


class TestIngestionEndToEnd:
    @pytest.mark.asyncio
    async def test_run_populates_serving_store(
        self, reference_provider, mock_chart_feed, curated_store  # noqa: ANN001
    ) -> None:
        report = await _pipeline(reference_provider, mock_chart_feed, curated_store).run()

        assert report.phase is IngestionPhase.COMPLETE
        assert report.chart_songs == 3
        assert (report.recordings, report.artists, report.release_groups) == (3, 2, 2)
        assert report.load.rows_written == {
            "mb_curated_artists": 2,
            "mb_curated_release_groups": 2,
            "mb_curated_recordings": 3,
        }
        assert await curated_store.count(CuratedTable.RECORDINGS) == 3

        [song_x] = await curated_store.get_recordings(["rec-1"])
        assert song_x.composite_popularity == 1.0
        assert song_x.billboard_weeks_on_chart == 2
        assert song_x.billboard_peak_pos == 3
        assert song_x.mb_earliest_release_id == "rel-2"

    @pytest.mark.asyncio
    async def test_feed_over_loaded_generation(
        self, reference_provider, mock_chart_feed, curated_store  # noqa: ANN001
    ) -> None:
        await _pipeline(reference_provider, mock_chart_feed, curated_store).run()

        items = await FeedComposer(curated_store).compose("user-1", {"a-1"})

        assert [(i.mb_recording_id, i.calculated_popularity) for i in items] == [
            ("rec-1", 1.0),
            ("rec-4", -18.0),
        ]
        assert items[1].album_art_url is None

    @pytest.mark.asyncio
    async def test_rerun_replaces_the_generation(
        self, reference_provider, mock_chart_feed, curated_store  # noqa: ANN001
    ) -> None:
        await _pipeline(reference_provider, mock_chart_feed, curated_store, max_songs=10).run()
        assert await curated_store.count(CuratedTable.RECORDINGS) == 4

        await _pipeline(reference_provider, mock_chart_feed, curated_store, max_songs=1).run()

        assert await curated_store.count(CuratedTable.RECORDINGS) == 1
        assert await curated_store.count(CuratedTable.ARTISTS) == 1
        assert await curated_store.get_artist("a-1") is None
        assert (await curated_store.get_artist("a-2")).disambiguation == "UK rock band"

    @pytest.mark.asyncio
    async def test_curate_then_load_artifacts(
        self, reference_provider, mock_chart_feed, curated_store, tmp_path: Path  # noqa: ANN001
    ) -> None:
        pipeline = _pipeline(reference_provider, mock_chart_feed, curated_store)
        curated = await pipeline.run(out_dir=tmp_path / "export", load=False)
        assert await curated_store.count(CuratedTable.RECORDINGS) == 0
        assert curated.export_dir == str(tmp_path / "export")

        loaded = await pipeline.load_artifacts(tmp_path / "export")

        assert loaded.recordings == 3
        assert await curated_store.count(CuratedTable.RECORDINGS) == 3
        assert await curated_store.count(CuratedTable.RELEASE_GROUPS) == 2
