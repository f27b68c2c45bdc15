"""Shared pytest fixtures for the tunefeed test suite."""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from src.interfaces.chart_feed_provider import IChartFeedProvider
from src.interfaces.curated_store_provider import ICuratedStoreProvider
from src.interfaces.reference_catalog_provider import IReleaseLookupProvider
from src.models.catalog import CuratedArtist, CuratedRecording, RecordingCandidate, ReleaseCandidate
from src.models.chart import ChartEntry, ChartSnapshot
from src.providers.curated.sqlite_curated_store import SQLiteCuratedStoreProvider
from src.providers.library.sqlite_library_provider import SQLiteLibraryProvider
from src.providers.reference.sqlite_reference_provider import SQLiteReferenceCatalogProvider
from src.providers.store.connection_pool import SQLiteConnectionPool

# ---------------------------------------------------------------------------
# Model builders
# ---------------------------------------------------------------------------


@pytest.fixture
def make_candidate() -> Callable[..., RecordingCandidate]:
    """Build a RecordingCandidate with an artist credit and sensible defaults."""

    def _make(
        recording_id: str,
        title: str = "Song",
        artist_id: str | None = "a-1",
        artist_name: str | None = "Artist",
        **overrides: Any,
    ) -> RecordingCandidate:
        return RecordingCandidate(
            recording_id=recording_id,
            title=title,
            primary_artist_id=artist_id,
            primary_artist_name=artist_name,
            **overrides,
        )

    return _make


@pytest.fixture
def make_curated() -> Callable[..., CuratedRecording]:
    """Build a CuratedRecording; ``composite_popularity`` defaults to 0."""

    def _make(
        recording_id: str,
        artist_id: str = "a-1",
        title: str | None = None,
        **overrides: Any,
    ) -> CuratedRecording:
        data: dict[str, Any] = {
            "mb_recording_id": recording_id,
            "title": title or f"Title {recording_id}",
            "primary_artist_id": artist_id,
            "primary_artist_name": f"Artist {artist_id}",
            "composite_popularity": 0.0,
        }
        data.update(overrides)
        return CuratedRecording(**data)

    return _make


def _entry(title: str, artist: str, peak: int, rank: int | None = None) -> ChartEntry:
    return ChartEntry(
        song_title=title,
        artist_name=artist,
        peak_position=peak,
        rank_this_period=rank or peak,
    )


@pytest.fixture
def chart_snapshots() -> list[ChartSnapshot]:
    """Two weekly charts matching the seeded reference mirror.

    Folded, they give ``song x_by_artist y`` two weeks with best peak 3,
    ``anthem_by_the band`` one week at 40 and the featured credit one week
    at 20.
    """
    return [
        ChartSnapshot(
            date="2023-01-07",
            entries=[
                _entry("Song X", "Artist Y", 10),
                _entry("Anthem", "The Band", 40),
                _entry("Duet", "Artist Y feat. Feature Guest", 20),
            ],
        ),
        ChartSnapshot(
            date="2023-01-14",
            entries=[_entry("Song X", "Artist Y", 3)],
        ),
    ]


# ---------------------------------------------------------------------------
# Mock providers
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_chart_feed(chart_snapshots: list[ChartSnapshot]) -> IChartFeedProvider:
    """Mock IChartFeedProvider serving ``chart_snapshots``."""
    mock = MagicMock(spec=IChartFeedProvider)
    mock.get_provider_name.return_value = "mock-charts"
    mock.fetch_all_charts = AsyncMock(return_value=chart_snapshots)
    mock.fetch_recent = AsyncMock(return_value=chart_snapshots[-1])
    mock.fetch_chart = AsyncMock(return_value=chart_snapshots[0])
    mock.fetch_valid_dates = AsyncMock(return_value=[s.date for s in chart_snapshots])
    return mock


@pytest.fixture
def mock_release_lookup() -> IReleaseLookupProvider:
    """Mock IReleaseLookupProvider; every recording has one 2001 release by default."""
    mock = MagicMock(spec=IReleaseLookupProvider)
    mock.get_provider_name.return_value = "mock-releases"
    mock.fetch_releases = AsyncMock(
        side_effect=lambda recording_id: [
            ReleaseCandidate(
                release_id=f"rel-{recording_id}",
                release_group_id=f"rg-{recording_id}",
                year=2001,
                status="Official",
                has_cover_art=True,
            )
        ]
    )
    return mock


@pytest.fixture
def mock_curated_store() -> ICuratedStoreProvider:
    """Mock ICuratedStoreProvider with empty reads and counted writes."""
    mock = MagicMock(spec=ICuratedStoreProvider)
    mock.get_provider_name.return_value = "mock-curated"
    mock.initialize = AsyncMock()
    mock.clear = AsyncMock(return_value=0)
    mock.upsert_batch = AsyncMock(side_effect=lambda table, rows: len(rows))
    mock.find_recordings_by_artists = AsyncMock(return_value=[])
    mock.get_recordings = AsyncMock(return_value=[])
    mock.get_artist = AsyncMock(return_value=None)
    mock.count = AsyncMock(return_value=0)
    return mock


# ---------------------------------------------------------------------------
# SQLite stores (temporary databases)
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def pool_factory(tmp_path: Path) -> AsyncIterator[Callable[..., Awaitable[SQLiteConnectionPool]]]:
    """Open pools on temp databases; every pool is closed at teardown."""
    pools: list[SQLiteConnectionPool] = []

    async def _open(name: str = "test", size: int = 2, query_timeout: float = 5.0) -> SQLiteConnectionPool:
        pool = SQLiteConnectionPool(
            tmp_path / f"{name}.db", size=size, query_timeout=query_timeout, name=name
        )
        await pool.open()
        pools.append(pool)
        return pool

    yield _open

    for pool in pools:
        await pool.close()


@pytest_asyncio.fixture
async def curated_store(pool_factory) -> SQLiteCuratedStoreProvider:  # noqa: ANN001
    store = SQLiteCuratedStoreProvider(await pool_factory("serving"))
    await store.initialize()
    return store


@pytest_asyncio.fixture
async def library_provider(pool_factory) -> SQLiteLibraryProvider:  # noqa: ANN001
    provider = SQLiteLibraryProvider(await pool_factory("library"))
    await provider.initialize()
    return provider


# ─── Reference mirror seed ────────────────────────────────────────────
#
#   rec-1  "Song X"   by Artist Y        charted 2 wks, peak 3   -> score 1
#   rec-2  "song x"   by Artist Y        same song key as rec-1  -> duplicate
#   rec-3  "Anthem"   by The Band        app 5, 1 wk at 40       -> score 12
#   rec-4  "Duet"     by Artist Y feat.  1 wk at 20              -> score -18
#   rec-5  "Lonely"   credit w/o artist                          -> skipped
#   rec-6  "Deep Cut" by The Band        never charted           -> score -101
#
# rec-1 appears on rel-1 (2001, official, no art), rel-2 (2001, official,
# art) and rel-4 (no year); rel-2 is its earliest release.  rec-3 appears
# on rel-5 (1995).  rec-4 and rec-6 are on no release.
# ──────────────────────────────────────────────────────────────────────

REFERENCE_ROWS: dict[str, list[tuple]] = {
    "artist_type": [(1, "Person"), (2, "Group")],
    "gender": [(1, "Male"), (2, "Female")],
    "artist": [
        (1, "a-1", "Artist Y", "Y, Artist", "", 1, 1),
        (2, "a-2", "The Band", "Band, The", "UK rock band", 2, None),
        (3, "a-3", "Feature Guest", "Guest, Feature", "", 1, 2),
    ],
    "artist_credit": [
        (1, "Artist Y"),
        (2, "The Band"),
        (3, "Artist Y feat. Feature Guest"),
        (4, "Orphan Credit"),
    ],
    "artist_credit_name": [
        (1, 0, 1, "Artist Y"),
        (2, 0, 2, "The Band"),
        (3, 0, 1, "Artist Y"),
        (3, 1, 3, "Feature Guest"),
    ],
    "recording": [
        (1, "rec-1", "Song X", 1, 215000, "", 0, 0),
        (2, "rec-2", "song x", 1, 214000, "radio edit", 0, 0),
        (3, "rec-3", "Anthem", 2, 180000, "", 0, 5),
        (4, "rec-4", "Duet", 3, None, "", 0, 0),
        (5, "rec-5", "Lonely", 4, None, "", 0, 9),
        (6, "rec-6", "Deep Cut", 2, None, "", 1, 0),
    ],
    "isrc": [(1, 1, "USX100000001"), (2, 1, "USX100000002"), (3, 3, "GBA100000001")],
    "release_group_primary_type": [(1, "Album"), (2, "Single")],
    "release_group": [
        (1, "rg-1", "Song X", 2, ""),
        (2, "rg-2", "Greatest Hits", 1, "compilation"),
        (3, "rg-3", "Anthems", 1, ""),
    ],
    "release_status": [(1, "Official"), (2, "Bootleg")],
    "release": [
        (1, "rel-1", "Song X", 1, 1),
        (2, "rel-2", "Song X", 1, 1),
        (4, "rel-4", "Greatest Hits", 2, 1),
        (5, "rel-5", "Anthems", 3, 1),
    ],
    "release_meta": [(1, "absent"), (2, "present"), (4, "present"), (5, "absent")],
    "release_first_release_date": [
        (1, 2001, 3, 1),
        (2, 2001, 3, 1),
        (4, None, None, None),
        (5, 1995, None, None),
    ],
    "medium": [(1, 1), (2, 2), (3, 4), (4, 5)],
    "track": [(1, 1, 1), (2, 1, 2), (3, 1, 3), (4, 2, 3), (5, 3, 4)],
}


async def seed_reference(pool: SQLiteConnectionPool) -> None:
    for table, rows in REFERENCE_ROWS.items():
        placeholders = ", ".join("?" for _ in rows[0])
        await pool.execute_many(f"INSERT INTO {table} VALUES ({placeholders})", rows)


@pytest_asyncio.fixture
async def reference_provider(pool_factory) -> SQLiteReferenceCatalogProvider:  # noqa: ANN001
    """SQLiteReferenceCatalogProvider over the seeded mirror above."""
    pool = await pool_factory("reference")
    provider = SQLiteReferenceCatalogProvider(pool)
    await provider.initialize()
    await seed_reference(pool)
    return provider


@pytest.fixture
def sample_artist() -> CuratedArtist:
    return CuratedArtist(mb_artist_id="a-1", name="Artist Y", sort_name="Y, Artist", type="Person")
