"""Integration tests for the tunefeed API over real SQLite stores.

The app is built with ``create_app`` and its services are wired onto
``app.state`` directly (as the lifespan would) so that the stores and the
HTTP client share the test's event loop.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
import pytest
import pytest_asyncio

from src.config.settings import Settings
from src.main import create_app
from src.models.catalog import CuratedArtist, CuratedCatalog, CuratedReleaseGroup
from src.providers.cache.memory_cache import MemoryCacheProvider
from src.providers.curated.sqlite_curated_store import SQLiteCuratedStoreProvider
from src.providers.library.sqlite_library_provider import SQLiteLibraryProvider
from src.services.chart_service import ChartService
from src.services.feed_composer import FeedComposer
from src.services.library_service import LibraryService
from src.services.store_loader import CuratedStoreLoader

USER = {"X-User-Id": "user-1"}


@pytest_asyncio.fixture
async def client(pool_factory, mock_chart_feed, make_curated) -> AsyncIterator[httpx.AsyncClient]:  # noqa: ANN001
    serving = await pool_factory("serving")
    library_pool = await pool_factory("library")
    curated_store = SQLiteCuratedStoreProvider(serving)
    library = SQLiteLibraryProvider(library_pool)
    await curated_store.initialize()
    await library.initialize()

    await CuratedStoreLoader(curated_store, batch_size=2).load(
        CuratedCatalog(
            recordings=[
                make_curated(
                    "rec-1",
                    "a-1",
                    title="Song X",
                    billboard_weeks_on_chart=2,
                    billboard_peak_pos=3,
                    composite_popularity=1.0,
                    mb_release_group_id="rg-1",
                    mb_earliest_release_id="rel-2",
                    earliest_release_year=2001,
                    album_art_url="https://coverartarchive.org/release/rel-2/front-250",
                ),
                make_curated("rec-7", "a-1", title="B-Side", composite_popularity=-101.0, mb_release_group_id="rg-1"),
                make_curated(
                    "rec-3",
                    "a-2",
                    title="Anthem",
                    app_popularity=5,
                    billboard_weeks_on_chart=1,
                    billboard_peak_pos=40,
                    composite_popularity=12.0,
                ),
            ],
            artists=[
                CuratedArtist(mb_artist_id="a-1", name="Artist Y", type="Person"),
                CuratedArtist(mb_artist_id="a-2", name="The Band", type="Group"),
            ],
            release_groups=[CuratedReleaseGroup(mb_release_group_id="rg-1", title="Song X")],
        )
    )

    app = create_app(Settings(app_env="test"))
    app.state.pools = {"serving": serving, "library": library_pool}
    app.state.feed_composer = FeedComposer(curated_store)
    app.state.library_service = LibraryService(library, curated_store)
    app.state.chart_service = ChartService(mock_chart_feed, cache=MemoryCacheProvider())

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http


async def _archive(client: httpx.AsyncClient, recording_id: str = "rec-1", **overrides) -> httpx.Response:  # noqa: ANN003
    body = {"title": "Song X", "artist_name": "Artist Y", "mb_recording_id": recording_id}
    body.update(overrides)
    return await client.post("/api/v1/music/archive-song", json=body, headers=USER)


# ======================================================================
# Archive and library
# ======================================================================


class TestArchiveSong:
    @pytest.mark.asyncio
    async def test_archive_created(self, client: httpx.AsyncClient) -> None:
        response = await _archive(client)
        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Song archived successfully!"
        assert body["song"]["mb_artist_id"] == "a-1"
        assert body["song"]["mb_release_group_id"] == "rg-1"

    @pytest.mark.asyncio
    async def test_archive_twice_conflicts(self, client: httpx.AsyncClient) -> None:
        await _archive(client)
        response = await _archive(client)
        assert response.status_code == 409
        assert response.json()["error"] == "DuplicateEntryError"

    @pytest.mark.asyncio
    async def test_unknown_recording(self, client: httpx.AsyncClient) -> None:
        response = await _archive(client, "rec-404")
        assert response.status_code == 404
        assert response.json()["detail"] == "MusicBrainz Recording ID not found in curated data."

    @pytest.mark.asyncio
    async def test_blank_title(self, client: httpx.AsyncClient) -> None:
        response = await _archive(client, title="")
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_requires_user(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/api/v1/music/archive-song",
            json={"title": "Song X", "artist_name": "Artist Y", "mb_recording_id": "rec-1"},
        )
        assert response.status_code == 401


class TestLibraryEndpoints:
    @pytest.mark.asyncio
    async def test_archived_songs_and_details(self, client: httpx.AsyncClient) -> None:
        await _archive(client, "rec-1")
        await _archive(client, "rec-3", title="Anthem", artist_name="The Band")

        songs = (await client.get("/api/v1/music/my-archived-songs", headers=USER)).json()["songs"]
        assert [s["mb_recording_id"] for s in songs] == ["rec-3", "rec-1"]

        entries = (await client.get("/api/v1/music/my-library-details", headers=USER)).json()["entries"]
        by_id = {e["song"]["mb_recording_id"]: e for e in entries}
        assert by_id["rec-1"]["display_album_art"].endswith("/release/rel-2/front-250")
        assert by_id["rec-1"]["earliest_release_year"] == 2001
        assert by_id["rec-1"]["popularity_score"] == 1.0
        # Chart-only at request time: 2*1 - 40.
        assert by_id["rec-3"]["popularity_score"] == -38.0

    @pytest.mark.asyncio
    async def test_libraries_are_per_user(self, client: httpx.AsyncClient) -> None:
        await _archive(client)
        other = await client.get("/api/v1/music/my-archived-songs", headers={"X-User-Id": "user-2"})
        assert other.json()["songs"] == []


# ======================================================================
# Feed
# ======================================================================


class TestUserFeed:
    @pytest.mark.asyncio
    async def test_new_user_gets_empty_feed(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/v1/music/user-feed", headers=USER)
        assert response.status_code == 200
        assert response.json() == {"items": []}

    @pytest.mark.asyncio
    async def test_feed_follows_engaged_artists(self, client: httpx.AsyncClient) -> None:
        await _archive(client, "rec-1")
        items = (await client.get("/api/v1/music/user-feed", headers=USER)).json()["items"]

        assert [i["mb_recording_id"] for i in items] == ["rec-1", "rec-7"]
        assert [i["calculated_popularity"] for i in items] == [1.0, -101.0]
        assert items[1]["album_art_url"] == "https://coverartarchive.org/release-group/rg-1/front-250"

    @pytest.mark.asyncio
    async def test_feed_limit(self, client: httpx.AsyncClient) -> None:
        await _archive(client, "rec-1")
        limited = await client.get("/api/v1/music/user-feed", params={"limit": 1}, headers=USER)
        assert len(limited.json()["items"]) == 1
        invalid = await client.get("/api/v1/music/user-feed", params={"limit": 0}, headers=USER)
        assert invalid.status_code == 422


# ======================================================================
# Artists
# ======================================================================


class TestArtistEndpoints:
    @pytest.mark.asyncio
    async def test_artist(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/v1/music/artist/a-2")
        assert response.status_code == 200
        assert response.json()["artist"]["name"] == "The Band"

    @pytest.mark.asyncio
    async def test_unknown_artist(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/v1/music/artist/a-404")
        assert response.status_code == 404
        assert response.json()["detail"] == "Artist not found"

    @pytest.mark.asyncio
    async def test_artist_songs(self, client: httpx.AsyncClient) -> None:
        body = (await client.get("/api/v1/music/artist/a-1/songs")).json()
        assert body["artist_id"] == "a-1"
        assert [s["mb_recording_id"] for s in body["songs"]] == ["rec-1", "rec-7"]

    @pytest.mark.asyncio
    async def test_artist_songs_unknown(self, client: httpx.AsyncClient) -> None:
        assert (await client.get("/api/v1/music/artist/a-404/songs")).status_code == 404


# ======================================================================
# Charts and health
# ======================================================================


class TestChartEndpoints:
    @pytest.mark.asyncio
    async def test_recent(self, client: httpx.AsyncClient) -> None:
        body = (await client.get("/api/v1/music/billboard/recent")).json()
        assert body["chart"]["date"] == "2023-01-14"

    @pytest.mark.asyncio
    async def test_by_date(self, client: httpx.AsyncClient) -> None:
        body = (await client.get("/api/v1/music/billboard/date/2023-01-07")).json()
        assert body["chart"]["entries"][0]["song_title"] == "Song X"

    @pytest.mark.asyncio
    async def test_bad_date_is_400(self, client: httpx.AsyncClient, mock_chart_feed) -> None:  # noqa: ANN001
        response = await client.get("/api/v1/music/billboard/date/01-07-2023")
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid date format. Use YYYY-MM-DD."
        mock_chart_feed.fetch_chart.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_valid_dates(self, client: httpx.AsyncClient) -> None:
        body = (await client.get("/api/v1/music/billboard/valid-dates")).json()
        assert body == {"dates": ["2023-01-07", "2023-01-14"]}


class TestHealth:
    @pytest.mark.asyncio
    async def test_healthy(self, client: httpx.AsyncClient) -> None:
        body = (await client.get("/api/v1/health")).json()
        assert body["status"] == "healthy"
        assert body["providers"] == {"serving": "READY", "library": "READY"}

    @pytest.mark.asyncio
    async def test_request_id_header(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/v1/health", headers={"X-Request-ID": "req-1"})
        assert response.headers["X-Request-ID"] == "req-1"
