"""FastAPI API routes for tunefeed.

Provides REST endpoints for the user feed, song archiving, library
listings, artist pages and chart passthroughs, plus a health check.
Service dependencies are resolved from ``app.state`` via FastAPI's
``Depends`` using the ``Annotated`` pattern.

# ─── API ROUTE MAP ────────────────────────────────────────────────────
#
# Endpoint                                   Method  Description
# ─────────────────────────────────────────────────────────────────────
# /api/v1/music/user-feed                    GET     Ranked feed from engaged artists
# /api/v1/music/archive-song                 POST    Save a curated song (201)
# /api/v1/music/my-archived-songs            GET     Archived songs, newest first
# /api/v1/music/my-library-details           GET     Archived songs + curated data
# /api/v1/music/artist/{artist_id}           GET     Curated artist details
# /api/v1/music/artist/{artist_id}/songs     GET     Artist's songs by popularity
# /api/v1/music/billboard/recent             GET     Most recent chart
# /api/v1/music/billboard/date/{chart_date}  GET     Chart for one date
# /api/v1/music/billboard/valid-dates        GET     Dates a chart exists for
# /api/v1/health                             GET     Health check + provider status
#
# Application errors raised by services (NotFoundError, DuplicateEntryError,
# StoreTimeoutError, ...) are not caught here; ErrorHandlingMiddleware
# turns them into status codes.
#
# Authentication happens upstream.  The authenticated caller's id
# arrives in the X-User-Id header; user-scoped routes reject requests
# without it.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request

from src.api.schemas import (
    ArchivedSongsResponse,
    ArchiveSongRequest,
    ArchiveSongResponse,
    ArtistResponse,
    ArtistSongsResponse,
    ChartResponse,
    ErrorResponse,
    FeedResponse,
    HealthResponse,
    LibraryDetailsResponse,
    ValidDatesResponse,
)
from src.providers.store.connection_pool import PoolState
from src.services.chart_service import ChartService
from src.services.feed_composer import FeedComposer
from src.services.library_service import LibraryService
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

API_VERSION = "0.1.0"

router = APIRouter(prefix="/api/v1")
music = APIRouter(prefix="/music", tags=["music"])


# ---------------------------------------------------------------------------
# Dependency injection helpers -- resolve singletons from app.state
# ---------------------------------------------------------------------------


def _get_feed_composer(request: Request) -> FeedComposer:
    """Return the feed composer from application state."""
    return request.app.state.feed_composer


def _get_library_service(request: Request) -> LibraryService:
    """Return the library service from application state."""
    return request.app.state.library_service


def _get_chart_service(request: Request) -> ChartService:
    """Return the chart service from application state."""
    return request.app.state.chart_service


def _get_user_id(x_user_id: Annotated[str | None, Header()] = None) -> str:
    """Return the authenticated caller's id from the ``X-User-Id`` header."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="User not authenticated")
    return x_user_id.strip()


FeedComposerDep = Annotated[FeedComposer, Depends(_get_feed_composer)]
LibraryServiceDep = Annotated[LibraryService, Depends(_get_library_service)]
ChartServiceDep = Annotated[ChartService, Depends(_get_chart_service)]
UserIdDep = Annotated[str, Depends(_get_user_id)]

_NOT_FOUND = {404: {"model": ErrorResponse}}


# ---------------------------------------------------------------------------
# Feed and library
# ---------------------------------------------------------------------------


@music.get(
    "/user-feed",
    response_model=FeedResponse,
    summary="Ranked songs by the artists the user has archived",
)
async def user_feed(
    user_id: UserIdDep,
    composer: FeedComposerDep,
    library: LibraryServiceDep,
    limit: Annotated[int | None, Query(ge=1, le=100)] = None,
) -> FeedResponse:
    engaged = await library.engaged_artist_ids(user_id)
    items = await composer.compose(user_id, engaged, limit=limit)
    return FeedResponse(items=items)


@music.post(
    "/archive-song",
    response_model=ArchiveSongResponse,
    status_code=201,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
    summary="Archive a curated song to the user's library",
)
async def archive_song(
    body: ArchiveSongRequest,
    user_id: UserIdDep,
    library: LibraryServiceDep,
) -> ArchiveSongResponse:
    song = await library.archive_song(
        user_id=user_id,
        mb_recording_id=body.mb_recording_id,
        title=body.title,
        artist_name=body.artist_name,
    )
    _logger.info("song_archived", user_id=user_id, mb_recording_id=song.mb_recording_id)
    return ArchiveSongResponse(song=song)


@music.get(
    "/my-archived-songs",
    response_model=ArchivedSongsResponse,
    summary="The user's archived songs, newest first",
)
async def my_archived_songs(user_id: UserIdDep, library: LibraryServiceDep) -> ArchivedSongsResponse:
    return ArchivedSongsResponse(songs=await library.list_archived_songs(user_id))


@music.get(
    "/my-library-details",
    response_model=LibraryDetailsResponse,
    summary="Archived songs with curated titles, artwork and popularity",
)
async def my_library_details(
    user_id: UserIdDep, library: LibraryServiceDep
) -> LibraryDetailsResponse:
    return LibraryDetailsResponse(entries=await library.library_details(user_id))


# ---------------------------------------------------------------------------
# Artists
# ---------------------------------------------------------------------------


@music.get(
    "/artist/{artist_id}",
    response_model=ArtistResponse,
    responses=_NOT_FOUND,
    summary="Curated artist details",
)
async def artist_details(artist_id: str, composer: FeedComposerDep) -> ArtistResponse:
    return ArtistResponse(artist=await composer.artist(artist_id))


@music.get(
    "/artist/{artist_id}/songs",
    response_model=ArtistSongsResponse,
    responses=_NOT_FOUND,
    summary="An artist's curated songs, most popular first",
)
async def artist_songs(
    artist_id: str,
    composer: FeedComposerDep,
    limit: Annotated[int, Query(ge=1, le=100)] = 100,
) -> ArtistSongsResponse:
    songs = await composer.artist_songs(artist_id, limit=limit)
    return ArtistSongsResponse(artist_id=artist_id, songs=songs)


# ---------------------------------------------------------------------------
# Charts
# ---------------------------------------------------------------------------


@music.get("/billboard/recent", response_model=ChartResponse, summary="Most recent chart")
async def billboard_recent(charts: ChartServiceDep) -> ChartResponse:
    return ChartResponse(chart=await charts.recent_chart())


@music.get(
    "/billboard/date/{chart_date}",
    response_model=ChartResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Chart published on a given date (YYYY-MM-DD)",
)
async def billboard_for_date(chart_date: str, charts: ChartServiceDep) -> ChartResponse:
    return ChartResponse(chart=await charts.chart_for_date(chart_date))


@music.get(
    "/billboard/valid-dates",
    response_model=ValidDatesResponse,
    summary="Every date a chart was published",
)
async def billboard_valid_dates(charts: ChartServiceDep) -> ValidDatesResponse:
    return ValidDatesResponse(dates=await charts.valid_dates())


router.include_router(music)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Report whether each store pool is open."""
    providers: dict[str, Any] = {}
    for name, pool in getattr(request.app.state, "pools", {}).items():
        providers[name] = pool.state.value

    healthy = bool(providers) and all(state == PoolState.READY.value for state in providers.values())
    return HealthResponse(
        status="healthy" if healthy else "unhealthy",
        version=API_VERSION,
        providers=providers,
    )
