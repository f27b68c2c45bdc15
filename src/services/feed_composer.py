"""Request-time feed composition.

Given the artists a user has engaged with (derived from their archived
songs), the composer:

  1. returns ``[]`` straight away when there are no engaged artists;
  2. reads at most ``query_cap`` curated recordings whose primary artist
     is in the engaged set (one value-in-set query);
  3. re-scores each row with the shared popularity function;
  4. drops any row not linked to an engaged artist;
  5. sorts by score descending (ties by recording id) and truncates;
  6. falls back to release-group artwork when a row has no album art.

The composer is read-only and holds no per-request state, so concurrent
requests share one instance.  Store timeouts and outages propagate
unchanged; there is no stale or degraded fallback.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from src.interfaces.curated_store_provider import ICuratedStoreProvider
from src.models.catalog import CuratedArtist, CuratedRecording
from src.models.library import FeedItem
from src.services.artwork import release_group_art_url
from src.services.popularity import score_curated
from src.utils.errors import NotFoundError

logger = structlog.get_logger(logger_name=__name__)


class FeedComposer:
    """Ranks curated recordings for a user's feed and for artist pages.

    Parameters
    ----------
    store:
        Curated serving store.
    query_cap:
        Maximum rows read from the store per feed request.
    result_limit:
        Default number of feed items returned.
    include_app_popularity:
        Whether request-time scoring counts ``app_popularity``.  Off by
        default: served rankings then depend on chart data only.
    """

    def __init__(
        self,
        store: ICuratedStoreProvider,
        query_cap: int = 100,
        result_limit: int = 50,
        include_app_popularity: bool = False,
    ) -> None:
        self._store = store
        self._query_cap = query_cap
        self._result_limit = result_limit
        self._include_app_popularity = include_app_popularity

    async def compose(
        self,
        user_id: str,
        engaged_artist_ids: Iterable[str],
        limit: int | None = None,
    ) -> list[FeedItem]:
        """Return the user's feed, most popular first."""
        engaged = {artist_id for artist_id in engaged_artist_ids if artist_id}
        if not engaged:
            logger.info("feed_empty_no_engaged_artists", user_id=user_id)
            return []

        bound = self._result_limit if limit is None else limit
        rows = await self._store.find_recordings_by_artists(sorted(engaged), self._query_cap)
        items = self.rank(r for r in rows if r.primary_artist_id in engaged)[:bound]

        logger.info(
            "feed_composed",
            user_id=user_id,
            engaged_artists=len(engaged),
            rows_read=len(rows),
            items=len(items),
        )
        return items

    async def artist_songs(self, artist_id: str, limit: int = 100) -> list[FeedItem]:
        """Return an artist's curated recordings, most popular first.

        Raises
        ------
        NotFoundError
            If the artist has no curated recordings.
        """
        rows = await self._store.find_recordings_by_artists([artist_id], limit)
        items = self.rank(r for r in rows if r.primary_artist_id == artist_id)
        if not items:
            raise NotFoundError(message=f"No curated songs for artist {artist_id}")
        return items

    async def artist(self, artist_id: str) -> CuratedArtist:
        """Return one curated artist.

        Raises
        ------
        NotFoundError
            If the artist is not part of the curated generation.
        """
        found = await self._store.get_artist(artist_id)
        if found is None:
            raise NotFoundError(message="Artist not found")
        return found

    def rank(self, recordings: Iterable[CuratedRecording]) -> list[FeedItem]:
        """Score *recordings* and sort them, most popular first."""
        items = [self._to_item(r) for r in recordings]
        items.sort(key=lambda item: (-item.calculated_popularity, item.mb_recording_id))
        return items

    def _to_item(self, recording: CuratedRecording) -> FeedItem:
        return FeedItem(
            mb_recording_id=recording.mb_recording_id,
            title=recording.title,
            primary_artist_id=recording.primary_artist_id,
            primary_artist_name=recording.primary_artist_name,
            mb_release_group_id=recording.mb_release_group_id,
            earliest_release_year=recording.earliest_release_year,
            album_art_url=recording.album_art_url
            or release_group_art_url(recording.mb_release_group_id),
            app_popularity=recording.app_popularity,
            billboard_peak_pos=recording.billboard_peak_pos,
            billboard_weeks_on_chart=recording.billboard_weeks_on_chart,
            calculated_popularity=score_curated(recording, self._include_app_popularity),
        )
