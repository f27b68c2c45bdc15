"""Catalog curation: from the reference universe to a bounded curated set.

Architecture role: **the batch core of an ingestion run**
----------------------------------------------------------
Reads every recording from the reference metadata store and produces the
three record sets the serving store holds.  Steps, in order:

  1. JOIN      -- attach chart aggregates by ``song_key(title, credit)``;
                  no aggregate means no chart data (``None`` peak/weeks).
  2. SCORE     -- ``composite_popularity`` from src/services/popularity.py.
  3. DEDUPE    -- one recording per lowercased (title, primary artist);
                  highest score wins, ties go to the smallest recording id.
  4. SELECT    -- top ``max_songs`` by score, ties by recording id.
  5. RESOLVE   -- earliest release per selected recording (see
                  :func:`release_sort_key` for the order).
  6. ARTWORK   -- ``album_art_url`` derived from the resolved release.
  7. LOOKUPS   -- the distinct artists and release groups referenced by
                  the selection, fetched with one id-set query each.

Every step is a total function with an explicit tie-break, so two runs
over the same inputs produce the same selection in the same order; no
step relies on the store's row order.

Failure handling:
- Recordings without a primary artist credit are dropped (counted, not
  an error).
- A release lookup that fails for one recording (not found, throttled)
  leaves that recording without a release.  A connection-level failure
  (``UpstreamUnavailableError``) aborts the whole run.
"""

from __future__ import annotations

import asyncio
import heapq
from collections.abc import Iterable, Mapping

import structlog

from src.interfaces.reference_catalog_provider import (
    IReferenceCatalogProvider,
    IReleaseLookupProvider,
)
from src.models.catalog import (
    CuratedCatalog,
    CuratedRecording,
    RecordingCandidate,
    ReleaseCandidate,
)
from src.models.chart import SongChartAggregate
from src.services.artwork import album_art_url
from src.services.popularity import composite_popularity
from src.utils.concurrency import chunked, throttled_gather
from src.utils.errors import TuneFeedError, UpstreamUnavailableError
from src.utils.text_normalizer import identity_key, song_key

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_PAGE_SIZE = 5000


# ---------------------------------------------------------------------------
# Pure steps
# ---------------------------------------------------------------------------

def score_candidate(
    candidate: RecordingCandidate,
    aggregates: Mapping[str, SongChartAggregate],
) -> RecordingCandidate:
    """Join *candidate* to its chart aggregate and compute its score."""
    aggregate = None
    artist = candidate.chart_artist
    if artist:
        aggregate = aggregates.get(song_key(candidate.title, artist))
    peak = aggregate.best_peak_position if aggregate else None
    weeks = aggregate.total_weeks_charted if aggregate else None
    return candidate.model_copy(
        update={
            "billboard_peak_pos": peak,
            "billboard_weeks_on_chart": weeks,
            "composite_popularity": composite_popularity(
                app_popularity=candidate.app_popularity,
                billboard_peak_pos=peak,
                billboard_weeks_on_chart=weeks,
            ),
        }
    )


def rank_key(candidate: RecordingCandidate) -> tuple[float, str]:
    """Sort key putting the most popular first, ties by smallest recording id."""
    return (-(candidate.composite_popularity or 0.0), candidate.recording_id)


def deduplicate(candidates: Iterable[RecordingCandidate]) -> list[RecordingCandidate]:
    """Keep one candidate per lowercased (title, primary artist name).

    Candidates must already be scored and carry a primary artist.  The
    survivor is the one with the smallest :func:`rank_key`.
    """
    best: dict[tuple[str, str], RecordingCandidate] = {}
    for candidate in candidates:
        _keep_best(best, candidate)
    return list(best.values())


def select_top(candidates: Iterable[RecordingCandidate], limit: int) -> list[RecordingCandidate]:
    """Return at most *limit* candidates, most popular first."""
    if limit < 1:
        return []
    return heapq.nsmallest(limit, candidates, key=rank_key)


def release_sort_key(release: ReleaseCandidate) -> tuple[bool, int, bool, bool, str]:
    """Total order over releases; the smallest is the "earliest" release.

    (a) known year first, earlier years first; (b) official before any
    other status; (c) with cover art before without; (d) smallest
    release id.
    """
    return (
        release.year is None,
        release.year if release.year is not None else 0,
        not release.is_official,
        not release.has_cover_art,
        release.release_id,
    )


def resolve_earliest_release(releases: Iterable[ReleaseCandidate]) -> ReleaseCandidate | None:
    """Pick the earliest release, or ``None`` when there are none."""
    return min(releases, key=release_sort_key, default=None)


def to_curated(
    candidate: RecordingCandidate, release: ReleaseCandidate | None
) -> CuratedRecording:
    """Project a winning candidate and its resolved release into a curated row."""
    return CuratedRecording(
        mb_recording_id=candidate.recording_id,
        title=candidate.title,
        length=candidate.length,
        disambiguation=candidate.disambiguation,
        video=candidate.video,
        primary_artist_id=candidate.primary_artist_id,
        primary_artist_name=candidate.primary_artist_name,
        isrcs=candidate.isrcs,
        app_popularity=candidate.app_popularity,
        billboard_peak_pos=candidate.billboard_peak_pos,
        billboard_weeks_on_chart=candidate.billboard_weeks_on_chart,
        composite_popularity=candidate.composite_popularity,
        mb_release_group_id=release.release_group_id if release else None,
        mb_earliest_release_id=release.release_id if release else None,
        earliest_release_year=release.year if release else None,
        album_art_url=album_art_url(release.release_id if release else None),
    )


def _keep_best(
    best: dict[tuple[str, str], RecordingCandidate], candidate: RecordingCandidate
) -> None:
    key = identity_key(candidate.title, candidate.primary_artist_name)
    current = best.get(key)
    if current is None or rank_key(candidate) < rank_key(current):
        best[key] = candidate


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------

class CatalogCurator:
    """Runs the curation steps against the reference store.

    Parameters
    ----------
    reference:
        Bulk reads of recordings, artists and release groups.
    release_lookup:
        Releases per recording (local mirror or the public web service).
    page_size:
        Recordings read per reference-store page.
    enrichment_batch_size:
        Selected recordings resolved per enrichment batch.
    enrichment_concurrency:
        Release lookups in flight within a batch.
    """

    def __init__(
        self,
        reference: IReferenceCatalogProvider,
        release_lookup: IReleaseLookupProvider,
        page_size: int = _DEFAULT_PAGE_SIZE,
        enrichment_batch_size: int = 100,
        enrichment_concurrency: int = 10,
    ) -> None:
        self._reference = reference
        self._release_lookup = release_lookup
        self._page_size = page_size
        self._enrichment_batch_size = enrichment_batch_size
        self._enrichment_concurrency = enrichment_concurrency

    async def curate(
        self,
        aggregates: Mapping[str, SongChartAggregate],
        max_songs: int,
    ) -> CuratedCatalog:
        """Build one curated generation from the reference store.

        Scores are not floored at zero: a recording that never charted scores
        -101 (plus ten per app popularity point) and can still be selected.
        """
        logger.info("curation_started", max_songs=max_songs, chart_songs=len(aggregates))

        unique = await self._collect_unique(aggregates)
        selected = select_top(unique.values(), max_songs)
        logger.info("curation_selected", unique=len(unique), selected=len(selected))

        recordings = await self._enrich(selected)

        artist_ids = sorted({r.primary_artist_id for r in recordings})
        release_group_ids = sorted(
            {r.mb_release_group_id for r in recordings if r.mb_release_group_id}
        )
        artists = await self._reference.fetch_artists(artist_ids)
        release_groups = await self._reference.fetch_release_groups(release_group_ids)

        catalog = CuratedCatalog(
            recordings=recordings,
            artists=sorted(artists, key=lambda a: a.mb_artist_id),
            release_groups=sorted(release_groups, key=lambda g: g.mb_release_group_id),
        )
        logger.info(
            "curation_complete",
            recordings=len(catalog.recordings),
            artists=len(catalog.artists),
            release_groups=len(catalog.release_groups),
        )
        return catalog

    # ------------------------------------------------------------------
    # Steps 1-3: read, score, dedupe (streamed page by page)
    # ------------------------------------------------------------------

    async def _collect_unique(
        self, aggregates: Mapping[str, SongChartAggregate]
    ) -> dict[tuple[str, str], RecordingCandidate]:
        best: dict[tuple[str, str], RecordingCandidate] = {}
        read = skipped = charted = 0
        after_id: str | None = None

        while True:
            page = await self._reference.fetch_recordings(after_id=after_id, limit=self._page_size)
            if not page:
                break
            for candidate in page:
                read += 1
                if not candidate.primary_artist_id or not candidate.primary_artist_name:
                    skipped += 1
                    continue
                scored = score_candidate(candidate, aggregates)
                if scored.billboard_weeks_on_chart is not None:
                    charted += 1
                _keep_best(best, scored)
            after_id = page[-1].recording_id
            logger.debug("curation_page_read", read=read, unique=len(best))

        logger.info(
            "curation_candidates_read",
            read=read,
            skipped_no_artist=skipped,
            charted=charted,
            unique=len(best),
        )
        return best

    # ------------------------------------------------------------------
    # Steps 5-6: resolve releases and artwork
    # ------------------------------------------------------------------

    async def _enrich(self, selected: list[RecordingCandidate]) -> list[CuratedRecording]:
        semaphore = asyncio.Semaphore(self._enrichment_concurrency)
        recordings: list[CuratedRecording] = []
        unresolved = 0
        batches = chunked(selected, self._enrichment_batch_size)

        for index, batch in enumerate(batches, start=1):
            results = await throttled_gather(
                [self._releases_for(c) for c in batch],
                semaphore=semaphore,
            )
            for candidate, result in zip(batch, results):
                if isinstance(result, BaseException):
                    raise result
                release = resolve_earliest_release(result)
                if release is None:
                    unresolved += 1
                recordings.append(to_curated(candidate, release))
            logger.debug("enrichment_batch_done", batch=index, size=len(batch))

        logger.info("enrichment_complete", recordings=len(recordings), without_release=unresolved)
        return recordings

    async def _releases_for(self, candidate: RecordingCandidate) -> list[ReleaseCandidate]:
        try:
            return await self._release_lookup.fetch_releases(candidate.recording_id)
        except UpstreamUnavailableError:
            raise
        except TuneFeedError as exc:
            logger.warning(
                "release_lookup_failed",
                recording_id=candidate.recording_id,
                provider=self._release_lookup.get_provider_name(),
                error=str(exc),
            )
            return []
