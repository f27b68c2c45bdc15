"""MusicBrainz web service provider implementing IReleaseLookupProvider.

Uses the musicbrainzngs library to browse the releases that contain a
recording, for deployments that enrich the curated selection against the
public MusicBrainz API instead of a local mirror.

MusicBrainz asks clients to identify themselves with a user agent and to
stay under one request per second.  Every call here goes through a
:class:`SpacedRequestQueue`: one request in flight, starts spaced at least
``musicbrainz_min_interval`` seconds apart (2 s by default).
"""

from __future__ import annotations

import asyncio
from typing import Any

import musicbrainzngs
import structlog

from src.config.settings import Settings
from src.interfaces.reference_catalog_provider import IReleaseLookupProvider
from src.models.catalog import ReleaseCandidate
from src.utils.concurrency import SpacedRequestQueue
from src.utils.errors import NotFoundError, RateLimitError, UpstreamUnavailableError

logger = structlog.get_logger(logger_name=__name__)

_BROWSE_PAGE_SIZE = 100


class MusicBrainzReleaseProvider(IReleaseLookupProvider):
    """Release lookups against the public MusicBrainz web service.

    Attributes
    ----------
    _settings : Settings
        Application settings containing MusicBrainz user-agent details.
    _queue : SpacedRequestQueue
        Serializes outbound requests and enforces their minimum spacing.
    """

    def __init__(self, settings: Settings, queue: SpacedRequestQueue | None = None) -> None:
        self._settings = settings
        self._queue = queue or SpacedRequestQueue(
            min_interval=settings.musicbrainz_min_interval,
            name="musicbrainz",
        )

        musicbrainzngs.set_useragent(
            settings.musicbrainz_app_name,
            settings.musicbrainz_app_version,
            settings.musicbrainz_contact or None,
        )
        # Spacing is enforced by the queue.
        musicbrainzngs.set_rate_limit(False)
        logger.info(
            "musicbrainz_provider_initialized",
            app_name=settings.musicbrainz_app_name,
            app_version=settings.musicbrainz_app_version,
            min_interval=self._queue.min_interval,
        )

    # ------------------------------------------------------------------
    # IReleaseLookupProvider implementation
    # ------------------------------------------------------------------

    async def fetch_releases(self, recording_id: str) -> list[ReleaseCandidate]:
        """List the releases containing *recording_id*, paginating through all results.

        Browse results carry each release's ``release-group`` (requested
        include) and its ``cover-art-archive`` summary, which the earliest
        release tie-break needs.
        """
        releases: list[ReleaseCandidate] = []
        offset = 0
        limit = _BROWSE_PAGE_SIZE

        while True:
            response = await self._browse_page(recording_id, limit, offset)

            release_list = response.get("release-list", [])
            if not release_list:
                break
            releases.extend(self._map_release(rel) for rel in release_list)

            total = int(response.get("release-count", 0))
            offset += limit
            if offset >= total:
                break

        logger.debug(
            "musicbrainz_recording_releases",
            recording_id=recording_id,
            release_count=len(releases),
        )
        return releases

    def get_provider_name(self) -> str:
        """Return the provider identifier."""
        return "musicbrainz"

    async def aclose(self) -> None:
        """Stop the request queue, failing anything still waiting."""
        await self._queue.close()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _browse_page(self, recording_id: str, limit: int, offset: int) -> dict[str, Any]:
        try:
            return await self._queue.submit(
                lambda: asyncio.to_thread(
                    musicbrainzngs.browse_releases,
                    recording=recording_id,
                    includes=["release-groups"],
                    limit=limit,
                    offset=offset,
                )
            )
        except musicbrainzngs.NetworkError as exc:
            raise UpstreamUnavailableError(
                message=f"MusicBrainz unreachable: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except musicbrainzngs.ResponseError as exc:
            if getattr(exc.cause, "code", None) == 503:
                raise RateLimitError(
                    message=f"MusicBrainz throttled release browse for '{recording_id}'",
                    provider_name=self.get_provider_name(),
                ) from exc
            raise NotFoundError(
                message=f"MusicBrainz has no recording '{recording_id}': {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except musicbrainzngs.WebServiceError as exc:
            raise UpstreamUnavailableError(
                message=f"MusicBrainz release browse failed for '{recording_id}': {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except musicbrainzngs.MusicBrainzError as exc:
            # Rejected client-side: bad include, filter or argument.
            raise UpstreamUnavailableError(
                message=f"MusicBrainz rejected the release browse request: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    @staticmethod
    def _map_release(rel: dict[str, Any]) -> ReleaseCandidate:
        """Map a MusicBrainz release dict to a :class:`ReleaseCandidate`."""
        # Extract year from date string (YYYY, YYYY-MM or YYYY-MM-DD)
        year: int | None = None
        date_str = rel.get("date", "")
        if date_str and len(date_str) >= 4:
            try:
                year = int(date_str[:4])
            except ValueError:
                year = None

        cover_art = rel.get("cover-art-archive") or {}
        return ReleaseCandidate(
            release_id=rel["id"],
            release_group_id=(rel.get("release-group") or {}).get("id"),
            year=year,
            status=rel.get("status"),
            has_cover_art=str(cover_art.get("front", "false")).lower() == "true",
        )
