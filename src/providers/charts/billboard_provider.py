"""Billboard Hot 100 chart feed provider.

Reads the static JSON mirror of the Billboard Hot 100 published at
``raw.githubusercontent.com/mhollingshead/billboard-hot-100``.  Four
documents are used:

    all.json             every chart ever published (tens of MB)
    recent.json          the latest chart
    date/<YYYY-MM-DD>.json  one chart
    valid_dates.json     every chart date

A chart document looks like ``{"date": ..., "data": [{"song", "artist",
"this_week", "last_week", "peak_position", "weeks_on_chart"}, ...]}``.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from src.interfaces.chart_feed_provider import IChartFeedProvider
from src.models.chart import ChartEntry, ChartSnapshot
from src.utils.errors import NotFoundError, UpstreamUnavailableError

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_BASE_URL = "https://raw.githubusercontent.com/mhollingshead/billboard-hot-100/main"
_DEFAULT_TIMEOUT = 60.0
_DEFAULT_HEADERS = {
    "User-Agent": "tunefeed/0.1 (+https://github.com/tunefeed)",
    "Accept": "application/json",
}


class BillboardChartProvider(IChartFeedProvider):
    """Chart feed adapter for the Billboard Hot 100 JSON mirror.

    Parameters
    ----------
    http_client:
        Shared ``httpx.AsyncClient``.  When omitted the provider creates
        (and owns) its own.
    base_url:
        Root of the mirror; documents are resolved relative to it.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = _DEFAULT_TIMEOUT,
    ) -> None:
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers=_DEFAULT_HEADERS,
            follow_redirects=True,
        )
        self._base_url = base_url.rstrip("/")

    # ------------------------------------------------------------------
    # IChartFeedProvider implementation
    # ------------------------------------------------------------------

    async def fetch_all_charts(self) -> list[ChartSnapshot]:
        payload = await self._get_json("all.json")
        if not isinstance(payload, list):
            raise UpstreamUnavailableError(
                message="all.json is not a list of charts",
                provider_name=self.get_provider_name(),
            )
        snapshots = [self._parse_chart(chart) for chart in payload]
        logger.info(
            "billboard_all_charts_fetched",
            charts=len(snapshots),
            entries=sum(len(s.entries) for s in snapshots),
        )
        return snapshots

    async def fetch_recent(self) -> ChartSnapshot:
        return self._parse_chart(await self._get_json("recent.json"))

    async def fetch_chart(self, chart_date: str) -> ChartSnapshot:
        return self._parse_chart(await self._get_json(f"date/{chart_date}.json"))

    async def fetch_valid_dates(self) -> list[str]:
        payload = await self._get_json("valid_dates.json")
        if not isinstance(payload, list):
            raise UpstreamUnavailableError(
                message="valid_dates.json is not a list",
                provider_name=self.get_provider_name(),
            )
        return [str(d) for d in payload]

    def get_provider_name(self) -> str:
        return "billboard"

    async def aclose(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _get_json(self, document: str) -> Any:
        url = f"{self._base_url}/{document}"
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            if status == 404:
                raise NotFoundError(
                    message=f"Chart document not found: {document}",
                    provider_name=self.get_provider_name(),
                ) from exc
            raise UpstreamUnavailableError(
                message=f"HTTP {status} fetching {document}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamUnavailableError(
                message=f"Error fetching {document}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamUnavailableError(
                message=f"{document} is not valid JSON",
                provider_name=self.get_provider_name(),
            ) from exc

    def _parse_chart(self, chart: Any) -> ChartSnapshot:
        """Map one chart document to a :class:`ChartSnapshot`.

        A malformed chart fails the whole fetch; dropping entries would
        silently undercount weeks for the songs in them.
        """
        try:
            return ChartSnapshot(
                date=chart["date"],
                entries=[self._parse_entry(item) for item in chart.get("data") or []],
            )
        except (KeyError, TypeError, AttributeError, ValidationError) as exc:
            raise UpstreamUnavailableError(
                message=f"Malformed chart document: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    @staticmethod
    def _parse_entry(item: dict[str, Any]) -> ChartEntry:
        rank = item["this_week"]
        return ChartEntry(
            song_title=item["song"],
            artist_name=item["artist"],
            # A debut entry's peak is its current rank.
            peak_position=item.get("peak_position") or rank,
            rank_this_period=rank,
            last_week=item.get("last_week"),
            weeks_on_chart=item.get("weeks_on_chart"),
        )
