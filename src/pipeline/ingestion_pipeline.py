"""Ingestion pipeline orchestrator.

Drives one ingestion run through its phases::

    CHARTS    fetch every published chart and fold it into aggregates
    CURATION  score, dedupe, select and enrich the reference universe
    EXPORT    (optional) write the curated artifacts as JSON files
    LOAD      (optional) replace the serving store generation

Every log line emitted during a run carries its ``run_id``.  Any failure
aborts the run; nothing downstream of the failing phase happens.

Runs must not overlap: a second :meth:`IngestionPipeline.run` while one
is in progress in the same process raises :class:`PipelineError` instead
of queuing.  Separate processes are expected to be scheduled in
non-overlapping windows.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from collections.abc import AsyncIterator, Awaitable
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import TypeVar

import structlog

from src.models.catalog import CuratedCatalog
from src.models.pipeline import IngestionPhase, IngestionReport, LoadReport
from src.services.catalog_export import export_catalog, read_catalog
from src.services.chart_service import ChartService
from src.services.curator import CatalogCurator
from src.services.store_loader import CuratedStoreLoader
from src.utils.errors import PipelineError
from src.utils.logging import bind_context, clear_context

logger = structlog.get_logger(logger_name=__name__)

T = TypeVar("T")


class IngestionPipeline:
    """Sequences chart aggregation, curation, export and loading.

    Parameters
    ----------
    chart_service:
        Source of chart aggregates.
    curator:
        Produces the curated generation.  May be ``None`` for load-only
        sessions.
    loader:
        Writes a generation to the serving store.  May be ``None`` for
        curation-only deployments.
    max_songs:
        Upper bound on curated recordings.
    """

    def __init__(
        self,
        chart_service: ChartService,
        curator: CatalogCurator | None,
        loader: CuratedStoreLoader | None,
        max_songs: int = 200_000,
    ) -> None:
        self._chart_service = chart_service
        self._curator = curator
        self._loader = loader
        self._max_songs = max_songs
        self._lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    async def run(self, out_dir: str | Path | None = None, load: bool = True) -> IngestionReport:
        """Run a full ingestion.

        Parameters
        ----------
        out_dir:
            Where to write the curated artifacts; skipped when ``None``.
        load:
            Whether to replace the serving store generation.

        Raises
        ------
        PipelineError
            If another run is in progress, or loading was requested
            without a serving store.
        """
        if self._curator is None:
            raise PipelineError(message="no reference catalog configured for curation")
        if load and self._loader is None:
            raise PipelineError(message="no serving store configured for loading")

        async with self._exclusive() as run_id:
            report = IngestionReport(run_id=run_id)
            durations: dict[str, float] = {}

            aggregates = await self._timed(
                durations, IngestionPhase.CHARTS, self._chart_service.load_aggregates()
            )
            catalog = await self._timed(
                durations, IngestionPhase.CURATION, self._curator.curate(aggregates, self._max_songs)
            )
            report = report.model_copy(
                update={
                    "phase": IngestionPhase.CURATION,
                    "chart_songs": len(aggregates),
                    **_catalog_counts(catalog),
                }
            )

            if out_dir is not None:
                logger.info("ingestion_phase_started", phase=IngestionPhase.EXPORT.value)
                started = time.perf_counter()
                export_catalog(catalog, out_dir)
                durations[IngestionPhase.EXPORT.value] = round(time.perf_counter() - started, 3)
                report = report.model_copy(
                    update={"phase": IngestionPhase.EXPORT, "export_dir": str(out_dir)}
                )

            if load:
                load_report = await self._timed(durations, IngestionPhase.LOAD, self._load(catalog))
                report = report.model_copy(update={"phase": IngestionPhase.LOAD, "load": load_report})

            return self._finish(report, durations)

    async def load_artifacts(self, in_dir: str | Path) -> IngestionReport:
        """Load a previously exported generation into the serving store."""
        async with self._exclusive() as run_id:
            durations: dict[str, float] = {}
            catalog = read_catalog(in_dir)
            load_report = await self._timed(durations, IngestionPhase.LOAD, self._load(catalog))
            report = IngestionReport(
                run_id=run_id,
                phase=IngestionPhase.LOAD,
                export_dir=str(in_dir),
                load=load_report,
                **_catalog_counts(catalog),
            )
            return self._finish(report, durations)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _exclusive(self) -> AsyncIterator[str]:
        if self._lock.locked():
            raise PipelineError(message="an ingestion run is already in progress")
        async with self._lock:
            run_id = uuid.uuid4().hex[:12]
            bind_context(run_id=run_id)
            logger.info("ingestion_started")
            try:
                yield run_id
            except Exception as exc:
                logger.error("ingestion_failed", error_type=type(exc).__name__, error=str(exc))
                raise
            finally:
                clear_context("run_id")

    @staticmethod
    async def _timed(durations: dict[str, float], phase: IngestionPhase, work: Awaitable[T]) -> T:
        logger.info("ingestion_phase_started", phase=phase.value)
        started = time.perf_counter()
        result = await work
        durations[phase.value] = round(time.perf_counter() - started, 3)
        logger.info("ingestion_phase_complete", phase=phase.value, seconds=durations[phase.value])
        return result

    async def _load(self, catalog: CuratedCatalog) -> LoadReport:
        if self._loader is None:
            raise PipelineError(message="no serving store configured for loading")
        return await self._loader.load(catalog)

    @staticmethod
    def _finish(report: IngestionReport, durations: dict[str, float]) -> IngestionReport:
        final = report.model_copy(
            update={
                "phase": IngestionPhase.COMPLETE,
                "phase_durations": dict(durations),
                "completed_at": datetime.now(tz=timezone.utc),  # noqa: UP017
            }
        )
        logger.info(
            "ingestion_complete",
            chart_songs=final.chart_songs,
            recordings=final.recordings,
            artists=final.artists,
            release_groups=final.release_groups,
            phase_durations=final.phase_durations,
        )
        return final


def _catalog_counts(catalog: CuratedCatalog) -> dict[str, int]:
    return {
        "recordings": len(catalog.recordings),
        "artists": len(catalog.artists),
        "release_groups": len(catalog.release_groups),
    }
