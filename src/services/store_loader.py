"""Curated store loader.

Replaces the serving store's curated generation with a new one::

    clear  recordings, release groups, artists   (referencing rows first)
    write  artists, release groups, recordings   (referenced rows first)

Rows are written in fixed-size batches, each committed on its own.  The
first failing batch stops the load and raises :class:`StoreWriteError`;
batches already committed stay intact.  Recovery is re-running the whole
load, which starts by clearing the tables again.
"""

from __future__ import annotations

import time
from typing import Any

import structlog

from src.interfaces.curated_store_provider import CuratedTable, ICuratedStoreProvider
from src.models.catalog import CuratedCatalog
from src.models.pipeline import LoadReport
from src.utils.concurrency import chunked
from src.utils.errors import StoreWriteError, TuneFeedError

logger = structlog.get_logger(logger_name=__name__)

LOAD_ORDER: tuple[CuratedTable, ...] = (
    CuratedTable.ARTISTS,
    CuratedTable.RELEASE_GROUPS,
    CuratedTable.RECORDINGS,
)


def catalog_rows(catalog: CuratedCatalog) -> dict[CuratedTable, list[dict[str, Any]]]:
    """Serving-store rows per table for *catalog*."""
    return {
        CuratedTable.ARTISTS: [a.model_dump() for a in catalog.artists],
        CuratedTable.RELEASE_GROUPS: [g.model_dump() for g in catalog.release_groups],
        CuratedTable.RECORDINGS: [r.model_dump() for r in catalog.recordings],
    }


class CuratedStoreLoader:
    """Bulk loader for the curated serving store."""

    def __init__(self, store: ICuratedStoreProvider, batch_size: int = 500) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self._store = store
        self._batch_size = batch_size

    async def load(self, catalog: CuratedCatalog) -> LoadReport:
        """Replace the current generation with *catalog*.

        Raises
        ------
        StoreWriteError
            If clearing a table or writing a batch fails.
        """
        started = time.perf_counter()
        rows_by_table = catalog_rows(catalog)

        for table in reversed(LOAD_ORDER):
            await self._guarded(table, "clear", self._store.clear(table))

        rows_written: dict[str, int] = {}
        batches_written = 0
        for table in LOAD_ORDER:
            rows = rows_by_table[table]
            written = 0
            total_batches = -(-len(rows) // self._batch_size)
            for index, batch in enumerate(chunked(rows, self._batch_size), start=1):
                written += await self._guarded(
                    table, f"batch {index}/{total_batches}", self._store.upsert_batch(table, batch)
                )
                batches_written += 1
                logger.info(
                    "batch_uploaded",
                    table=table.value,
                    batch=index,
                    total_batches=total_batches,
                    rows=len(batch),
                )
            rows_written[table.value] = written
            logger.info("table_loaded", table=table.value, rows=written)

        report = LoadReport(
            rows_written=rows_written,
            batches_written=batches_written,
            duration_seconds=round(time.perf_counter() - started, 3),
        )
        logger.info("load_complete", **rows_written, batches=batches_written)
        return report

    async def _guarded(self, table: CuratedTable, step: str, operation):  # noqa: ANN001, ANN202
        try:
            return await operation
        except StoreWriteError as exc:
            logger.error("load_failed", table=table.value, step=step, error=str(exc))
            raise
        except TuneFeedError as exc:
            logger.error("load_failed", table=table.value, step=step, error=str(exc))
            raise StoreWriteError(
                message=f"{step} of {table.value} failed: {exc.message}",
                provider_name=exc.provider_name,
            ) from exc
