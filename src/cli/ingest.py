# =============================================================================
# src/cli/ingest.py: CLI Ingest Command (curated catalog batch job)
# =============================================================================
#
# Standalone CLI for the periodic ingestion job that rebuilds the curated
# serving store.  The job reads two upstream sources:
#
#   - the Billboard Hot 100 JSON feed (every published weekly chart), and
#   - a MusicBrainz-shaped reference mirror (SQLite), optionally enriched
#     with release lookups against the public MusicBrainz web service.
#
# It keeps the most popular recordings, resolves each one's earliest
# release and artwork, and replaces the serving store's curated tables.
#
# Supported subcommands:
#
#   charts  - Fetch and fold the chart feed; print a summary
#   curate  - Curate and write JSON artifacts (no store write)
#   load    - Load previously written artifacts into the serving store
#   run     - Curate and load in one go (optionally writing artifacts too)
#
# Usage examples:
#   python -m src.cli.ingest charts --top 10
#   python -m src.cli.ingest curate --out data/exported_popular_mb_data
#   python -m src.cli.ingest load --in data/exported_popular_mb_data
#   python -m src.cli.ingest run --max-songs 50000 --musicbrainz
#
# Exit codes: 0 on success, 1 when the run fails with an application error.
# Runs are expected to be scheduled so that they never overlap.
# =============================================================================

"""Standalone CLI for rebuilding the tunefeed curated catalog.

Usage::

    python -m src.cli.ingest charts --top 10

    python -m src.cli.ingest curate --out data/exported_popular_mb_data

    python -m src.cli.ingest load --in data/exported_popular_mb_data

    python -m src.cli.ingest run
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import AsyncIterator
from contextlib import AsyncExitStack, asynccontextmanager

from src.config.loader import load_settings
from src.config.settings import Settings
from src.models.pipeline import IngestionReport
from src.utils.errors import TuneFeedError
from src.utils.logging import configure_logging, get_logger

_logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Component factories
# ---------------------------------------------------------------------------


def _pool(app_settings: Settings, path: str, name: str):  # noqa: ANN202
    from src.providers.store.connection_pool import SQLiteConnectionPool

    return SQLiteConnectionPool(
        path,
        size=app_settings.store_pool_size,
        query_timeout=app_settings.store_query_timeout,
        name=name,
    )


@asynccontextmanager
async def _pipeline_session(
    app_settings: Settings,
    *,
    curate: bool = True,
    load: bool = True,
    use_musicbrainz: bool = False,
) -> AsyncIterator:
    """Build an :class:`IngestionPipeline` with only the stores it needs.

    Pools are opened on entry and closed on exit, along with the chart
    feed client and the MusicBrainz request queue when they were built.
    """
    from src.pipeline.ingestion_pipeline import IngestionPipeline
    from src.providers.charts.billboard_provider import BillboardChartProvider
    from src.providers.curated.sqlite_curated_store import SQLiteCuratedStoreProvider
    from src.providers.reference.sqlite_reference_provider import SQLiteReferenceCatalogProvider
    from src.services.chart_service import ChartService
    from src.services.curator import CatalogCurator
    from src.services.store_loader import CuratedStoreLoader

    async with AsyncExitStack() as stack:
        chart_feed = BillboardChartProvider(
            base_url=app_settings.billboard_base_url,
            timeout=app_settings.billboard_timeout,
        )
        stack.push_async_callback(chart_feed.aclose)
        chart_service = ChartService(chart_feed)

        curator = None
        if curate:
            reference_pool = _pool(app_settings, app_settings.reference_db_path, "reference")
            await reference_pool.open()
            stack.push_async_callback(reference_pool.close)
            reference = SQLiteReferenceCatalogProvider(reference_pool)
            await reference.initialize()

            release_lookup = reference
            if use_musicbrainz or app_settings.musicbrainz_enabled:
                from src.providers.music_db.musicbrainz_provider import (
                    MusicBrainzReleaseProvider,
                )

                release_lookup = MusicBrainzReleaseProvider(app_settings)
                stack.push_async_callback(release_lookup.aclose)

            curator = CatalogCurator(
                reference,
                release_lookup,
                enrichment_batch_size=app_settings.enrichment_batch_size,
                enrichment_concurrency=app_settings.enrichment_concurrency,
            )

        loader = None
        if load:
            serving_pool = _pool(app_settings, app_settings.serving_db_path, "serving")
            await serving_pool.open()
            stack.push_async_callback(serving_pool.close)
            store = SQLiteCuratedStoreProvider(serving_pool)
            await store.initialize()
            loader = CuratedStoreLoader(store, batch_size=app_settings.upload_batch_size)

        yield IngestionPipeline(
            chart_service,
            curator,
            loader,
            max_songs=app_settings.curation_max_songs,
        )


def _print_report(report: IngestionReport) -> None:
    print(f"Ingestion run {report.run_id}: {report.phase.value}")
    print("=" * 40)
    if report.chart_songs:
        print(f"  Chart songs:      {report.chart_songs}")
    print(f"  Recordings:       {report.recordings}")
    print(f"  Artists:          {report.artists}")
    print(f"  Release groups:   {report.release_groups}")
    if report.export_dir:
        print(f"  Artifacts:        {report.export_dir}")
    if report.load is not None:
        print(f"  Batches written:  {report.load.batches_written}")
    for phase, seconds in report.phase_durations.items():
        print(f"  {phase:<17} {seconds:.1f}s")


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


async def _handle_charts(args: argparse.Namespace, app_settings: Settings) -> int:
    """Fold the chart feed and print the songs with the most charted weeks."""
    from src.providers.charts.billboard_provider import BillboardChartProvider
    from src.services.chart_service import ChartService

    chart_feed = BillboardChartProvider(
        base_url=app_settings.billboard_base_url,
        timeout=app_settings.billboard_timeout,
    )
    try:
        aggregates = await ChartService(chart_feed).load_aggregates()
    finally:
        await chart_feed.aclose()

    print(f"Charted songs: {len(aggregates)}")
    ranked = sorted(
        aggregates.items(),
        key=lambda item: (-item[1].total_weeks_charted, item[1].best_peak_position, item[0]),
    )
    for key, agg in ranked[: args.top]:
        print(f"  {agg.total_weeks_charted:>4} wks  peak {agg.best_peak_position:>3}  {key}")
    return 0


async def _handle_curate(args: argparse.Namespace, app_settings: Settings) -> int:
    async with _pipeline_session(app_settings, load=False, use_musicbrainz=args.musicbrainz) as pipeline:
        report = await pipeline.run(out_dir=args.out, load=False)
    _print_report(report)
    return 0


async def _handle_load(args: argparse.Namespace, app_settings: Settings) -> int:
    async with _pipeline_session(app_settings, curate=False) as pipeline:
        report = await pipeline.load_artifacts(args.in_dir)
    _print_report(report)
    return 0


async def _handle_run(args: argparse.Namespace, app_settings: Settings) -> int:
    async with _pipeline_session(app_settings, use_musicbrainz=args.musicbrainz) as pipeline:
        report = await pipeline.run(out_dir=args.out)
    _print_report(report)
    return 0


_HANDLERS = {
    "charts": _handle_charts,
    "curate": _handle_curate,
    "load": _handle_load,
    "run": _handle_run,
}


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the ingestion CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m src.cli.ingest",
        description="Rebuild the tunefeed curated catalog.",
    )
    parser.add_argument("--config", default="config/config.yaml", help="YAML config file")
    parser.add_argument(
        "--max-songs",
        type=int,
        dest="max_songs",
        help="Override the number of recordings to keep",
    )
    subparsers = parser.add_subparsers(dest="command", help="Ingestion commands")

    # -- charts --
    charts_parser = subparsers.add_parser("charts", help="Fetch and fold the chart feed")
    charts_parser.add_argument("--top", type=int, default=20, help="Songs to list (default: 20)")

    # -- curate --
    curate_parser = subparsers.add_parser("curate", help="Curate and write JSON artifacts")
    curate_parser.add_argument("--out", required=True, help="Artifact output directory")
    curate_parser.add_argument(
        "--musicbrainz",
        action="store_true",
        help="Resolve releases against the MusicBrainz web service",
    )

    # -- load --
    load_parser = subparsers.add_parser("load", help="Load artifacts into the serving store")
    load_parser.add_argument("--in", required=True, dest="in_dir", help="Artifact directory")

    # -- run --
    run_parser = subparsers.add_parser("run", help="Curate and load the serving store")
    run_parser.add_argument("--out", default=None, help="Also write artifacts here")
    run_parser.add_argument(
        "--musicbrainz",
        action="store_true",
        help="Resolve releases against the MusicBrainz web service",
    )

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ingestion job.

    Parses the subcommand, resolves Settings (YAML + env), configures
    logging and dispatches to the handler.  Application errors are logged
    and turn into exit code 1.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    app_settings = load_settings(args.config)
    if args.max_songs is not None:
        app_settings = app_settings.model_copy(update={"curation_max_songs": args.max_songs})
    configure_logging(
        log_level=app_settings.log_level,
        json_output=(app_settings.app_env == "production"),
    )

    try:
        exit_code = asyncio.run(_HANDLERS[args.command](args, app_settings))
    except TuneFeedError as exc:
        _logger.error("ingest_command_failed", command=args.command, error=str(exc))
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
