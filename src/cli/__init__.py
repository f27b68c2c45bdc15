# =============================================================================
# src/cli/__init__.py: CLI Module Overview
# =============================================================================
#
# Command-line tools for operating tunefeed outside the web API.
#
#   INGESTION (ingest.py)
#      The periodic batch job: folds the chart feed, curates the most
#      popular recordings from the reference mirror, writes JSON
#      artifacts, and replaces the serving store's curated tables.
#
# Architecture Notes:
#   - argparse for argument parsing.
#   - Provider imports are deferred inside functions so that `--help`
#     and the `charts` command do not pull in every store adapter.
#   - The CLI builds its own components rather than sharing the API's
#     app.state, because it runs as a one-shot process.
# =============================================================================

"""CLI tools for tunefeed.

- ``python -m src.cli.ingest`` -- rebuild the curated catalog.
"""
