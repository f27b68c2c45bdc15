"""Batch ingestion orchestration for the tunefeed curated catalog."""

from src.pipeline.ingestion_pipeline import IngestionPipeline

__all__ = [
    "IngestionPipeline",
]
