"""Reference catalog providers.

SQLiteReferenceCatalogProvider reads a local MusicBrainz mirror: the full
recording universe (keyset-paged), artist and release-group details, and
the releases of each recording.
"""

from src.providers.reference.sqlite_reference_provider import (
    REFERENCE_SCHEMA,
    SQLiteReferenceCatalogProvider,
)

__all__ = ["REFERENCE_SCHEMA", "SQLiteReferenceCatalogProvider"]
