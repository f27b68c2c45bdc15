"""Public interface definitions for all external systems.

Every store and remote service tunefeed talks to is accessed exclusively
through the abstract base classes defined in this package.  Concrete
adapters implement these interfaces and are injected at runtime (FastAPI
lifespan in ``src/main.py``, or the CLI factories in ``src/cli/ingest.py``).

ADAPTER PATTERN:
    Services never import ``aiosqlite``, ``httpx`` or ``musicbrainzngs``
    directly; they call e.g. ``chart_feed.fetch_all_charts()`` where
    ``chart_feed`` is any object implementing ``IChartFeedProvider``.
    Unit tests inject mocks built with ``MagicMock(spec=...)``.

CONCRETE PROVIDER MAP:
    Interface                   ->  Concrete implementations (in src/providers/)
    ---------------------------------------------------------------------
    IChartFeedProvider          ->  BillboardChartProvider
    IReferenceCatalogProvider   ->  SQLiteReferenceCatalogProvider
    IReleaseLookupProvider      ->  SQLiteReferenceCatalogProvider,
                                    MusicBrainzReleaseProvider
    ICuratedStoreProvider       ->  SQLiteCuratedStoreProvider
    ILibraryProvider            ->  SQLiteLibraryProvider
    ICacheProvider              ->  MemoryCacheProvider
"""

from src.interfaces.cache_provider import ICacheProvider
from src.interfaces.chart_feed_provider import IChartFeedProvider
from src.interfaces.curated_store_provider import CuratedTable, ICuratedStoreProvider
from src.interfaces.library_provider import ILibraryProvider
from src.interfaces.reference_catalog_provider import (
    IReferenceCatalogProvider,
    IReleaseLookupProvider,
)

__all__ = [
    "CuratedTable",
    "ICacheProvider",
    "IChartFeedProvider",
    "ICuratedStoreProvider",
    "ILibraryProvider",
    "IReferenceCatalogProvider",
    "IReleaseLookupProvider",
]
