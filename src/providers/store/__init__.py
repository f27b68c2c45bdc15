"""Connection pooling for the SQLite-backed stores.

Every store adapter (reference mirror, curated serving store, user
library) talks to its database through a :class:`SQLiteConnectionPool`
opened once at startup and closed at shutdown.
"""

from src.providers.store.connection_pool import PoolState, SQLiteConnectionPool

__all__ = ["PoolState", "SQLiteConnectionPool"]
