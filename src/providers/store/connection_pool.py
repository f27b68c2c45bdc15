"""Async SQLite connection pool.

Every SQLite-backed provider is handed one of these instead of opening
its own connections.  The pool has an explicit lifecycle:

    CREATED --open()--> READY --close()--> CLOSED

Queries are only accepted while READY.  Each query is bounded by
``query_timeout`` seconds; when it expires the caller gets a
:class:`StoreTimeoutError` instead of waiting indefinitely.  Driver
errors other than constraint violations surface as
:class:`UpstreamUnavailableError`; ``aiosqlite.IntegrityError`` is
re-raised unchanged so providers can map it to their own meaning (e.g. a
duplicate archived song).
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Iterable, Sequence
from contextlib import asynccontextmanager
from enum import Enum
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from src.utils.errors import PoolStateError, StoreTimeoutError, UpstreamUnavailableError
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


class PoolState(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    CREATED = "CREATED"
    READY = "READY"
    CLOSED = "CLOSED"


class SQLiteConnectionPool:
    """A fixed set of ``aiosqlite`` connections shared by async callers.

    Parameters
    ----------
    db_path:
        SQLite database file.  Parent directories are created on ``open()``.
    size:
        Number of connections opened up front.
    query_timeout:
        Seconds a single query (or transaction body) may take.
    name:
        Label used in log lines and as ``provider_name`` on raised errors.
    """

    def __init__(
        self,
        db_path: str | Path,
        size: int = 4,
        query_timeout: float = 10.0,
        name: str = "sqlite",
    ) -> None:
        if size < 1:
            raise ValueError("pool size must be >= 1")
        self._db_path = Path(db_path)
        self._size = size
        self._query_timeout = query_timeout
        self._name = name
        self._state = PoolState.CREATED
        self._connections: list[aiosqlite.Connection] = []
        self._idle: asyncio.Queue[aiosqlite.Connection] | None = None

    @property
    def state(self) -> PoolState:
        return self._state

    @property
    def name(self) -> str:
        return self._name

    @property
    def query_timeout(self) -> float:
        return self._query_timeout

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def open(self) -> None:
        """Open every connection and move to READY."""
        if self._state is not PoolState.CREATED:
            raise PoolStateError(
                message=f"cannot open a pool in state {self._state.value}",
                provider_name=self._name,
            )
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._idle = asyncio.Queue()
        try:
            for _ in range(self._size):
                conn = await aiosqlite.connect(str(self._db_path))
                conn.row_factory = aiosqlite.Row
                await conn.execute("PRAGMA journal_mode=WAL")
                self._connections.append(conn)
                self._idle.put_nowait(conn)
        except aiosqlite.Error as exc:
            await self._close_connections()
            self._state = PoolState.CLOSED
            raise UpstreamUnavailableError(
                message=f"could not open {self._db_path}: {exc}",
                provider_name=self._name,
            ) from exc

        self._state = PoolState.READY
        _logger.info("pool_opened", pool=self._name, path=str(self._db_path), size=self._size)

    async def close(self) -> None:
        """Close every connection.  Safe to call more than once."""
        if self._state is PoolState.CLOSED:
            return
        self._state = PoolState.CLOSED
        await self._close_connections()
        _logger.info("pool_closed", pool=self._name)

    async def _close_connections(self) -> None:
        for conn in self._connections:
            try:
                await conn.close()
            except aiosqlite.Error as exc:
                _logger.warning("pool_connection_close_failed", pool=self._name, error=str(exc))
        self._connections.clear()

    # ------------------------------------------------------------------
    # Connection checkout
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        """Check a connection out for the duration of the ``async with`` block."""
        if self._state is not PoolState.READY or self._idle is None:
            raise PoolStateError(
                message=f"pool is {self._state.value}, not READY",
                provider_name=self._name,
            )
        conn = await self._idle.get()
        try:
            yield conn
        finally:
            self._idle.put_nowait(conn)

    # ------------------------------------------------------------------
    # Query helpers
    # ------------------------------------------------------------------

    async def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        """Run a read query and return every row as a dict."""

        async def _run(conn: aiosqlite.Connection) -> list[dict[str, Any]]:
            cursor = await conn.execute(sql, tuple(params))
            rows = await cursor.fetchall()
            await cursor.close()
            return [dict(row) for row in rows]

        return await self._run_bounded(_run, sql)

    async def fetch_one(self, sql: str, params: Sequence[Any] = ()) -> dict[str, Any] | None:
        """Run a read query and return its first row, or ``None``."""
        rows = await self.fetch_all(sql, params)
        return rows[0] if rows else None

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        """Run one write statement and commit; returns the affected row count."""

        async def _run(conn: aiosqlite.Connection) -> int:
            try:
                cursor = await conn.execute(sql, tuple(params))
                await conn.commit()
            except BaseException:
                await conn.rollback()
                raise
            return cursor.rowcount

        return await self._run_bounded(_run, sql)

    async def execute_script(self, statements: Iterable[str]) -> None:
        """Run several DDL statements in order and commit (schema setup)."""

        async def _run(conn: aiosqlite.Connection) -> None:
            for statement in statements:
                await conn.execute(statement)
            await conn.commit()

        await self._run_bounded(_run, "script")

    async def execute_many(self, sql: str, rows: Sequence[Sequence[Any]]) -> int:
        """Run *sql* once per row inside one transaction; all rows or none are kept."""

        async def _run(conn: aiosqlite.Connection) -> int:
            try:
                await conn.executemany(sql, [tuple(r) for r in rows])
                await conn.commit()
            except BaseException:
                await conn.rollback()
                raise
            return len(rows)

        return await self._run_bounded(_run, sql)

    async def _run_bounded(self, work, sql: str):  # noqa: ANN001, ANN202
        async with self.acquire() as conn:
            try:
                return await asyncio.wait_for(work(conn), timeout=self._query_timeout)
            except asyncio.TimeoutError as exc:
                _logger.warning(
                    "store_query_timeout",
                    pool=self._name,
                    timeout=self._query_timeout,
                    sql=_summarize(sql),
                )
                raise StoreTimeoutError(
                    message=f"query exceeded {self._query_timeout}s",
                    provider_name=self._name,
                ) from exc
            except aiosqlite.IntegrityError:
                raise
            except aiosqlite.Error as exc:
                _logger.error("store_query_failed", pool=self._name, error=str(exc), sql=_summarize(sql))
                raise UpstreamUnavailableError(
                    message=f"store query failed: {exc}",
                    provider_name=self._name,
                ) from exc


def _summarize(sql: str, width: int = 80) -> str:
    flat = " ".join(sql.split())
    return flat if len(flat) <= width else flat[: width - 3] + "..."
