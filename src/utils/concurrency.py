"""Shared concurrency primitives for ingestion and outbound calls.

Three helpers are exposed:

1. **chunked** -- splits a sequence into fixed-size batches.  Used by the
   curator (enrichment batches) and the store loader (upload batches).

2. **throttled_gather** -- a drop-in replacement for ``asyncio.gather``
   that wraps each awaitable in a semaphore acquire/release, so a batch of
   lookups fans out with a bounded number in flight.

3. **SpacedRequestQueue** -- a single-worker queue that enforces a minimum
   delay between the *start* of consecutive tasks.  Public, rate-limited
   services (the MusicBrainz web service) are only ever called through
   one of these, so at most one request is in flight and requests never
   start closer together than ``min_interval`` seconds.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Iterator, Sequence
from typing import Any, TypeVar

import structlog

from src.utils.logging import get_logger

_T = TypeVar("_T")

_logger: structlog.BoundLogger = get_logger(__name__)


def chunked(items: Sequence[_T], size: int) -> Iterator[list[_T]]:
    """Yield consecutive slices of *items* holding at most *size* elements."""
    if size < 1:
        raise ValueError(f"batch size must be >= 1, got {size}")
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


async def throttled_gather(
    coros: list[Awaitable[_T]],
    semaphore: asyncio.Semaphore | None = None,
    limit: int = 10,
    return_exceptions: bool = True,
) -> list[_T | BaseException]:
    """Run awaitables concurrently with at most ``limit`` in flight.

    Parameters
    ----------
    coros:
        Awaitable objects to execute concurrently.
    semaphore:
        Optional shared semaphore.  When omitted a fresh one of size
        ``limit`` is created for this call.
    limit:
        Fan-out bound used when no semaphore is supplied.
    return_exceptions:
        If ``True``, exceptions are returned in the results list rather
        than being raised.  Mirrors ``asyncio.gather`` semantics.

    Returns
    -------
    list[_T | BaseException]
        Results in the same order as the input coroutines.
    """
    if semaphore is None:
        semaphore = asyncio.Semaphore(limit)

    async def _wrapped(coro: Awaitable[_T]) -> _T:
        async with semaphore:
            return await coro

    tasks = [_wrapped(c) for c in coros]
    return await asyncio.gather(*tasks, return_exceptions=return_exceptions)


class SpacedRequestQueue:
    """Serialize async calls through one worker with a minimum start spacing.

    ``submit()`` enqueues a zero-argument coroutine factory and resolves to
    its result (or raises its exception).  A failing task only fails its
    own submitter; the worker keeps draining the queue.

    Parameters
    ----------
    min_interval:
        Minimum number of seconds between the starts of two tasks.
    name:
        Label used in log lines.
    """

    def __init__(
        self,
        min_interval: float,
        name: str = "request_queue",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if min_interval < 0:
            raise ValueError("min_interval must be >= 0")
        self._min_interval = min_interval
        self._name = name
        self._clock = clock
        self._queue: asyncio.Queue[tuple[Callable[[], Awaitable[Any]], asyncio.Future[Any]]] | None = None
        self._worker: asyncio.Task[None] | None = None
        self._last_start: float | None = None
        self._closed = False

    @property
    def min_interval(self) -> float:
        return self._min_interval

    @property
    def pending(self) -> int:
        """Number of tasks waiting for the worker."""
        return self._queue.qsize() if self._queue is not None else 0

    async def submit(self, task: Callable[[], Awaitable[_T]]) -> _T:
        """Queue *task* and wait for its result."""
        if self._closed:
            raise RuntimeError(f"{self._name} is closed")
        if self._queue is None:
            self._queue = asyncio.Queue()
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(self._run(), name=self._name)

        future: asyncio.Future[_T] = asyncio.get_running_loop().create_future()
        await self._queue.put((task, future))
        return await future

    async def close(self) -> None:
        """Stop the worker and fail anything still queued."""
        self._closed = True
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None
        if self._queue is not None:
            while not self._queue.empty():
                _, future = self._queue.get_nowait()
                if not future.done():
                    future.set_exception(RuntimeError(f"{self._name} closed before the task ran"))

    async def _wait_for_slot(self) -> None:
        if self._last_start is None:
            return
        elapsed = self._clock() - self._last_start
        if elapsed < self._min_interval:
            await asyncio.sleep(self._min_interval - elapsed)

    async def _run(self) -> None:
        assert self._queue is not None
        while True:
            task, future = await self._queue.get()
            try:
                # Submitter gave up (cancelled request); skip without spending a slot.
                if future.done():
                    continue
                await self._wait_for_slot()
                self._last_start = self._clock()
                try:
                    result = await task()
                except Exception as exc:  # noqa: BLE001 -- delivered to the submitter
                    _logger.debug("queued_task_failed", queue=self._name, error=str(exc))
                    if not future.done():
                        future.set_exception(exc)
                else:
                    if not future.done():
                        future.set_result(result)
            finally:
                self._queue.task_done()
