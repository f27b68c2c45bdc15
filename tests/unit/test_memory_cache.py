"""Unit tests for MemoryCacheProvider."""

from __future__ import annotations

import pytest

from src.providers.cache.memory_cache import MemoryCacheProvider


class _FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestMemoryCacheProvider:
    @pytest.fixture()
    def clock(self) -> _FakeClock:
        return _FakeClock()

    @pytest.fixture()
    def cache(self, clock: _FakeClock) -> MemoryCacheProvider:
        return MemoryCacheProvider(max_size=3, ttl=60, timer=clock)

    @pytest.mark.asyncio
    async def test_set_and_get(self, cache: MemoryCacheProvider) -> None:
        await cache.set("billboard:recent", {"date": "2024-01-06"})
        assert await cache.get("billboard:recent") == {"date": "2024-01-06"}
        assert await cache.exists("billboard:recent") is True

    @pytest.mark.asyncio
    async def test_missing_key(self, cache: MemoryCacheProvider) -> None:
        assert await cache.get("nope") is None
        assert await cache.exists("nope") is False

    @pytest.mark.asyncio
    async def test_delete(self, cache: MemoryCacheProvider) -> None:
        await cache.set("k", 1)
        await cache.delete("k")
        await cache.delete("k")
        assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_default_ttl_expiry(self, cache: MemoryCacheProvider, clock: _FakeClock) -> None:
        await cache.set("k", "v")
        clock.now = 59
        assert await cache.get("k") == "v"
        clock.now = 61
        assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_per_entry_ttl(self, cache: MemoryCacheProvider, clock: _FakeClock) -> None:
        await cache.set("recent", "short", ttl=10)
        await cache.set("archive", "long", ttl=1000)
        clock.now = 100
        assert await cache.get("recent") is None
        assert await cache.get("archive") == "long"

    @pytest.mark.asyncio
    async def test_lru_eviction(self, cache: MemoryCacheProvider) -> None:
        for key in ("a", "b", "c"):
            await cache.set(key, key)
        await cache.get("a")
        await cache.set("d", "d")
        assert await cache.get("b") is None
        assert await cache.get("a") == "a"
        assert await cache.get("d") == "d"
