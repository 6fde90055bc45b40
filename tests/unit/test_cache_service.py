"""Tests for CacheService."""

import asyncio

import pytest

from yieldlens.services.cache.cache_service import CacheService, estimate_size, format_bytes


class TestCacheService:
    """Tests for CacheService."""

    @pytest.fixture
    def cache(self, clock) -> CacheService:
        return CacheService(default_ttl=600, max_size=100, clock=clock)

    def test_set_and_get(self, cache: CacheService) -> None:
        cache.set("pool:1", {"apy": 4.2}, "defillama")
        assert cache.get("pool:1") == {"apy": 4.2}

    def test_get_missing_key(self, cache: CacheService) -> None:
        assert cache.get("nonexistent") is None
        assert cache.get_stats()["total_misses"] == 1

    def test_entry_lives_until_ttl(self, cache: CacheService, clock) -> None:
        """Data is returned strictly before created_at + ttl and never after."""
        cache.set("k", "v", "src", ttl=60)

        clock.advance(59.999)
        assert cache.get("k") == "v"

        clock.advance(0.002)
        assert cache.get("k") is None
        # Expired entry was removed on read
        assert len(cache) == 0
        assert cache.get("k") is None

        stats = cache.get_stats()
        assert stats["total_hits"] == 1
        assert stats["total_misses"] == 2
        assert stats["deletes"] == 1

    def test_expires_exactly_at_ttl(self, cache: CacheService, clock) -> None:
        cache.set("k", "v", "src", ttl=60)
        clock.advance(60)
        assert cache.get("k") is None

    def test_pool_scenario(self, cache: CacheService, clock) -> None:
        """A pool cached with the default TTL is a hit now and gone 11 minutes later."""
        cache.set("pool:X", {"apy": 5.1}, "defillama")
        assert cache.get("pool:X") == {"apy": 5.1}

        clock.advance(11 * 60)
        assert cache.get("pool:X") is None

        stats = cache.get_stats()
        assert stats["total_hits"] == 1
        assert stats["total_misses"] == 1
        assert stats["hit_rate"] == 50.0
        assert stats["miss_rate"] == 50.0

    def test_has_has_no_side_effects(self, cache: CacheService) -> None:
        cache.set("k", "v", "src")
        assert cache.has("k") is True
        assert cache.has("other") is False

        stats = cache.get_stats()
        assert stats["total_hits"] == 0
        assert stats["total_misses"] == 0
        assert cache.get_entry("k")["hit_count"] == 0

    def test_has_removes_expired(self, cache: CacheService, clock) -> None:
        cache.set("k", "v", "src", ttl=1)
        clock.advance(2)
        assert cache.has("k") is False
        assert len(cache) == 0

    def test_get_tracks_hits_and_access(self, cache: CacheService, clock) -> None:
        cache.set("k", "v", "src")
        clock.advance(5)
        cache.get("k")
        cache.get("k")

        entry = cache.get_entry("k")
        assert entry["hit_count"] == 2
        assert entry["last_accessed_at"].timestamp() == pytest.approx(clock.now)
        assert entry["age_seconds"] == pytest.approx(5)
        assert entry["time_to_expire"] == pytest.approx(595)
        assert entry["expired"] is False
        assert entry["data"] == "v"

    def test_delete(self, cache: CacheService) -> None:
        cache.set("k", "v", "src")

        assert cache.delete("k") is True
        assert cache.get("k") is None
        assert cache.delete("k") is False
        assert cache.get_stats()["deletes"] == 1

    def test_clear(self, cache: CacheService) -> None:
        cache.set("a", 1, "src")
        cache.set("b", 2, "src")
        cache.set("c", 3, "other")

        assert cache.clear() == 3
        assert len(cache) == 0
        assert cache.get_stats()["deletes"] == 3

    def test_clear_by_source_isolation(self, cache: CacheService) -> None:
        """Clearing one source leaves every other source untouched."""
        cache.set("m:1", 1, "morpho")
        cache.set("m:2", 2, "morpho")
        cache.set("l:1", 3, "lido")
        cache.set("d:1", 4, "defillama")

        assert cache.clear_by_source("morpho") == 2

        assert cache.get("m:1") is None
        assert cache.get("m:2") is None
        assert cache.get("l:1") == 3
        assert cache.get("d:1") == 4
        assert cache.clear_by_source("morpho") == 0

    def test_cleanup(self, cache: CacheService, clock) -> None:
        cache.set("short", 1, "src", ttl=10)
        cache.set("long", 2, "src", ttl=1000)

        clock.advance(11)
        assert cache.cleanup() == 1
        assert cache.has("long") is True
        assert cache.has("short") is False

    def test_cleanup_counts_every_pass(self, cache: CacheService) -> None:
        assert cache.cleanup() == 0
        assert cache.cleanup() == 0
        assert cache.get_stats()["cleanups"] == 2

    def test_replace_does_not_evict(self, clock) -> None:
        cache = CacheService(max_size=2, clock=clock)
        cache.set("a", 1, "src")
        cache.set("b", 2, "src")
        cache.set("a", 10, "src")

        assert cache.get("a") == 10
        assert cache.get("b") == 2
        assert cache.get_stats()["deletes"] == 0

    def test_fifo_eviction_at_capacity(self, clock) -> None:
        """capacity + 1 inserts leave capacity entries; the oldest insert goes."""
        cache = CacheService(max_size=3, clock=clock)
        for key in ("a", "b", "c"):
            cache.set(key, key, "src")
            clock.advance(1)
        # Reading "a" does not save it under FIFO
        cache.get("a")

        cache.set("d", "d", "src")

        assert len(cache) == 3
        assert cache.has("a") is False
        assert all(cache.has(key) for key in ("b", "c", "d"))
        assert cache.get_stats()["deletes"] == 1

    def test_lru_eviction_at_capacity(self, clock) -> None:
        cache = CacheService(max_size=3, eviction_policy="lru", clock=clock)
        for key in ("a", "b", "c"):
            cache.set(key, key, "src")
            clock.advance(1)
        cache.get("a")

        cache.set("d", "d", "src")

        assert cache.has("a") is True
        assert cache.has("b") is False

    def test_invalid_policy(self) -> None:
        with pytest.raises(ValueError):
            CacheService(eviction_policy="random")

    def test_stats_consistency(self, clock) -> None:
        """hits + misses equals get calls; sets - deletes bounds the entry count."""
        cache = CacheService(max_size=5, clock=clock)
        gets = 0
        for i in range(12):
            cache.set(f"k{i}", i, "src" if i % 2 else "other", ttl=30 + i)
            clock.advance(3)
            for key in (f"k{i}", f"k{i - 4}", "missing"):
                cache.get(key)
                gets += 1
        cache.delete("k11")
        cache.clear_by_source("other")
        cache.cleanup()

        stats = cache.get_stats()
        assert stats["total_hits"] + stats["total_misses"] == gets
        assert stats["sets"] - stats["deletes"] >= stats["total_entries"]
        assert stats["total_entries"] == len(cache)

    def test_stats_with_no_lookups(self, cache: CacheService) -> None:
        stats = cache.get_stats()
        assert stats["hit_rate"] == 0
        assert stats["miss_rate"] == 0
        assert stats["oldest_entry_at"] is None
        assert stats["newest_entry_at"] is None

    def test_stats_memory_and_timestamps(self, cache: CacheService, clock) -> None:
        cache.set("a", {"x": 1}, "src")
        first = clock.now
        clock.advance(10)
        cache.set("b", "hello", "src")

        stats = cache.get_stats()
        assert stats["total_entries"] == 2
        assert stats["total_memory_usage"] == estimate_size({"x": 1}) + estimate_size("hello")
        assert stats["oldest_entry_at"].timestamp() == pytest.approx(first)
        assert stats["newest_entry_at"].timestamp() == pytest.approx(clock.now)

    def test_get_all_entries_newest_first(self, cache: CacheService, clock) -> None:
        cache.set("old", 1, "a")
        clock.advance(1)
        cache.set("new", 2, "b")

        entries = cache.get_all_entries()
        assert [e["key"] for e in entries] == ["new", "old"]

        grouped = cache.get_entries_by_source(include_data=False)
        assert set(grouped) == {"a", "b"}
        assert "data" not in grouped["a"][0]

    def test_generate_key(self) -> None:
        assert CacheService.generate_key("pool-details", "abc") == "pool-details:abc"
        assert CacheService.generate_key("chart", "p1", 30) == "chart:p1:30"
        assert CacheService.generate_key("all") == "all"


class TestSizeEstimation:
    """Tests for payload size estimation."""

    def test_json_payload(self) -> None:
        assert estimate_size({"a": 1}) == len('{"a": 1}')
        assert estimate_size("é") == len('"\\u00e9"')

    def test_unserializable_payload_falls_back(self) -> None:
        payload = {1, 2, 3}
        assert estimate_size(payload) == len(repr(payload)) * 2

    def test_format_bytes(self) -> None:
        assert format_bytes(0) == "0 B"
        assert format_bytes(512) == "512 B"
        assert format_bytes(2048) == "2 KB"


class TestGetOrFetch:
    """Tests for the read-through path."""

    @pytest.fixture
    def cache(self, clock) -> CacheService:
        return CacheService(clock=clock)

    @pytest.mark.asyncio
    async def test_hit_skips_fetch(self, cache: CacheService) -> None:
        cache.set("k", "cached", "src")

        async def fetcher():
            raise AssertionError("must not be called")

        assert await cache.get_or_fetch("k", "src", fetcher) == "cached"

    @pytest.mark.asyncio
    async def test_miss_fetches_and_stores(self, cache: CacheService) -> None:
        async def fetcher():
            return {"apy": 3.3}

        assert await cache.get_or_fetch("k", "lido", fetcher, ttl=60) == {"apy": 3.3}
        entry = cache.get_entry("k")
        assert entry["source"] == "lido"
        assert entry["ttl_seconds"] == 60

    @pytest.mark.asyncio
    async def test_concurrent_misses_share_one_fetch(self, cache: CacheService) -> None:
        calls = 0

        async def fetcher():
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.01)
            return {"tvl": 100}

        results = await asyncio.gather(*(cache.get_or_fetch("k", "src", fetcher) for _ in range(5)))

        assert calls == 1
        assert results == [{"tvl": 100}] * 5
        assert cache.get_stats()["sets"] == 1

    @pytest.mark.asyncio
    async def test_none_result_is_not_cached(self, cache: CacheService) -> None:
        async def fetcher():
            return None

        assert await cache.get_or_fetch("k", "src", fetcher) is None
        assert cache.has("k") is False
        assert cache.get_stats()["sets"] == 0

    @pytest.mark.asyncio
    async def test_fetch_error_reaches_every_waiter(self, cache: CacheService) -> None:
        calls = 0

        async def fetcher():
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.01)
            raise RuntimeError("upstream down")

        results = await asyncio.gather(
            *(cache.get_or_fetch("k", "src", fetcher) for _ in range(3)),
            return_exceptions=True,
        )

        assert calls == 1
        assert all(isinstance(r, RuntimeError) for r in results)
        assert cache.has("k") is False

    @pytest.mark.asyncio
    async def test_next_miss_fetches_again(self, cache: CacheService, clock) -> None:
        calls = 0

        async def fetcher():
            nonlocal calls
            calls += 1
            return calls

        assert await cache.get_or_fetch("k", "src", fetcher, ttl=10) == 1
        clock.advance(11)
        assert await cache.get_or_fetch("k", "src", fetcher, ttl=10) == 2
