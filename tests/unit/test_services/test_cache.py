"""Unit tests for the response cache."""

import asyncio

import pytest

from tests.helpers.fakes import FakeClock, ok_response
from weather_client.services.cache import ResponseCache


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> ResponseCache:
    return ResponseCache(default_ttl=30.0, max_size=3, clock=clock)


class TestGenerateKey:
    """Tests for cache key canonicalization."""

    def test_scheme_and_host_are_case_insensitive(self) -> None:
        assert ResponseCache.generate_key(
            "HTTPS://API.Example.com/v1/forecast?a=1"
        ) == ResponseCache.generate_key("https://api.example.com/v1/forecast?a=1")

    def test_query_is_part_of_key(self) -> None:
        assert ResponseCache.generate_key(
            "https://api.example.com/v1?a=1"
        ) != ResponseCache.generate_key("https://api.example.com/v1?a=2")


class TestGetSet:
    """Tests for TTL semantics."""

    @pytest.mark.asyncio
    async def test_missing_key_is_absent(self, cache: ResponseCache) -> None:
        assert await cache.get("https://nowhere.example/") is None

    @pytest.mark.asyncio
    async def test_hit_within_ttl(self, cache: ResponseCache, clock: FakeClock) -> None:
        response = ok_response()
        await cache.set("k", response)
        clock.advance(29.9)

        assert await cache.get("k") is response

    @pytest.mark.asyncio
    async def test_expired_exactly_at_ttl(
        self, cache: ResponseCache, clock: FakeClock
    ) -> None:
        await cache.set("k", ok_response())
        clock.advance(30.0)

        assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_custom_ttl(self, cache: ResponseCache, clock: FakeClock) -> None:
        await cache.set("k", ok_response(), ttl=5.0)
        clock.advance(6.0)

        assert await cache.get("k") is None

    @pytest.mark.asyncio
    async def test_set_overwrites_and_restarts_ttl(
        self, cache: ResponseCache, clock: FakeClock
    ) -> None:
        first = ok_response(body=b"1")
        second = ok_response(body=b"2")
        await cache.set("k", first)
        clock.advance(20.0)
        await cache.set("k", second)
        clock.advance(20.0)

        assert await cache.get("k") is second

    @pytest.mark.asyncio
    async def test_refuses_non_success_response(self, cache: ResponseCache) -> None:
        with pytest.raises(ValueError):
            await cache.set("k", ok_response(status_code=404))

    @pytest.mark.asyncio
    async def test_concurrent_get_and_set_on_one_key(
        self, cache: ResponseCache
    ) -> None:
        written = [ok_response(body=str(n).encode()) for n in range(20)]

        operations = []
        for response in written:
            operations.append(cache.set("k", response))
            operations.append(cache.get("k"))
        results = await asyncio.gather(*operations)

        for seen in results[1::2]:
            assert seen is None or any(seen is r for r in written)
        assert await cache.get("k") is written[-1]
        assert cache.get_stats().size == 1

    def test_ttl_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            ResponseCache(default_ttl=0)


class TestMaintenance:
    """Tests for eviction, cleanup and stats."""

    @pytest.mark.asyncio
    async def test_evicts_oldest_when_full(
        self, cache: ResponseCache, clock: FakeClock
    ) -> None:
        for key in ("a", "b", "c"):
            await cache.set(key, ok_response())
            clock.advance(1.0)
        await cache.set("d", ok_response())

        assert await cache.get("a") is None
        assert await cache.get("d") is not None
        assert cache.get_stats().evictions == 1

    @pytest.mark.asyncio
    async def test_cleanup_expired(self, cache: ResponseCache, clock: FakeClock) -> None:
        await cache.set("old", ok_response(), ttl=1.0)
        await cache.set("new", ok_response(), ttl=60.0)
        clock.advance(2.0)

        assert await cache.cleanup_expired() == 1
        assert cache.get_stats().size == 1

    @pytest.mark.asyncio
    async def test_delete_and_clear(self, cache: ResponseCache) -> None:
        await cache.set("a", ok_response())
        await cache.set("b", ok_response())

        assert await cache.delete("a") is True
        assert await cache.delete("a") is False
        await cache.clear()
        assert cache.get_stats().size == 0

    @pytest.mark.asyncio
    async def test_stats_count_hits_and_misses(self, cache: ResponseCache) -> None:
        await cache.set("a", ok_response())
        await cache.get("a")
        await cache.get("b")

        stats = cache.get_stats().to_dict()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_rate"] == "50.00%"
