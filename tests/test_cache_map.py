import asyncio

import pytest

from deputy.clients.cache_map import RequestCacheMap
from deputy.clients.errors import ClientError


def _counting(value):
    calls = []

    async def factory():
        calls.append(value)
        return value

    return calls, factory


def _numbered(value):
    calls = []

    async def factory():
        calls.append(value)
        return f"{value}-{len(calls)}"

    return calls, factory


@pytest.mark.asyncio
async def test_second_call_is_served_from_cache():
    cache = RequestCacheMap(10, 5)
    calls, factory = _counting("value")
    first = await cache.with_caching("k", factory)
    second = await cache.with_caching("k", factory)
    assert first == second == "value"
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_keys_are_separate():
    cache = RequestCacheMap(10, 5)
    a_calls, a_factory = _counting("a")
    b_calls, b_factory = _counting("b")
    assert await cache.with_caching("a", a_factory) == "a"
    assert await cache.with_caching("b", b_factory) == "b"
    assert (len(a_calls), len(b_calls)) == (1, 1)


@pytest.mark.asyncio
async def test_concurrent_calls_share_one_fetch():
    cache = RequestCacheMap(10, 5)
    calls = []

    async def factory():
        calls.append(1)
        await asyncio.sleep(0.01)
        return "shared"

    results = await asyncio.gather(*(cache.with_caching("k", factory) for _ in range(3)))
    assert results == ["shared", "shared", "shared"]
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_invalidate_forces_refetch():
    cache = RequestCacheMap(10, 5)
    calls, factory = _numbered("value")
    first = await cache.with_caching("k", factory)
    cache.invalidate()
    second = await cache.with_caching("k", factory)
    assert first == "value-1"
    assert second == "value-2"
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_request_errors_are_cached():
    cache = RequestCacheMap(10, 5)
    calls = []

    async def factory():
        calls.append(1)
        raise ClientError("down")

    for _ in range(2):
        with pytest.raises(ClientError) as info:
            await cache.with_caching("k", factory)
        assert info.value.detail == "down"
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_other_errors_are_not_cached():
    cache = RequestCacheMap(10, 5)
    calls = []

    async def factory():
        calls.append(1)
        raise ValueError("boom")

    for _ in range(2):
        with pytest.raises(ValueError):
            await cache.with_caching("k", factory)
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_time_to_live_expires_even_when_used():
    now = [0.0]
    cache = RequestCacheMap(10, 5, clock=lambda: now[0])
    calls, factory = _numbered("value")
    results = []
    for minute in (0, 4, 8):
        now[0] = minute * 60
        results.append(await cache.with_caching("k", factory))
    assert results == ["value-1", "value-1", "value-1"]
    now[0] = 10 * 60
    assert await cache.with_caching("k", factory) == "value-2"
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_idle_entries_expire():
    now = [0.0]
    cache = RequestCacheMap(10, 5, clock=lambda: now[0])
    calls, factory = _numbered("value")
    first = await cache.with_caching("k", factory)
    now[0] = 5 * 60
    second = await cache.with_caching("k", factory)
    assert (first, second) == ("value-1", "value-2")
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_capacity_evicts_least_recently_used():
    cache = RequestCacheMap(10, 5, max_capacity=2)
    calls = []

    def factory_for(key):
        async def factory():
            calls.append(key)
            return f"{key}-{len(calls)}"

        return factory

    results = [await cache.with_caching(key, factory_for(key)) for key in ("a", "b", "c")]
    results.append(await cache.with_caching("c", factory_for("c")))
    results.append(await cache.with_caching("a", factory_for("a")))
    assert results == ["a-1", "b-2", "c-3", "c-3", "a-4"]
    assert calls == ["a", "b", "c", "a"]