"""
Unit tests: single-flight semantics of the resource cache.
"""

from __future__ import annotations

import asyncio

import pytest

from loadkit.runtime.cache import ResourceCache

pytestmark = [pytest.mark.unit, pytest.mark.cache]


class Boom(Exception):
    pass


@pytest.mark.asyncio
async def test_factory_runs_once_for_concurrent_requests():
    cache = ResourceCache()
    calls = 0
    gate = asyncio.Event()

    async def work():
        nonlocal calls
        calls += 1
        await gate.wait()
        return "element"

    futs = [cache.get_or_create("k", work) for _ in range(5)]
    assert all(f is futs[0] for f in futs)
    assert not futs[0].done()

    gate.set()
    results = await asyncio.gather(*futs)
    assert results == ["element"] * 5
    assert calls == 1


@pytest.mark.asyncio
async def test_entry_is_registered_before_factory_runs():
    cache = ResourceCache()
    seen = {}

    def factory():
        # A request arriving while the factory runs must join the same entry.
        seen["inner"] = cache.get_or_create("k", factory)
        return asyncio.sleep(0, result=42)

    outer = cache.get_or_create("k", factory)
    assert seen["inner"] is outer
    assert await outer == 42


@pytest.mark.asyncio
async def test_failure_is_cached_and_replayed():
    cache = ResourceCache()
    calls = 0

    async def fail():
        nonlocal calls
        calls += 1
        raise Boom("nope")

    first = cache.get_or_create("k", fail)
    with pytest.raises(Boom) as e1:
        await first

    second = cache.get_or_create("k", fail)
    assert second is first
    with pytest.raises(Boom) as e2:
        await second

    assert e1.value is e2.value
    assert calls == 1


@pytest.mark.asyncio
async def test_synchronous_factory_error_fails_entry():
    cache = ResourceCache()

    def explode():
        raise Boom("sync")

    fut = cache.get_or_create("k", explode)
    assert fut.done()
    with pytest.raises(Boom):
        await fut
    assert "k" in cache


@pytest.mark.asyncio
async def test_factory_may_return_a_plain_future():
    cache = ResourceCache()
    loop = asyncio.get_running_loop()
    inner = loop.create_future()

    fut = cache.get_or_create("k", lambda: inner)
    loop.call_soon(inner.set_result, "done")
    assert await fut == "done"


@pytest.mark.asyncio
async def test_invalidate_allows_a_fresh_attempt():
    cache = ResourceCache()
    attempts = []

    async def flaky():
        attempts.append(1)
        if len(attempts) == 1:
            raise Boom("transient")
        return "ok"

    with pytest.raises(Boom):
        await cache.get_or_create("k", flaky)

    assert cache.invalidate("k") is True
    assert cache.invalidate("k") is False
    assert await cache.get_or_create("k", flaky) == "ok"
    assert len(attempts) == 2


@pytest.mark.asyncio
async def test_cancelled_waiter_does_not_cancel_shared_entry():
    cache = ResourceCache()
    gate = asyncio.Event()

    async def work():
        await gate.wait()
        return "shared"

    fut = cache.get_or_create("k", work)

    async def wait_shared():
        return await asyncio.shield(fut)

    waiter = asyncio.create_task(wait_shared())
    await asyncio.sleep(0)
    waiter.cancel()
    with pytest.raises(asyncio.CancelledError):
        await waiter

    gate.set()
    assert await fut == "shared"


@pytest.mark.asyncio
async def test_hit_and_miss_are_counted(metrics):
    cache = ResourceCache(metrics=metrics, kind="script")

    async def work():
        return 1

    await cache.get_or_create("a", work)
    await cache.get_or_create("a", work)
    await cache.get_or_create("b", work)

    assert metrics.sample("loadkit_cache_requests_total", {"kind": "script", "result": "miss"}) == 2
    assert metrics.sample("loadkit_cache_requests_total", {"kind": "script", "result": "hit"}) == 1


@pytest.mark.asyncio
async def test_inspection_helpers():
    cache = ResourceCache()

    async def work():
        return None

    await asyncio.gather(cache.get_or_create("x", work), cache.get_or_create("y", work))
    assert sorted(cache.keys()) == ["x", "y"]
    assert len(cache) == 2
    assert cache.get("x") is not None
    assert cache.get("z") is None

    cache.clear()
    assert len(cache) == 0
