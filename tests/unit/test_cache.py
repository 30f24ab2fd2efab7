"""
Unit Tests for the TTL Cache

These tests verify that TTLCache:
- Serves entries only inside the TTL window
- Replaces entries wholesale
- Loads each key at most once at a time (single-flight)
- Never stores a failed load

Time is driven by FakeClock, no sleeping.

Run with:
    pytest tests/unit/test_cache.py -v
"""

import asyncio

import pytest

from storage.cache import TTLCache


@pytest.fixture
def cache(clock):
    return TTLCache(ttl_seconds=30, clock=clock, name="test")


class TestGetSet:
    """Tests for basic get/set behaviour"""

    def test_get_missing_key_returns_none(self, cache):
        assert cache.get("bitcoin") is None
        assert "bitcoin" not in cache

    def test_set_then_get(self, cache):
        cache.set("bitcoin", {"price": 1})
        assert cache.get("bitcoin") == {"price": 1}
        assert "bitcoin" in cache
        assert len(cache) == 1

    def test_entry_valid_until_ttl(self, cache, clock):
        """Verify an entry is fresh while now - stored_at < ttl"""
        cache.set("bitcoin", "v1")
        clock.advance(29.999)
        assert cache.get("bitcoin") == "v1"

    def test_entry_expires_at_ttl(self, cache, clock):
        """Verify an entry is stale once now - stored_at reaches ttl"""
        cache.set("bitcoin", "v1")
        clock.advance(30)
        assert cache.get("bitcoin") is None
        assert "bitcoin" not in cache
        # Stale entries are kept until overwritten
        assert len(cache) == 1

    def test_set_overwrites_and_restarts_window(self, cache, clock):
        cache.set("bitcoin", {"a": 1, "b": 2})
        clock.advance(20)
        cache.set("bitcoin", {"a": 3})
        clock.advance(20)
        assert cache.get("bitcoin") == {"a": 3}

    def test_age(self, cache, clock):
        assert cache.age("bitcoin") is None
        cache.set("bitcoin", "v1")
        clock.advance(12.5)
        assert cache.age("bitcoin") == pytest.approx(12.5)

    def test_non_positive_ttl_rejected(self, clock):
        with pytest.raises(ValueError):
            TTLCache(ttl_seconds=0, clock=clock)


class TestGetOrLoad:
    """Tests for single-flight loading"""

    @pytest.mark.asyncio
    async def test_loads_on_miss_and_serves_hit(self, cache):
        calls = 0

        async def loader():
            nonlocal calls
            calls += 1
            return ["payload"]

        first = await cache.get_or_load("k", loader)
        second = await cache.get_or_load("k", loader)

        assert first == ["payload"]
        assert second is first
        assert calls == 1

    @pytest.mark.asyncio
    async def test_reloads_after_expiry(self, cache, clock):
        values = iter(["old", "new"])

        async def loader():
            return next(values)

        assert await cache.get_or_load("k", loader) == "old"
        clock.advance(30)
        assert await cache.get_or_load("k", loader) == "new"
        assert cache.get("k") == "new"

    @pytest.mark.asyncio
    async def test_loader_error_propagates_and_is_not_stored(self, cache):
        async def failing():
            raise RuntimeError("upstream down")

        with pytest.raises(RuntimeError, match="upstream down"):
            await cache.get_or_load("k", failing)

        assert cache.get("k") is None
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_concurrent_misses_call_loader_once(self, cache):
        """Verify a second caller waits for the first load instead of loading again"""
        calls = 0
        started = asyncio.Event()
        release = asyncio.Event()

        async def slow_loader():
            nonlocal calls
            calls += 1
            started.set()
            await release.wait()
            return "value"

        first = asyncio.create_task(cache.get_or_load("k", slow_loader))
        await started.wait()
        second = asyncio.create_task(cache.get_or_load("k", slow_loader))
        await asyncio.sleep(0)
        release.set()

        assert await asyncio.gather(first, second) == ["value", "value"]
        assert calls == 1

    @pytest.mark.asyncio
    async def test_concurrent_misses_share_a_failure(self, cache):
        """Verify waiters receive the first loader's exception instead of retrying"""
        calls = 0
        release = asyncio.Event()

        async def failing_loader():
            nonlocal calls
            calls += 1
            await release.wait()
            raise RuntimeError("upstream down")

        tasks = [asyncio.create_task(cache.get_or_load("k", failing_loader)) for _ in range(5)]
        await asyncio.sleep(0)
        release.set()
        results = await asyncio.gather(*tasks, return_exceptions=True)

        assert calls == 1
        assert all(isinstance(r, RuntimeError) for r in results)
        assert cache.get("k") is None
        assert cache.pending == 0

    @pytest.mark.asyncio
    async def test_failed_keys_leave_no_state(self, cache):
        """Verify keys that never load successfully are not retained"""
        async def failing():
            raise LookupError("not found")

        for i in range(50):
            with pytest.raises(LookupError):
                await cache.get_or_load(f"missing-{i}", failing)

        assert len(cache) == 0
        assert cache.pending == 0
        assert cache._inflight == {}

    @pytest.mark.asyncio
    async def test_cancelled_caller_does_not_cancel_load(self, cache):
        release = asyncio.Event()

        async def slow_loader():
            await release.wait()
            return "value"

        caller = asyncio.create_task(cache.get_or_load("k", slow_loader))
        await asyncio.sleep(0)
        caller.cancel()
        with pytest.raises(asyncio.CancelledError):
            await caller

        release.set()
        assert await cache.get_or_load("k", slow_loader) == "value"
        assert cache.get("k") == "value"

    @pytest.mark.asyncio
    async def test_different_keys_load_independently(self, cache):
        loaded = []

        async def loader_for(key):
            loaded.append(key)
            return key.upper()

        assert await cache.get_or_load("a", lambda: loader_for("a")) == "A"
        assert await cache.get_or_load("b", lambda: loader_for("b")) == "B"
        assert loaded == ["a", "b"]
