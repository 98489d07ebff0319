import pytest

from routewise.errors import CacheMiss
from routewise.services.optimizer.cache import ResultCache


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def test_fresh_entry_is_returned(clock):
    cache = ResultCache(ttl_seconds=300, max_entries=10, clock=clock)
    result = object()
    cache.put("k", result)

    clock.now += 299.9
    assert cache.lookup("k") is result
    assert cache.get("k") is result


def test_entry_expires_at_ttl(clock):
    cache = ResultCache(ttl_seconds=300, max_entries=10, clock=clock)
    cache.put("k", object())

    clock.now += 300
    with pytest.raises(CacheMiss):
        cache.lookup("k")
    assert cache.get("k") is None
    # lazily evicted: the stale entry is still held until swept
    assert len(cache) == 1


def test_unknown_key_misses(clock):
    cache = ResultCache(ttl_seconds=300, max_entries=10, clock=clock)
    assert cache.get("missing") is None


def test_put_replaces_and_refreshes(clock):
    cache = ResultCache(ttl_seconds=300, max_entries=10, clock=clock)
    cache.put("k", "old")
    clock.now += 250
    cache.put("k", "new")
    clock.now += 100

    assert cache.get("k") == "new"
    assert len(cache) == 1


def test_sweep_drops_only_stale_entries(clock):
    cache = ResultCache(ttl_seconds=300, max_entries=10, clock=clock)
    cache.put("old", 1)
    clock.now += 200
    cache.put("new", 2)
    clock.now += 150

    assert cache.sweep() == 1
    assert len(cache) == 1
    assert cache.get("new") == 2


def test_full_cache_evicts_stale_then_oldest(clock):
    cache = ResultCache(ttl_seconds=300, max_entries=2, clock=clock)
    cache.put("a", 1)
    clock.now += 10
    cache.put("b", 2)
    clock.now += 10
    cache.put("c", 3)

    assert len(cache) == 2
    assert cache.get("a") is None
    assert cache.get("b") == 2
    assert cache.get("c") == 3


def test_clear(clock):
    cache = ResultCache(ttl_seconds=300, max_entries=10, clock=clock)
    cache.put("a", 1)
    cache.clear()
    assert len(cache) == 0
