import pytest

from cache import QueryCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_entries_expire_after_ttl() -> None:
    clock = FakeClock()
    cache = QueryCache(ttl_seconds=300, clock=clock)
    cache.put("this_month", [1, 2])

    clock.now += 300
    assert cache.get("this_month") == [1, 2]

    clock.now += 1
    assert cache.get("this_month") is None
    assert len(cache) == 0


def test_oldest_entry_evicted_past_capacity() -> None:
    cache = QueryCache(ttl_seconds=60, max_entries=2, clock=FakeClock())
    cache.put("a", 1)
    cache.put("b", 2)
    cache.put("a", 10)
    cache.put("c", 3)

    assert cache.get("b") is None
    assert cache.get("a") == 10
    assert cache.get("c") == 3


def test_invalidate_clear_and_prune() -> None:
    clock = FakeClock()
    cache = QueryCache(ttl_seconds=10, clock=clock)
    cache.put("old", 1)
    clock.now += 8
    cache.put("new", 2)
    clock.now += 5

    assert cache.prune_expired() == 1
    assert cache.get("new") == 2

    cache.invalidate("new")
    assert cache.get("new") is None

    cache.put("x", 1)
    cache.clear()
    assert len(cache) == 0


def test_rejects_invalid_configuration() -> None:
    with pytest.raises(ValueError):
        QueryCache(ttl_seconds=0)
    with pytest.raises(ValueError):
        QueryCache(ttl_seconds=5, max_entries=0)
