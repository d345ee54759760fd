import threading

import pytest

from ratecroft.data.cache import SeriesCache


def test_set_get_and_expiry(cache, clock):
    cache.set("a", 1)
    assert cache.get("a") == 1

    clock.advance(3599)
    assert cache.get("a") == 1

    clock.advance(1)
    assert cache.get("a") is None
    assert cache.get_stale("a") == 1
    assert cache.keys() == []


def test_get_or_load_runs_loader_once(cache):
    calls = []

    def loader():
        calls.append(1)
        return "value"

    assert cache.get_or_load("k", loader) == "value"
    assert cache.get_or_load("k", loader) == "value"
    assert len(calls) == 1


def test_expired_entry_is_reloaded(cache, clock):
    values = iter(["first", "second"])
    cache.get_or_load("k", lambda: next(values))
    clock.advance(3600)
    assert cache.get_or_load("k", lambda: next(values)) == "second"


def test_failed_load_leaves_no_entry(cache):
    def failing():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        cache.get_or_load("k", failing)

    assert cache.get_stale("k") is None
    assert cache.get_or_load("k", lambda: "ok") == "ok"


def test_concurrent_misses_share_one_load():
    cache = SeriesCache(ttl=3600)
    started = threading.Event()
    release = threading.Event()
    calls = []
    results = []

    def loader():
        calls.append(1)
        started.set()
        release.wait(timeout=5)
        return object()

    def worker():
        results.append(cache.get_or_load("k", loader, timeout=5))

    owner = threading.Thread(target=worker)
    owner.start()
    assert started.wait(timeout=5)

    waiters = [threading.Thread(target=worker) for _ in range(9)]
    for t in waiters:
        t.start()
    release.set()
    for t in [owner, *waiters]:
        t.join(timeout=5)

    assert len(calls) == 1
    assert len(results) == 10
    assert all(r is results[0] for r in results)


def test_concurrent_waiters_see_the_loader_error():
    cache = SeriesCache(ttl=3600)
    started = threading.Event()
    release = threading.Event()
    errors = []

    def loader():
        started.set()
        release.wait(timeout=5)
        raise ValueError("upstream down")

    def worker():
        try:
            cache.get_or_load("k", loader, timeout=5)
        except ValueError as e:
            errors.append(e)

    owner = threading.Thread(target=worker)
    owner.start()
    assert started.wait(timeout=5)
    waiter = threading.Thread(target=worker)
    waiter.start()
    release.set()
    owner.join(timeout=5)
    waiter.join(timeout=5)

    # The waiter either shared the owner's failure or retried after it
    assert len(errors) == 2
    assert cache.get_stale("k") is None


def test_len_counts_fresh_keys(cache, clock):
    cache.set("a", 1)
    cache.set("b", 2, ttl=10)
    assert len(cache) == 2
    clock.advance(10)
    assert len(cache) == 1


def test_clear_drops_fresh_and_stale_entries(cache, clock):
    cache.set("a", 1)
    cache.set("b", 2, ttl=10)
    clock.advance(10)

    cache.clear()

    assert len(cache) == 0
    assert cache.get_stale("b") is None
    assert cache.get_or_load("a", lambda: "reloaded") == "reloaded"
