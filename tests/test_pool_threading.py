"""
ObjectPool Threading & Concurrency Tests
========================================

Tests validating the pool under parallel callers:

1. Capacity: many threads acquiring and releasing never push idle +
   outstanding above max_size, and never receive the same instance twice.
2. Exhaustion: with more callers than capacity, exactly max_size acquires
   succeed while nothing is released.
3. Shutdown barrier: acquires that start after shutdown() returns fail,
   including while other callers are mid acquire/release, and every
   instance is evicted exactly once.

Run with: pytest tests/test_pool_threading.py -v
"""

import threading
import time
from collections import Counter
from concurrent.futures import ThreadPoolExecutor

from reusepool.pools.errors import PoolClosed, PoolExhausted
from reusepool.pools.object_pool import ObjectPool


class _Tracker:
    """Checks, from inside the hooks, that no instance is lent twice at once."""

    def __init__(self, max_size: int):
        self.max_size = max_size
        self._lock = threading.Lock()
        self.lent: set[int] = set()
        self.peak = 0
        self.violations: list[str] = []
        self.created = 0

    def factory(self) -> object:
        with self._lock:
            self.created += 1
        return object()

    def on_acquire(self, item: object) -> None:
        with self._lock:
            if id(item) in self.lent:
                self.violations.append("aliased acquire")
            self.lent.add(id(item))
            self.peak = max(self.peak, len(self.lent))

    def on_release(self, item: object) -> None:
        with self._lock:
            self.lent.discard(id(item))


def test_concurrent_acquire_release_respects_capacity():
    tracker = _Tracker(max_size=4)
    pool = ObjectPool(
        tracker.factory,
        on_acquire=tracker.on_acquire,
        on_release=tracker.on_release,
        max_size=4,
        name="threaded",
    )
    barrier = threading.Barrier(8)
    exhausted = []

    def worker():
        barrier.wait()
        for _ in range(200):
            try:
                item = pool.acquire()
            except PoolExhausted:
                exhausted.append(1)
                continue
            snap = pool.snapshot()
            assert snap["idle"] + snap["outstanding"] <= 4
            pool.release(item)

    with ThreadPoolExecutor(max_workers=8) as executor:
        futures = [executor.submit(worker) for _ in range(8)]
        for future in futures:
            future.result()

    assert tracker.violations == []
    assert tracker.peak <= 4
    assert tracker.created <= 4
    snap = pool.snapshot()
    assert snap["outstanding"] == 0
    assert snap["idle"] <= 4
    assert snap["metrics"]["acquired_total"] == 8 * 200 - len(exhausted)
    pool.shutdown()


def test_parallel_exhaustion_admits_exactly_max_size():
    pool = ObjectPool(object, max_size=5, name="burst")
    barrier = threading.Barrier(20)

    def grab():
        barrier.wait()
        try:
            return pool.acquire()
        except PoolExhausted:
            return None

    with ThreadPoolExecutor(max_workers=20) as executor:
        results = list(executor.map(lambda _: grab(), range(20)))

    granted = [r for r in results if r is not None]
    assert len(granted) == 5
    assert len({id(r) for r in granted}) == 5
    assert pool.snapshot()["metrics"]["exhausted_total"] == 15
    pool.shutdown()


def test_acquire_after_shutdown_fails_across_threads():
    pool = ObjectPool(object, max_size=2, prewarm_count=2)
    pool.shutdown()

    def grab():
        try:
            pool.acquire()
        except PoolClosed as e:
            return e
        return None

    with ThreadPoolExecutor(max_workers=4) as executor:
        results = list(executor.map(lambda _: grab(), range(4)))

    assert all(isinstance(r, PoolClosed) for r in results)
    assert pool.idle_count == 0


def test_shutdown_races_in_flight_acquires():
    lock = threading.Lock()
    created: list[object] = []
    evictions: Counter = Counter()

    def factory() -> object:
        item = object()
        with lock:
            created.append(item)
        return item

    def on_evict(item: object) -> None:
        with lock:
            evictions[id(item)] += 1

    pool = ObjectPool(factory, on_evict=on_evict, max_size=4, name="racing")
    shutdown_returned = threading.Event()
    start = threading.Barrier(7)
    late_grants: list[object] = []

    def worker():
        start.wait()
        while True:
            started_after_shutdown = shutdown_returned.is_set()
            try:
                item = pool.acquire()
            except PoolExhausted:
                continue
            except PoolClosed:
                return
            if started_after_shutdown:
                late_grants.append(item)
            pool.release(item)

    def closer():
        start.wait()
        time.sleep(0.01)
        pool.shutdown()
        shutdown_returned.set()

    with ThreadPoolExecutor(max_workers=7) as executor:
        futures = [executor.submit(worker) for _ in range(6)]
        futures.append(executor.submit(closer))
        for future in futures:
            future.result(timeout=10)

    assert late_grants == []
    assert 1 <= len(created) <= 4
    assert [evictions[id(item)] for item in created] == [1] * len(created)
    snap = pool.snapshot()
    assert snap["state"] == "closed"
    assert snap["idle"] == 0
    assert snap["outstanding"] == 0
