"""Single-use lease tokens for pooled instances."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Generic, TypeVar

from reusepool.pools.errors import DoubleReleaseError, PoolError

if TYPE_CHECKING:
    from reusepool.pools.object_pool import ObjectPool

T = TypeVar("T")


class Lease(Generic[T]):
    """
    Capability for one outstanding instance.

    A lease is consumed by its first ``release()``. After that the instance
    is no longer reachable through the lease and a second release raises
    ``DoubleReleaseError`` without touching the pool, so an instance that
    has since been handed to another caller cannot be returned by mistake.

    Example:
        with pool.acquire_lease() as buffer:
            buffer.write(payload)
    """

    __slots__ = ("_pool", "_instance", "_released", "_lock")

    def __init__(self, pool: ObjectPool[T], instance: T) -> None:
        self._pool = pool
        self._instance = instance
        self._released = False
        self._lock = threading.Lock()

    @property
    def instance(self) -> T:
        if self._released:
            raise PoolError("Lease already released; the instance belongs to the pool again")
        return self._instance

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        """Return the instance to its pool. Valid exactly once."""
        with self._lock:
            if self._released:
                raise DoubleReleaseError("Lease already released")
            self._released = True
        instance = self._instance
        self._instance = None
        self._pool.release(instance)

    def __enter__(self) -> T:
        return self.instance

    def __exit__(self, exc_type, exc, tb) -> None:
        if not self._released:
            self.release()

    def __repr__(self) -> str:
        state = "released" if self._released else "outstanding"
        return f"Lease(pool={self._pool.name!r}, {state})"
