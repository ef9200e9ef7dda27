"""
Object pool implementations.

Exports:
- ObjectPool: Bounded, thread-safe reuse pool with lifecycle hooks
- Lease: Single-use token for one outstanding instance
- PoolMetrics: Counters reported by ObjectPool.snapshot()
- Errors: PoolError and its subclasses
"""

from reusepool.pools.errors import (
    ConfigurationError,
    DoubleReleaseError,
    PoolClosed,
    PoolError,
    PoolExhausted,
)
from reusepool.pools.lease import Lease
from reusepool.pools.object_pool import ObjectPool, PoolMetrics

__all__ = [
    "ConfigurationError",
    "DoubleReleaseError",
    "Lease",
    "ObjectPool",
    "PoolClosed",
    "PoolError",
    "PoolExhausted",
    "PoolMetrics",
]
