"""Exceptions raised by the object pool."""

from __future__ import annotations


class PoolError(Exception):
    """Base class for all pool errors."""


class ConfigurationError(PoolError, ValueError):
    """Invalid construction or resize parameters."""


class PoolExhausted(PoolError):
    """Every slot is lent out and the pool is at ``max_size``.

    Recoverable by the caller: retry later, raise capacity, or treat it as
    backpressure. The pool never waits or retries internally.
    """

    def __init__(self, name: str, max_size: int) -> None:
        super().__init__(f"Pool '{name}' exhausted: {max_size}/{max_size} instances outstanding")
        self.name = name
        self.max_size = max_size


class DoubleReleaseError(PoolError):
    """An instance was released that is not currently lent out."""


class PoolClosed(PoolError):
    """The pool has been shut down."""


__all__ = [
    "ConfigurationError",
    "DoubleReleaseError",
    "PoolClosed",
    "PoolError",
    "PoolExhausted",
]
