"""
ObjectPool - Bounded reuse pool for homogeneous, resettable instances.

Hands out instances to callers and takes them back so a hot loop avoids
repeated construction and teardown. Capacity is a hard cap on idle plus
outstanding instances; when it is reached, acquire fails immediately with
PoolExhausted instead of waiting.

Lifecycle hooks:
1. factory    - builds a new instance (prewarm, or acquire with no idle instance)
2. on_acquire - runs just before an instance is handed out
3. on_release - runs as soon as an instance comes back (reset transient state)
4. on_evict   - runs once when an instance is permanently discarded
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from typing import Any, Generic, TypeVar

from utils.ml_logging import get_logger
from utils.telemetry_decorators import trace_pool_operation

from reusepool.config import DEFAULT_MAX_SIZE, DEFAULT_POOL_NAME, PoolSettings, get_settings
from reusepool.enums.monitoring import PoolOperation
from reusepool.enums.pool_state import PoolState
from reusepool.pools.errors import (
    ConfigurationError,
    DoubleReleaseError,
    PoolClosed,
    PoolError,
    PoolExhausted,
)
from reusepool.pools.lease import Lease

logger = get_logger(__name__)

T = TypeVar("T")

Hook = Callable[[Any], None]


@dataclass
class PoolMetrics:
    """Pool counters for monitoring and diagnostics."""

    created_total: int = 0
    acquired_total: int = 0
    reused_total: int = 0
    released_total: int = 0
    evicted_total: int = 0
    exhausted_total: int = 0


def _check_capacity(max_size: Any) -> int:
    if isinstance(max_size, bool) or not isinstance(max_size, int) or max_size < 1:
        raise ConfigurationError(f"max_size must be an integer >= 1, got: {max_size!r}")
    return max_size


class ObjectPool(Generic[T]):
    """
    Thread-safe object pool with admission control.

    A single lock guards the idle stack, the outstanding set, the capacity
    and the lifecycle state. The factory and all hooks run while that lock
    is held: they must not call back into the same pool or they deadlock.

    Idle instances are reused LIFO. Outstanding instances are tracked by
    identity, so releasing something that is not currently lent out raises
    DoubleReleaseError for any T, hashable or not.

    Args:
        factory: Callable that creates a new instance.
        on_acquire: Optional hook run on an instance before it is handed out.
        on_release: Optional hook run on an instance when it is returned.
        on_evict: Optional hook run on an instance when it is discarded.
        max_size: Maximum number of idle + outstanding instances (>= 1).
        prewarm_count: Instances created eagerly at construction (<= max_size).
        name: Pool name for logging and diagnostics.
        log_level: Optional level for this pool's logger (defaults to INFO).

    Raises:
        ConfigurationError: If the capacity, prewarm count or hooks are invalid.
    """

    def __init__(
        self,
        factory: Callable[[], T],
        *,
        on_acquire: Hook | None = None,
        on_release: Hook | None = None,
        on_evict: Hook | None = None,
        max_size: int = DEFAULT_MAX_SIZE,
        prewarm_count: int = 0,
        name: str = DEFAULT_POOL_NAME,
        log_level: int | None = None,
    ) -> None:
        if not callable(factory):
            logger.error(f"[{name}] Factory must be a callable function")
            raise ConfigurationError("factory must be callable")
        for hook_name, hook in (
            ("on_acquire", on_acquire),
            ("on_release", on_release),
            ("on_evict", on_evict),
        ):
            if hook is not None and not callable(hook):
                raise ConfigurationError(f"{hook_name} must be callable or None")

        max_size = _check_capacity(max_size)
        if isinstance(prewarm_count, bool) or not isinstance(prewarm_count, int) or prewarm_count < 0:
            raise ConfigurationError(f"prewarm_count must be an integer >= 0, got: {prewarm_count!r}")
        if prewarm_count > max_size:
            logger.error(f"[{name}] prewarm_count {prewarm_count} exceeds max_size {max_size}")
            raise ConfigurationError(
                f"prewarm_count ({prewarm_count}) must not exceed max_size ({max_size})"
            )

        self._factory = factory
        self._on_acquire = on_acquire
        self._on_release = on_release
        self._on_evict = on_evict
        self._name = name
        self._max_size = max_size
        # Per-pool child logger; records propagate to the module logger's handler.
        self._logger = get_logger(
            f"{__name__}.{name}", level=log_level, include_stream_handler=False
        )

        # State
        self._lock = threading.Lock()
        self._idle: list[T] = []
        self._outstanding: dict[int, T] = {}
        self._state = PoolState.ACTIVE
        self._metrics = PoolMetrics()

        if prewarm_count > 0:
            self._prewarm(prewarm_count)

        self._logger.info(
            f"[{self._name}] Pool ready (max_size={max_size}, idle={len(self._idle)})",
            extra={"pool_name": self._name, "pool_max_size": max_size},
        )

    @classmethod
    def from_settings(
        cls,
        factory: Callable[[], T],
        settings: PoolSettings | None = None,
        *,
        on_acquire: Hook | None = None,
        on_release: Hook | None = None,
        on_evict: Hook | None = None,
    ) -> ObjectPool[T]:
        """
        Build a pool from PoolSettings (environment defaults when omitted).

        The settings' log level applies to this pool's logger only.
        """
        settings = settings or get_settings()
        return cls(
            factory,
            on_acquire=on_acquire,
            on_release=on_release,
            on_evict=on_evict,
            max_size=settings.max_size,
            prewarm_count=settings.prewarm_count,
            name=settings.name,
            log_level=settings.log_level_value,
        )

    # ---------- Acquire / Release ----------

    def acquire(self) -> T:
        """
        Lend an instance to the caller.

        Priority: idle stack (most recently released first) -> factory.

        Raises:
            PoolClosed: If the pool has been shut down.
            PoolExhausted: If max_size instances are already outstanding.
        """
        with self._lock:
            if self._state is PoolState.CLOSED:
                raise PoolClosed(f"Pool '{self._name}' is closed")

            if self._idle:
                instance = self._idle.pop()
                reused = True
            elif len(self._outstanding) < self._max_size:
                instance = self._create()
                reused = False
            else:
                self._metrics.exhausted_total += 1
                self._logger.warning(
                    f"[{self._name}] Pool exhausted "
                    f"({len(self._outstanding)}/{self._max_size} outstanding)",
                    extra={"pool_name": self._name, "pool_max_size": self._max_size},
                )
                raise PoolExhausted(self._name, self._max_size)

            if self._on_acquire is not None:
                try:
                    self._on_acquire(instance)
                except Exception as e:
                    # Never lent out, so it goes back to idle untouched by on_release.
                    self._idle.append(instance)
                    self._logger.error(f"[{self._name}] on_acquire failed, instance kept idle: {e}")
                    raise

            self._outstanding[id(instance)] = instance
            self._metrics.acquired_total += 1
            if reused:
                self._metrics.reused_total += 1
            self._logger.debug(
                f"[{self._name}] Acquired {'reused' if reused else 'new'} instance "
                f"(outstanding={len(self._outstanding)})"
            )
            return instance

    def release(self, instance: T) -> None:
        """
        Return a lent instance to the pool.

        Runs on_release, then keeps the instance idle while the pool is active
        and under capacity. Otherwise (pool closed, or capacity shrunk by
        resize) the instance is evicted.

        Raises:
            DoubleReleaseError: If the instance is not currently outstanding.
        """
        with self._lock:
            key = id(instance)
            if self._outstanding.get(key) is not instance:
                self._logger.error(f"[{self._name}] Release of an instance that is not outstanding")
                raise DoubleReleaseError(
                    f"Instance {instance!r} is not outstanding in pool '{self._name}'"
                )
            del self._outstanding[key]
            self._metrics.released_total += 1

            if self._on_release is not None:
                try:
                    self._on_release(instance)
                except Exception as e:
                    self._logger.error(f"[{self._name}] on_release failed, evicting instance: {e}")
                    self._evict(instance)
                    raise

            if (
                self._state is PoolState.ACTIVE
                and len(self._idle) + len(self._outstanding) < self._max_size
            ):
                self._idle.append(instance)
                self._logger.debug(
                    f"[{self._name}] Released instance to idle "
                    f"(idle={len(self._idle)}, outstanding={len(self._outstanding)})"
                )
            else:
                self._evict(instance)
                self._logger.debug(
                    f"[{self._name}] Released instance evicted (state={self._state.value})"
                )

    def acquire_lease(self) -> Lease[T]:
        """Acquire an instance wrapped in a single-use Lease."""
        return Lease(self, self.acquire())

    @contextmanager
    def lease(self) -> Iterator[T]:
        """
        Context manager for automatic acquisition and release.

        The instance is released when the block exits, including on error.
        """
        with self.acquire_lease() as instance:
            yield instance

    # ---------- Capacity / Lifecycle ----------

    @trace_pool_operation(PoolOperation.RESIZE)
    def resize(self, max_size: int) -> None:
        """
        Change the capacity at runtime.

        Growing takes effect immediately. Shrinking evicts surplus idle
        instances right away, oldest first; outstanding surplus is evicted as
        those instances are released.

        Raises:
            ConfigurationError: If max_size is not an integer >= 1.
            PoolClosed: If the pool has been shut down.
            PoolError: If on_evict failed for any surplus instance. Every
                surplus instance is still discarded; the first failure is
                chained as the cause.
        """
        max_size = _check_capacity(max_size)
        failures: list[Exception] = []
        with self._lock:
            if self._state is PoolState.CLOSED:
                raise PoolClosed(f"Pool '{self._name}' is closed")

            previous = self._max_size
            self._max_size = max_size
            surplus_count = min(
                len(self._idle), max(len(self._idle) + len(self._outstanding) - max_size, 0)
            )
            surplus, self._idle = self._idle[:surplus_count], self._idle[surplus_count:]
            for instance in surplus:
                try:
                    self._evict(instance)
                except Exception as e:
                    self._logger.error(f"[{self._name}] on_evict failed during resize: {e}")
                    failures.append(e)

        self._logger.info(
            f"[{self._name}] Resized {previous} -> {max_size} "
            f"(evicted {len(surplus)} idle instances)",
            extra={"pool_name": self._name, "pool_max_size": max_size},
        )
        if failures:
            raise PoolError(
                f"Pool '{self._name}': on_evict failed for {len(failures)} instance(s) during resize"
            ) from failures[0]

    @trace_pool_operation(PoolOperation.SHUTDOWN)
    def shutdown(self) -> None:
        """
        Close the pool and evict every idle instance.

        Idempotent. Outstanding instances are untouched; releasing one later
        runs on_release and then on_evict. Any acquire after this fails with
        PoolClosed.

        Raises:
            PoolError: If on_evict failed for any instance. All instances are
                still discarded; the first failure is chained as the cause.
        """
        failures: list[Exception] = []
        with self._lock:
            if self._state is PoolState.CLOSED:
                return
            self._state = PoolState.CLOSED
            idle, self._idle = self._idle, []
            for instance in idle:
                try:
                    self._evict(instance)
                except Exception as e:
                    self._logger.error(f"[{self._name}] on_evict failed during shutdown: {e}")
                    failures.append(e)
            outstanding = len(self._outstanding)

        self._logger.info(
            f"[{self._name}] Pool shutdown complete (evicted={len(idle)}, outstanding={outstanding})",
            extra={"pool_name": self._name, "pool_outstanding": outstanding},
        )
        if failures:
            raise PoolError(
                f"Pool '{self._name}': on_evict failed for {len(failures)} instance(s)"
            ) from failures[0]

    def __enter__(self) -> ObjectPool[T]:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    # ---------- Diagnostics ----------

    def snapshot(self) -> dict[str, Any]:
        """Return current pool status for diagnostics."""
        with self._lock:
            metrics = asdict(self._metrics)
            status = {
                "name": self._name,
                "state": self._state.value,
                "max_size": self._max_size,
                "idle": len(self._idle),
                "outstanding": len(self._outstanding),
            }
        metrics["timestamp"] = time.time()
        status["metrics"] = metrics
        return status

    @property
    def name(self) -> str:
        return self._name

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def idle_count(self) -> int:
        with self._lock:
            return len(self._idle)

    @property
    def state(self) -> PoolState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._state is PoolState.CLOSED

    def __repr__(self) -> str:
        return f"ObjectPool(name={self._name!r}, max_size={self._max_size}, state={self._state.value})"

    # ---------- Internal Methods ----------

    def _create(self) -> T:
        """Call the factory. Caller holds the lock."""
        instance = self._factory()
        self._metrics.created_total += 1
        return instance

    def _evict(self, instance: T) -> None:
        """Discard an instance for good. Caller holds the lock."""
        self._metrics.evicted_total += 1
        if self._on_evict is not None:
            self._on_evict(instance)

    @trace_pool_operation(PoolOperation.PREWARM)
    def _prewarm(self, count: int) -> None:
        """Fill the idle stack with `count` new instances without running on_acquire."""
        self._logger.debug(f"[{self._name}] Pre-warming {count} instances...")
        with self._lock:
            try:
                for _ in range(count):
                    self._idle.append(self._create())
            except Exception as e:
                self._logger.error(f"[{self._name}] Factory failed during prewarm: {e}")
                created, self._idle = self._idle, []
                for instance in created:
                    try:
                        self._evict(instance)
                    except Exception as evict_error:
                        self._logger.error(
                            f"[{self._name}] on_evict failed while unwinding prewarm: {evict_error}"
                        )
                raise
