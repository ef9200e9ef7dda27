"""
Telemetry Decorators for OpenTelemetry Instrumentation.

This module provides decorator-based instrumentation for pool lifecycle
operations. Only the infrequent operations (prewarm, resize, shutdown) are
traced; acquire/release sit on the caller's hot path and are left alone.

Usage:
    from utils.telemetry_decorators import trace_pool_operation

    class ObjectPool:
        @trace_pool_operation(PoolOperation.SHUTDOWN)
        def shutdown(self) -> None:
            ...
"""

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

from opentelemetry import trace
from opentelemetry.trace import SpanKind, Status, StatusCode

from reusepool.enums.monitoring import PoolOperation, SpanAttr

# Type variable for generic function typing
F = TypeVar("F", bound=Callable[..., Any])

# Module-level tracer
tracer = trace.get_tracer(__name__)


def trace_pool_operation(operation: PoolOperation, span_name: str | None = None) -> Callable[[F], F]:
    """
    Decorator for tracing a pool method.

    Creates INTERNAL spans named "{pool name}.{operation}". The decorated
    callable must be a method of an object exposing ``name`` and a
    ``snapshot()`` returning ``max_size``, ``idle`` and ``outstanding``.

    Args:
        operation: Pool operation being traced. Use PoolOperation constants.
        span_name: Custom span name. Defaults to "{pool name}.{operation}".

    Example:
        @trace_pool_operation(PoolOperation.RESIZE)
        def resize(self, max_size: int) -> None:
            ...
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
            pool_name = getattr(self, "name", type(self).__name__)
            name = span_name or f"{pool_name}.{operation.value}"
            with tracer.start_as_current_span(name, kind=SpanKind.INTERNAL) as span:
                span.set_attribute(SpanAttr.POOL_NAME.value, pool_name)
                span.set_attribute(SpanAttr.POOL_OPERATION.value, operation.value)
                span.set_attribute(SpanAttr.OPERATION_NAME.value, func.__name__)

                start_time = time.perf_counter()
                try:
                    result = func(self, *args, **kwargs)
                    span.set_status(Status(StatusCode.OK))
                    return result
                except Exception as e:
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    span.set_attribute(SpanAttr.ERROR_TYPE.value, type(e).__name__)
                    span.set_attribute(SpanAttr.ERROR_MESSAGE.value, str(e))
                    raise
                finally:
                    duration_ms = (time.perf_counter() - start_time) * 1000
                    span.set_attribute(SpanAttr.POOL_DURATION_MS.value, duration_ms)
                    status = self.snapshot()
                    span.set_attribute(SpanAttr.POOL_MAX_SIZE.value, status["max_size"])
                    span.set_attribute(SpanAttr.POOL_IDLE.value, status["idle"])
                    span.set_attribute(SpanAttr.POOL_OUTSTANDING.value, status["outstanding"])

        return wrapper  # type: ignore

    return decorator
