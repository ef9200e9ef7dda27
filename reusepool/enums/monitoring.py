from enum import Enum


# Span attribute keys for pool OpenTelemetry tracing
class SpanAttr(str, Enum):
    """
    Standardized span attribute keys for OpenTelemetry tracing.

    Attribute Categories:
    - Core: Basic identification and error reporting
    - Pool: Capacity and occupancy at the time of the operation
    """

    # ═══════════════════════════════════════════════════════════════════════════
    # CORE ATTRIBUTES - Basic identification and error reporting
    # ═══════════════════════════════════════════════════════════════════════════
    OPERATION_NAME = "operation.name"
    ERROR_TYPE = "error.type"
    ERROR_MESSAGE = "error.message"

    # ═══════════════════════════════════════════════════════════════════════════
    # POOL ATTRIBUTES
    # ═══════════════════════════════════════════════════════════════════════════
    POOL_NAME = "pool.name"
    POOL_OPERATION = "pool.operation"
    POOL_MAX_SIZE = "pool.max_size"
    POOL_IDLE = "pool.idle"
    POOL_OUTSTANDING = "pool.outstanding"
    POOL_DURATION_MS = "pool.duration_ms"


class PoolOperation(str, Enum):
    """Pool operations that are traced (the acquire/release hot path is not)."""

    PREWARM = "prewarm"
    RESIZE = "resize"
    SHUTDOWN = "shutdown"
