from enum import Enum


class PoolState(str, Enum):
    """Observable pool lifecycle state. ACTIVE -> CLOSED is one-way."""

    ACTIVE = "active"
    CLOSED = "closed"
