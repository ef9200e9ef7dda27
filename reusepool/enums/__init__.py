from reusepool.enums.monitoring import PoolOperation, SpanAttr
from reusepool.enums.pool_state import PoolState

__all__ = ["PoolOperation", "PoolState", "SpanAttr"]
