"""
reusepool - bounded object reuse for hot loops.

Public API lives in reusepool.pools; settings in reusepool.config.
"""

__version__ = "0.1.0"
