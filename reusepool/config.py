"""
Pool Settings
=============

Environment-loaded defaults for object pools.

Environment variables (prefix ``REUSE_POOL_``) override the defaults:
- REUSE_POOL_NAME -> pool name used in logs and snapshots
- REUSE_POOL_MAX_SIZE -> hard cap on instances tracked by the pool
- REUSE_POOL_PREWARM_COUNT -> instances created eagerly at construction
- REUSE_POOL_LOG_LEVEL -> level for the pool logger

Values may also come from a ``.env`` file in the working directory.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ═══════════════════════════════════════════════════════════════════════════════
# DEFAULT VALUES
# ═══════════════════════════════════════════════════════════════════════════════

DEFAULT_POOL_NAME = "object-pool"
DEFAULT_MAX_SIZE = 64
DEFAULT_PREWARM_COUNT = 0


class PoolSettings(BaseSettings):
    """Pool settings with environment variable loading."""

    model_config = SettingsConfigDict(
        env_prefix="REUSE_POOL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    name: str = Field(default=DEFAULT_POOL_NAME, description="Pool name for logging and diagnostics")
    max_size: int = Field(
        default=DEFAULT_MAX_SIZE, ge=1, description="Upper bound on idle + outstanding instances"
    )
    prewarm_count: int = Field(
        default=DEFAULT_PREWARM_COUNT, ge=0, description="Instances created eagerly at construction"
    )
    log_level: str = Field(
        default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @model_validator(mode="after")
    def _check_prewarm_fits(self) -> PoolSettings:
        if self.prewarm_count > self.max_size:
            raise ValueError(
                f"prewarm_count ({self.prewarm_count}) exceeds max_size ({self.max_size})"
            )
        return self

    @property
    def log_level_value(self) -> int:
        """Numeric logging level."""
        return logging.getLevelName(self.log_level)


@lru_cache(maxsize=1)
def get_settings() -> PoolSettings:
    """Get or create settings instance (singleton pattern)."""
    return PoolSettings()


def reload_settings() -> PoolSettings:
    """Force reload of settings (useful for testing)."""
    get_settings.cache_clear()
    return get_settings()


__all__ = [
    "DEFAULT_MAX_SIZE",
    "DEFAULT_POOL_NAME",
    "DEFAULT_PREWARM_COUNT",
    "PoolSettings",
    "get_settings",
    "reload_settings",
]
