"""Core module - Shared configuration, hashing, and logging."""

from kbsync.core.config import (
    ConfigError,
    StoreConfig,
    SyncConfig,
    load_config_from_env,
    parse_duration,
)
from kbsync.core.hashing import hash_content
from kbsync.core.log import setup_logging

__all__ = [
    # Config
    "ConfigError",
    "StoreConfig",
    "SyncConfig",
    "load_config_from_env",
    "parse_duration",
    # Hashing
    "hash_content",
    # Logging
    "setup_logging",
]
