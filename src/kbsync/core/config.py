"""Configuration classes for kbsync.

This module provides:
- StoreConfig: Connection settings for the AnythingLLM document store
- SyncConfig: Settings for the directory synchronizer
- parse_duration: Parse "5m", "90s", "1h30m" style durations
- load_config_from_env: Build both configs from environment variables
"""

from __future__ import annotations

import math
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_URL = "http://anythingllm:3001"
DEFAULT_WORKSPACE = "intels"
DEFAULT_WATCH_DIR = "/intels"
DEFAULT_STATE_PATH = "/state/kb-maintainer.json"
DEFAULT_SYNC_INTERVAL = "5m"
DEFAULT_READY_TIMEOUT = "5m"

API_KEY_VARIABLE = "ANYTHINGLLM_API_KEY"

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_UNIT_SECONDS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


class ConfigError(Exception):
    """Invalid or missing configuration."""


@dataclass
class StoreConfig:
    """Configuration for connecting to an AnythingLLM instance.

    Attributes:
        base_url: Base URL of the instance (e.g., "http://anythingllm:3001").
        api_key: API key sent as a bearer token.
        timeout: Per-request timeout in seconds.
    """

    base_url: str
    api_key: str
    timeout: float = 60.0

    def __post_init__(self) -> None:
        """Normalize base URL."""
        self.base_url = self.base_url.rstrip("/")


@dataclass
class SyncConfig:
    """Configuration for the directory synchronizer.

    Attributes:
        watch_dir: Directory whose documents are mirrored.
        state_path: JSON file recording what has been synced.
        workspace: Workspace name requested from the store.
        sync_interval: Seconds between periodic full syncs.
        extension: Only files with this suffix are synced.
        debounce: Seconds to wait after a change notification before reading.
        ready_timeout: Seconds to wait for the store at startup.
        ignore_patterns: Extra glob patterns to skip.
    """

    watch_dir: Path
    state_path: Path
    workspace: str = DEFAULT_WORKSPACE
    sync_interval: float = 300.0
    extension: str = ".md"
    debounce: float = 0.2
    ready_timeout: float = 300.0
    ignore_patterns: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.watch_dir = Path(self.watch_dir)
        self.state_path = Path(self.state_path)
        if self.sync_interval <= 0:
            raise ConfigError(f"sync interval must be positive, got {self.sync_interval}")
        if not self.extension.startswith("."):
            self.extension = "." + self.extension


def parse_duration(value: str) -> float:
    """Parse a duration string into seconds.

    Accepts compound forms such as "1h30m", "90s", "250ms", or a bare
    number of seconds.

    Args:
        value: Duration string.

    Returns:
        Duration in seconds.

    Raises:
        ConfigError: If the string is not a valid positive duration.
    """
    text = value.strip()
    if not text:
        raise ConfigError("empty duration")

    try:
        seconds = float(text)
    except ValueError:
        pos = 0
        seconds = 0.0
        for match in _DURATION_PART.finditer(text):
            if match.start() != pos:
                break
            seconds += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
            pos = match.end()
        if pos != len(text):
            raise ConfigError(f"invalid duration {value!r}") from None

    if not math.isfinite(seconds) or seconds <= 0:
        raise ConfigError(f"duration must be positive: {value!r}")
    return seconds


def load_config_from_env(
    environ: Mapping[str, str] | None = None,
    *,
    require_api_key: bool = True,
) -> tuple[StoreConfig | None, SyncConfig]:
    """Build configuration from environment variables.

    Variables: ANYTHINGLLM_URL, ANYTHINGLLM_API_KEY, ANYTHINGLLM_WORKSPACE,
    INTELS_DIR, STATE_PATH, SYNC_INTERVAL, READY_TIMEOUT, and KBSYNC_IGNORE
    (comma-separated glob patterns). Empty values fall back to defaults.

    Args:
        environ: Mapping to read from (defaults to os.environ).
        require_api_key: Raise if no API key is set; otherwise the store
            config is None when the key is missing.

    Returns:
        Tuple of (StoreConfig or None, SyncConfig).

    Raises:
        ConfigError: If the API key is required but missing, or a duration is invalid.
    """
    env = os.environ if environ is None else environ

    api_key = env.get(API_KEY_VARIABLE, "")
    if not api_key and require_api_key:
        raise ConfigError(f"an API key is required (--api-key or {API_KEY_VARIABLE})")

    interval_raw = env.get("SYNC_INTERVAL") or DEFAULT_SYNC_INTERVAL
    try:
        interval = parse_duration(interval_raw)
    except ConfigError as e:
        raise ConfigError(f"invalid SYNC_INTERVAL {interval_raw!r}: {e}") from e

    ready_raw = env.get("READY_TIMEOUT") or DEFAULT_READY_TIMEOUT
    try:
        ready_timeout = parse_duration(ready_raw)
    except ConfigError as e:
        raise ConfigError(f"invalid READY_TIMEOUT {ready_raw!r}: {e}") from e

    ignore_raw = env.get("KBSYNC_IGNORE") or ""
    ignore_patterns = [p.strip() for p in ignore_raw.split(",") if p.strip()]

    store = None
    if api_key:
        store = StoreConfig(
            base_url=env.get("ANYTHINGLLM_URL") or DEFAULT_URL,
            api_key=api_key,
        )
    sync = SyncConfig(
        watch_dir=Path(env.get("INTELS_DIR") or DEFAULT_WATCH_DIR),
        state_path=Path(env.get("STATE_PATH") or DEFAULT_STATE_PATH),
        workspace=env.get("ANYTHINGLLM_WORKSPACE") or DEFAULT_WORKSPACE,
        sync_interval=interval,
        ready_timeout=ready_timeout,
        ignore_patterns=ignore_patterns,
    )
    return store, sync
