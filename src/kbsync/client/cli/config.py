"""Shared options and configuration loading for the kbsync CLI.

Settings come from the environment variables the service reads when run
in a container, so `kbsync run` needs no flags there. A flag given on the
command line overrides its variable.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeVar

import click

from kbsync.core.config import (
    API_KEY_VARIABLE,
    DEFAULT_READY_TIMEOUT,
    DEFAULT_STATE_PATH,
    DEFAULT_SYNC_INTERVAL,
    DEFAULT_URL,
    DEFAULT_WATCH_DIR,
    DEFAULT_WORKSPACE,
    ConfigError,
    StoreConfig,
    SyncConfig,
    load_config_from_env,
)

F = TypeVar("F", bound=Callable[..., Any])

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]

_PATH = click.Path(path_type=Path)

# Option name -> environment variable it overrides
_OPTION_VARIABLES = {
    "watch_dir": "INTELS_DIR",
    "state_path": "STATE_PATH",
    "url": "ANYTHINGLLM_URL",
    "api_key": API_KEY_VARIABLE,
    "workspace": "ANYTHINGLLM_WORKSPACE",
    "interval": "SYNC_INTERVAL",
    "ready_timeout": "READY_TIMEOUT",
}

_COMMON_OPTIONS = [
    click.option(
        "--dir",
        "watch_dir",
        type=_PATH,
        default=None,
        help=f"Directory of documents to mirror [env INTELS_DIR, default {DEFAULT_WATCH_DIR}].",
    ),
    click.option(
        "--state",
        "state_path",
        type=_PATH,
        default=None,
        help=f"JSON file recording synced documents [env STATE_PATH, default {DEFAULT_STATE_PATH}].",
    ),
    click.option(
        "--ignore",
        "ignore_patterns",
        multiple=True,
        help="Extra filename glob to skip, added to KBSYNC_IGNORE (repeatable).",
    ),
    click.option(
        "--log-level",
        type=click.Choice(LOG_LEVELS, case_sensitive=False),
        default="INFO",
        envvar="KBSYNC_LOG_LEVEL",
        show_default=True,
        help="Log level.",
    ),
    click.option(
        "--log-file",
        type=_PATH,
        default=None,
        envvar="KBSYNC_LOG_FILE",
        help="Also write logs to this file.",
    ),
]

_STORE_OPTIONS = [
    click.option(
        "--url",
        default=None,
        help=f"AnythingLLM base URL [env ANYTHINGLLM_URL, default {DEFAULT_URL}].",
    ),
    click.option(
        "--api-key",
        default=None,
        help=f"AnythingLLM API key [env {API_KEY_VARIABLE}].",
    ),
    click.option(
        "--workspace",
        default=None,
        help=f"Workspace name [env ANYTHINGLLM_WORKSPACE, default {DEFAULT_WORKSPACE}].",
    ),
    click.option(
        "--interval",
        default=None,
        help=f"Time between full syncs, e.g. 30s, 5m, 1h "
        f"[env SYNC_INTERVAL, default {DEFAULT_SYNC_INTERVAL}].",
    ),
    click.option(
        "--ready-timeout",
        default=None,
        help=f"How long to wait for AnythingLLM at startup "
        f"[env READY_TIMEOUT, default {DEFAULT_READY_TIMEOUT}].",
    ),
]


def _apply(options: list[Callable[[F], F]], func: F) -> F:
    for option in reversed(options):
        func = option(func)
    return func


def common_options(func: F) -> F:
    """Add directory, state, ignore and logging options."""
    return _apply(_COMMON_OPTIONS, func)


def store_options(func: F) -> F:
    """Add AnythingLLM connection and timing options."""
    return _apply(_STORE_OPTIONS, func)


@dataclass
class CliSettings:
    """Configuration assembled from the environment and CLI options."""

    sync: SyncConfig
    store: StoreConfig | None
    log_level: int
    log_file: Path | None

    def require_store(self) -> StoreConfig:
        """Return the store config, or fail the command if there is none.

        Raises:
            click.UsageError: If no API key was configured.
        """
        if self.store is None:
            raise click.UsageError(
                f"an API key is required (--api-key or {API_KEY_VARIABLE})"
            )
        return self.store


def build_settings(
    options: dict[str, Any],
    *,
    require_store: bool = True,
    environ: Mapping[str, str] | None = None,
) -> CliSettings:
    """Turn parsed click options into configuration objects.

    Options given on the command line replace the matching environment
    variable; the result is parsed by load_config_from_env.

    Args:
        options: Keyword arguments received by the command.
        require_store: Whether an API key is mandatory.
        environ: Environment to read (defaults to os.environ).

    Returns:
        CliSettings.

    Raises:
        click.UsageError: If the configuration is invalid.
    """
    env = dict(os.environ if environ is None else environ)
    for option, variable in _OPTION_VARIABLES.items():
        value = options.get(option)
        if value is not None:
            env[variable] = str(value)

    try:
        store, sync = load_config_from_env(env, require_api_key=require_store)
    except ConfigError as e:
        raise click.UsageError(str(e)) from e
    sync.ignore_patterns.extend(options.get("ignore_patterns") or ())

    level_name = str(options.get("log_level") or "INFO").upper()
    return CliSettings(
        sync=sync,
        store=store,
        log_level=logging.getLevelName(level_name),
        log_file=options.get("log_file"),
    )
