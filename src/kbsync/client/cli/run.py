"""Run and one-shot sync commands for the kbsync CLI.

Commands:
- run: Mirror the directory continuously (watcher + periodic full sync)
- sync: Run one full sync and exit
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import click

from kbsync.client.cli.config import CliSettings, build_settings, common_options, store_options

if TYPE_CHECKING:
    from kbsync.client.api import AnythingLLMClient
    from kbsync.client.sync import Syncer


def _connect(settings: CliSettings, log: logging.Logger) -> tuple[AnythingLLMClient, Syncer]:
    """Create the client, syncer, and resolve the workspace.

    Exits with status 1 if the store does not become ready in time.
    """
    from kbsync.client.api import AnythingLLMClient
    from kbsync.client.state import load_state
    from kbsync.client.sync import RETRYABLE_EXCEPTIONS, Syncer, retry_until_ready

    client = AnythingLLMClient(settings.require_store())
    state = load_state(settings.sync.state_path, log)
    log.info("Loaded state with %d tracked files", len(state))
    syncer = Syncer(settings.sync, client, state, log=log)

    try:
        slug = retry_until_ready(
            client,
            settings.sync.workspace,
            settings.sync.ready_timeout,
            log=log,
        )
    except RETRYABLE_EXCEPTIONS as e:
        log.error("AnythingLLM not reachable: %s", e)
        client.close()
        sys.exit(1)

    syncer.use_workspace(slug)
    return client, syncer


@click.command()
@common_options
@store_options
def run(**options: Any) -> None:
    """Mirror the directory into the workspace until interrupted.

    Waits for AnythingLLM, runs a full sync, then reacts to file
    changes and re-runs a full sync every interval. Stops on
    SIGINT/SIGTERM.
    """
    from kbsync.client.sync import (
        EventLoop,
        FileWatcher,
        SyncError,
        Ticker,
        install_signal_handlers,
        restore_signal_handlers,
    )
    from kbsync.core.log import setup_logging

    settings = build_settings(options)
    log = setup_logging(settings.log_level, settings.log_file)
    config = settings.sync

    if not config.watch_dir.is_dir():
        log.error("Watch directory does not exist: %s", config.watch_dir)
        sys.exit(1)

    client, syncer = _connect(settings, log)
    with client:
        loop = EventLoop(syncer, debounce=config.debounce, log=log)
        watcher = FileWatcher(config.watch_dir, loop.inbox)
        ticker = Ticker(loop.inbox, config.sync_interval)
        loop.attach_ticker(ticker)

        # Start watching first so edits made during the initial sync queue up.
        watcher.start()
        try:
            try:
                syncer.full_sync()
            except SyncError as e:
                log.error("Initial sync error: %s", e)

            previous = install_signal_handlers(loop)
            ticker.start()
            log.info(
                "kbsync running (dir=%s, workspace=%s, interval=%.0fs)",
                config.watch_dir,
                syncer.workspace_slug,
                config.sync_interval,
            )
            try:
                loop.run()
            finally:
                restore_signal_handlers(previous)
        finally:
            ticker.stop()
            watcher.stop()


@click.command()
@common_options
@store_options
def sync(**options: Any) -> None:
    """Run a single full sync and exit.

    Exits with status 1 if any file failed to sync.
    """
    from kbsync.client.sync import FullSyncError, SyncError
    from kbsync.core.log import setup_logging

    settings = build_settings(options)
    log = setup_logging(settings.log_level, settings.log_file)

    client, syncer = _connect(settings, log)
    with client:
        try:
            result = syncer.full_sync()
        except FullSyncError as e:
            result = e.result
            click.echo(f"Error: {e}", err=True)
        except SyncError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)

    click.echo(
        f"Uploaded: {len(result.uploaded)}, unchanged: {len(result.unchanged)}, "
        f"deleted: {len(result.deleted)}, failed: {len(result.errors)}"
    )
    if result.errors:
        sys.exit(1)
