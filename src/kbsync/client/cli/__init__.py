"""Command-line interface for kbsync.

This module provides the main CLI entry point and assembles all commands.

Commands:
- run: Mirror the directory into the workspace continuously
- sync: Run one full sync and exit
- status: Show sync status of each document without contacting the store
- check: Verify AnythingLLM is reachable and accepts the API key
"""

from __future__ import annotations

import click

from kbsync.client.cli.check import check
from kbsync.client.cli.config import CliSettings, build_settings
from kbsync.client.cli.run import run, sync
from kbsync.client.cli.status import status


@click.group()
@click.version_option(package_name="kbsync")
def cli() -> None:
    """kbsync - Mirror a directory of documents into an AnythingLLM workspace."""


cli.add_command(run)
cli.add_command(sync)
cli.add_command(status)
cli.add_command(check)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    "CliSettings",
    "build_settings",
    "cli",
    "main",
]
