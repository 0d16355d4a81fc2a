"""Health check command for kbsync CLI.

Commands:
- check: Verify AnythingLLM is reachable and accepts the API key
"""

from __future__ import annotations

import sys
from typing import Any

import click

from kbsync.client.cli.config import build_settings, common_options, store_options


@click.command()
@common_options
@store_options
def check(**options: Any) -> None:
    """Check that AnythingLLM answers and accepts the API key.

    Exits with status 1 otherwise; suitable as a container health check.
    """
    from kbsync.client.api import AnythingLLMClient

    settings = build_settings(options)
    store = settings.require_store()

    with AnythingLLMClient(store) as client:
        healthy = client.health_check()

    if not healthy:
        click.echo(
            f"AnythingLLM at {store.base_url} is not reachable or rejected the key", err=True
        )
        sys.exit(1)
    click.echo(f"AnythingLLM at {store.base_url} is reachable")
