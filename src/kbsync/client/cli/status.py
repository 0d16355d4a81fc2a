"""Status command for kbsync CLI.

Commands:
- status: Show which documents are synced, changed, new or deleted
"""

from __future__ import annotations

import sys
from typing import Any

import click

from kbsync.client.cli.config import build_settings, common_options

_STATUS_COLORS = {
    "synced": "green",
    "modified": "yellow",
    "new": "cyan",
    "deleted": "red",
}


@click.command()
@common_options
def status(**options: Any) -> None:
    """Compare the state file with the directory.

    Does not contact AnythingLLM; shows what the next full sync would do.
    """
    from kbsync.client.state import derive_status, load_state
    from kbsync.client.sync import DocumentFilter
    from kbsync.core.log import setup_logging

    settings = build_settings(options, require_store=False)
    log = setup_logging(settings.log_level, settings.log_file)
    config = settings.sync

    state = load_state(config.state_path, log)
    documents = DocumentFilter.for_directory(
        config.watch_dir, config.extension, config.ignore_patterns
    )
    try:
        on_disk = set(documents.list_documents())
    except OSError as e:
        click.echo(f"Error: cannot read {config.watch_dir}: {e}", err=True)
        sys.exit(1)

    counts: dict[str, int] = dict.fromkeys(_STATUS_COLORS, 0)
    for filename in sorted(on_disk | set(state.filenames())):
        tracked = state.get(filename)
        if filename in on_disk:
            file_status = derive_status(filename, tracked, config.watch_dir)
            if file_status is None:
                continue
            label = file_status.value
        else:
            label = "deleted"
        counts[label] += 1

        line = f"{label:>9}  {filename}"
        if tracked is not None:
            line += f"  (uploaded {tracked.uploaded_at:%Y-%m-%d %H:%M:%S})"
        click.secho(line, fg=_STATUS_COLORS[label])

    click.echo(
        f"\n{len(state)} tracked, "
        + ", ".join(f"{count} {label}" for label, count in counts.items())
    )
