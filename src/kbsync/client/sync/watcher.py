"""File system watcher feeding the event loop.

This module provides:
- DirectoryEventHandler: Converts watchdog events into FileEvent messages
- FileWatcher: Watches one directory (non-recursive) with watchdog

The watcher thread never touches sync state; it only posts messages
to the loop's inbox.
"""

from __future__ import annotations

import logging
import queue
from pathlib import Path

from watchdog.events import (
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from kbsync.client.sync.types import FileEvent, FileEventType, LoopMessage

logger = logging.getLogger(__name__)


def _as_path(raw: str | bytes) -> Path:
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    return Path(raw)


class DirectoryEventHandler(FileSystemEventHandler):
    """Posts a FileEvent for every file change directly inside base_path."""

    def __init__(self, base_path: Path, inbox: queue.SimpleQueue[LoopMessage]) -> None:
        """Initialize the handler.

        Args:
            base_path: Resolved directory being watched.
            inbox: Event loop inbox to post messages to.
        """
        super().__init__()
        self._base_path = base_path
        self._inbox = inbox

    def _filename(self, path: Path) -> str | None:
        """Return the name of path if it sits directly in the watched directory."""
        if path.parent != self._base_path:
            return None
        return path.name

    def _post(self, event_type: FileEventType, filename: str) -> None:
        event = FileEvent(event_type=event_type, filename=filename)
        self._inbox.put(LoopMessage.file_event(event))
        logger.debug("Watcher posted %s %s", event_type.value, filename)

    def dispatch(self, event: FileSystemEvent) -> None:
        """Translate a watchdog event; directory events are dropped."""
        if event.is_directory:
            return

        src = self._filename(_as_path(event.src_path))

        if isinstance(event, FileMovedEvent):
            dest = self._filename(_as_path(event.dest_path))
            if src is not None:
                self._post(FileEventType.MOVED, src)
            if dest is not None:
                self._post(FileEventType.CREATED, dest)
            return

        if src is None:
            return
        if isinstance(event, FileCreatedEvent):
            self._post(FileEventType.CREATED, src)
        elif isinstance(event, FileModifiedEvent):
            self._post(FileEventType.MODIFIED, src)
        elif isinstance(event, FileDeletedEvent):
            self._post(FileEventType.DELETED, src)


class FileWatcher:
    """Watches a directory for file changes.

    Posts LoopMessage objects into the event loop inbox.
    """

    def __init__(self, watch_path: Path, inbox: queue.SimpleQueue[LoopMessage]) -> None:
        """Initialize the file watcher.

        Args:
            watch_path: Directory to watch.
            inbox: Event loop inbox.

        Raises:
            ValueError: If watch_path is not a directory.
        """
        self._watch_path = Path(watch_path).resolve()
        if not self._watch_path.is_dir():
            raise ValueError(f"Watch path must be a directory: {watch_path}")

        self._inbox = inbox
        self._handler = DirectoryEventHandler(self._watch_path, inbox)
        self._observer: BaseObserver = Observer()
        self._running = False

    @property
    def watch_path(self) -> Path:
        """Get the watched directory path."""
        return self._watch_path

    @property
    def is_running(self) -> bool:
        """Check if the watcher is running."""
        return self._running

    def start(self) -> None:
        """Start watching for changes."""
        if self._running:
            return

        self._observer.schedule(self._handler, str(self._watch_path), recursive=False)
        self._observer.start()
        self._running = True
        logger.debug("Watching %s", self._watch_path)

    def stop(self) -> None:
        """Stop watching for changes."""
        if not self._running:
            return

        self._observer.stop()
        self._observer.join(timeout=5.0)
        self._running = False

    def __enter__(self) -> FileWatcher:
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.stop()
