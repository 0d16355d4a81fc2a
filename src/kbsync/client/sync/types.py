"""Shared types for sync operations.

This module provides:
- SyncError, FileReadError, UploadError, EmbedError, FullSyncError: Exceptions
- SyncResult: Outcome of a full sync pass
- FileEventType, FileEvent: Filesystem change notifications
- MessageKind, LoopMessage: Messages consumed by the event loop
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto


class SyncError(Exception):
    """Base exception for sync errors."""


class FileReadError(SyncError):
    """Failed to read a local file."""


class UploadError(SyncError):
    """Failed to upload a file to the store."""


class EmbedError(SyncError):
    """Failed to embed an uploaded file in the workspace."""


@dataclass
class SyncResult:
    """Result of a full sync pass.

    Attributes:
        uploaded: Files uploaded and embedded in this pass.
        unchanged: Files whose content matched the tracked hash.
        deleted: Tracked files removed because they left the directory.
        errors: Per-file failures, keyed by filename.
    """

    uploaded: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    errors: dict[str, SyncError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """True if every file operation succeeded."""
        return not self.errors


class FullSyncError(SyncError):
    """A full sync finished with per-file failures.

    All operations that succeeded have been applied; result lists
    both outcomes.
    """

    def __init__(self, result: SyncResult) -> None:
        self.result = result
        details = "; ".join(f"{name}: {err}" for name, err in result.errors.items())
        super().__init__(f"sync completed with errors: {details}")


class FileEventType(Enum):
    """Type of filesystem change."""

    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"
    MOVED = "moved"


@dataclass(frozen=True)
class FileEvent:
    """A change notification for a file in the watched directory.

    For MOVED events, filename is the source name that left the
    directory.
    """

    event_type: FileEventType
    filename: str

    @property
    def is_removal(self) -> bool:
        """True for events that mean the file is gone."""
        return self.event_type in (FileEventType.DELETED, FileEventType.MOVED)


class MessageKind(Enum):
    """Source of a loop message."""

    FILE_EVENT = auto()
    TICK = auto()
    SHUTDOWN = auto()


@dataclass(frozen=True)
class LoopMessage:
    """One unit of work for the event loop."""

    kind: MessageKind
    event: FileEvent | None = None

    @classmethod
    def file_event(cls, event: FileEvent) -> LoopMessage:
        return cls(MessageKind.FILE_EVENT, event)

    @classmethod
    def tick(cls) -> LoopMessage:
        return cls(MessageKind.TICK)

    @classmethod
    def shutdown(cls) -> LoopMessage:
        return cls(MessageKind.SHUTDOWN)
