"""Directory-to-workspace synchronization.

Architecture:
    FileWatcher / Ticker / signals → inbox → EventLoop → Syncer → DocumentStore

Components:
- **Syncer**: Per-file sync and delete, plus full-directory reconciliation
- **EventLoop**: Single consumer of the inbox; sole caller of the Syncer
- **FileWatcher**: watchdog-based producer of file change messages
- **Ticker**: Producer of periodic full-sync messages
- **retry_until_ready**: Startup gate resolving the actual workspace slug
"""

from kbsync.client.sync.engine import Syncer
from kbsync.client.sync.ignore import (
    DEFAULT_IGNORE_PATTERNS,
    IGNORE_FILENAME,
    DocumentFilter,
    IgnorePatterns,
)
from kbsync.client.sync.loop import (
    EventLoop,
    LoopState,
    Ticker,
    install_signal_handlers,
    restore_signal_handlers,
)
from kbsync.client.sync.retry import (
    DEFAULT_BACKOFF_MULTIPLIER,
    DEFAULT_INITIAL_BACKOFF,
    DEFAULT_MAX_BACKOFF,
    RETRYABLE_EXCEPTIONS,
    retry_until_ready,
)
from kbsync.client.sync.types import (
    EmbedError,
    FileEvent,
    FileEventType,
    FileReadError,
    FullSyncError,
    LoopMessage,
    MessageKind,
    SyncError,
    SyncResult,
    UploadError,
)
from kbsync.client.sync.watcher import DirectoryEventHandler, FileWatcher

__all__ = [
    # Engine
    "Syncer",
    # Ignore rules
    "DEFAULT_IGNORE_PATTERNS",
    "IGNORE_FILENAME",
    "DocumentFilter",
    "IgnorePatterns",
    # Event loop
    "EventLoop",
    "LoopState",
    "Ticker",
    "install_signal_handlers",
    "restore_signal_handlers",
    # Retry
    "DEFAULT_BACKOFF_MULTIPLIER",
    "DEFAULT_INITIAL_BACKOFF",
    "DEFAULT_MAX_BACKOFF",
    "RETRYABLE_EXCEPTIONS",
    "retry_until_ready",
    # Types
    "EmbedError",
    "FileEvent",
    "FileEventType",
    "FileReadError",
    "FullSyncError",
    "LoopMessage",
    "MessageKind",
    "SyncError",
    "SyncResult",
    "UploadError",
    # Watcher
    "DirectoryEventHandler",
    "FileWatcher",
]
