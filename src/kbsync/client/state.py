"""Persisted sync state.

This module provides:
- FileState: What was last uploaded for one document
- SyncState: Mapping of filename to FileState
- load_state / save_state: JSON persistence with atomic replace
- FileStatus / derive_status: Status of a file relative to the store

Architecture:
    An entry exists for a filename only once its content has been
    uploaded and embedded in the workspace at the recorded hash.
    The state file is rewritten after every mutation through a temp
    file in the same directory followed by os.replace, so readers
    never observe a partial write.

    A missing or corrupt state file yields an empty state: resyncing
    from scratch is preferred over refusing to start.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from kbsync.core.hashing import hash_content

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class FileStatus(Enum):
    """Derived status of a local file relative to the store."""

    SYNCED = "synced"  # Tracked hash matches disk
    MODIFIED = "modified"  # Tracked, but content changed on disk
    NEW = "new"  # On disk but not tracked
    DELETED = "deleted"  # Tracked but gone from disk


@dataclass
class FileState:
    """A document that has been uploaded and embedded.

    Attributes:
        hash: Content fingerprint at upload time.
        doc_location: Location returned by the store for the upload.
        uploaded_at: When the upload and embedding succeeded.
    """

    hash: str
    doc_location: str
    uploaded_at: datetime

    def to_dict(self) -> dict[str, str]:
        """Serialize for the state file."""
        return {
            "hash": self.hash,
            "doc_location": self.doc_location,
            "uploaded_at": self.uploaded_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FileState:
        """Create from a state file entry.

        Raises:
            ValueError: If hash or doc_location is missing.
        """
        file_hash = data.get("hash")
        location = data.get("doc_location")
        if not isinstance(file_hash, str) or not isinstance(location, str):
            raise ValueError("entry needs string 'hash' and 'doc_location'")

        uploaded_at = _EPOCH
        raw = data.get("uploaded_at")
        if isinstance(raw, str):
            try:
                uploaded_at = datetime.fromisoformat(raw.replace("Z", "+00:00"))
            except ValueError:
                pass
            else:
                if uploaded_at.tzinfo is None:
                    uploaded_at = uploaded_at.replace(tzinfo=timezone.utc)
        return cls(hash=file_hash, doc_location=location, uploaded_at=uploaded_at)


@dataclass
class SyncState:
    """Tracked documents keyed by filename relative to the watched directory."""

    files: dict[str, FileState] = field(default_factory=dict)

    def get(self, filename: str) -> FileState | None:
        """Get the tracked entry for filename, if any."""
        return self.files.get(filename)

    def set(self, filename: str, entry: FileState) -> None:
        """Record an entry (upsert)."""
        self.files[filename] = entry

    def remove(self, filename: str) -> FileState | None:
        """Drop an entry and return it, or None if it was not tracked."""
        return self.files.pop(filename, None)

    def filenames(self) -> list[str]:
        """Return a snapshot of tracked filenames."""
        return list(self.files)

    def __contains__(self, filename: object) -> bool:
        return filename in self.files

    def __len__(self) -> int:
        return len(self.files)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the state file."""
        return {"files": {name: entry.to_dict() for name, entry in self.files.items()}}


def load_state(path: Path, log: logging.Logger | None = None) -> SyncState:
    """Load the state file.

    Never raises: a missing file gives an empty state silently, an
    unreadable or corrupt one gives an empty state and a warning.

    Args:
        path: Path to the JSON state file.
        log: Logger to report problems on.

    Returns:
        Loaded SyncState.
    """
    log = log or logger
    path = Path(path)

    try:
        raw = path.read_bytes()
    except FileNotFoundError:
        return SyncState()
    except OSError as e:
        log.warning("State load failed, starting fresh: %s", e)
        return SyncState()

    try:
        data = json.loads(raw)
    except ValueError as e:
        log.warning("State file %s is corrupt, starting fresh: %s", path, e)
        return SyncState()

    if not isinstance(data, dict):
        log.warning("State file %s has unexpected format, starting fresh", path)
        return SyncState()

    files = data.get("files") or {}
    if not isinstance(files, dict):
        log.warning("State file %s has unexpected format, starting fresh", path)
        return SyncState()

    state = SyncState()
    for name, entry in files.items():
        if not isinstance(entry, dict):
            log.warning("Dropping malformed state entry for %s", name)
            continue
        try:
            state.set(name, FileState.from_dict(entry))
        except ValueError as e:
            log.warning("Dropping malformed state entry for %s: %s", name, e)
    return state


def save_state(state: SyncState, path: Path) -> None:
    """Write the state file atomically.

    Creates parent directories, writes to a temp file in the target
    directory, fsyncs it, then replaces the target.

    Args:
        state: State to persist.
        path: Destination path.

    Raises:
        OSError: If the directory cannot be created or the write fails.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    data = json.dumps(state.to_dict(), indent=2, sort_keys=True)
    with tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    ) as tmp:
        tmp_path = Path(tmp.name)
        try:
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        except BaseException:
            tmp.close()
            tmp_path.unlink(missing_ok=True)
            raise

    try:
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def derive_status(
    filename: str,
    tracked: FileState | None,
    base_path: Path,
) -> FileStatus | None:
    """Derive file status by comparing tracked state with disk.

    Args:
        filename: Filename relative to base_path.
        tracked: Tracked entry (or None).
        base_path: Watched directory.

    Returns:
        FileStatus, or None if the file is neither tracked nor on disk.
    """
    local_path = base_path / filename

    try:
        content = local_path.read_bytes()
    except OSError:
        return FileStatus.DELETED if tracked is not None else None

    if tracked is None:
        return FileStatus.NEW
    if hash_content(content) != tracked.hash:
        return FileStatus.MODIFIED
    return FileStatus.SYNCED
