"""Sync engine mirroring a directory into a document store workspace.

This module provides:
- Syncer: Uploads new and changed documents, removes deleted ones, and
  keeps the persisted state consistent with what the workspace holds

Every mutation of the state is followed by a save. Remote failures
never leave a half-recorded entry: an entry is written only after both
upload and embedding succeeded.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from kbsync.client.state import FileState, save_state
from kbsync.client.sync.ignore import DocumentFilter
from kbsync.client.sync.types import (
    EmbedError,
    FileReadError,
    FullSyncError,
    SyncError,
    SyncResult,
    UploadError,
)
from kbsync.core.hashing import hash_content

if TYPE_CHECKING:
    from pathlib import Path

    from kbsync.client.api import DocumentStore
    from kbsync.client.state import SyncState
    from kbsync.core.config import SyncConfig

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Syncer:
    """Keeps a workspace in sync with the documents of a directory."""

    def __init__(
        self,
        config: SyncConfig,
        store: DocumentStore,
        state: SyncState,
        log: logging.Logger | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the syncer.

        Args:
            config: Sync settings (directory, state path, workspace, suffix).
            store: Document store to upload to.
            state: State loaded at startup; mutated in place.
            log: Logger to report on (defaults to the module logger).
            clock: Returns the current time for uploaded_at.
        """
        self._config = config
        self._store = store
        self._state = state
        self._log = log or logger
        self._clock = clock or _utcnow
        self._workspace_slug = config.workspace

        self._documents = DocumentFilter.for_directory(
            config.watch_dir, config.extension, config.ignore_patterns
        )

    @property
    def state(self) -> SyncState:
        """Current in-memory state."""
        return self._state

    @property
    def watch_dir(self) -> Path:
        return self._config.watch_dir

    @property
    def workspace_slug(self) -> str:
        """Slug used for all workspace operations."""
        return self._workspace_slug

    def use_workspace(self, slug: str) -> None:
        """Switch to the slug the store actually assigned."""
        if slug != self._workspace_slug:
            self._log.info(
                "Workspace slug differs from configured name, using actual slug "
                "(configured=%s, actual=%s)",
                self._workspace_slug,
                slug,
            )
        self._workspace_slug = slug

    def is_eligible(self, filename: str) -> bool:
        """Check whether filename is a document this syncer manages."""
        return self._documents.is_document(filename)

    def list_eligible(self) -> list[str]:
        """List eligible regular files directly inside the watched directory.

        Raises:
            SyncError: If the directory cannot be read.
        """
        try:
            return self._documents.list_documents()
        except OSError as e:
            raise SyncError(f"read dir {self._config.watch_dir}: {e}") from e

    def _persist(self) -> None:
        try:
            save_state(self._state, self._config.state_path)
        except OSError as e:
            self._log.warning("State save failed: %s", e)

    def sync_file(self, filename: str) -> bool:
        """Upload filename if its content changed since the last sync.

        Args:
            filename: Name relative to the watched directory.

        Returns:
            True if the file was uploaded and embedded, False if unchanged.

        Raises:
            FileReadError: If the file cannot be read.
            UploadError: If the upload fails.
            EmbedError: If adding the upload to the workspace fails.
        """
        path = self._config.watch_dir / filename
        try:
            content = path.read_bytes()
        except OSError as e:
            raise FileReadError(f"read {filename}: {e}") from e

        content_hash = hash_content(content)
        existing = self._state.get(filename)
        if existing is not None and existing.hash == content_hash:
            self._log.debug("Unchanged, skip: %s", filename)
            return False

        self._log.info("Uploading %s", filename)
        try:
            location = self._store.upload_document(filename, content)
        except Exception as e:
            raise UploadError(f"upload {filename}: {e}") from e

        try:
            self._store.add_to_workspace(self._workspace_slug, [location])
        except Exception as e:
            raise EmbedError(f"embed {filename}: {e}") from e

        self._state.set(
            filename,
            FileState(hash=content_hash, doc_location=location, uploaded_at=self._clock()),
        )
        self._persist()
        self._log.info("Synced %s (location=%s)", filename, location)
        return True

    def delete_file(self, filename: str) -> bool:
        """Remove filename from the workspace and stop tracking it.

        A failed remote removal is logged and does not keep the entry:
        local tracking moves on even if the store keeps an orphan.

        Args:
            filename: Name relative to the watched directory.

        Returns:
            True if a tracked entry was removed, False if it was not tracked.
        """
        entry = self._state.get(filename)
        if entry is None:
            return False

        self._log.info("Removing %s", filename)
        try:
            self._store.remove_from_workspace(self._workspace_slug, [entry.doc_location])
        except Exception as e:
            self._log.warning("Remove from workspace failed for %s: %s", filename, e)

        self._state.remove(filename)
        self._persist()
        return True

    def full_sync(self) -> SyncResult:
        """Reconcile the whole directory with the workspace.

        Syncs every eligible file, then drops tracked entries whose file
        is gone. One file failing does not stop the others.

        Returns:
            SyncResult when every operation succeeded.

        Raises:
            SyncError: If the directory cannot be listed.
            FullSyncError: If some files failed; the rest were applied.
        """
        self._log.info("Full sync started (dir=%s)", self._config.watch_dir)
        result = SyncResult()

        seen: set[str] = set()
        for filename in self.list_eligible():
            seen.add(filename)
            try:
                if self.sync_file(filename):
                    result.uploaded.append(filename)
                else:
                    result.unchanged.append(filename)
            except SyncError as e:
                self._log.error("Sync error for %s: %s", filename, e)
                result.errors[filename] = e

        # Tracked files that no longer exist on disk
        for filename in self._state.filenames():
            if filename not in seen and self.delete_file(filename):
                result.deleted.append(filename)

        if result.errors:
            raise FullSyncError(result)

        self._log.info(
            "Full sync complete (uploaded=%d, unchanged=%d, deleted=%d)",
            len(result.uploaded),
            len(result.unchanged),
            len(result.deleted),
        )
        return result
