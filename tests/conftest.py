"""Shared fixtures for kbsync tests."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from kbsync.client.api import APIError
from kbsync.client.state import SyncState
from kbsync.client.sync.engine import Syncer
from kbsync.core.config import SyncConfig

FIXED_NOW = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


class FakeDocumentStore:
    """In-memory document store recording every call.

    Failures can be injected per filename (upload) or per location
    (embed/remove), or globally for ensure_workspace.
    """

    def __init__(self, slug: str | None = None) -> None:
        self.slug = slug
        self.uploads: list[tuple[str, bytes]] = []
        self.adds: list[tuple[str, list[str]]] = []
        self.removes: list[tuple[str, list[str]]] = []
        self.ensure_calls: list[str] = []
        self.fail_upload: set[str] = set()
        self.fail_embed: set[str] = set()
        self.fail_remove = False
        self.ensure_failures = 0
        self._counter = 0

    def ensure_workspace(self, name: str) -> str:
        self.ensure_calls.append(name)
        if self.ensure_failures > 0:
            self.ensure_failures -= 1
            raise APIError("connection refused")
        return self.slug or name

    def upload_document(self, filename: str, content: bytes) -> str:
        if filename in self.fail_upload:
            raise APIError(f"upload rejected for {filename}", 500)
        self._counter += 1
        self.uploads.append((filename, content))
        return f"custom-documents/{filename}-{self._counter}.json"

    def add_to_workspace(self, slug: str, locations: list[str]) -> None:
        for location in locations:
            name = location.split("/", 1)[-1].rsplit("-", 1)[0]
            if name in self.fail_embed:
                raise APIError(f"embedding failed for {location}", 500)
        self.adds.append((slug, list(locations)))

    def remove_from_workspace(self, slug: str, locations: list[str]) -> None:
        if self.fail_remove:
            raise APIError("remove failed", 503)
        self.removes.append((slug, list(locations)))

    @property
    def uploaded_names(self) -> list[str]:
        return [name for name, _ in self.uploads]


@pytest.fixture
def watch_dir(tmp_path: Path) -> Path:
    """Create an empty watched directory."""
    path = tmp_path / "intels"
    path.mkdir()
    return path


@pytest.fixture
def state_path(tmp_path: Path) -> Path:
    """Path of the state file (not created)."""
    return tmp_path / "state" / "kb-maintainer.json"


@pytest.fixture
def sync_config(watch_dir: Path, state_path: Path) -> SyncConfig:
    """Sync configuration pointing at the temp directory."""
    return SyncConfig(watch_dir=watch_dir, state_path=state_path, workspace="kb")


@pytest.fixture
def store() -> FakeDocumentStore:
    """Fake document store."""
    return FakeDocumentStore()


@pytest.fixture
def syncer(sync_config: SyncConfig, store: FakeDocumentStore) -> Syncer:
    """Syncer over an empty state with a fixed clock."""
    return Syncer(sync_config, store, SyncState(), clock=lambda: FIXED_NOW)
