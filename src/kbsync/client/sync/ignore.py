"""Eligibility rules for files in the watched directory.

This module provides:
- IgnorePatterns: Glob patterns for filenames that are never synced
- DocumentFilter: Suffix and ignore checks, plus directory listing
- DEFAULT_IGNORE_PATTERNS: Editor lock files that share the document suffix
- IGNORE_FILENAME: Per-directory file with extra patterns
"""

from __future__ import annotations

import fnmatch
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

IGNORE_FILENAME = ".kbsyncignore"

DEFAULT_IGNORE_PATTERNS = [
    ".#*",  # Emacs lock files
    "~$*",  # Office lock files
]


class IgnorePatterns:
    """Handles ignore pattern matching for filenames."""

    def __init__(self, patterns: list[str] | None = None) -> None:
        """Initialize with patterns.

        Args:
            patterns: Glob patterns matched against the filename.
        """
        self._patterns = list(DEFAULT_IGNORE_PATTERNS)
        if patterns:
            self._patterns.extend(patterns)

    @property
    def patterns(self) -> list[str]:
        return list(self._patterns)

    def add_pattern(self, pattern: str) -> None:
        """Add an ignore pattern."""
        self._patterns.append(pattern)

    def load_from_file(self, path: Path) -> None:
        """Load patterns from an ignore file, if it exists.

        An unreadable file is reported and leaves the current patterns.
        """
        if not path.exists():
            return
        try:
            with open(path, encoding="utf-8") as f:
                lines = f.read().splitlines()
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable ignore file %s: %s", path, e)
            return
        for line in lines:
            line = line.strip()
            # Skip comments and empty lines
            if line and not line.startswith("#"):
                self._patterns.append(line)

    def should_ignore(self, filename: str) -> bool:
        """Check if a filename should be ignored.

        Args:
            filename: Name relative to the watched directory.

        Returns:
            True if any pattern matches.
        """
        name = filename.replace("\\", "/").rsplit("/", 1)[-1]
        return any(
            fnmatch.fnmatchcase(name, pattern) or fnmatch.fnmatchcase(filename, pattern)
            for pattern in self._patterns
        )


class DocumentFilter:
    """Decides which files in the watched directory are synced documents."""

    def __init__(self, directory: Path, extension: str, ignore: IgnorePatterns) -> None:
        """Initialize the filter.

        Args:
            directory: Watched directory.
            extension: Document suffix, including the dot.
            ignore: Patterns for names that are never synced.
        """
        self._directory = Path(directory)
        self._extension = extension
        self._ignore = ignore

    @classmethod
    def for_directory(
        cls,
        directory: Path,
        extension: str,
        patterns: list[str] | None = None,
    ) -> DocumentFilter:
        """Build a filter, loading the directory's ignore file if present."""
        ignore = IgnorePatterns(patterns)
        ignore.load_from_file(Path(directory) / IGNORE_FILENAME)
        return cls(directory, extension, ignore)

    @property
    def directory(self) -> Path:
        return self._directory

    def is_document(self, filename: str) -> bool:
        """Check the suffix and ignore rules for filename."""
        return filename.endswith(self._extension) and not self._ignore.should_ignore(filename)

    def list_documents(self) -> list[str]:
        """List eligible regular files directly inside the directory, sorted.

        Raises:
            OSError: If the directory cannot be read.
        """
        with os.scandir(self._directory) as entries:
            return sorted(
                entry.name for entry in entries if self.is_document(entry.name) and entry.is_file()
            )
