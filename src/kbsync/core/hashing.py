"""Content fingerprinting for change detection."""

from __future__ import annotations

import hashlib


def hash_content(data: bytes) -> str:
    """Return the MD5 hex digest of data.

    Only used to notice that a file changed since its last sync,
    never for integrity or security.
    """
    return hashlib.md5(data, usedforsecurity=False).hexdigest()
