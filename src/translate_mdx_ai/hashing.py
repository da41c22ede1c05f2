"""Content fingerprints used to detect changed files and sections."""

from __future__ import annotations

import hashlib

HASH_LENGTH = 16


def content_hash(text: str) -> str:
    """Return a short, stable hex digest of ``text`` (SHA-256, truncated)."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:HASH_LENGTH]
