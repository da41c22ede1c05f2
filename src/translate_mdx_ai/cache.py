"""
Translation cache for translate-mdx-ai.

Stores, per source file and target language, the source hash and, per
section, the source hash and translated text. Unchanged files and sections
are never sent to the translator again.

The cache is one JSON document, loaded once at startup and written once at
shutdown.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from translate_mdx_ai.errors import CacheCorruptionError
from translate_mdx_ai.hashing import content_hash
from translate_mdx_ai.jsonfile import write_json_atomic
from translate_mdx_ai.parsing.sections import Section

logger = logging.getLogger(__name__)

CACHE_VERSION = "1.0"


def cache_key(source_path: Path | str, target_lang: str) -> str:
    """Key of a file entry: source path qualified by target language."""
    return f"{Path(source_path).as_posix()}::{target_lang}"


@dataclass
class SectionCacheEntry:
    """Cached translation of one section."""

    id: str
    source_hash: str
    translated_content: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "sourceHash": self.source_hash,
            "translatedContent": self.translated_content,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SectionCacheEntry:
        return cls(
            id=data["id"],
            source_hash=data["sourceHash"],
            translated_content=data.get("translatedContent", ""),
        )


@dataclass
class FileCacheEntry:
    """Cached translation state of one file for one language pair."""

    source_hash: str
    target_hash: str
    source_lang: str
    target_lang: str
    translated_at: str
    sections: list[SectionCacheEntry] = field(default_factory=list)

    def section(self, section_id: str) -> SectionCacheEntry | None:
        for entry in self.sections:
            if entry.id == section_id:
                return entry
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "sourceHash": self.source_hash,
            "targetHash": self.target_hash,
            "sourceLang": self.source_lang,
            "targetLang": self.target_lang,
            "translatedAt": self.translated_at,
            "sections": [s.to_dict() for s in self.sections],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FileCacheEntry:
        return cls(
            source_hash=data["sourceHash"],
            target_hash=data.get("targetHash", ""),
            source_lang=data["sourceLang"],
            target_lang=data["targetLang"],
            translated_at=data.get("translatedAt", ""),
            sections=[SectionCacheEntry.from_dict(s) for s in data.get("sections", [])],
        )


@dataclass
class SectionRecord:
    """Input to ``CacheStore.record_file_translation`` for one section."""

    id: str
    content: str
    translated_content: str


class CacheStore:
    """
    JSON-backed translation cache.

    Read-only while deciding what to translate; entries are overwritten after
    each successful file translation. ``path=None`` keeps the cache in memory.
    """

    def __init__(self, path: Path | str | None = None):
        """
        Initialize cache store.

        Args:
            path: Cache file location. None for an in-memory cache.
        """
        self.path = Path(path) if path is not None else None
        self._files: dict[str, FileCacheEntry] = {}
        self._dirty = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def load(self) -> None:
        """
        Load the cache file.

        Loading is all-or-nothing: a missing, unreadable, corrupt or
        version-mismatched file leaves the cache empty. An in-memory cache
        keeps its entries.
        """
        if self.path is None:
            return

        self._files = {}
        self._dirty = False
        if not self.path.exists():
            return

        try:
            self._files = self._read(self.path)
        except CacheCorruptionError as e:
            logger.warning("Discarding translation cache: %s", e)
            self._files = {}

        logger.debug("Loaded %d cache entries from %s", len(self._files), self.path)

    @staticmethod
    def _read(path: Path) -> dict[str, FileCacheEntry]:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CacheCorruptionError(f"cannot read cache: {e}", path) from e

        if not isinstance(data, dict):
            raise CacheCorruptionError("cache root is not an object", path)

        version = data.get("version")
        if version != CACHE_VERSION:
            raise CacheCorruptionError(
                f"cache version {version!r} does not match {CACHE_VERSION!r}", path
            )

        try:
            return {
                key: FileCacheEntry.from_dict(entry)
                for key, entry in (data.get("files") or {}).items()
            }
        except (KeyError, TypeError, AttributeError) as e:
            raise CacheCorruptionError(f"malformed cache entry: {e}", path) from e

    def save(self) -> bool:
        """
        Write the cache if it changed since loading.

        Returns:
            True if a file was written.
        """
        if not self._dirty or self.path is None:
            return False

        payload = {
            "version": CACHE_VERSION,
            "files": {key: entry.to_dict() for key, entry in sorted(self._files.items())},
        }
        write_json_atomic(self.path, payload)
        self._dirty = False
        logger.info("Saved %d cache entries to %s", len(self._files), self.path)
        return True

    def clear(self) -> None:
        """Drop all entries; the next save writes an empty cache."""
        self._files = {}
        self._dirty = True

    @property
    def dirty(self) -> bool:
        return self._dirty

    def __len__(self) -> int:
        return len(self._files)

    def keys(self) -> Iterator[str]:
        return iter(self._files)

    def entry(self, key: str) -> FileCacheEntry | None:
        return self._files.get(key)

    # ------------------------------------------------------------------
    # Skip decisions
    # ------------------------------------------------------------------

    def needs_file_translation(
        self,
        key: str,
        source_text: str,
        source_lang: str,
        target_lang: str,
    ) -> bool:
        """
        Check whether a file must be (re)translated.

        Returns False only for an entry with the same language pair and the
        same source hash.
        """
        entry = self._files.get(key)
        if entry is None:
            return True
        if entry.source_lang != source_lang or entry.target_lang != target_lang:
            return True
        return entry.source_hash != content_hash(source_text)

    def changed_section_ids(self, key: str, sections: Iterable[Section]) -> list[str]:
        """
        Ids of sections whose content differs from the cached content.

        With no cache entry for the file, every section id is returned.
        Sections unknown to the cache count as changed.
        """
        sections = list(sections)
        entry = self._files.get(key)
        if entry is None:
            return [s.id for s in sections]

        cached = {s.id: s.source_hash for s in entry.sections}
        return [s.id for s in sections if cached.get(s.id) != content_hash(s.text)]

    def cached_translation(self, key: str, section_id: str) -> str | None:
        entry = self._files.get(key)
        if entry is None:
            return None
        section = entry.section(section_id)
        return section.translated_content if section else None

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    def record_file_translation(
        self,
        key: str,
        source_text: str,
        output_text: str,
        source_lang: str,
        target_lang: str,
        sections: Iterable[SectionRecord],
    ) -> FileCacheEntry:
        """
        Overwrite the entry of a file after a successful translation.

        Section hashes are recomputed from the content passed in.
        """
        entry = FileCacheEntry(
            source_hash=content_hash(source_text),
            target_hash=content_hash(output_text),
            source_lang=source_lang,
            target_lang=target_lang,
            translated_at=datetime.now(timezone.utc).isoformat(),
            sections=[
                SectionCacheEntry(
                    id=record.id,
                    source_hash=content_hash(record.content),
                    translated_content=record.translated_content,
                )
                for record in sections
            ],
        )
        self._files[key] = entry
        self._dirty = True
        return entry

    def remove(self, key: str) -> bool:
        if self._files.pop(key, None) is None:
            return False
        self._dirty = True
        return True
