"""Tests for the translation cache store."""

import json
import logging
from pathlib import Path

import pytest

from tests.conftest import EXAMPLE_DOC
from translate_mdx_ai.cache import CACHE_VERSION, CacheStore, SectionRecord, cache_key
from translate_mdx_ai.hashing import content_hash
from translate_mdx_ai.parsing import parse_document

KEY = cache_key("docs/index.mdx", "en")


def record(store: CacheStore, text: str = EXAMPLE_DOC, key: str = KEY) -> None:
    doc = parse_document("docs/index.mdx", text)
    store.record_file_translation(
        key,
        source_text=text,
        output_text=text.upper(),
        source_lang="zh",
        target_lang="en",
        sections=[SectionRecord(s.id, s.text, s.text.upper()) for s in doc.sections],
    )


class TestCacheKey:
    """Tests for cache_key."""

    def test_key_includes_target_language(self) -> None:
        assert cache_key(Path("docs/index.mdx"), "ja") == "docs/index.mdx::ja"
        assert cache_key("docs/index.mdx", "en") != cache_key("docs/index.mdx", "ja")


class TestSkipDecisions:
    """Tests for file and section change detection."""

    def test_unknown_file_needs_translation(self) -> None:
        store = CacheStore()
        assert store.needs_file_translation(KEY, EXAMPLE_DOC, "zh", "en") is True

    def test_unchanged_file_skipped(self) -> None:
        """Same source and language pair needs no translation."""
        store = CacheStore()
        record(store)
        assert store.needs_file_translation(KEY, EXAMPLE_DOC, "zh", "en") is False

    def test_changed_source_needs_translation(self) -> None:
        store = CacheStore()
        record(store)
        assert store.needs_file_translation(KEY, EXAMPLE_DOC + "more\n", "zh", "en") is True

    def test_changed_language_pair_needs_translation(self) -> None:
        store = CacheStore()
        record(store)
        assert store.needs_file_translation(KEY, EXAMPLE_DOC, "en", "en") is True
        assert store.needs_file_translation(KEY, EXAMPLE_DOC, "zh", "ja") is True

    def test_all_sections_changed_without_entry(self) -> None:
        doc = parse_document("docs/index.mdx", EXAMPLE_DOC)
        assert CacheStore().changed_section_ids(KEY, doc.sections) == doc.section_ids

    def test_only_mutated_section_changed(self) -> None:
        """Only sections whose text differs are reported."""
        original = "# A\nalpha\n\n# B\nbeta\n\n# C\ngamma\n"
        store = CacheStore()
        record(store, original)

        mutated = parse_document("docs/index.mdx", original.replace("beta", "BETA"))
        assert store.changed_section_ids(KEY, mutated.sections) == ["section-1"]

    def test_new_sections_count_as_changed(self) -> None:
        store = CacheStore()
        record(store, "# A\nalpha\n")
        grown = parse_document("docs/index.mdx", "# A\nalpha\n\n# B\nbeta\n")
        assert store.changed_section_ids(KEY, grown.sections) == ["section-1"]

    def test_cached_translation(self) -> None:
        store = CacheStore()
        record(store)
        assert store.cached_translation(KEY, "section-1") == "# HELLO\nWORLD"
        assert store.cached_translation(KEY, "section-7") is None
        assert store.cached_translation("other.mdx::en", "section-1") is None

    def test_record_recomputes_hashes(self) -> None:
        """Stored hashes come from the content passed in."""
        store = CacheStore()
        record(store)
        entry = store.entry(KEY)

        assert entry is not None
        assert entry.source_hash == content_hash(EXAMPLE_DOC)
        assert entry.target_hash == content_hash(EXAMPLE_DOC.upper())
        assert entry.sections[1].source_hash == content_hash("# Hello\nworld")

    def test_record_overwrites_entry(self) -> None:
        store = CacheStore()
        record(store, "# A\nalpha\n\n# B\nbeta\n")
        record(store, "# A\nalpha\n")
        assert len(store.entry(KEY).sections) == 1


class TestPersistence:
    """Tests for load/save."""

    def test_save_and_load(self, tmp_path: Path) -> None:
        """Entries survive a save/load cycle in the documented format."""
        path = tmp_path / "nested" / "cache.json"
        store = CacheStore(path)
        store.load()
        record(store)

        assert store.save() is True

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["version"] == CACHE_VERSION
        entry = data["files"][KEY]
        assert set(entry) == {
            "sourceHash",
            "targetHash",
            "sourceLang",
            "targetLang",
            "translatedAt",
            "sections",
        }
        assert entry["sections"][0]["translatedContent"] == "---\nTITLE: X\n---"

        reloaded = CacheStore(path)
        reloaded.load()
        assert reloaded.needs_file_translation(KEY, EXAMPLE_DOC, "zh", "en") is False
        assert reloaded.cached_translation(KEY, "section-1") == "# HELLO\nWORLD"

    def test_save_only_when_dirty(self, tmp_path: Path) -> None:
        path = tmp_path / "cache.json"
        store = CacheStore(path)
        store.load()

        assert store.save() is False
        assert not path.exists()

        record(store)
        assert store.save() is True
        assert store.save() is False

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        store = CacheStore(tmp_path / "absent.json")
        store.load()
        assert len(store) == 0

    def test_corrupt_file_degrades_to_empty(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Unreadable JSON is discarded with a warning."""
        path = tmp_path / "cache.json"
        path.write_text("{not json", encoding="utf-8")

        store = CacheStore(path)
        with caplog.at_level(logging.WARNING, logger="translate_mdx_ai"):
            store.load()

        assert len(store) == 0
        assert "Discarding translation cache" in caplog.text

    def test_version_mismatch_discards_everything(self, tmp_path: Path) -> None:
        path = tmp_path / "cache.json"
        store = CacheStore(path)
        record(store)
        store.save()

        data = json.loads(path.read_text(encoding="utf-8"))
        data["version"] = "0.1"
        path.write_text(json.dumps(data), encoding="utf-8")

        reloaded = CacheStore(path)
        reloaded.load()
        assert len(reloaded) == 0

    def test_malformed_entry_discards_everything(self, tmp_path: Path) -> None:
        path = tmp_path / "cache.json"
        payload = {"version": CACHE_VERSION, "files": {KEY: {"sourceLang": "zh"}}}
        path.write_text(json.dumps(payload), encoding="utf-8")

        store = CacheStore(path)
        store.load()
        assert len(store) == 0

    def test_clear(self, tmp_path: Path) -> None:
        """Clearing empties the cache and persists on save."""
        path = tmp_path / "cache.json"
        store = CacheStore(path)
        record(store)
        store.save()

        store.clear()
        assert len(store) == 0
        assert store.dirty is True
        store.save()

        assert json.loads(path.read_text(encoding="utf-8"))["files"] == {}

    def test_in_memory_load_keeps_entries(self) -> None:
        store = CacheStore()
        record(store)
        store.load()
        assert len(store) == 1
        assert store.save() is False

    def test_remove(self) -> None:
        store = CacheStore()
        record(store)
        assert store.remove(KEY) is True
        assert store.remove(KEY) is False
        assert list(store.keys()) == []
