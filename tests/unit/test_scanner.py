"""Tests for docs tree scanning."""

from pathlib import Path

import pytest

from translate_mdx_ai.scanner import DocumentScanner, is_supported_file, target_path_for


@pytest.fixture
def tree(tmp_path: Path) -> Path:
    root = tmp_path / "docs"
    (root / "guide").mkdir(parents=True)
    for name in [
        "index.mdx",
        "index.en.mdx",
        "index.ja.mdx",
        "guide/setup.mdx",
        "guide/setup.en.mdx",
        "guide/notes.md",
        "guide/meta.json",
        "guide/config.test.mdx",
    ]:
        (root / name).write_text("# Doc\n", encoding="utf-8")
    return root


class TestFindDocuments:
    """Tests for DocumentScanner.find_documents."""

    def test_skips_translations_and_other_files(self, tree: Path) -> None:
        scanner = DocumentScanner(tree, ["zh", "en", "ja"])
        found = [p.relative_to(tree.resolve()).as_posix() for p in scanner.find_documents()]

        assert found == [
            "guide/config.test.mdx",
            "guide/notes.md",
            "guide/setup.mdx",
            "index.mdx",
        ]

    def test_filter_by_relative_path(self, tree: Path) -> None:
        scanner = DocumentScanner(tree)
        assert [p.name for p in scanner.find_documents("guide/setup.mdx")] == ["setup.mdx"]

    def test_filter_by_name(self, tree: Path) -> None:
        scanner = DocumentScanner(tree)
        assert [p.name for p in scanner.find_documents("notes.md")] == ["notes.md"]

    def test_filter_by_absolute_path(self, tree: Path) -> None:
        scanner = DocumentScanner(tree)
        found = scanner.find_documents(str(tree / "index.mdx"))
        assert found == [(tree / "index.mdx").resolve()]

    def test_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            DocumentScanner(tmp_path / "absent").find_documents()


class TestBuildJobs:
    """Tests for DocumentScanner.build_jobs."""

    def test_jobs_per_language(self, tree: Path) -> None:
        scanner = DocumentScanner(tree)
        jobs = scanner.build_jobs("zh", ["en", "ja"], file_filter="index.mdx")

        assert [(j.target_lang, j.target_path.name) for j in jobs] == [
            ("en", "index.en.mdx"),
            ("ja", "index.ja.mdx"),
        ]
        assert all(j.source_lang == "zh" for j in jobs)

    def test_source_language_never_a_target(self, tree: Path) -> None:
        jobs = DocumentScanner(tree).build_jobs("zh", ["zh", "en"], file_filter="index.mdx")
        assert [j.target_lang for j in jobs] == ["en"]


class TestHelpers:
    def test_target_path_for(self) -> None:
        assert target_path_for(Path("docs/a/index.mdx"), "en") == Path("docs/a/index.en.mdx")
        assert target_path_for(Path("notes.md"), "ja") == Path("notes.ja.md")

    def test_is_supported_file(self) -> None:
        assert is_supported_file(Path("a.MDX"))
        assert not is_supported_file(Path("meta.json"))
