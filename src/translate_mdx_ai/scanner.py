"""
Document scanner for translate-mdx-ai.

Finds the source-language Markdown/MDX documents of a docs tree and builds
file jobs for the requested target languages. Translated documents live next
to their source using the dot-suffix convention: ``index.mdx`` ->
``index.en.mdx``.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from pathlib import Path

from translate_mdx_ai.translation.context import LANGUAGE_NAMES
from translate_mdx_ai.translation.orchestrator import FileJob

# Supported file extensions and their types
SUPPORTED_EXTENSIONS = {
    ".md": "markdown",
    ".mdx": "mdx",
}


class DocumentScanner:
    """Scans a docs directory for source documents."""

    def __init__(self, docs_dir: Path | str, languages: Iterable[str] = ()):
        """
        Initialize scanner.

        Args:
            docs_dir: Root of the documentation tree.
            languages: Language codes whose ``name.<lang>.ext`` variants are
                translations, not sources. Known language codes are always
                included.
        """
        self.docs_dir = Path(docs_dir).resolve()
        self.languages = {lang.lower() for lang in languages} | set(LANGUAGE_NAMES)

    def find_documents(self, file_filter: str | None = None) -> list[Path]:
        """
        Find source documents, sorted by path.

        Args:
            file_filter: Optional relative path or file name selecting one file.

        Returns:
            Absolute paths of matching source documents.

        Raises:
            FileNotFoundError: If the docs directory does not exist.
        """
        if not self.docs_dir.exists():
            raise FileNotFoundError(f"Docs directory not found: {self.docs_dir}")
        if not self.docs_dir.is_dir():
            raise ValueError(f"Not a directory: {self.docs_dir}")

        documents = sorted(self._find_documents())
        if file_filter:
            documents = [p for p in documents if self._matches(p, file_filter)]
        return documents

    def _find_documents(self) -> Iterator[Path]:
        for path in self.docs_dir.glob("**/*"):
            if path.is_file() and is_supported_file(path) and not self.is_translation(path):
                yield path

    def _matches(self, path: Path, file_filter: str) -> bool:
        wanted = file_filter.replace("\\", "/").strip("/")
        relative = path.relative_to(self.docs_dir).as_posix()
        if relative == wanted or path.name == wanted:
            return True
        candidate = Path(file_filter).expanduser()
        return candidate.is_absolute() and candidate.resolve() == path

    def is_translation(self, path: Path) -> bool:
        """Whether a file is a language variant such as ``index.en.mdx``."""
        stem_suffix = Path(path.stem).suffix
        return bool(stem_suffix) and stem_suffix[1:].lower() in self.languages

    def build_jobs(
        self,
        source_lang: str,
        target_langs: Iterable[str],
        file_filter: str | None = None,
    ) -> list[FileJob]:
        """
        Build file jobs, grouped by target language.

        Args:
            source_lang: Language of the source documents.
            target_langs: Target language codes.
            file_filter: Optional relative path or file name.

        Returns:
            One job per (document, target language); the source language
            itself is never a target.
        """
        documents = self.find_documents(file_filter)
        return [
            FileJob(
                source_path=path,
                target_path=target_path_for(path, lang),
                source_lang=source_lang,
                target_lang=lang,
            )
            for lang in target_langs
            if lang != source_lang
            for path in documents
        ]


def target_path_for(source_path: Path, target_lang: str) -> Path:
    """Path of the translated document: ``name.<lang>.<ext>`` beside the source."""
    return source_path.with_name(f"{source_path.stem}.{target_lang}{source_path.suffix}")


def is_supported_file(file_path: Path) -> bool:
    """Check if a file is supported for processing."""
    return file_path.suffix.lower() in SUPPORTED_EXTENSIONS
