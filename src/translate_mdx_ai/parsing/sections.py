"""
Section data model for parsed documents.

A parsed document is an ordered tuple of sections. Sections are immutable;
per-run changes (for example marking an unchanged section as already
translated) are made with ``dataclasses.replace``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class SectionKind(str, Enum):
    """Kinds of document sections."""

    FRONTMATTER = "frontmatter"
    IMPORT = "import"
    HEADING = "heading"
    CONTENT = "content"
    CODEBLOCK = "codeblock"
    COMPONENT = "component"


# Kinds that are never sent to the translator
NEVER_TRANSLATABLE = frozenset({SectionKind.IMPORT, SectionKind.CODEBLOCK})


@dataclass(frozen=True)
class Section:
    """A contiguous span of a document."""

    id: str
    kind: SectionKind
    text: str
    start_line: int
    end_line: int
    translatable: bool = True
    heading_level: int | None = None
    title: str | None = None


@dataclass(frozen=True)
class ParsedDocument:
    """Result of parsing one document."""

    source_path: Path
    frontmatter: dict[str, str] | None
    sections: tuple[Section, ...]
    content_hash: str
    _index: dict[str, int] = field(default_factory=dict, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._index.update({s.id: i for i, s in enumerate(self.sections)})

    @property
    def title(self) -> str:
        """Document title from front matter, first heading, or file name."""
        if self.frontmatter and self.frontmatter.get("title"):
            return self.frontmatter["title"]
        for section in self.sections:
            if section.kind == SectionKind.HEADING and section.title:
                return section.title
        return self.source_path.stem

    @property
    def outline(self) -> list[str]:
        """Heading titles in document order, indented by level."""
        return [
            f"{'  ' * ((s.heading_level or 1) - 1)}{s.title}"
            for s in self.sections
            if s.kind == SectionKind.HEADING and s.title
        ]

    @property
    def section_ids(self) -> list[str]:
        return [s.id for s in self.sections]

    def section(self, section_id: str) -> Section:
        """Look up a section by id."""
        try:
            return self.sections[self._index[section_id]]
        except KeyError:
            raise KeyError(f"Unknown section id: {section_id}") from None
